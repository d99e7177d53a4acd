"""Service layer orchestrating library components."""
