"""Core infrastructure: configuration, logging, database, dependencies."""
