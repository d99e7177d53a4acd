"""Geocoding cache and batch address resolution service."""
