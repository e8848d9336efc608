"""Repair output serialization."""
