"""Core Application Layer: resource services built on the HTTP client core."""
