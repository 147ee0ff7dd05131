"""Utilities: test data generation."""
