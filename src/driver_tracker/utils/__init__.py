"""Shared utilities: logging and display formatting."""
