"""Persistence: engine/session setup and ORM models."""
