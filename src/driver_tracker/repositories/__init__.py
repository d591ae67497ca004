"""Repository layer for tracking link persistence."""
