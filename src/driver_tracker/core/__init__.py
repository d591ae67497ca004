"""Tracking link lifecycle and the expired link sweeper."""
