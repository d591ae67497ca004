"""Client for the upstream driver location API."""
