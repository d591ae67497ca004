"""Domain layer for Driver Tracker.

Contains the error taxonomy and the upstream driver record model.
This layer has no dependencies on infrastructure concerns.
"""
