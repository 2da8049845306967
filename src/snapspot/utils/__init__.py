"""Utility helpers shared across SnapSpot."""
