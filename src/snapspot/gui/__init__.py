"""Qt widgets for SnapSpot."""
