"""Two-party restaurant matching service."""
