"""Point features, visual scales and coordinate helpers."""
