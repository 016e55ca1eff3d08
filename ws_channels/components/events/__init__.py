"""Handler registration and frame routing."""
