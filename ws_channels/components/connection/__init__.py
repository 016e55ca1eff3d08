"""Transport ownership and lifecycle callbacks."""
