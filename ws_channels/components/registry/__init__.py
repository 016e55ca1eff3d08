"""Per-topic join state."""
