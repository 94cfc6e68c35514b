"""geocoin - deterministic world generation and persistent state for a
location-based coin collecting game."""
