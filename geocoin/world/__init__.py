"""Grid cells, the deterministic oracle, cache generation and scanning."""
