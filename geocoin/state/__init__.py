"""Mutable game state: cache overrides, the player session, persistence."""
