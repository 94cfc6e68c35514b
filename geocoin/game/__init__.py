"""Configuration, the action engine and the live location feed."""
