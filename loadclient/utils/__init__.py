"""Configuration, timing and logging helpers."""
