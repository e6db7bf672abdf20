"""Configuration, error codes, and shared data models."""
