"""Configuration, logging and token helpers."""
