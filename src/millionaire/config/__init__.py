"""Configuration loading and the provider/model registry."""
