"""Configuration layer — pydantic models, settings sources, and logging setup."""
