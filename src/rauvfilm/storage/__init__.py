"""Persistence: models, database sessions and repositories."""
