"""Persistence layer: SQLAlchemy models and repositories."""
