"""Persistence layer: SQLAlchemy models, storage and the credential store."""
