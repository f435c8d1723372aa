"""Persistence: SQLAlchemy engine, ORM models and the coach repository."""
