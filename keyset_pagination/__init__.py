"""Keyset (cursor) pagination engine for SQLAlchemy-backed services."""

__version__ = "0.1.0"
