"""Database Metadata: SQLAlchemy declarative Base shared by models and alembic.

Invariants:
    - Engine and sessions live in infrastructure/database.py, not here
"""
