"""
storefront.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models for users and role assignments, engine/session setup, and repositories.
"""

# Package marker.
