"""
Database Models

Feature models live next to their feature (features/<name>/models.py)
and register themselves on this Base when imported.

Use runsocial.db.session.import_models() to load all of them at once.
"""

from runsocial.models.base import Base

__all__ = ["Base"]
