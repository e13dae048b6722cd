"""
Feature modules for Run Social.

Each feature is a self-contained module with:
- models.py - SQLAlchemy models
- schemas.py - Pydantic schemas
- repository.py - Data access
- service/engine modules - Business logic
"""
