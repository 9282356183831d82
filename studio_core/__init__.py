"""Shared core package for the studio admin service.

This package holds the pieces every layer of the admin service relies on:

- Enums (enums.py) - status, role and category values used by models and schemas
- Database models (models.py) - SQLAlchemy models for the studio's business records
- Schemas (schemas.py) - pydantic request, query and response models
- Validation utilities (validation.py) - input sanitization and suspicious input detection
- Utility functions (utils.py) - file signature checks, image inspection and hashing
"""
