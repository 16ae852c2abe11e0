"""
Database module.

Usage:
    from db import db

    profile = db.get_profile(user_id, experience_id)
"""

from db.database import close_backend, db, get_backend, set_backend

__all__ = ["close_backend", "db", "get_backend", "set_backend"]
