"""
Database layer: SQLAlchemy models, session management and repositories.
"""
from .base import Base, BaseModel
from .config import DatabaseConfig, get_db, get_db_config, get_db_session, init_database

__all__ = [
    "Base",
    "BaseModel",
    "DatabaseConfig",
    "get_db",
    "get_db_config",
    "get_db_session",
    "init_database",
]
