from campusbell.db.base import Base
from campusbell.db.session import get_db, engine, SessionLocal
from campusbell.db.tables import ALL_TABLE_NAMES, NOTIFICATION_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES", "NOTIFICATION_TABLE_NAMES"]
