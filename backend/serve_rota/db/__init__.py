from serve_rota.db.base import Base
from serve_rota.db.session import get_db, engine, SessionLocal
from serve_rota.db.tables import ALL_TABLE_NAMES, CORE_TABLE_NAMES, STAFF_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES", "CORE_TABLE_NAMES", "STAFF_TABLE_NAMES"]
