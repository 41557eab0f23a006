from app.infrastructure.database.session import AsyncSessionLocal, Base, get_db, get_session_factory

__all__ = ["AsyncSessionLocal", "Base", "get_db", "get_session_factory"]
