from .postgres import (
    Base,
    AsyncSessionLocal,
    get_async_session,
    init_db,
    close_db,
    check_db_connection,
)

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "get_async_session",
    "init_db",
    "close_db",
    "check_db_connection",
]
