"""
Common utilities and configurations for Building Ops services.
"""


def get_async_database_url(url: str) -> str:
    """Convert database URL to async format for async SQLAlchemy drivers."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    else:
        return url


__all__ = [
    "get_async_database_url",
]
