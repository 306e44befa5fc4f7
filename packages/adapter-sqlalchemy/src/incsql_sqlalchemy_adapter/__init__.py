from .adapter import BaseSQLAlchemyAdapter

__all__ = [
    "BaseSQLAlchemyAdapter",
]
