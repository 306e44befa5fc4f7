from .capabilities import DatasourceCapability
from .contracts import CONNECTION_ERROR_CODES, ResultColumn, ResultError, ResultFrame
from .dialects import normalize_dialect
from .interfaces import DatasourceAdapter
from .schema import TableRef

__all__ = [
    "CONNECTION_ERROR_CODES",
    "DatasourceAdapter",
    "DatasourceCapability",
    "ResultColumn",
    "ResultError",
    "ResultFrame",
    "TableRef",
    "normalize_dialect",
]
