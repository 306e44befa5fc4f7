from abc import ABC, abstractmethod
from typing import Set

from .capabilities import DatasourceCapability
from .contracts import ResultFrame


class DatasourceAdapter(ABC):
    """Canonical interface every SQL execution channel must implement."""

    @property
    @abstractmethod
    def datasource_id(self) -> str:
        """Unique identifier for this datasource instance."""
        pass

    @abstractmethod
    def connect(self) -> None:
        """Initialize connections / clients based on config."""
        pass

    @abstractmethod
    def capabilities(self) -> Set[DatasourceCapability]:
        """Return what this channel supports."""
        pass

    @abstractmethod
    def execute(self, sql: str) -> ResultFrame:
        """Execute one statement on a dedicated connection and return normalized results.

        Implementations must be safe to call from several threads at once when they
        report ``SUPPORTS_CONCURRENT_SCANS``.
        """
        pass

    @abstractmethod
    def get_dialect(self) -> str:
        """Return the normalized dialect string (e.g. 'postgres', 'tsql')."""
        pass

    def close(self) -> None:
        """Release pooled connections. Optional."""
        return None
