"""
Base writer interface for push-style backends.

A writer turns one Snapshot into its backend's native representation
and commits it. Connection state is private to the writer: it is
established lazily on the first write and dropped after a failure so
the next write reconnects.
"""

from abc import ABC, abstractmethod

from ..sensors.models import Snapshot


class MetricWriter(ABC):
    """
    Abstract base class for backend writers.

    Writers are called serially by the scheduler and are never
    invoked concurrently, so they need no internal locking.
    """

    # Backend name for log messages (override in subclasses)
    BACKEND: str = "unknown"

    @abstractmethod
    async def write(self, snapshot: Snapshot) -> None:
        """
        Export a snapshot.

        Raises:
            Exception: Any failure; the caller logs it and moves on
        """
        pass

    async def close(self) -> None:
        """Release any open connection."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.BACKEND})"
