"""Queue port used by the dispatcher to hand units of work to workers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class TaskQueuePort(ABC):

    @abstractmethod
    def enqueue(self, consumer: str, payload: Dict[str, Any], queue: Optional[str] = None) -> None:
        """Put one consumer invocation on a durable queue.

        Raises:
            Exception: broker unreachable
        """
