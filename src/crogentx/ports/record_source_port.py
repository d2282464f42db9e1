from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from crogentx.core.models import Agent, Transaction


class RecordSourcePort(ABC):
    """
    Abstract Class for fetching transaction and agent records.

    Implementations return the full in-memory corpus; callers filter and
    paginate. Returned lists must not be mutated by callers.
    """

    @abstractmethod
    def get_transactions(self) -> List[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def get_agents(self) -> List[Agent]:
        raise NotImplementedError

    def reset(self) -> None:
        """Drop any cached records. No-op for stateless sources."""
        return None
