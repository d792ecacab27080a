"""Abstract base class for resource fetchers."""

import threading
from abc import ABC, abstractmethod

from issue2md.models import FetchOptions, IssueData, ResourceRef


class Fetcher(ABC):
    @abstractmethod
    def fetch(
        self,
        ref: ResourceRef,
        opts: FetchOptions,
        cancel: threading.Event | None = None,
    ) -> IssueData: ...

    def close(self) -> None:
        """Release transport resources; the default holds none."""
