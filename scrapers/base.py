from __future__ import annotations

from abc import ABC, abstractmethod

from core.models import ContentItem


class BaseSourceFetcher(ABC):
    @abstractmethod
    async def fetch_source(self, source_name: str) -> list[ContentItem]:
        """Fetch one source's items. Returns [] when the source is unreachable."""
        ...
