from abc import ABC, abstractmethod

from dashboard.domain.channel_aggregate import ChannelTotals
from dashboard.domain.video import VideoMetadata


class VideoCatalogPort(ABC):
    @abstractmethod
    async def fetch_catalog(self) -> list[VideoMetadata]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_channel_totals(self) -> ChannelTotals:
        raise NotImplementedError
