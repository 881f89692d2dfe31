from dataclasses import dataclass


@dataclass(frozen=True)
class TrafficSourceItem:
    source: str
    views: int
    percentage: float


@dataclass(frozen=True)
class SearchTermItem:
    term: str
    views: int


@dataclass(frozen=True)
class DemographicsItem:
    age_group: str
    gender: str
    viewer_percentage: float


@dataclass(frozen=True)
class GeographyItem:
    country: str
    views: int
    percentage: float


@dataclass(frozen=True)
class DeviceItem:
    device_type: str
    views: int
    percentage: float


@dataclass(frozen=True)
class SubscriberSourceItem:
    video_id: str
    video_title: str
    subscribers_gained: int
