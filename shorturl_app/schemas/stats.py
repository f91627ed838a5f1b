from pydantic import BaseModel
from typing import List
from datetime import datetime


class DeviceStat(BaseModel):
    user_agent: str
    count: int


class ReferrerStat(BaseModel):
    referrer: str
    count: int


class IPStat(BaseModel):
    ip_address: str
    count: int


class TimeDistributionStat(BaseModel):
    time: str  # hour bucket in the display timezone, e.g. "2024-01-01 14:00"
    count: int


class DeviceTypeStat(BaseModel):
    device_type: str
    count: int


class LocationStat(BaseModel):
    location: str
    count: int


class OSStat(BaseModel):
    os: str
    count: int


class StatsResponse(BaseModel):
    """Composite click report for one short link"""
    short_code: str
    original_url: str
    total_clicks: int
    created_at: datetime
    device_stats: List[DeviceStat] = []
    referrer_stats: List[ReferrerStat] = []
    ip_stats: List[IPStat] = []
    time_distribution: List[TimeDistributionStat] = []
    device_type_stats: List[DeviceTypeStat] = []
    location_stats: List[LocationStat] = []
    os_stats: List[OSStat] = []


class ClickDetail(BaseModel):
    clicked_at: datetime  # display timezone
    ip_address: str
    location: str
    device_type: str


class ClickListResponse(BaseModel):
    short_code: str
    clicks: List[ClickDetail] = []
    total: int
