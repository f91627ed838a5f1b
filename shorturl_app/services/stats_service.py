"""
Statistics Service

Aggregates stored clicks into the composite report behind
GET /api/stats/{code}, and serves the raw click list.

Design Decisions:
- Grouped counts (user agent, IP, location, device type) run in SQL
- Anything that depends on classification or timezone math (OS, hour
  buckets, referrer collapsing, device reclassification) runs in Python,
  which keeps the queries portable between SQLite and PostgreSQL
- Device type is classified at write time and trusted from storage;
  rows with an empty label are reclassified from their user agent.
  OS is not stored, so it is always classified at read time.
"""

import logging
from collections import Counter
from typing import Iterable, List, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shorturl_app.analytics.device import UNKNOWN_DEVICE, parse_device_type, parse_os
from shorturl_app.analytics.geo import UNKNOWN_LOCATION
from shorturl_app.config import settings
from shorturl_app.exceptions import NotFoundError, StorageError, ValidationError
from shorturl_app.models.click import Click
from shorturl_app.models.url import URL
from shorturl_app.schemas.stats import (
    ClickDetail,
    ClickListResponse,
    DeviceStat,
    DeviceTypeStat,
    IPStat,
    LocationStat,
    OSStat,
    ReferrerStat,
    StatsResponse,
    TimeDistributionStat,
)
from shorturl_app.services.url_service import URLService
from shorturl_app.timezones import as_utc, hour_bucket, to_display

logger = logging.getLogger(__name__)


DIRECT_VISIT = "直接訪問"


def sort_by_count(counts: Iterable[Tuple[str, int]]) -> List[Tuple[str, int]]:
    """Descending by count; equal counts keep their incoming order"""
    return sorted(counts, key=lambda item: item[1], reverse=True)


class StatsService:
    """
    Service for retrieving click statistics of a short URL.
    """

    USER_AGENT_LIMIT = 10
    REFERRER_LIMIT = 10
    IP_LIMIT = 20
    TIME_BUCKET_LIMIT = 48
    LOCATION_LIMIT = 20
    CLICK_LIST_LIMIT = 1000

    def __init__(self, db: Session, own_domain: str = None):
        """
        Args:
            db: Database session
            own_domain: Referrers containing it count as direct visits
        """
        self.db = db
        self.own_domain = settings.own_domain if own_domain is None else own_domain
        self.url_service = URLService(db)

    async def _get_url(self, short_code: str) -> URL:
        if not short_code or not short_code.strip():
            raise ValidationError("Short code is required")
        url = await self.url_service.get_url_by_short_code(short_code)
        if url is None:
            raise NotFoundError("Short URL not found")
        return url

    async def get_stats(self, short_code: str) -> StatsResponse:
        """
        Build the composite report for a short code.

        Raises:
            NotFoundError: unknown short code
            StorageError: any query failed
        """
        url = await self._get_url(short_code)

        try:
            total_clicks = (
                self.db.query(func.count(Click.id))
                .filter(Click.url_id == url.id)
                .scalar()
            ) or 0

            response = StatsResponse(
                short_code=url.short_code,
                original_url=url.original_url,
                total_clicks=total_clicks,
                created_at=as_utc(url.created_at),
                device_stats=self._user_agent_stats(url.id),
                referrer_stats=self._referrer_stats(url.id),
                ip_stats=self._ip_stats(url.id),
                time_distribution=self._time_distribution(url.id),
                device_type_stats=self._device_type_stats(url.id),
                location_stats=self._location_stats(url.id),
                os_stats=self._os_stats(url.id),
            )
        except SQLAlchemyError as e:
            logger.error("Error querying stats for %s: %s", short_code, e)
            raise StorageError("Database error")

        logger.info(
            "Stats for short_code %s: %d clicks, %d time slots",
            short_code, total_clicks, len(response.time_distribution),
        )
        return response

    def _grouped_counts(self, column, url_id: str, *conditions, limit: int = None):
        count = func.count(Click.id)
        query = (
            self.db.query(column, count)
            .filter(Click.url_id == url_id, *conditions)
            .group_by(column)
            .order_by(count.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def _user_agent_stats(self, url_id: str) -> List[DeviceStat]:
        rows = self._grouped_counts(
            Click.user_agent, url_id,
            Click.user_agent.isnot(None), Click.user_agent != "",
            limit=self.USER_AGENT_LIMIT,
        )
        return [DeviceStat(user_agent=ua, count=count) for ua, count in rows]

    def _referrer_stats(self, url_id: str) -> List[ReferrerStat]:
        counts = Counter()
        for referrer, count in self._grouped_counts(Click.referrer, url_id):
            if not referrer or (self.own_domain and self.own_domain in referrer):
                referrer = DIRECT_VISIT
            counts[referrer] += count

        top = sort_by_count(counts.items())[:self.REFERRER_LIMIT]
        return [ReferrerStat(referrer=referrer, count=count) for referrer, count in top]

    def _ip_stats(self, url_id: str) -> List[IPStat]:
        rows = self._grouped_counts(
            Click.ip_address, url_id,
            Click.ip_address.isnot(None), Click.ip_address != "",
            limit=self.IP_LIMIT,
        )
        return [IPStat(ip_address=ip, count=count) for ip, count in rows]

    def _time_distribution(self, url_id: str) -> List[TimeDistributionStat]:
        """Most recent hour buckets, returned oldest first"""
        rows = self.db.query(Click.clicked_at).filter(Click.url_id == url_id).all()
        buckets = Counter(hour_bucket(clicked_at) for (clicked_at,) in rows)

        # "YYYY-MM-DD HH:00" sorts chronologically as a string
        latest = sorted(buckets, reverse=True)[:self.TIME_BUCKET_LIMIT]
        return [
            TimeDistributionStat(time=slot, count=buckets[slot])
            for slot in reversed(latest)
        ]

    def _device_type_stats(self, url_id: str) -> List[DeviceTypeStat]:
        counts = Counter()
        needs_reclassify = False
        for device_type, count in self._grouped_counts(Click.device_type, url_id):
            if device_type:
                counts[device_type] += count
            else:
                needs_reclassify = True

        if needs_reclassify:
            rows = (
                self.db.query(Click.user_agent)
                .filter(
                    Click.url_id == url_id,
                    or_(Click.device_type.is_(None), Click.device_type == ""),
                )
                .all()
            )
            for (user_agent,) in rows:
                counts[parse_device_type(user_agent)] += 1

        return [
            DeviceTypeStat(device_type=device_type, count=count)
            for device_type, count in sort_by_count(counts.items())
        ]

    def _location_stats(self, url_id: str) -> List[LocationStat]:
        rows = self._grouped_counts(
            Click.location, url_id,
            Click.location.isnot(None),
            Click.location != "",
            Click.location != UNKNOWN_LOCATION,
            limit=self.LOCATION_LIMIT,
        )
        return [LocationStat(location=location, count=count) for location, count in rows]

    def _os_stats(self, url_id: str) -> List[OSStat]:
        rows = (
            self.db.query(Click.user_agent)
            .filter(
                Click.url_id == url_id,
                Click.user_agent.isnot(None),
                Click.user_agent != "",
            )
            .all()
        )
        counts = Counter(parse_os(user_agent) for (user_agent,) in rows)
        return [OSStat(os=name, count=count) for name, count in sort_by_count(counts.items())]

    async def get_click_list(self, short_code: str) -> ClickListResponse:
        """
        Most recent clicks first, timestamps in the display timezone.

        Raises:
            NotFoundError: unknown short code
            StorageError: the query failed
        """
        url = await self._get_url(short_code)

        try:
            rows = (
                self.db.query(Click)
                .filter(Click.url_id == url.id)
                .order_by(Click.clicked_at.desc())
                .limit(self.CLICK_LIST_LIMIT)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("Error querying click list for %s: %s", short_code, e)
            raise StorageError("Database error")

        clicks = [
            ClickDetail(
                clicked_at=to_display(click.clicked_at),
                ip_address=click.ip_address or "",
                location=click.location or "",
                device_type=click.device_type or UNKNOWN_DEVICE,
            )
            for click in rows
        ]
        return ClickListResponse(short_code=url.short_code, clicks=clicks, total=len(clicks))
