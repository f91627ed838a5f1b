import asyncio
import time

import pytest
import requests

from shorturl_app.analytics import geo
from shorturl_app.analytics.geo import GeoResolver, format_location


class FakeResponse:
    def __init__(self, status_code=200, payload=None, error=None):
        self.status_code = status_code
        self._payload = payload
        self._error = error

    def json(self):
        if self._error:
            raise self._error
        return self._payload


@pytest.fixture
def resolver():
    return GeoResolver(api_url="http://geo.test/json/{ip}?lang=zh-CN", timeout=2.0)


class RecordingGet:
    """Stands in for requests.get; records every outbound lookup"""

    def __init__(self):
        self.recorded = []
        self.response = FakeResponse(payload={})

    def __call__(self, url, timeout=None):
        self.recorded.append((url, timeout))
        return self.response


@pytest.fixture
def calls(monkeypatch):
    recorder = RecordingGet()
    monkeypatch.setattr(geo.requests, "get", recorder)
    return recorder


class TestLocalAddresses:

    @pytest.mark.parametrize("ip", ["", "127.0.0.1", "10.1.2.3", "172.16.0.9", "192.168.1.5", "::1", "localhost"])
    def test_local_without_lookup(self, resolver, calls, ip):
        assert resolver.lookup(ip) == "本地"
        assert asyncio.run(resolver.resolve(ip)) == "本地"
        assert calls.recorded == []


class TestLookup:

    def test_success(self, resolver, calls):
        calls.response = FakeResponse(payload={
            "status": "success", "country": "日本", "regionName": "東京都", "city": "新宿区",
        })

        assert resolver.lookup("203.0.113.7") == "日本, 東京都, 新宿区"
        assert calls.recorded == [("http://geo.test/json/203.0.113.7?lang=zh-CN", 2.0)]

    def test_async_resolve(self, resolver, calls):
        calls.response = FakeResponse(payload={"country": "美國", "regionName": "加州", "city": ""})
        assert asyncio.run(resolver.resolve("8.8.8.8")) == "美國, 加州"

    def test_non_200_is_unknown(self, resolver, calls):
        calls.response = FakeResponse(status_code=429)
        assert resolver.lookup("8.8.8.8") == "未知"

    def test_bad_json_is_unknown(self, resolver, calls):
        calls.response = FakeResponse(error=ValueError("not json"))
        assert resolver.lookup("8.8.8.8") == "未知"

    def test_transport_error_is_unknown(self, resolver, monkeypatch):
        def timeout(url, timeout=None):
            raise requests.Timeout("too slow")

        monkeypatch.setattr(geo.requests, "get", timeout)
        assert resolver.lookup("8.8.8.8") == "未知"

    def test_failed_lookup_payload_is_unknown(self, resolver, calls):
        calls.response = FakeResponse(payload={"status": "fail", "message": "reserved range"})
        assert resolver.lookup("8.8.8.8") == "未知"


class TestFormatLocation:

    def test_region_same_as_country_skipped(self):
        assert format_location({"country": "新加坡", "regionName": "新加坡", "city": "新加坡"}) == "新加坡, 新加坡"

    def test_partial_fields(self):
        assert format_location({"country": "", "regionName": "", "city": "Paris"}) == "Paris"

    def test_empty(self):
        assert format_location({}) == "未知"


class StalledResolver(GeoResolver):
    def lookup(self, ip):
        time.sleep(1.0)
        return "日本"


def test_resolve_capped_at_timeout():
    resolver = StalledResolver(api_url="http://geo.test/{ip}", timeout=0.2)

    async def timed_resolve():
        started = time.monotonic()
        location = await resolver.resolve("8.8.8.8")
        return location, time.monotonic() - started

    location, elapsed = asyncio.run(timed_resolve())

    assert location == "未知"
    assert elapsed < 0.8
