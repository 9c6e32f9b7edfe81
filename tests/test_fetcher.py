"""Tests for the paginated fetcher."""

import aiohttp
import pytest

from fakes import FakeResponse, FakeSession, page
from roblox_inventory.data.endpoints import collectibles_endpoint, inventory_endpoint
from roblox_inventory.data.fetcher import PaginatedFetcher
from roblox_inventory.data.models import FetchStatus, Source
from roblox_inventory.data.roblox_client import RobloxClient

USER_ID = 231649154


@pytest.fixture
def fetcher(client, sleeper):
    return PaginatedFetcher(
        client, max_attempts=5, base_delay=0.5, page_delay=0.25, max_pages=0, sleep=sleeper
    )


@pytest.mark.asyncio
async def test_walks_cursor_until_exhausted(fetcher, roblox, sleeper):
    roblox.queue("collectibles", "", page([{"assetId": 1, "name": "Valk"}], cursor="abc"))
    roblox.queue("collectibles", "abc", page([{"assetId": 2, "name": "Sparkle"}]))

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.COMPLETE
    assert result.pages == 2
    assert [r.asset_id for r in result.records] == [1, 2]
    assert all(r.source is Source.COLLECTIBLES for r in result.records)
    # One pause between the two pages, none after the last
    assert sleeper.delays == [0.25]


@pytest.mark.asyncio
async def test_rate_limit_retries_same_page_without_duplicates(fetcher, roblox, sleeper):
    roblox.queue(
        "collectibles",
        "",
        FakeResponse(429),
        FakeResponse(429),
        FakeResponse(429),
        page([{"assetId": 7, "name": "Domino Crown"}]),
    )

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.COMPLETE
    assert [r.asset_id for r in result.records] == [7]
    assert roblox.count("collectibles") == 4
    # Exponential backoff: base * 2**attempt
    assert sleeper.delays == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_forbidden_stops_immediately_as_private(fetcher, roblox):
    roblox.queue("collectibles", "", FakeResponse(403))

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.PRIVATE
    assert result.records == ()
    assert result.error is None
    assert roblox.count("collectibles") == 1


@pytest.mark.asyncio
async def test_exhausted_retries_keep_earlier_pages(fetcher, roblox):
    roblox.queue("collectibles", "", page([{"assetId": 1}], cursor="next"))
    roblox.queue("collectibles", "next", FakeResponse(503))

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.FAILED
    assert not result.ok
    assert [r.asset_id for r in result.records] == [1]
    assert "503" in result.error
    # First page once, failing page max_attempts times
    assert roblox.count("collectibles") == 1 + 5


@pytest.mark.asyncio
async def test_client_error_status_is_not_retried(fetcher, roblox):
    roblox.queue("collectibles", "", FakeResponse(400, {"errors": []}))

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.FAILED
    assert roblox.count("collectibles") == 1


@pytest.mark.asyncio
async def test_page_cap_truncates(client, roblox, sleeper):
    roblox.queue("collectibles", "", page([{"assetId": 1}], cursor="a"))
    roblox.queue("collectibles", "a", page([{"assetId": 2}], cursor="b"))
    roblox.queue("collectibles", "b", page([{"assetId": 3}]))
    fetcher = PaginatedFetcher(client, max_pages=2, page_delay=0, sleep=sleeper)

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.TRUNCATED
    assert result.ok
    assert [r.asset_id for r in result.records] == [1, 2]


@pytest.mark.asyncio
async def test_malformed_page_is_treated_as_empty(fetcher, roblox):
    roblox.queue("collectibles", "", FakeResponse(200, {"unexpected": True}))

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.COMPLETE
    assert result.records == ()


@pytest.mark.asyncio
async def test_invalid_json_fails_the_source(fetcher, roblox):
    roblox.queue("collectibles", "", FakeResponse(200, ValueError("Expecting value")))

    result = await fetcher.fetch_all_pages(collectibles_endpoint(), USER_ID)

    assert result.status is FetchStatus.FAILED
    assert roblox.count("collectibles") == 1


@pytest.mark.asyncio
async def test_connection_errors_are_retried(sleeper):
    calls = []

    def handler(method, url, body):
        calls.append(url)
        if len(calls) < 3:
            raise aiohttp.ClientConnectionError("connection reset")
        return page([{"id": 5, "name": "Fedora"}])

    client = RobloxClient(session=FakeSession(handler))
    fetcher = PaginatedFetcher(client, max_attempts=3, base_delay=1, sleep=sleeper)

    result = await fetcher.fetch_all_pages(inventory_endpoint("Hat"), USER_ID)

    assert result.status is FetchStatus.COMPLETE
    assert result.label == "inventory:Hat"
    assert [r.asset_id for r in result.records] == [5]
    assert sleeper.delays == [1.0, 2.0]
