"""In-memory stand-ins for the Roblox HTTP endpoints."""

from __future__ import annotations

from typing import Any, Callable, Optional
from urllib.parse import parse_qs, urlencode, urlsplit


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        payload: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.status = status
        self._payload = payload
        self.headers = headers or {}

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc: object) -> bool:
        return False


Handler = Callable[[str, str, Any], FakeResponse]


class FakeSession:
    """Mimics the slice of ``aiohttp.ClientSession`` the client uses."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.closed = False
        self.calls: list[tuple[str, str, Any, dict]] = []

    def get(self, url: str, params: Any = None, headers: Any = None) -> FakeResponse:
        full_url = f"{url}?{urlencode(params)}" if params else url
        self.calls.append(("GET", full_url, None, dict(headers or {})))
        return self.handler("GET", full_url, None)

    def post(self, url: str, json: Any = None, headers: Any = None) -> FakeResponse:
        self.calls.append(("POST", url, json, dict(headers or {})))
        return self.handler("POST", url, json)

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Awaitable sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(float(delay))


def page(items: list[dict], cursor: Optional[str] = None) -> FakeResponse:
    return FakeResponse(200, {"data": items, "nextPageCursor": cursor})


def route_kind(url: str) -> str:
    path = urlsplit(url).path
    if "/catalog/items/details" in path:
        return "catalog"
    if "thumbnails" in url:
        return "thumbnails"
    if path.endswith("/assets/collectibles"):
        return "collectibles"
    if "/items/Asset" in path:
        return "inventory"
    if path.endswith("/assets"):
        return "assets"
    return "unknown"


def query_value(url: str, name: str) -> str:
    return parse_qs(urlsplit(url).query).get(name, [""])[0]


class RobloxStub:
    """Routes fake requests to scripted responses.

    ``queue(kind, cursor, *responses)`` scripts listing pages; responses are
    consumed in order and the last one repeats. Catalog and thumbnail
    requests are answered from ``catalog`` / ``thumbnails`` unless a
    response is queued for them.
    """

    def __init__(self) -> None:
        self.scripts: dict[tuple[str, str], list[FakeResponse]] = {}
        self.catalog: dict[int, dict] = {}
        self.thumbnails: dict[int, str] = {}
        self.requests: list[tuple[str, str]] = []

    def queue(self, kind: str, cursor: str, *responses: FakeResponse) -> None:
        self.scripts.setdefault((kind, cursor), []).extend(responses)

    def count(self, kind: str) -> int:
        return sum(1 for k, _ in self.requests if k == kind)

    def __call__(self, method: str, url: str, body: Any) -> FakeResponse:
        kind = route_kind(url)
        cursor = query_value(url, "cursor") if kind not in ("catalog", "thumbnails") else ""
        self.requests.append((kind, cursor))

        script = self.scripts.get((kind, cursor))
        if script:
            return script.pop(0) if len(script) > 1 else script[0]

        if kind == "catalog":
            ids = [entry["id"] for entry in body["items"]]
            data = [self.catalog[i] for i in ids if i in self.catalog]
            return FakeResponse(200, {"data": data})
        if kind == "thumbnails":
            ids = [int(i) for i in query_value(url, "assetIds").split(",") if i]
            data = [
                {"targetId": i, "state": "Completed", "imageUrl": self.thumbnails[i]}
                for i in ids
                if i in self.thumbnails
            ]
            return FakeResponse(200, {"data": data})
        return page([])
