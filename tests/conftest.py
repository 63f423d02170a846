"""Shared fixtures: a fake WeTransfer backend served through httpx.MockTransport."""

import json
from typing import Callable

import httpx
import pytest

from wetransfer_dl.config import Settings

LANDING_PAGE = (
    '<html><head><meta name="csrf-token" content="csrf-abc"></head>'
    "<body>WeTransfer</body></html>"
)
DIRECT_LINK = "https://download.wetransfer.com/eu2/ABC123/file.zip?token=signed"
FILE_BYTES = b"PK\x03\x04" + b"x" * 20000

ResponseFactory = Callable[[httpx.Request], httpx.Response]


def exchange_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"direct_link": DIRECT_LINK})


class FakeWeTransfer:
    """Routes requests the way the real service would, recording them."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.landing_page = LANDING_PAGE
        self.landing_status = 200
        self.landing: ResponseFactory = lambda request: httpx.Response(
            self.landing_status, text=self.landing_page
        )
        # One factory per exchange attempt; the last one repeats
        self.exchange: list[ResponseFactory] = [exchange_ok]
        self.short_links: dict[str, str] = {
            "/t-XXXX": "https://wetransfer.com/downloads/ABC123/HASHXYZ",
        }
        self.file: ResponseFactory = lambda request: httpx.Response(200, content=FILE_BYTES)

    @property
    def exchange_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/api/v4/transfers/")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, path = request.url.host, request.url.path

        if host == "we.tl":
            target = self.short_links.get(path)
            if target is None:
                return httpx.Response(404)
            return httpx.Response(301, headers={"Location": target})

        if host == "wetransfer.com" and path == "/":
            return self.landing(request)

        if host == "wetransfer.com" and path.startswith("/downloads/"):
            return httpx.Response(200, text="<html>transfer page</html>")

        if host == "wetransfer.com" and path.startswith("/api/v4/transfers/"):
            factory = self.exchange.pop(0) if len(self.exchange) > 1 else self.exchange[0]
            return factory(request)

        if host == "download.wetransfer.com":
            return self.file(request)

        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def backend() -> FakeWeTransfer:
    return FakeWeTransfer()


@pytest.fixture
def settings() -> Settings:
    return Settings(max_retries=3, retry_delay=0, timeout=5000)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)
