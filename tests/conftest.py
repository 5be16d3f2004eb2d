from contextlib import asynccontextmanager

import httpx
import pytest

from coverscraper.catalog import CatalogEntry
from coverscraper.config import Settings
from coverscraper.errors import SessionStartError
from coverscraper.providers.base import CoverProvider


class DummyElement:
    def __init__(self, attrs=None, children=None):
        self.attrs = attrs or {}
        self.children = children or {}

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def query_selector(self, selector):
        return self.children.get(selector)


class DummyPage:
    """Stands in for a Playwright page: canned selectors, records navigation."""

    def __init__(self, selectors=None, images=None, html="", goto_error=None, wait_error=None):
        self.selectors = selectors or {}
        self.images = images or []
        self.html = html
        self.goto_error = goto_error
        self.wait_error = wait_error
        self.calls = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(("goto", url, wait_until, timeout))
        if self.goto_error:
            raise self.goto_error

    async def wait_for_selector(self, selector, timeout=None):
        self.calls.append(("wait", selector, timeout))
        if self.wait_error:
            raise self.wait_error

    async def query_selector(self, selector):
        found = self.selectors.get(selector)
        if isinstance(found, list):
            return found[0] if found else None
        return found

    async def query_selector_all(self, selector):
        found = self.selectors.get(selector)
        if found is None:
            return []
        return found if isinstance(found, list) else [found]

    async def evaluate(self, script, *args):
        self.calls.append(("evaluate",))
        return self.images

    async def content(self):
        return self.html


class FakeProvider(CoverProvider):
    """Returns canned candidates (or raises) and counts how often it was asked."""

    def __init__(self, name, results=None, error=None):
        super().__init__()
        self.name = name
        self.results = results or []
        self.error = error
        self.queried = []

    async def find_candidates(self, page, entry):
        self.queried.append(entry.id)
        if self.error:
            raise self.error
        return list(self.results)


class FakeSessions:
    def __init__(self, fail=False):
        self.fail = fail
        self.entered = 0
        self.identities = []

    async def __aenter__(self):
        if self.fail:
            raise SessionStartError("chromium missing")
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    @asynccontextmanager
    async def session(self, identity):
        self.identities.append(identity)
        yield DummyPage()


class ImageServer:
    """httpx MockTransport handler serving a fixed set of image URLs."""

    def __init__(self, images=None):
        self.images = images or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.images:
            return httpx.Response(200, content=self.images[url])
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


async def no_sleep(_seconds):
    return None


@pytest.fixture
def settings(tmp_path):
    return Settings(out_dir=str(tmp_path / "covers"), min_delay_ms=0, max_delay_ms=0)


@pytest.fixture
def dune():
    return CatalogEntry(id="b1", title="Dune", author="Frank Herbert")
