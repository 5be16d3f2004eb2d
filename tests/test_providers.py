import asyncio

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from coverscraper.catalog import CatalogEntry
from coverscraper.providers.bing_images import BingImagesProvider
from coverscraper.providers.google_images import GoogleImagesProvider
from coverscraper.providers.marketplace import MarketplaceProvider
from coverscraper.providers.openlibrary import OpenLibraryProvider, upgrade_cover_url
from coverscraper.providers.registry import primary_providers, retry_providers

from conftest import DummyElement, DummyPage

ENTRY = CatalogEntry(id="b1", title="Dune", author="Frank Herbert")


def test_marketplace_query_and_first_thumbnail() -> None:
    provider = MarketplaceProvider()
    page = DummyPage(selectors={".s-image": [
        DummyElement({"src": "https://m.media-amazon.com/images/I/dune.jpg"}),
        DummyElement({"src": "https://m.media-amazon.com/images/I/other.jpg"}),
    ]})

    urls = asyncio.run(provider.find_candidates(page, ENTRY))

    assert urls == ["https://m.media-amazon.com/images/I/dune.jpg"]
    goto = page.calls[0]
    assert goto[1] == "https://www.amazon.com/s?k=Dune%20Frank%20Herbert%20book"
    assert goto[2] == "domcontentloaded"
    assert ("wait", ".s-result-item", 5000) in page.calls


def test_marketplace_ignores_relative_or_missing_src() -> None:
    provider = MarketplaceProvider()
    assert asyncio.run(provider.find_candidates(DummyPage(), ENTRY)) == []
    page = DummyPage(selectors={".s-image": DummyElement({"src": "data:image/gif;base64,AAA"})})
    assert asyncio.run(provider.find_candidates(page, ENTRY)) == []


def test_timeouts_are_not_fatal() -> None:
    page = DummyPage(
        selectors={".mimg": DummyElement({"src": "https://tse1.mm.bing.net/th?id=1"})},
        goto_error=PlaywrightTimeoutError("nav timeout"),
        wait_error=PlaywrightTimeoutError("selector timeout"),
    )
    urls = asyncio.run(BingImagesProvider().find_candidates(page, ENTRY))
    assert urls == ["https://tse1.mm.bing.net/th?id=1"]


def test_bing_search_url() -> None:
    url = BingImagesProvider().search_url(ENTRY)
    assert url == (
        "https://www.bing.com/images/search?q=Dune%20Frank%20Herbert%20book%20cover"
        "&form=HDRSC2&first=1"
    )


def test_google_filters_small_and_engine_images() -> None:
    provider = GoogleImagesProvider()
    images = [
        {"width": 40, "height": 200, "src": "https://site.example/tiny.jpg"},
        {"width": 200, "height": 200, "src": "https://www.gstatic.com/logo.png"},
        {"width": 120, "height": 180, "src": "https://covers.example/dune.jpg",
         "data-src": None, "data-iurl": "https://covers.example/dune-large.jpg"},
        {"width": 120, "height": 180, "src": "data:image/jpeg;base64,xxx"},
    ]
    assert provider.from_elements(images) == [
        "https://covers.example/dune.jpg",
        "https://covers.example/dune-large.jpg",
    ]


def test_google_scans_raw_html() -> None:
    provider = GoogleImagesProvider()
    html = (
        '<script>["https://encrypted-tbn0.gstatic.com/images?q=tbn.jpg",'
        '"https://books.example/covers/dune.PNG", "https://books.example/page.html"]</script>'
    )
    assert provider.from_html(html) == ["https://books.example/covers/dune.PNG"]


def test_google_extract_orders_elements_before_html_and_dedupes() -> None:
    page = DummyPage(
        images=[{"width": 100, "height": 150, "src": "https://books.example/a.jpg"}],
        html='"https://books.example/a.jpg" "https://books.example/b.webp"',
    )
    urls = asyncio.run(GoogleImagesProvider().find_candidates(page, ENTRY))
    assert urls == ["https://books.example/a.jpg", "https://books.example/b.webp"]
    assert page.calls[0][1] == "https://www.google.com/search?q=Dune%20Frank%20Herbert%20book%20cover&tbm=isch"


def test_google_min_size_is_configurable() -> None:
    provider = GoogleImagesProvider(min_size=200)
    assert provider.from_elements([{"width": 150, "height": 300, "src": "https://a.example/x.jpg"}]) == []


def test_openlibrary_upgrades_relative_thumbnail() -> None:
    cover = DummyElement(children={"img": DummyElement({"src": "/images/icons/avatar-M.jpg"})})
    page = DummyPage(selectors={".cover": cover})

    urls = asyncio.run(OpenLibraryProvider().find_candidates(page, ENTRY))

    assert urls == ["https://openlibrary.org/images/icons/avatar-L.jpg"]
    assert page.calls[0][1] == "https://openlibrary.org/search?q=Dune+Frank+Herbert&mode=everything"
    assert ("wait", ".searchResultItem", 5000) in page.calls


def test_openlibrary_protocol_relative_and_missing_cover() -> None:
    cover = DummyElement(children={"img": DummyElement({"src": "//covers.openlibrary.org/b/id/1-S.jpg"})})
    urls = asyncio.run(OpenLibraryProvider().find_candidates(DummyPage(selectors={".cover": cover}), ENTRY))
    assert urls == ["https://covers.openlibrary.org/b/id/1-L.jpg"]

    assert asyncio.run(OpenLibraryProvider().find_candidates(DummyPage(), ENTRY)) == []
    empty_cover = DummyPage(selectors={".cover": DummyElement()})
    assert asyncio.run(OpenLibraryProvider().find_candidates(empty_cover, ENTRY)) == []


def test_upgrade_cover_url_leaves_large_alone() -> None:
    assert upgrade_cover_url("https://covers.openlibrary.org/b/id/1-L.jpg").endswith("-L.jpg")
    assert upgrade_cover_url("https://covers.openlibrary.org/b/id/1-S.jpg").endswith("-L.jpg")


def test_pass_orderings(settings) -> None:
    assert [p.name for p in primary_providers(settings)] == ["amazon", "google"]
    assert [p.name for p in retry_providers(settings)] == ["bing", "openlibrary"]
    assert primary_providers(settings)[1].min_size == settings.min_image_size


def test_google_drops_engine_urls_from_data_attributes() -> None:
    provider = GoogleImagesProvider()
    images = [
        {"width": 120, "height": 180, "src": "data:image/jpeg;base64,xx",
         "data-src": "https://encrypted-tbn0.gstatic.com/images?q=tbn:abc"},
        {"width": 120, "height": 180, "src": "data:image/jpeg;base64,yy",
         "data-src": "https://www.google.com/imgres?x=1",
         "data-iurl": "https://covers.example/dune.jpg"},
    ]
    assert provider.from_elements(images) == ["https://covers.example/dune.jpg"]
