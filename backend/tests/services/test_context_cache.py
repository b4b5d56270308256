"""Context Cache & Resolver — load/get/clear semantics and page precedence.

Invariants:
    - Concurrent loads of one session read the source once
    - Zero pages or a source failure -> ContextLoadError, entry untouched
    - Resolver: supplied pages > cache > local load; remote never loaded
"""

import asyncio

import pytest

from docpanel.core.domain_types import DocumentType
from docpanel.core.errors import ContextLoadError, DocumentNotLoadedError
from docpanel.schemas.agent import ContextFragment, PdfPage
from docpanel.services.context_cache import ContextCache
from docpanel.services.context_resolver import ContextResolver, require_pages

from tests.services.fakes import SAMPLE_PAGES, FakeContentSource, make_pages


class GatedSource:
    """Blocks inside load_pages until released, so loads can overlap."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = 0
        self.release = asyncio.Event()

    async def load_pages(self, source_locator):
        self.calls += 1
        await self.release.wait()
        return list(self.pages)


# ==============================================================================
# ContextCache
# ==============================================================================


async def test_load_then_get(cache, content_source):
    entry = await cache.load("s1", "/docs/atlas.pdf")

    assert entry.source == "/docs/atlas.pdf"
    assert entry.page_count == 3
    assert entry.total_words == sum(p.word_count for p in SAMPLE_PAGES)
    assert cache.get("s1") is entry
    assert cache.get("s2") is None
    assert content_source.calls == ["/docs/atlas.pdf"]


async def test_concurrent_loads_coalesce():
    source = GatedSource(SAMPLE_PAGES)
    cache = ContextCache(source)

    first = asyncio.create_task(cache.load("s1", "/docs/atlas.pdf"))
    second = asyncio.create_task(cache.load("s1", "/docs/atlas.pdf"))
    await asyncio.sleep(0)
    source.release.set()
    a, b = await asyncio.gather(first, second)

    assert a is b
    assert source.calls == 1
    assert cache._locks == {}


async def test_locks_released_across_many_sessions(cache):
    for i in range(5):
        await cache.load(f"s{i}", "/docs/atlas.pdf")

    assert len(cache) == 5
    assert cache._locks == {}
    assert cache._lock_users == {}


async def test_explicit_reload_reads_again(cache, content_source):
    await cache.load("s1", "/docs/atlas.pdf")
    await cache.load("s1", "/docs/atlas.pdf")

    assert len(content_source.calls) == 2


async def test_reload_with_other_source_replaces(cache):
    await cache.load("s1", "/docs/atlas.pdf")
    entry = await cache.load("s1", "/docs/other.pdf")

    assert cache.get("s1") is entry
    assert entry.page_count == 1


async def test_source_failure_keeps_previous_entry(cache):
    original = await cache.load("s1", "/docs/atlas.pdf")

    with pytest.raises(ContextLoadError) as exc_info:
        await cache.load("s1", "/docs/missing.pdf")

    assert exc_info.value.code == "CONTEXT_LOAD_FAILED"
    assert exc_info.value.context.session_id == "s1"
    assert cache.get("s1") is original
    assert cache._locks == {}


async def test_zero_pages_is_failure():
    cache = ContextCache(FakeContentSource({"/empty.pdf": []}))

    with pytest.raises(ContextLoadError, match="no extractable text"):
        await cache.load("s1", "/empty.pdf")
    assert cache.get("s1") is None


async def test_clear_reports_whether_removed(cache):
    await cache.load("s1", "/docs/atlas.pdf")

    assert cache.clear("s1") is True
    assert cache.clear("s1") is False
    assert cache.get("s1") is None
    assert len(cache) == 0


# ==============================================================================
# ContextResolver
# ==============================================================================


async def test_supplied_pages_take_precedence(cache, content_source):
    await cache.load("s1", "/docs/atlas.pdf")
    resolver = ContextResolver(cache)
    fragment = ContextFragment(
        pdf_name="remote.pdf",
        pdf_path="https://cdn.example.com/remote.pdf",
        pdf_pages=[PdfPage(page_number=1, content="Fresh page", word_count=2)],
    )

    ctx = await resolver.resolve("s1", DocumentType.PDF, fragment)

    assert [p.content for p in ctx.pages] == ["Fresh page"]
    assert ctx.pdf_path == "remote.pdf"
    assert ctx.display_name == "remote.pdf"


async def test_cache_used_before_loading(cache, content_source):
    await cache.load("s1", "/docs/atlas.pdf")
    resolver = ContextResolver(cache)

    ctx = await resolver.resolve(
        "s1", DocumentType.PDF, ContextFragment(pdf_path="/docs/other.pdf"),
    )

    assert ctx.page_count == 3
    assert ctx.pdf_path == "/docs/atlas.pdf"
    assert content_source.calls == ["/docs/atlas.pdf"]


async def test_local_path_loaded_and_cached(cache, content_source):
    resolver = ContextResolver(cache)

    ctx = await resolver.resolve(
        "s1", DocumentType.PDF, ContextFragment(pdf_path="file:///docs/atlas.pdf"),
    )

    assert ctx.page_count == 3
    assert content_source.calls == ["/docs/atlas.pdf"]
    assert cache.get("s1").source == "/docs/atlas.pdf"


async def test_remote_path_never_loaded(cache, content_source):
    resolver = ContextResolver(cache)

    ctx = await resolver.resolve(
        "s1", DocumentType.PDF,
        ContextFragment(pdf_path="https://example.com/a.pdf"),
    )

    assert ctx.pages == []
    assert content_source.calls == []
    with pytest.raises(DocumentNotLoadedError):
        require_pages(ctx)


async def test_load_failure_leaves_pages_empty(cache):
    resolver = ContextResolver(cache)

    ctx = await resolver.resolve(
        "s1", DocumentType.PDF, ContextFragment(pdf_path="/docs/missing.pdf"),
    )

    assert ctx.pages == []


async def test_spreadsheet_fragment_passthrough(cache, content_source):
    resolver = ContextResolver(cache)
    fragment = ContextFragment(
        workbook_id="wb-1", sheet_id="Sheet1", selected_range="A1:C4",
    )

    ctx = await resolver.resolve(
        "s1", DocumentType.SPREADSHEET, fragment, user_id="u-9",
    )

    assert ctx.artifact_id == "wb-1"
    assert ctx.selected_range == "A1:C4"
    assert ctx.user_id == "u-9"
    assert ctx.pages == []
    assert content_source.calls == []


async def test_require_pages_passes_with_content():
    resolver = ContextResolver(ContextCache(FakeContentSource()))
    fragment = ContextFragment(pdf_pages=[
        PdfPage(**p.to_dict()) for p in make_pages("one page")
    ])

    ctx = await resolver.resolve("s1", DocumentType.PDF, fragment)

    require_pages(ctx)
    assert ctx.pdf_path == "document.pdf"
