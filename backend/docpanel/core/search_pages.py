"""Page Search — keyword search over extracted pages with citation excerpts.

Invariants:
    - Pure function: no IO, deterministic for the same pages
    - Exact phrase matches are collected first (±50 chars of context)
    - Word-by-word fallback only when nothing matched yet and the query has
      more than two words; words shorter than 4 chars are skipped
    - Never returns more than max_results excerpts
    - Excerpts truncated at either end are marked with "..."
"""

from dataclasses import dataclass

from docpanel.core.agent_context import PageContent


_PHRASE_CONTEXT = 50
_WORD_CONTEXT_BEFORE = 30
_WORD_CONTEXT_AFTER = 80
_MIN_WORD_LENGTH = 4


@dataclass(frozen=True)
class CitedExcerpt:
    text: str
    page_number: int
    start_index: int
    end_index: int


def search_with_citations(
    query: str, pages: list[PageContent], max_results: int = 5,
) -> list[CitedExcerpt]:
    """Find query occurrences across pages, in page order."""
    normalized = query.lower().strip()
    if not normalized or max_results <= 0:
        return []
    words = normalized.split()
    results: list[CitedExcerpt] = []

    for page in pages:
        lower = page.content.lower()
        _collect(
            results, page, lower, normalized, max_results,
            _PHRASE_CONTEXT, _PHRASE_CONTEXT,
        )
        if not results and len(words) > 2:
            for word in words:
                if len(word) < _MIN_WORD_LENGTH:
                    continue
                _collect(
                    results, page, lower, word, max_results,
                    _WORD_CONTEXT_BEFORE, _WORD_CONTEXT_AFTER,
                )
        if len(results) >= max_results:
            break
    return results


def _collect(
    results: list[CitedExcerpt], page: PageContent, lower: str,
    needle: str, max_results: int, before: int, after: int,
) -> None:
    index = lower.find(needle)
    while index != -1 and len(results) < max_results:
        results.append(_excerpt(page, index, len(needle), before, after))
        index = lower.find(needle, index + 1)


def _excerpt(
    page: PageContent, index: int, length: int, before: int, after: int,
) -> CitedExcerpt:
    content = page.content
    start = max(0, index - before)
    end = min(len(content), index + length + after)
    text = content[start:end]
    if start > 0:
        text = "..." + text
    if end < len(content):
        text = text + "..."
    return CitedExcerpt(
        text=text,
        page_number=page.page_number,
        start_index=index,
        end_index=index + length,
    )
