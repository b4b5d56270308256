"""Stream Helpers — pure message building, response introspection and prompt caching.

Invariants:
    - All functions are pure (no IO, no mutation of their arguments)
    - The current user turn is always the last message; images precede its text
    - Prompt caching tags the last block of the system prompt and of the tool list

Design Decisions:
    - Extracted from the multiplexer so it stays focused on event ordering
    - Attribute access via getattr: SDK objects and test doubles share one path
"""

import json
from typing import Any

from docpanel.schemas.agent import StreamRequest


# -- Message building ----------------------------------------------------------

def build_messages(request: StreamRequest) -> list[dict]:
    """History + current user turn (with optional base64 images)."""
    messages: list[dict] = [
        {"role": m.role, "content": m.content} for m in request.messages
    ]
    if request.images:
        content: Any = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": img.media_type,
                    "data": img.data,
                },
            }
            for img in request.images
        ]
        content.append({"type": "text", "text": request.prompt})
    else:
        content = request.prompt
    messages.append({"role": "user", "content": content})
    return messages


def tool_result_block(tool_use_id: str, result: dict) -> dict:
    return {
        "type": "tool_result",
        "tool_use_id": tool_use_id,
        "content": json.dumps(result, ensure_ascii=False, default=str),
        "is_error": result.get("status") == "error",
    }


# -- Response introspection ----------------------------------------------------

def tool_use_blocks(response: Any) -> list[Any]:
    return [
        b for b in response.content
        if getattr(b, "type", None) == "tool_use"
    ]


def serialize_content(response: Any) -> list[dict]:
    return [b.model_dump(exclude_none=True) for b in response.content]


def usage_tokens(response: Any) -> tuple[int, int]:
    """(prompt_tokens, output_tokens), zero-filled when the provider omits them.

    With prompt caching the provider splits the prompt into input_tokens
    (uncached), cache_creation_input_tokens and cache_read_input_tokens;
    the prompt count is their sum.
    """
    usage = getattr(response, "usage", None)
    if usage is None:
        return 0, 0
    cache_create = getattr(usage, "cache_creation_input_tokens", 0) or 0
    cache_read = getattr(usage, "cache_read_input_tokens", 0) or 0
    inp = (getattr(usage, "input_tokens", 0) or 0) + cache_create + cache_read
    return inp, getattr(usage, "output_tokens", 0) or 0


def summarize_web_results(content: Any) -> list[dict]:
    """Title/url pairs from a web_search_tool_result block's content."""
    if not isinstance(content, list):
        return []
    results = []
    for item in content[:5]:
        if isinstance(item, dict):
            url, title = item.get("url", ""), item.get("title", "")
        else:
            url = getattr(item, "url", "")
            title = getattr(item, "title", "")
        results.append({"url": url, "title": title})
    return results


# -- Prompt caching ------------------------------------------------------------

_CACHE = {"type": "ephemeral"}


def with_system_cache(system: str) -> list[dict]:
    return [{"type": "text", "text": system, "cache_control": _CACHE}]


def with_tools_cache(tools: list[dict]) -> list[dict]:
    if not tools:
        return tools
    cached = list(tools)
    cached[-1] = {**cached[-1], "cache_control": _CACHE}
    return cached
