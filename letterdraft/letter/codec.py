from __future__ import annotations

"""
Join letter pages into the single persisted ``content`` string and back.

Design intent:
- Pages are separated by a reserved marker; no escaping scheme exists.
- Content without the marker is a legacy single-page letter.
"""

from typing import Sequence

PAGE_DELIMITER = "<!--PAGE_BREAK-->"


def join_pages(pages: Sequence[str]) -> str:
    return PAGE_DELIMITER.join(pages)


def split_pages(content: str) -> list[str]:
    content = content or ""
    if PAGE_DELIMITER not in content:
        return [content]
    return [segment.strip() for segment in content.split(PAGE_DELIMITER)]


def find_delimiter_collisions(pages: Sequence[str]) -> list[int]:
    """Indices of pages whose text already contains the delimiter verbatim."""
    return [index for index, page in enumerate(pages) if PAGE_DELIMITER in (page or "")]
