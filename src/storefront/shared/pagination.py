"""Page-slicing for listing queries."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Page:
    data: list[Any]
    total: int
    page: int
    limit: int
    total_pages: int


def paginate(items: Sequence[Any], page: int = 1, limit: int = 20) -> Page:
    """Slice ``items`` into the 1-based ``page`` of size ``limit``."""
    page = max(page, 1)
    limit = max(limit, 1)
    total = len(items)
    start = (page - 1) * limit
    return Page(
        data=list(items[start : start + limit]),
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


# Upper bound for repository scans that filter in memory; query sets default to a small page.
SCAN_LIMIT = 10_000
