from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError
from .validators import parse_int

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class SortOrder:
    field: str
    descending: bool


def parse_page(page: Any, limit: Any, *, default_limit: int = DEFAULT_PAGE_SIZE) -> PageRequest:
    p = parse_int(page, "Page", default=1, minimum=1)
    n = parse_int(limit, "Limit", default=default_limit, minimum=1)
    return PageRequest(page=p, limit=min(n, MAX_PAGE_SIZE))


def parse_sort(value: Any, allowed: Iterable[str], default: str) -> SortOrder:
    """Parse ``field`` / ``-field`` against a whitelist of sortable fields."""

    raw = str(value).strip() if value else default
    descending = raw.startswith("-")
    name = raw[1:] if descending else raw
    allowed = tuple(allowed)
    if name not in allowed:
        raise ValidationError(f"Cannot sort by '{name}'. Allowed: {', '.join(allowed)}")
    return SortOrder(field=name, descending=descending)
