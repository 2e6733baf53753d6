from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional

PAGE_LINK_RADIUS = 2
PAGE_LINK_COUNT = 2 * PAGE_LINK_RADIUS + 1


def parse_page_number(raw: Optional[str]) -> int:
  """Turn the ``page`` query value into a page number; anything unusable means page 1."""

  try:
    page = int(raw) if raw is not None else 1
  except ValueError:
    return 1
  return page if page >= 1 else 1


@dataclass(frozen=True)
class Pagination:
  current_page: int
  total_pages: int
  pages: List[int] = field(default_factory=list)

  @property
  def has_prev_page(self) -> bool:
    return self.current_page > 1

  @property
  def has_next_page(self) -> bool:
    return self.current_page < self.total_pages

  @property
  def prev_page(self) -> int:
    return self.current_page - 1 if self.has_prev_page else 0

  @property
  def next_page(self) -> int:
    return self.current_page + 1 if self.has_next_page else 0

  @classmethod
  def build(cls, requested_page: int, total_records: int, page_size: int) -> "Pagination":
    """Clamp ``requested_page`` into range and work out the page links to show."""

    total_pages = max(1, math.ceil(total_records / page_size))
    page = min(max(1, requested_page), total_pages)

    start_page = max(1, page - PAGE_LINK_RADIUS)
    end_page = min(total_pages, page + PAGE_LINK_RADIUS)
    if page <= PAGE_LINK_RADIUS + 1:
      end_page = min(total_pages, PAGE_LINK_COUNT)
    if page >= total_pages - PAGE_LINK_RADIUS:
      start_page = max(1, total_pages - PAGE_LINK_COUNT + 1)

    return cls(current_page=page, total_pages=total_pages, pages=list(range(start_page, end_page + 1)))
