"""Page/limit pagination helpers."""

from __future__ import annotations

from pydantic import BaseModel

MAX_PAGE_SIZE = 100


class Pagination(BaseModel):
	page: int
	limit: int
	total: int
	pages: int

	@classmethod
	def of(cls, *, page: int, limit: int, total: int) -> "Pagination":
		pages = (total + limit - 1) // limit if limit > 0 else 0
		return cls(page=page, limit=limit, total=total, pages=pages)


def clamp(page: int, limit: int) -> tuple[int, int, int]:
	"""Return ``(page, limit, offset)`` with sane bounds."""
	page = max(1, int(page))
	limit = max(1, min(MAX_PAGE_SIZE, int(limit)))
	return page, limit, (page - 1) * limit
