"""Response envelope shared by every router."""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from mindo.domain.common.pagination import Pagination

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
	success: bool = True
	message: Optional[str] = None
	data: Optional[DataT] = None


class PageEnvelope(BaseModel, Generic[DataT]):
	success: bool = True
	message: Optional[str] = None
	data: list[DataT]
	pagination: Pagination


class ActionResponse(BaseModel):
	success: bool = True
	message: str


def ok(data: DataT | None = None, message: str | None = None) -> Envelope[DataT]:
	return Envelope(data=data, message=message)


def done(message: str) -> ActionResponse:
	return ActionResponse(message=message)


def page(items: list[DataT], *, page: int, limit: int, total: int) -> PageEnvelope[DataT]:
	return PageEnvelope(data=items, pagination=Pagination.of(page=page, limit=limit, total=total))
