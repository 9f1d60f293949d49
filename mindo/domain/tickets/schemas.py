"""Request schemas for support tickets."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from mindo.domain.tickets.models import TicketCategory, TicketPriority, TicketStatus


class TicketCreateRequest(BaseModel):
	subject: str = Field(..., min_length=1, max_length=200)
	description: str = Field(..., min_length=1, max_length=2000)
	category: TicketCategory
	priority: TicketPriority = "medium"


class TicketReplyRequest(BaseModel):
	message: str = Field(..., min_length=1, max_length=2000)


class TicketStatusRequest(BaseModel):
	status: TicketStatus


class TicketAssignRequest(BaseModel):
	assigned_to: Optional[UUID] = None
