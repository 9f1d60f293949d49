"""Support ticket models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

TicketCategory = Literal[
	"Bug Report",
	"Feature Request",
	"Account Issue",
	"Club Management",
	"Technical Support",
	"Other",
]
TicketPriority = Literal["low", "medium", "high", "urgent"]
TicketStatus = Literal["open", "in-progress", "waiting-on-user", "resolved", "closed"]


class TicketResponse(BaseModel):
	id: str
	user_id: UUID
	username: Optional[str] = None
	message: str
	is_staff: bool = False
	created_at: datetime


class Ticket(BaseModel):
	id: UUID
	user_id: UUID
	subject: str
	description: str
	category: TicketCategory
	priority: TicketPriority = "medium"
	status: TicketStatus = "open"
	assigned_to: Optional[UUID] = None
	responses: list[TicketResponse] = Field(default_factory=list)
	created_at: datetime
	updated_at: datetime
	username: Optional[str] = None
	email: Optional[str] = None
	assignee_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)
