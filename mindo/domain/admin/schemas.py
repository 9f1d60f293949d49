"""Admin console payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from mindo.clubs.domain.models import ViolationAction, ViolationSeverity, ViolationType
from mindo.domain.identity.models import UserProfile


class AdminStats(BaseModel):
	total_users: int
	total_clubs: int
	total_tickets: int
	open_tickets: int
	admin_users: int
	recent_users: int
	suspended_clubs: int
	unresolved_violations: int


class AdminUserView(UserProfile):
	pass


class SuspensionRequest(BaseModel):
	suspension_days: int
	reason: Optional[str] = Field(default=None, max_length=500)


class ViolationIssueRequest(BaseModel):
	violation_type: ViolationType
	severity: ViolationSeverity = "medium"
	description: str = Field(..., min_length=1, max_length=1000)
	action: ViolationAction = "warning"
	suspension_days: Optional[int] = Field(default=None, ge=1)


class ViolationResolutionRequest(BaseModel):
	resolution_notes: Optional[str] = Field(default=None, max_length=1000)


class JobRunResult(BaseModel):
	results: dict[str, int]
