"""Pydantic schemas for the clubs API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from mindo.clubs.domain import models
from mindo.clubs.domain.announcements import AnnouncementType, FieldType
from mindo.domain.common.timeutil import UtcDatetime

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


def strip_tags(tags: List[str]) -> List[str]:
	seen: List[str] = []
	for tag in tags:
		tag = tag.strip()
		if tag and tag not in seen:
			seen.append(tag)
	return seen


# --- Clubs ---------------------------------------------------------------


class RoleRequest(BaseModel):
	name: str = Field(..., min_length=1, max_length=50)
	permissions: List[str] = Field(default_factory=list)
	color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class RoleUpdateRequest(BaseModel):
	name: Optional[str] = Field(default=None, min_length=1, max_length=50)
	permissions: Optional[List[str]] = None
	color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class QuestionRequest(BaseModel):
	id: Optional[str] = None
	question: str = Field(..., min_length=1, max_length=300)
	type: models.QuestionType = "text"
	options: List[str] = Field(default_factory=list)
	required: bool = False


class ApplicationFormRequest(BaseModel):
	enabled: Optional[bool] = None
	is_open: Optional[bool] = None
	questions: Optional[List[QuestionRequest]] = None


class ClubCreateRequest(BaseModel):
	name: str = Field(..., min_length=3, max_length=100)
	description: str = Field(..., min_length=1, max_length=1000)
	category: str = Field(..., min_length=1, max_length=50)
	tags: List[str] = Field(default_factory=list, max_length=20)
	logo: Optional[str] = None
	custom_roles: List[RoleRequest] = Field(default_factory=list)
	application_form: Optional[ApplicationFormRequest] = None

	@field_validator("tags")
	@classmethod
	def _tags(cls, value: List[str]) -> List[str]:
		return strip_tags(value)

	@field_validator("name", "description", "category")
	@classmethod
	def _strip(cls, value: str) -> str:
		value = value.strip()
		if not value:
			raise ValueError("must not be blank")
		return value


class ClubUpdateRequest(BaseModel):
	name: Optional[str] = Field(default=None, min_length=3, max_length=100)
	description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
	category: Optional[str] = Field(default=None, min_length=1, max_length=50)
	tags: Optional[List[str]] = Field(default=None, max_length=20)
	logo: Optional[str] = None


class MembershipView(BaseModel):
	role: str
	is_president: bool
	permissions: List[str] = Field(default_factory=list)


class ClubDetailResponse(BaseModel):
	club: models.Club
	membership: Optional[MembershipView] = None
	is_member: bool = False


class ClubStats(BaseModel):
	total_members: int
	role_distribution: Dict[str, int]
	violations: int
	custom_roles: int
	created_at: datetime


class MyMembership(BaseModel):
	club: models.Club
	role: str
	is_president: bool
	joined_at: Optional[datetime] = None


# --- Members -------------------------------------------------------------


class MemberRoleRequest(BaseModel):
	role: str = Field(..., min_length=1)


class MemberPermissionsRequest(BaseModel):
	custom_permissions: List[str]


class MemberStatusRequest(BaseModel):
	status: models.MemberStatus
	notes: Optional[str] = Field(default=None, max_length=500)


# --- Applications --------------------------------------------------------


class ApplicationSubmitRequest(BaseModel):
	message: str = Field(default="", max_length=500)
	answers: List[models.ApplicationAnswer] = Field(default_factory=list)


class InterviewRequest(BaseModel):
	scheduled_at: UtcDatetime
	location: str = Field(..., min_length=1, max_length=200)
	notes: Optional[str] = Field(default=None, max_length=500)


class InterviewCompleteRequest(BaseModel):
	notes: Optional[str] = Field(default=None, max_length=500)


class ApplicationRejectRequest(BaseModel):
	reason: Optional[str] = Field(default=None, max_length=300)


# --- Invitations ---------------------------------------------------------


class InvitationCreateRequest(BaseModel):
	user_id: UUID
	message: str = Field(default="", max_length=300)
	role: str = Field(default="Member", min_length=1)


# --- Announcements -------------------------------------------------------


class PollSettingsRequest(BaseModel):
	allow_multiple_choices: bool = False
	is_anonymous: bool = False
	end_date: Optional[UtcDatetime] = None


class PollRequest(BaseModel):
	question: str = Field(..., min_length=1, max_length=300)
	options: List[str]
	settings: PollSettingsRequest = Field(default_factory=PollSettingsRequest)


class FormFieldRequest(BaseModel):
	label: str = Field(..., min_length=1, max_length=200)
	type: FieldType = "text"
	required: bool = False
	options: List[str] = Field(default_factory=list)


class FormSettingsRequest(BaseModel):
	allow_multiple_submissions: bool = False
	deadline: Optional[UtcDatetime] = None


class FormRequest(BaseModel):
	fields: List[FormFieldRequest]
	settings: FormSettingsRequest = Field(default_factory=FormSettingsRequest)


class AnnouncementCreateRequest(BaseModel):
	title: str = Field(..., min_length=1, max_length=200)
	content: str = Field(..., min_length=1, max_length=2000)
	type: AnnouncementType = "announcement"
	poll: Optional[PollRequest] = None
	form: Optional[FormRequest] = None


class AnnouncementUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, min_length=1, max_length=200)
	content: Optional[str] = Field(default=None, min_length=1, max_length=2000)


class CommentRequest(BaseModel):
	text: str = Field(..., max_length=500)


class VoteRequest(BaseModel):
	option_ids: List[str] = Field(..., min_length=1)


class FormAnswersRequest(BaseModel):
	answers: Dict[str, Any]


# --- Trips ---------------------------------------------------------------


class TripCreateRequest(BaseModel):
	title: str = Field(..., min_length=1, max_length=200)
	destination: str = Field(..., min_length=1, max_length=200)
	description: str = Field(default="", max_length=2000)
	date: UtcDatetime
	end_date: Optional[UtcDatetime] = None
	duration: Optional[str] = Field(default=None, max_length=100)
	capacity: Optional[int] = Field(default=None, ge=1)
	cost: Decimal = Field(default=Decimal("0"), ge=0)
	currency: str = Field(default="USD", min_length=3, max_length=3)

	@model_validator(mode="after")
	def _check_dates(self) -> "TripCreateRequest":
		if self.end_date is not None and self.end_date <= self.date:
			raise ValueError("end_date must be after date")
		return self


class TripUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, min_length=1, max_length=200)
	destination: Optional[str] = Field(default=None, min_length=1, max_length=200)
	description: Optional[str] = Field(default=None, max_length=2000)
	date: Optional[UtcDatetime] = None
	end_date: Optional[UtcDatetime] = None
	duration: Optional[str] = Field(default=None, max_length=100)
	capacity: Optional[int] = Field(default=None, ge=1)
	cost: Optional[Decimal] = Field(default=None, ge=0)
	currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class TripStatusRequest(BaseModel):
	status: Literal["upcoming", "ongoing", "completed", "cancelled"]


class TripSignupRequest(BaseModel):
	notes: Optional[str] = Field(default=None, max_length=500)


class AttendanceRequest(BaseModel):
	attended: bool = True


# --- Content -------------------------------------------------------------


class ContentCreateRequest(BaseModel):
	title: str = Field(..., min_length=1, max_length=200)
	description: str = Field(default="", max_length=1000)
	content_type: models.ContentType
	file_url: str = Field(..., min_length=1)
	file_name: Optional[str] = None
	file_size: Optional[int] = Field(default=None, ge=0)
	category: str = Field(default="General", min_length=1, max_length=50)
	visible_to_roles: List[str] = Field(default_factory=list)


class ContentUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, min_length=1, max_length=200)
	description: Optional[str] = Field(default=None, max_length=1000)
	category: Optional[str] = Field(default=None, min_length=1, max_length=50)
	visible_to_roles: Optional[List[str]] = None


class DownloadResponse(BaseModel):
	file_url: str
	file_name: Optional[str] = None
	download_count: int


# --- Bans ----------------------------------------------------------------


class BanCreateRequest(BaseModel):
	user_id: UUID
	reason: str = Field(..., min_length=1, max_length=500)
	category: models.BanCategory = "other"
	severity: models.BanSeverity = "moderate"
	evidence: Optional[str] = Field(default=None, max_length=1000)
	additional_notes: Optional[str] = Field(default=None, max_length=1000)
	duration_days: Optional[int] = Field(default=None, ge=1)


class AppealRequest(BaseModel):
	appeal_text: str = Field(..., min_length=1, max_length=1000)


class AppealReviewRequest(BaseModel):
	decision: Literal["accepted", "rejected"]
	decision_notes: Optional[str] = Field(default=None, max_length=500)


# --- Club-internal violations --------------------------------------------


class ViolationReportRequest(BaseModel):
	description: str = Field(..., min_length=1, max_length=1000)
	severity: Literal["low", "medium", "high"] = "medium"


class ViolationResolveRequest(BaseModel):
	notes: Optional[str] = Field(default=None, max_length=500)
