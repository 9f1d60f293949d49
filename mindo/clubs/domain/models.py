"""Domain models for clubs, memberships, and their auxiliary records."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mindo.clubs.domain import permissions as perms
from mindo.domain.common.exceptions import ConflictError, ValidationError
from mindo.domain.common.timeutil import UtcDatetime

MemberStatus = Literal["active", "suspended", "banned"]
ApplicationStatus = Literal["pending", "approved", "rejected"]
InvitationStatus = Literal["pending", "accepted", "declined", "expired"]
QuestionType = Literal["text", "textarea", "multiple-choice"]
ContentType = Literal["file", "link", "document", "image", "video", "other"]
BanStatus = Literal["active", "expired", "appealed", "overturned"]
BanSeverity = Literal["minor", "moderate", "severe"]
BanCategory = Literal["harassment", "spam", "inappropriate-behavior", "violation-of-rules", "inactivity", "other"]
AppealDecision = Literal["pending", "accepted", "rejected"]
ViolationSeverity = Literal["low", "medium", "high", "critical"]
ViolationAction = Literal["warning", "suspension", "deleted"]
ViolationType = Literal[
	"Inappropriate Content",
	"Spam",
	"Harassment",
	"Impersonation",
	"Terms Violation",
	"Illegal Activity",
	"Other",
]


class CustomRole(BaseModel):
	name: str
	permissions: list[str] = Field(default_factory=list)
	color: str = perms.DEFAULT_ROLE_COLOR


class FormQuestion(BaseModel):
	id: str
	question: str
	type: QuestionType = "text"
	options: list[str] = Field(default_factory=list)
	required: bool = False


class ApplicationForm(BaseModel):
	enabled: bool = True
	is_open: bool = False
	questions: list[FormQuestion] = Field(default_factory=list)


class ClubViolationEntry(BaseModel):
	"""Internal violation tracked on the club document itself."""

	id: str
	description: str
	reported_by: Optional[UUID] = None
	reported_at: datetime
	severity: Literal["low", "medium", "high"] = "medium"
	resolved: bool = False
	resolved_at: Optional[datetime] = None
	notes: Optional[str] = None


class Club(BaseModel):
	"""Represents a club and its embedded configuration."""

	id: UUID
	name: str
	description: str
	category: str
	tags: list[str] = Field(default_factory=list)
	logo: Optional[str] = None
	owner_id: UUID
	member_count: int = 0
	custom_roles: list[CustomRole] = Field(default_factory=list)
	application_form: ApplicationForm = Field(default_factory=ApplicationForm)
	violations: list[ClubViolationEntry] = Field(default_factory=list)
	violation_count: int = 0
	is_suspended: bool = False
	suspension_end_date: Optional[datetime] = None
	suspension_reason: Optional[str] = None
	created_at: datetime
	updated_at: datetime
	owner_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)

	def is_owner(self, user_id: UUID | str) -> bool:
		return str(self.owner_id) == str(user_id)

	def get_role(self, name: str) -> CustomRole | None:
		for role in self.custom_roles:
			if role.name == name:
				return role
		return None


class ClubMember(BaseModel):
	"""Represents a membership row; never carries the president role."""

	id: UUID
	club_id: UUID
	user_id: UUID
	role: str = perms.DEFAULT_ROLE
	custom_permissions: list[str] = Field(default_factory=list)
	status: MemberStatus = "active"
	title: Optional[str] = None
	notes: Optional[str] = None
	joined_at: datetime
	updated_at: Optional[datetime] = None
	username: Optional[str] = None
	email: Optional[str] = None
	profile_picture: Optional[str] = None
	club_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_active(self) -> bool:
		return self.status == "active"


class ApplicationAnswer(BaseModel):
	question: str
	answer: str = ""


class Interview(BaseModel):
	scheduled_at: UtcDatetime
	location: str
	notes: Optional[str] = None
	scheduled_by: Optional[UUID] = None
	completed: bool = False
	completed_at: Optional[datetime] = None


class ClubApplication(BaseModel):
	id: UUID
	club_id: UUID
	user_id: UUID
	message: str = ""
	answers: list[ApplicationAnswer] = Field(default_factory=list)
	status: ApplicationStatus = "pending"
	applied_at: datetime
	reviewed_at: Optional[datetime] = None
	reviewed_by: Optional[UUID] = None
	rejection_reason: Optional[str] = None
	interview: Optional[Interview] = None
	username: Optional[str] = None
	club_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class ClubInvitation(BaseModel):
	id: UUID
	club_id: UUID
	user_id: UUID
	invited_by: UUID
	message: str = ""
	role: str = perms.DEFAULT_ROLE
	status: InvitationStatus = "pending"
	expires_at: datetime
	responded_at: Optional[datetime] = None
	created_at: datetime
	username: Optional[str] = None
	inviter_name: Optional[str] = None
	club_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)

	def is_expired(self, now: datetime) -> bool:
		return now > self.expires_at


class ClubContent(BaseModel):
	id: UUID
	club_id: UUID
	title: str
	description: str = ""
	content_type: ContentType
	file_url: str
	file_name: Optional[str] = None
	file_size: Optional[int] = None
	category: str = "General"
	visible_to_roles: list[str] = Field(default_factory=list)
	uploaded_by: UUID
	uploader_name: str
	is_pinned: bool = False
	download_count: int = 0
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)

	def visible_to(self, role: str, *, full_access: bool) -> bool:
		if full_access or not self.visible_to_roles:
			return True
		return role in self.visible_to_roles


class ClubViolation(BaseModel):
	"""A platform-level violation issued by an admin against a club."""

	id: UUID
	club_id: UUID
	violation_type: ViolationType
	severity: ViolationSeverity = "medium"
	description: str
	action: ViolationAction = "warning"
	suspension_end_date: Optional[datetime] = None
	issued_by: Optional[UUID] = None
	resolved: bool = False
	resolved_at: Optional[datetime] = None
	resolved_by: Optional[UUID] = None
	resolution_notes: Optional[str] = None
	created_at: datetime
	club_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)


class BanAppeal(BaseModel):
	submitted: bool = False
	appeal_text: Optional[str] = None
	appealed_at: Optional[datetime] = None
	reviewed_by: Optional[UUID] = None
	reviewed_at: Optional[datetime] = None
	decision: AppealDecision = "pending"
	decision_notes: Optional[str] = None


class ClubBan(BaseModel):
	id: UUID
	club_id: UUID
	club_name: str
	user_id: UUID
	user_name: str
	reason: str
	category: BanCategory = "other"
	severity: BanSeverity = "moderate"
	banned_by: Optional[UUID] = None
	banned_by_name: str
	evidence: Optional[str] = None
	additional_notes: Optional[str] = None
	status: BanStatus = "active"
	banned_at: datetime
	expires_at: Optional[datetime] = None
	appeal: BanAppeal = Field(default_factory=BanAppeal)

	model_config = ConfigDict(from_attributes=True)

	def is_expired(self, now: datetime) -> bool:
		if self.expires_at is None:
			return False
		return now > self.expires_at

	def is_in_force(self, now: datetime) -> bool:
		"""Active and appealed bans keep the user out until they lapse."""
		return self.status in ("active", "appealed") and not self.is_expired(now)

	def submit_appeal(self, text: str, now: datetime) -> None:
		if self.appeal.submitted:
			raise ConflictError("Appeal already submitted for this ban")
		if self.status not in ("active",):
			raise ValidationError(f"Cannot appeal a ban that is {self.status}")
		self.appeal = BanAppeal(submitted=True, appeal_text=text, appealed_at=now)
		self.status = "appealed"

	def review_appeal(self, reviewer_id: UUID, decision: Literal["accepted", "rejected"], notes: Optional[str], now: datetime) -> None:
		if not self.appeal.submitted:
			raise ValidationError("No appeal to review")
		if self.appeal.decision != "pending":
			raise ValidationError("Appeal has already been reviewed")
		self.appeal.reviewed_by = reviewer_id
		self.appeal.reviewed_at = now
		self.appeal.decision = decision
		self.appeal.decision_notes = notes
		self.status = "overturned" if decision == "accepted" else "active"
