"""Announcement aggregate with its embedded poll, form, and comment thread.

Every engagement rule lives on the model so the repository can load a row
under lock, apply one mutation in memory, and persist the whole document.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from mindo.domain.common.exceptions import ForbiddenError, NotFoundError, ValidationError
from mindo.domain.common.timeutil import UtcDatetime

AnnouncementType = Literal["announcement", "poll", "form"]
FieldType = Literal["text", "textarea", "select", "checkbox", "number", "date"]

COMMENT_MAX_LEN = 500


def _new_id() -> str:
	return uuid4().hex


def _is_blank(value: Any) -> bool:
	if value is None:
		return True
	if isinstance(value, str):
		return not value.strip()
	if isinstance(value, (list, tuple, dict)):
		return len(value) == 0
	return False


def _clean_text(text: str, *, what: str = "Comment") -> str:
	text = (text or "").strip()
	if not text:
		raise ValidationError(f"{what} text is required")
	if len(text) > COMMENT_MAX_LEN:
		raise ValidationError(f"{what} cannot exceed {COMMENT_MAX_LEN} characters")
	return text


class PollVote(BaseModel):
	user_id: UUID
	voter_name: Optional[str] = None
	voted_at: datetime


class PollOption(BaseModel):
	id: str = Field(default_factory=_new_id)
	text: str
	votes: list[PollVote] = Field(default_factory=list)
	vote_count: int = 0

	def has_vote_from(self, user_id: UUID) -> bool:
		return any(vote.user_id == user_id for vote in self.votes)


class PollSettings(BaseModel):
	allow_multiple_choices: bool = False
	is_anonymous: bool = False
	end_date: Optional[UtcDatetime] = None


class Poll(BaseModel):
	question: str
	options: list[PollOption]
	total_votes: int = 0
	is_open: bool = True
	settings: PollSettings = Field(default_factory=PollSettings)

	def option(self, option_id: str) -> PollOption | None:
		for option in self.options:
			if option.id == option_id:
				return option
		return None

	def options_voted_by(self, user_id: UUID) -> list[PollOption]:
		return [option for option in self.options if option.has_vote_from(user_id)]

	def ensure_accepting(self, now: datetime) -> None:
		if not self.is_open:
			raise ValidationError("Poll is closed")
		if self.settings.end_date is not None and now > self.settings.end_date:
			raise ValidationError("Poll has ended")

	def recount(self) -> None:
		for option in self.options:
			option.vote_count = len(option.votes)
		self.total_votes = sum(option.vote_count for option in self.options)


class FormField(BaseModel):
	id: str = Field(default_factory=_new_id)
	label: str
	type: FieldType = "text"
	required: bool = False
	options: list[str] = Field(default_factory=list)


class FormResponse(BaseModel):
	id: str = Field(default_factory=_new_id)
	user_id: UUID
	responder_name: Optional[str] = None
	answers: dict[str, Any] = Field(default_factory=dict)
	submitted_at: datetime
	updated_at: Optional[datetime] = None


class FormSettings(BaseModel):
	allow_multiple_submissions: bool = False
	deadline: Optional[UtcDatetime] = None


class Form(BaseModel):
	fields: list[FormField]
	responses: list[FormResponse] = Field(default_factory=list)
	is_open: bool = True
	settings: FormSettings = Field(default_factory=FormSettings)

	def ensure_accepting(self, now: datetime) -> None:
		if not self.is_open:
			raise ValidationError("Form is closed")
		if self.settings.deadline is not None and now > self.settings.deadline:
			raise ValidationError("Form submission deadline has passed")

	def validate_answers(self, answers: dict[str, Any]) -> dict[str, Any]:
		known = {field.id: field for field in self.fields}
		for field_id in answers:
			if field_id not in known:
				raise ValidationError(f"Unknown form field: {field_id}")
		for field in self.fields:
			value = answers.get(field.id)
			if field.required and _is_blank(value):
				raise ValidationError(f"Required field missing: {field.label}")
			if _is_blank(value):
				continue
			if field.type == "select" and field.options and value not in field.options:
				raise ValidationError(f"Invalid option for field: {field.label}")
			if field.type == "number" and (isinstance(value, bool) or not isinstance(value, (int, float))):
				raise ValidationError(f"Field must be a number: {field.label}")
		return {key: value for key, value in answers.items() if not _is_blank(value)}

	def response(self, response_id: str) -> FormResponse | None:
		for response in self.responses:
			if response.id == response_id:
				return response
		return None


class Reply(BaseModel):
	id: str = Field(default_factory=_new_id)
	user_id: UUID
	commenter_name: str
	text: str
	created_at: datetime


class Comment(BaseModel):
	id: str = Field(default_factory=_new_id)
	user_id: UUID
	commenter_name: str
	text: str
	created_at: datetime
	updated_at: Optional[datetime] = None
	replies: list[Reply] = Field(default_factory=list)


class ClubAnnouncement(BaseModel):
	"""Represents an announcement, poll, or form posted to a club."""

	id: UUID
	club_id: UUID
	title: str
	content: str
	type: AnnouncementType = "announcement"
	announcer_id: UUID
	announcer_name: str
	is_pinned: bool = False
	poll: Optional[Poll] = None
	form: Optional[Form] = None
	comments: list[Comment] = Field(default_factory=list)
	created_at: datetime
	updated_at: datetime
	club_name: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)

	# ------------------------------------------------------------------
	# Comments

	def comment(self, comment_id: str) -> Comment:
		for comment in self.comments:
			if comment.id == comment_id:
				return comment
		raise NotFoundError("Comment not found")

	def add_comment(self, user_id: UUID, name: str, text: str, now: datetime) -> Comment:
		comment = Comment(user_id=user_id, commenter_name=name, text=_clean_text(text), created_at=now)
		self.comments.append(comment)
		return comment

	def edit_comment(self, comment_id: str, user_id: UUID, text: str, now: datetime, *, window_minutes: int) -> Comment:
		comment = self.comment(comment_id)
		if comment.user_id != user_id:
			raise ForbiddenError("You can only edit your own comments")
		if now - comment.created_at > timedelta(minutes=window_minutes):
			raise ValidationError(f"Comments can only be edited within {window_minutes} minutes of posting")
		comment.text = _clean_text(text)
		comment.updated_at = now
		return comment

	def delete_comment(self, comment_id: str, user_id: UUID, *, moderator: bool) -> None:
		comment = self.comment(comment_id)
		if comment.user_id != user_id and not moderator:
			raise ForbiddenError("Not authorized to delete this comment")
		self.comments = [item for item in self.comments if item.id != comment_id]

	def add_reply(self, comment_id: str, user_id: UUID, name: str, text: str, now: datetime) -> Reply:
		comment = self.comment(comment_id)
		reply = Reply(user_id=user_id, commenter_name=name, text=_clean_text(text, what="Reply"), created_at=now)
		comment.replies.append(reply)
		return reply

	def delete_reply(self, comment_id: str, reply_id: str, user_id: UUID, *, moderator: bool) -> None:
		comment = self.comment(comment_id)
		reply = next((item for item in comment.replies if item.id == reply_id), None)
		if reply is None:
			raise NotFoundError("Reply not found")
		if reply.user_id != user_id and not moderator:
			raise ForbiddenError("Not authorized to delete this reply")
		comment.replies = [item for item in comment.replies if item.id != reply_id]

	# ------------------------------------------------------------------
	# Poll

	def _require_poll(self) -> Poll:
		if self.type != "poll" or self.poll is None:
			raise ValidationError("This announcement is not a poll")
		return self.poll

	def vote(self, user_id: UUID, voter_name: str, option_ids: list[str], now: datetime) -> list[str]:
		"""Record the caller's vote and return the option ids now holding it.

		Single-choice polls take exactly one option; choosing a different option
		moves the vote. Multiple-choice polls add the options not yet chosen.
		"""
		poll = self._require_poll()
		poll.ensure_accepting(now)
		requested: list[PollOption] = []
		for option_id in option_ids:
			option = poll.option(option_id)
			if option is None:
				raise ValidationError("Invalid poll option")
			if option not in requested:
				requested.append(option)
		if not requested:
			raise ValidationError("Please select an option")
		name = None if poll.settings.is_anonymous else voter_name
		previous = poll.options_voted_by(user_id)

		if not poll.settings.allow_multiple_choices:
			if len(requested) != 1:
				raise ValidationError("This poll allows only one choice")
			target = requested[0]
			if target.has_vote_from(user_id):
				raise ValidationError("You have already voted on this poll")
			for option in previous:
				option.votes = [vote for vote in option.votes if vote.user_id != user_id]
				option.vote_count = len(option.votes)
			target.votes.append(PollVote(user_id=user_id, voter_name=name, voted_at=now))
			poll.recount()
			return [target.id]

		fresh = [option for option in requested if not option.has_vote_from(user_id)]
		if not fresh:
			raise ValidationError("You have already voted on this poll")
		for option in fresh:
			option.votes.append(PollVote(user_id=user_id, voter_name=name, voted_at=now))
		poll.recount()
		return [option.id for option in poll.options_voted_by(user_id)]

	def remove_vote(self, user_id: UUID, now: datetime, option_id: Optional[str] = None) -> int:
		poll = self._require_poll()
		poll.ensure_accepting(now)
		removed = 0
		for option in poll.options:
			if option_id is not None and option.id != option_id:
				continue
			before = len(option.votes)
			option.votes = [vote for vote in option.votes if vote.user_id != user_id]
			removed += before - len(option.votes)
		if removed == 0:
			raise ValidationError("You have not voted on this poll")
		poll.recount()
		return removed

	def close_poll(self) -> None:
		poll = self._require_poll()
		poll.is_open = False

	def poll_results(self, now: datetime) -> dict[str, Any]:
		poll = self._require_poll()
		total = poll.total_votes
		options = []
		for option in poll.options:
			entry: dict[str, Any] = {
				"id": option.id,
				"text": option.text,
				"vote_count": option.vote_count,
				"percentage": round(option.vote_count / total * 100, 1) if total else 0.0,
			}
			if not poll.settings.is_anonymous:
				entry["voters"] = [
					{"user_id": vote.user_id, "voter_name": vote.voter_name, "voted_at": vote.voted_at}
					for vote in option.votes
				]
			options.append(entry)
		ended = poll.settings.end_date is not None and now > poll.settings.end_date
		return {
			"question": poll.question,
			"options": options,
			"total_votes": total,
			"is_open": poll.is_open and not ended,
			"is_anonymous": poll.settings.is_anonymous,
			"allow_multiple_choices": poll.settings.allow_multiple_choices,
			"end_date": poll.settings.end_date,
		}

	# ------------------------------------------------------------------
	# Form

	def _require_form(self) -> Form:
		if self.type != "form" or self.form is None:
			raise ValidationError("This announcement is not a form")
		return self.form

	def submit_response(self, user_id: UUID, name: str, answers: dict[str, Any], now: datetime) -> FormResponse:
		form = self._require_form()
		form.ensure_accepting(now)
		cleaned = form.validate_answers(answers)
		if not form.settings.allow_multiple_submissions and any(r.user_id == user_id for r in form.responses):
			raise ValidationError("You have already submitted this form")
		response = FormResponse(user_id=user_id, responder_name=name, answers=cleaned, submitted_at=now)
		form.responses.append(response)
		return response

	def update_response(self, response_id: str, user_id: UUID, answers: dict[str, Any], now: datetime) -> FormResponse:
		form = self._require_form()
		response = form.response(response_id)
		if response is None:
			raise NotFoundError("Response not found")
		if response.user_id != user_id:
			raise ForbiddenError("You can only update your own response")
		form.ensure_accepting(now)
		response.answers = form.validate_answers(answers)
		response.updated_at = now
		return response

	def delete_response(self, response_id: str, user_id: UUID, *, moderator: bool) -> None:
		form = self._require_form()
		response = form.response(response_id)
		if response is None:
			raise NotFoundError("Response not found")
		if response.user_id != user_id and not moderator:
			raise ForbiddenError("Not authorized to delete this response")
		form.responses = [item for item in form.responses if item.id != response_id]

	def close_form(self) -> None:
		form = self._require_form()
		form.is_open = False

	# ------------------------------------------------------------------

	def toggle_pin(self) -> bool:
		self.is_pinned = not self.is_pinned
		return self.is_pinned
