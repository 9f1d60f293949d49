from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from fakes import FakeClubsRepository
from mindo.clubs.domain import models
from mindo.clubs.domain.announcements import PollSettings
from mindo.clubs.domain.announcements_service import AnnouncementsService
from mindo.clubs.domain.authorization import ClubAuthorizer
from mindo.clubs.schemas import dto
from mindo.domain.common.exceptions import ForbiddenError, ValidationError
from mindo.infra.auth import AuthenticatedUser

T0 = datetime(2026, 5, 4, 9, 0, tzinfo=timezone.utc)


class _Clock:
	def __init__(self) -> None:
		self.now = T0

	def __call__(self) -> datetime:
		return self.now


async def _setup(member_count: int = 5):
	repo = FakeClubsRepository()
	owner = AuthenticatedUser(id=str(uuid4()), username="president")
	club = models.Club(
		id=uuid4(),
		name="Debate",
		description="Arguments",
		category="Academic",
		owner_id=owner.id,
		custom_roles=[models.CustomRole(name="Member", permissions=["view_club", "view_members"])],
		created_at=T0,
		updated_at=T0,
	)
	repo.clubs[club.id] = club
	authorizer = ClubAuthorizer(repository=repo)
	members = []
	for idx in range(member_count):
		user_id = repo.add_user(f"member{idx}")
		await repo.add_member(club.id, user_id)
		members.append(await authorizer.member_context(AuthenticatedUser(id=str(user_id), username=f"member{idx}"), club.id))
	owner_ctx = await authorizer.require_president(owner, club.id)
	return repo, owner_ctx, members


def _poll_payload(**settings) -> dto.AnnouncementCreateRequest:
	return dto.AnnouncementCreateRequest(
		title="Meeting day",
		content="Pick one",
		type="poll",
		poll=dto.PollRequest(
			question="Which day?",
			options=["Monday", "Wednesday", " ", "Friday"],
			settings=dto.PollSettingsRequest(**settings),
		),
	)


def _form_payload(**settings) -> dto.AnnouncementCreateRequest:
	return dto.AnnouncementCreateRequest(
		title="Trip sign-up",
		content="Tell us about you",
		type="form",
		form=dto.FormRequest(
			fields=[
				dto.FormFieldRequest(label="Name", required=True),
				dto.FormFieldRequest(label="Age", type="number"),
				dto.FormFieldRequest(label="Shirt", type="select", options=["S", "M", "L"]),
			],
			settings=dto.FormSettingsRequest(**settings),
		),
	)


@pytest.mark.asyncio
async def test_poll_totals_match_votes_cast():
	repo, owner_ctx, members = await _setup(member_count=5)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	poll = await service.create(owner_ctx, _poll_payload())
	assert [option.text for option in poll.poll.options] == ["Monday", "Wednesday", "Friday"]
	options = [option.id for option in poll.poll.options]

	for idx, ctx in enumerate(members):
		results = await service.vote(ctx, str(poll.id), [options[idx % 3]])

	assert results["total_votes"] == 5
	assert sum(option["vote_count"] for option in results["options"]) == 5
	assert [option["vote_count"] for option in results["options"]] == [2, 2, 1]
	assert results["options"][0]["percentage"] == 40.0


@pytest.mark.asyncio
async def test_single_choice_vote_moves_between_options():
	repo, owner_ctx, members = await _setup(member_count=1)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	poll = await service.create(owner_ctx, _poll_payload())
	first, second, _ = [option.id for option in poll.poll.options]
	voter = members[0]

	await service.vote(voter, str(poll.id), [first])
	results = await service.vote(voter, str(poll.id), [second])

	assert results["user_votes"] == [second]
	assert [option["vote_count"] for option in results["options"]] == [0, 1, 0]
	assert results["total_votes"] == 1

	with pytest.raises(ValidationError) as excinfo:
		await service.vote(voter, str(poll.id), [second])
	assert excinfo.value.detail == "You have already voted on this poll"


@pytest.mark.asyncio
async def test_multiple_choice_and_vote_removal():
	repo, owner_ctx, members = await _setup(member_count=1)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	poll = await service.create(owner_ctx, _poll_payload(allow_multiple_choices=True))
	first, second, third = [option.id for option in poll.poll.options]
	voter = members[0]

	results = await service.vote(voter, str(poll.id), [first, second])
	assert sorted(results["user_votes"]) == sorted([first, second])
	assert results["total_votes"] == 2

	results = await service.remove_vote(voter, str(poll.id), first)
	assert results["total_votes"] == 1
	with pytest.raises(ValidationError):
		await service.remove_vote(voter, str(poll.id), third)


@pytest.mark.asyncio
async def test_failed_vote_leaves_poll_untouched():
	repo, owner_ctx, members = await _setup(member_count=1)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	poll = await service.create(owner_ctx, _poll_payload())

	with pytest.raises(ValidationError):
		await service.vote(members[0], str(poll.id), ["missing"])

	stored = await repo.get_announcement(poll.id)
	assert stored.poll.total_votes == 0


@pytest.mark.asyncio
async def test_closed_or_ended_poll_rejects_votes():
	repo, owner_ctx, members = await _setup(member_count=2)
	clock = _Clock()
	service = AnnouncementsService(repository=repo, clock=clock)
	ending = await service.create(owner_ctx, _poll_payload(end_date=T0 + timedelta(hours=1)))
	option = ending.poll.options[0].id

	clock.now = T0 + timedelta(hours=2)
	with pytest.raises(ValidationError) as excinfo:
		await service.vote(members[0], str(ending.id), [option])
	assert excinfo.value.detail == "Poll has ended"
	assert (await service.poll_results(members[0], str(ending.id)))["is_open"] is False

	clock.now = T0
	with pytest.raises(ForbiddenError):
		await service.close_poll(members[1], str(ending.id))
	await service.close_poll(owner_ctx, str(ending.id))
	with pytest.raises(ValidationError) as excinfo:
		await service.vote(members[0], str(ending.id), [option])
	assert excinfo.value.detail == "Poll is closed"


@pytest.mark.asyncio
async def test_anonymous_poll_hides_voters():
	repo, owner_ctx, members = await _setup(member_count=1)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	poll = await service.create(owner_ctx, _poll_payload(is_anonymous=True))

	results = await service.vote(members[0], str(poll.id), [poll.poll.options[0].id])

	assert all("voters" not in option for option in results["options"])


@pytest.mark.asyncio
async def test_poll_needs_two_options():
	repo, owner_ctx, _ = await _setup(member_count=0)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	payload = dto.AnnouncementCreateRequest(
		title="Bad",
		content="Bad",
		type="poll",
		poll=dto.PollRequest(question="?", options=["Only"]),
	)
	with pytest.raises(ValidationError):
		await service.create(owner_ctx, payload)


@pytest.mark.asyncio
async def test_form_requires_fields_and_rejects_duplicates():
	repo, owner_ctx, members = await _setup(member_count=1)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	form = await service.create(owner_ctx, _form_payload())
	name, age, shirt = [field.id for field in form.form.fields]
	responder = members[0]

	with pytest.raises(ValidationError) as excinfo:
		await service.submit_response(responder, str(form.id), {age: 20})
	assert excinfo.value.detail == "Required field missing: Name"

	with pytest.raises(ValidationError):
		await service.submit_response(responder, str(form.id), {name: "Ana", age: "twenty"})
	with pytest.raises(ValidationError):
		await service.submit_response(responder, str(form.id), {name: "Ana", shirt: "XXL"})

	response = await service.submit_response(responder, str(form.id), {name: "Ana", age: 20, shirt: ""})
	assert response.answers == {name: "Ana", age: 20}

	with pytest.raises(ValidationError) as excinfo:
		await service.submit_response(responder, str(form.id), {name: "Ana again"})
	assert excinfo.value.detail == "You have already submitted this form"

	responses = await service.list_responses(owner_ctx, str(form.id))
	assert len(responses) == 1
	with pytest.raises(ForbiddenError):
		await service.list_responses(responder, str(form.id))


@pytest.mark.asyncio
async def test_form_allows_multiple_submissions_when_enabled():
	repo, owner_ctx, members = await _setup(member_count=1)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	form = await service.create(owner_ctx, _form_payload(allow_multiple_submissions=True))
	name = form.form.fields[0].id

	await service.submit_response(members[0], str(form.id), {name: "one"})
	await service.submit_response(members[0], str(form.id), {name: "two"})

	assert len(await service.list_responses(owner_ctx, str(form.id))) == 2


@pytest.mark.asyncio
async def test_comment_edit_window():
	repo, owner_ctx, members = await _setup(member_count=2)
	clock = _Clock()
	service = AnnouncementsService(repository=repo, clock=clock)
	post = await service.create(owner_ctx, dto.AnnouncementCreateRequest(title="Hello", content="World"))
	author, other = members

	comment = await service.add_comment(author, str(post.id), "  first!  ")
	assert comment.text == "first!"

	with pytest.raises(ForbiddenError):
		await service.edit_comment(other, str(post.id), comment.id, "hijack")

	clock.now = T0 + timedelta(minutes=30)
	with pytest.raises(ValidationError):
		await service.edit_comment(author, str(post.id), comment.id, "too late")

	with pytest.raises(ForbiddenError):
		await service.delete_comment(other, str(post.id), comment.id)
	await service.delete_comment(owner_ctx, str(post.id), comment.id)
	assert (await repo.get_announcement(post.id)).comments == []


@pytest.mark.asyncio
async def test_naive_poll_end_date_and_form_deadline_are_read_as_utc():
	repo, owner_ctx, members = await _setup(member_count=1)
	clock = _Clock()
	service = AnnouncementsService(repository=repo, clock=clock)
	poll = await service.create(
		owner_ctx,
		dto.AnnouncementCreateRequest.model_validate(
			{
				"title": "Meeting day",
				"content": "Pick one",
				"type": "poll",
				"poll": {"question": "Which day?", "options": ["Mon", "Tue"], "settings": {"end_date": "2026-05-04T10:00"}},
			}
		),
	)
	form = await service.create(
		owner_ctx,
		dto.AnnouncementCreateRequest.model_validate(
			{
				"title": "Sign-up",
				"content": "Details",
				"type": "form",
				"form": {"fields": [{"label": "Name"}], "settings": {"deadline": "2026-05-04T10:00:00"}},
			}
		),
	)
	assert poll.poll.settings.end_date == T0 + timedelta(hours=1)

	stored = PollSettings.model_validate_json('{"end_date": "2026-05-04T10:00"}')
	assert stored.end_date == poll.poll.settings.end_date

	results = await service.vote(members[0], str(poll.id), [poll.poll.options[0].id])
	assert results["total_votes"] == 1

	clock.now = T0 + timedelta(hours=2)
	with pytest.raises(ValidationError) as excinfo:
		await service.vote(members[0], str(poll.id), [poll.poll.options[1].id])
	assert excinfo.value.detail == "Poll has ended"
	assert (await service.poll_results(members[0], str(poll.id)))["is_open"] is False
	with pytest.raises(ValidationError) as excinfo:
		await service.submit_response(members[0], str(form.id), {form.form.fields[0].id: "Ana"})
	assert excinfo.value.detail == "Form submission deadline has passed"


@pytest.mark.asyncio
async def test_repeated_option_ids_count_once():
	repo, owner_ctx, members = await _setup(member_count=2)
	service = AnnouncementsService(repository=repo, clock=_Clock())
	single = await service.create(owner_ctx, _poll_payload())
	first = single.poll.options[0].id
	results = await service.vote(members[0], str(single.id), [first, first])
	assert results["user_votes"] == [first]
	assert results["total_votes"] == 1

	multi = await service.create(owner_ctx, _poll_payload(allow_multiple_choices=True))
	first, second, _ = [option.id for option in multi.poll.options]
	await service.vote(members[1], str(multi.id), [first, first])
	results = await service.vote(members[1], str(multi.id), [second, first, second])
	assert sorted(results["user_votes"]) == sorted([first, second])
	assert [option["vote_count"] for option in results["options"]] == [1, 1, 0]
	with pytest.raises(ValidationError) as excinfo:
		await service.vote(members[1], str(multi.id), [first])
	assert excinfo.value.detail == "You have already voted on this poll"
