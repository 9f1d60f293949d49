"""Club trip routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from mindo.api.errors import to_http_error
from mindo.api.responses import ActionResponse, Envelope, done, ok
from mindo.clubs.api import deps
from mindo.clubs.domain.authorization import ClubContext
from mindo.clubs.domain.trips import ClubTrip, TripSignup
from mindo.clubs.domain.trips_service import TripsService
from mindo.clubs.schemas import dto

router = APIRouter(tags=["clubs:trips"])
_service = TripsService()

_BASE = "/clubs/{club_id}/trips"
_create_trips = deps.require_permission("create_trips")


@router.post(_BASE, response_model=Envelope[ClubTrip], status_code=201)
async def create_trip_endpoint(
	payload: dto.TripCreateRequest,
	ctx: ClubContext = Depends(_create_trips),
) -> Envelope[ClubTrip]:
	try:
		return ok(await _service.create(ctx, payload), "Trip created successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE, response_model=Envelope[list[ClubTrip]])
async def list_trips_endpoint(
	status: Optional[str] = None,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[list[ClubTrip]]:
	try:
		return ok(await _service.list_trips(ctx, status=status))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get(_BASE + "/{trip_id}", response_model=Envelope[ClubTrip])
async def get_trip_endpoint(trip_id: str, ctx: ClubContext = Depends(deps.club_member)) -> Envelope[ClubTrip]:
	try:
		return ok(await _service.get(ctx, trip_id))
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{trip_id}", response_model=Envelope[ClubTrip])
async def update_trip_endpoint(
	trip_id: str,
	payload: dto.TripUpdateRequest,
	ctx: ClubContext = Depends(_create_trips),
) -> Envelope[ClubTrip]:
	try:
		return ok(await _service.update(ctx, trip_id, payload), "Trip updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{trip_id}", response_model=ActionResponse)
async def delete_trip_endpoint(trip_id: str, ctx: ClubContext = Depends(deps.club_member)) -> ActionResponse:
	try:
		await _service.delete(ctx, trip_id)
		return done("Trip deleted successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post(_BASE + "/{trip_id}/signup", response_model=Envelope[ClubTrip])
async def trip_signup_endpoint(
	trip_id: str,
	payload: Optional[dto.TripSignupRequest] = Body(default=None),
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[ClubTrip]:
	try:
		trip = await _service.signup(ctx, trip_id, notes=payload.notes if payload else None)
		return ok(trip, "Successfully signed up for trip")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete(_BASE + "/{trip_id}/signup", response_model=Envelope[ClubTrip])
async def cancel_trip_signup_endpoint(
	trip_id: str,
	ctx: ClubContext = Depends(deps.club_member),
) -> Envelope[ClubTrip]:
	try:
		return ok(await _service.cancel_signup(ctx, trip_id), "Signup cancelled successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{trip_id}/status", response_model=Envelope[ClubTrip])
async def trip_status_endpoint(
	trip_id: str,
	payload: dto.TripStatusRequest,
	ctx: ClubContext = Depends(_create_trips),
) -> Envelope[ClubTrip]:
	try:
		return ok(await _service.set_status(ctx, trip_id, payload.status), f"Trip status updated to {payload.status}")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.put(_BASE + "/{trip_id}/attendance/{participant_id}", response_model=Envelope[TripSignup])
async def trip_attendance_endpoint(
	trip_id: str,
	participant_id: str,
	payload: dto.AttendanceRequest,
	ctx: ClubContext = Depends(_create_trips),
) -> Envelope[TripSignup]:
	try:
		signup = await _service.mark_attendance(ctx, trip_id, participant_id, payload.attended)
		return ok(signup, "Attendance updated successfully")
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
