"""Domain errors shared by every service layer."""

from __future__ import annotations

from fastapi import status


class DomainError(Exception):
	"""Base class for errors raised by services and repositories."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "Request could not be processed"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class BadRequestError(DomainError):
	"""Raised for malformed identifiers and similar caller mistakes."""

	status_code = status.HTTP_400_BAD_REQUEST
	detail = "Bad request"


class ValidationError(DomainError):
	"""Raised when a business rule rejects the request."""

	status_code = status.HTTP_400_BAD_REQUEST
	detail = "Validation failed"


class UnauthorizedError(DomainError):
	"""Raised when credentials are missing or wrong."""

	status_code = status.HTTP_401_UNAUTHORIZED
	detail = "Not authorized"


class ForbiddenError(DomainError):
	"""Raised when authorization fails."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "Access denied"


class NotFoundError(DomainError):
	"""Thrown when a resource is not visible or missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "Not found"


class ConflictError(DomainError):
	"""Raised for duplicate or conflicting operations."""

	status_code = status.HTTP_409_CONFLICT
	detail = "Conflict"


class RateLimitedError(DomainError):
	"""Raised when a rate limit budget is exhausted."""

	status_code = status.HTTP_429_TOO_MANY_REQUESTS
	detail = "Too many requests, please try again later"
