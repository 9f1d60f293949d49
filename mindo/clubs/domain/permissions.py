"""Permission catalogue and the role/override evaluation rules for clubs."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from mindo.domain.common.exceptions import ValidationError

PERMISSIONS: tuple[str, ...] = (
	"edit_club",
	"delete_club",
	"manage_roles",
	"assign_roles",
	"invite_members",
	"remove_members",
	"suspend_members",
	"approve_applications",
	"view_applications",
	"interview_applicants",
	"manage_violations",
	"view_members",
	"view_club",
	"post_announcements",
	"create_trips",
	"upload_content",
	"manage_content",
)
_PERMISSION_SET = frozenset(PERMISSIONS)

PRESIDENT_ROLE = "president"
DEFAULT_ROLE = "Member"
DEFAULT_ROLE_COLOR = "#6B7280"
DEFAULT_ROLE_PERMISSIONS: tuple[str, ...] = ("view_club", "view_members")

DEFAULT_APPLICATION_QUESTIONS: tuple[dict[str, object], ...] = (
	{
		"id": "q1",
		"question": "Why do you want to join this club?",
		"type": "textarea",
		"options": [],
		"required": True,
	},
	{
		"id": "q2",
		"question": "What relevant experience or skills do you have?",
		"type": "textarea",
		"options": [],
		"required": False,
	},
)


def is_known(permission: str) -> bool:
	return permission in _PERMISSION_SET


def ensure_known(permissions: Iterable[str]) -> list[str]:
	"""Return the de-duplicated permissions or reject unknown names."""
	result: list[str] = []
	for permission in permissions:
		if permission not in _PERMISSION_SET:
			raise ValidationError(f"Unknown permission: {permission}")
		if permission not in result:
			result.append(permission)
	return result


def role_grants(
	role_permissions: Optional[Sequence[str]],
	custom_permissions: Sequence[str],
	permission: str,
) -> bool:
	"""Evaluate a non-president member's grant.

	Overrides win first; otherwise the role must still exist (``role_permissions``
	is None when it was deleted) and list the permission. There is no hierarchy.
	"""
	if permission in custom_permissions:
		return True
	if role_permissions is None:
		return False
	return permission in role_permissions
