"""Reconcile stored user records into `CanonicalUser`.

Records were written by several client generations (web and two mobile
apps), so most values can live at more than one path. Each canonical field
has an ordered list of resolvers; the first one that yields a usable value
wins, otherwise the typed empty default is used. Nothing here raises on
malformed input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .models import (
	LEGACY_ROLE_JOBSEEKER,
	ROLE_JOBSEEKER,
	ROLES,
	UNKNOWN_USER_NAME,
	CanonicalUser,
	ParticipantCard,
	profile_fields,
)

_UNSET = object()

Accept = Callable[[Any], Any]


def _string(value: Any) -> Any:
	if isinstance(value, str) and value.strip():
		return value
	return _UNSET


def _string_or_empty(value: Any) -> Any:
	return value if isinstance(value, str) else _UNSET


def _list(value: Any) -> Any:
	if isinstance(value, (list, tuple)):
		return [item for item in value if item is not None]
	return _UNSET


def _role(value: Any) -> Any:
	if not isinstance(value, str):
		return _UNSET
	role = value.strip().lower()
	if role == LEGACY_ROLE_JOBSEEKER:
		return ROLE_JOBSEEKER
	return role if role in ROLES else _UNSET


def _datetime(value: Any) -> Any:
	return value if isinstance(value, datetime) else _UNSET


def _true(value: Any) -> Any:
	return True if value is True else _UNSET


@dataclass(frozen=True, slots=True)
class FieldResolver:
	"""Read one path from a raw record and accept the value if it is usable."""

	path: Tuple[str, ...]
	accept: Accept

	def resolve(self, raw: Mapping[str, Any]) -> Any:
		current: Any = raw
		for part in self.path:
			if not isinstance(current, Mapping) or part not in current:
				return _UNSET
			current = current[part]
		if current is None:
			return _UNSET
		return self.accept(current)


def resolvers(accept: Accept, *paths: str) -> Tuple[FieldResolver, ...]:
	return tuple(FieldResolver(tuple(path.split(".")), accept) for path in paths)


def first_defined(raw: Mapping[str, Any], chain: Sequence[FieldResolver], default: Any = None) -> Any:
	for resolver in chain:
		value = resolver.resolve(raw)
		if value is not _UNSET:
			return value
	return default


ROLE_CHAIN = resolvers(_role, "role", "userType")
EMAIL_CHAIN = resolvers(_string_or_empty, "email")
DISPLAY_NAME_CHAIN = resolvers(_string, "displayName", "name", "fullName")
PHOTO_CHAIN = resolvers(
	_string,
	"photoURL",
	"avatar",
	"profileImage",
	"profilePhoto",
	"profile.profilePhoto",
	"profile.profileImage",
)
BIO_CHAIN = resolvers(_string_or_empty, "bio", "profile.bio")
PHONE_CHAIN = resolvers(_string_or_empty, "phone", "profile.phone")
AVAILABILITY_CHAIN = resolvers(_true, "profile.isAvailableForWork", "isAvailableForWork", "isAvailable")
CREATED_CHAIN = resolvers(_datetime, "createdAt")
UPDATED_CHAIN = resolvers(_datetime, "updatedAt")

# Extra legacy locations consulted after profile.<field> and <field>
_LEGACY_PROFILE_PATHS: Dict[str, Tuple[str, ...]] = {
	"companyName": ("profile.company", "company"),
}


def _profile_chain(name: str, default: Any) -> Tuple[FieldResolver, ...]:
	accept = _list if isinstance(default, list) else _string_or_empty
	paths = (f"profile.{name}", name) + _LEGACY_PROFILE_PATHS.get(name, ())
	return resolvers(accept, *paths)


_PROFILE_CHAINS: Dict[str, Dict[str, Tuple[FieldResolver, ...]]] = {}


def _chains_for(role: str) -> Dict[str, Tuple[FieldResolver, ...]]:
	chains = _PROFILE_CHAINS.get(role)
	if chains is None:
		chains = {name: _profile_chain(name, default) for name, default in profile_fields(role).items()}
		_PROFILE_CHAINS[role] = chains
	return chains


def resolve_role(raw: Any) -> Optional[str]:
	"""Return the canonical role stored on `raw`, or None when neither role field is usable."""
	if not isinstance(raw, Mapping):
		return None
	return first_defined(raw, ROLE_CHAIN)


def _display_name(raw: Mapping[str, Any]) -> str:
	name = first_defined(raw, DISPLAY_NAME_CHAIN)
	if name:
		return name
	parts: Iterable[Any] = (raw.get("firstName"), raw.get("lastName"))
	return " ".join(part.strip() for part in parts if isinstance(part, str) and part.strip())


def resolve_profile(raw: Mapping[str, Any], role: str) -> Dict[str, Any]:
	"""Merge nested and top-level profile fields for `role`, keeping unknown nested keys."""
	stored = raw.get("profile")
	profile: Dict[str, Any] = dict(stored) if isinstance(stored, Mapping) else {}
	for name, chain in _chains_for(role).items():
		default = profile_fields(role)[name]
		profile[name] = first_defined(raw, chain, list(default) if isinstance(default, list) else default)
	return profile


def normalize(raw: Any, user_id: str) -> CanonicalUser:
	if not isinstance(raw, Mapping):
		raw = {}
	role = first_defined(raw, ROLE_CHAIN, ROLE_JOBSEEKER)
	detailed_cv = raw.get("detailedCV")
	return CanonicalUser(
		id=str(user_id),
		email=first_defined(raw, EMAIL_CHAIN, ""),
		display_name=_display_name(raw),
		role=role,
		profile=resolve_profile(raw, role),
		photo_url=first_defined(raw, PHOTO_CHAIN),
		bio=first_defined(raw, BIO_CHAIN, ""),
		phone=first_defined(raw, PHONE_CHAIN, ""),
		is_available_for_work=first_defined(raw, AVAILABILITY_CHAIN, False),
		created_at=first_defined(raw, CREATED_CHAIN),
		updated_at=first_defined(raw, UPDATED_CHAIN),
		detailed_cv=dict(detailed_cv) if isinstance(detailed_cv, Mapping) else None,
	)


def participant_card(raw: Any, user_id: str) -> ParticipantCard:
	if not isinstance(raw, Mapping):
		raw = {}
	return ParticipantCard(
		id=str(user_id),
		display_name=_display_name(raw) or UNKNOWN_USER_NAME,
		photo_url=first_defined(raw, PHOTO_CHAIN),
		role=first_defined(raw, ROLE_CHAIN),
	)
