"""Authentication helpers for FastAPI endpoints and socket handshakes.

- Bearer tokens are Firebase ID tokens verified with firebase_admin.auth.
- Dev headers (X-User-Id / X-User-Email) are only respected in development.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth

from pitchpro.infra.firebase import get_app
from pitchpro.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	email: Optional[str] = None
	display_name: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def _verify(token: str) -> dict:
	return firebase_auth.verify_id_token(token, app=get_app())


async def verify_id_token(token: str) -> AuthenticatedUser:
	"""Verify a Firebase ID token and return the session it belongs to."""
	try:
		claims = await asyncio.to_thread(_verify, token)
	except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.CertificateFetchError):
		# Normalise all verification failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token") from None

	uid = str(claims.get("uid") or claims.get("sub") or "").strip()
	if not uid:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	email = claims.get("email")
	name = claims.get("name")
	return AuthenticatedUser(
		id=uid,
		email=str(email) if email else None,
		display_name=str(name) if name else None,
	)


def dev_user(user_id: Optional[str], email: Optional[str] = None) -> Optional[AuthenticatedUser]:
	"""Build a session from dev headers, or None outside development."""
	if not settings.is_dev() or not user_id:
		return None
	return AuthenticatedUser(id=user_id, email=email or None)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Firebase ID token is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return await verify_id_token(credentials.credentials)

	user = dev_user(x_user_id, x_user_email)
	if user is not None:
		return user

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
