"""Service-level exceptions shared by the domain packages."""

from __future__ import annotations


class ServiceError(Exception):
	"""Raised for service-level issues with optional HTTP status mapping."""

	def __init__(self, reason: str, *, status_code: int = 400):
		super().__init__(reason)
		self.reason = reason
		self.status_code = status_code


class NotAuthenticated(ServiceError):
	def __init__(self) -> None:
		super().__init__("not_authenticated", status_code=401)


class ProfileNotFound(ServiceError):
	def __init__(self) -> None:
		super().__init__("profile_not_found", status_code=404)


class ProfileAlreadyExists(ServiceError):
	def __init__(self) -> None:
		super().__init__("profile_exists", status_code=409)


class ChatNotFound(ServiceError):
	def __init__(self) -> None:
		super().__init__("chat_not_found", status_code=404)


class NotAParticipant(ChatNotFound):
	"""Non-participants get the same answer as a missing chat."""


class SelfChatRejected(ServiceError):
	def __init__(self) -> None:
		super().__init__("cannot_chat_with_self", status_code=400)


class RecipientMissing(ServiceError):
	"""The chat has no participant other than the sender."""

	def __init__(self) -> None:
		super().__init__("recipient_missing", status_code=409)


class RecordNotFound(ServiceError):
	def __init__(self, kind: str = "record") -> None:
		super().__init__(f"{kind}_not_found", status_code=404)


class NotRecordOwner(ServiceError):
	def __init__(self) -> None:
		super().__init__("not_owner", status_code=403)


class RecruiterOnly(ServiceError):
	def __init__(self) -> None:
		super().__init__("recruiter_only", status_code=403)


class InvalidStatus(ServiceError):
	def __init__(self, value: str) -> None:
		super().__init__("invalid_status", status_code=400)
		self.value = value


class UploadRejected(ServiceError):
	def __init__(self, reason: str) -> None:
		super().__init__(reason, status_code=400)


class AlreadyApplied(ServiceError):
	def __init__(self) -> None:
		super().__init__("already_applied", status_code=409)


class JobClosed(ServiceError):
	def __init__(self) -> None:
		super().__init__("job_not_open", status_code=409)
