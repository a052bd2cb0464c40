"""Jobs, applications, meetings and favorites."""

from .service import (
	add_favorite,
	apply,
	create_job,
	delete_job,
	list_active_jobs,
	schedule_meeting,
	set_application_status,
	set_meeting_status,
	update_job,
)

__all__ = [
	"add_favorite",
	"apply",
	"create_job",
	"delete_job",
	"list_active_jobs",
	"schedule_meeting",
	"set_application_status",
	"set_meeting_status",
	"update_job",
]
