"""User profiles: normalization of legacy records, repair, CV and drafts."""

from .models import CanonicalUser, ParticipantCard
from .normalizer import normalize, participant_card
from .service import create_profile, list_candidates, load_and_repair, update_profile

__all__ = [
	"CanonicalUser",
	"ParticipantCard",
	"create_profile",
	"list_candidates",
	"load_and_repair",
	"normalize",
	"participant_card",
	"update_profile",
]
