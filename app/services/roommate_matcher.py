import logging
from typing import Any, Dict, Iterable, List, Optional
from pydantic import ValidationError

from db.repositories import UserRepository
from models.roommate import CandidateSummary, RoommateMatch, RoommateProfile
from models.user import AuthenticatedUser
from services.compatibility import CompatibilityScorer, compatibility_scorer
from services.exceptions import ProfileIncompleteError

logger = logging.getLogger(__name__)


def _summary(user_doc: Dict[str, Any], profile: RoommateProfile) -> CandidateSummary:
    return CandidateSummary(
        id=str(user_doc["_id"]),
        name=user_doc.get("name"),
        avatar=user_doc.get("avatar"),
        university=profile.university,
        major=profile.major,
        bio=profile.bio,
        budget=profile.budget,
        interests=profile.interests,
    )


def rank_candidates(
    requester: RoommateProfile,
    candidates: Iterable[Dict[str, Any]],
    scorer: CompatibilityScorer = compatibility_scorer,
) -> List[RoommateMatch]:
    """
    Score every candidate user document against `requester` and sort by score,
    highest first. Equal scores keep the candidates' original order.

    Candidates whose stored roommate profile does not validate are skipped.
    """
    matches: List[RoommateMatch] = []

    for user_doc in candidates:
        try:
            profile = RoommateProfile.model_validate(user_doc.get("roommateProfile") or {})
        except ValidationError as e:
            logger.warning("Skipping candidate %s: malformed roommate profile (%d errors)",
                           user_doc.get("_id"), e.error_count())
            continue

        result = scorer.evaluate(requester, profile, str(user_doc["_id"]))
        matches.append(RoommateMatch(
            user=_summary(user_doc, profile),
            compatibility_score=result.score,
            match_reasons=result.reasons,
        ))

    # list.sort is stable
    matches.sort(key=lambda m: m.compatibility_score, reverse=True)
    return matches


class RoommateMatcher:
    def __init__(self, users: UserRepository, scorer: CompatibilityScorer = compatibility_scorer):
        self.users = users
        self.scorer = scorer

    def requester_profile(self, principal: AuthenticatedUser) -> RoommateProfile:
        """The principal's roommate profile, or ProfileIncompleteError if they cannot be matched."""
        user_doc = self.users.find_by_id(principal.id)
        raw_profile = user_doc.get("roommateProfile") if user_doc else None
        if not raw_profile:
            raise ProfileIncompleteError()

        profile = RoommateProfile.model_validate(raw_profile)
        if not profile.looking_for_roommate:
            raise ProfileIncompleteError()
        return profile

    def find_matches(self, principal: AuthenticatedUser, top_n: Optional[int] = None) -> List[RoommateMatch]:
        """
        Rank every opted-in user against the principal.

        The candidate pool is only queried once the principal's own profile
        has been checked.
        """
        profile = self.requester_profile(principal)
        candidates = self.users.find_roommate_candidates(principal.id)
        matches = rank_candidates(profile, candidates, self.scorer)

        logger.debug("Ranked %d candidates for user %s", len(matches), principal.id)
        return matches[:top_n] if top_n is not None else matches
