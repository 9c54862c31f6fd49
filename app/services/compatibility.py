from typing import List, Optional, Sequence, Tuple

from models.roommate import CompatibilityResult, RoommateProfile

# (exclusive upper bound on midpoint gap, points), checked in order.
# Amounts are in the currency unit of the stored budgets (VND).
DEFAULT_BUDGET_TIERS: Tuple[Tuple[float, int], ...] = (
    (500_000, 25),
    (1_000_000, 15),
    (2_000_000, 5),
)


class CompatibilityScorer:
    """
    Rule-based roommate compatibility.

    A score is the sum of four independent pools (university, budget, habits,
    shared interests). A pool only contributes when both profiles carry the
    data it needs; missing data is worth zero and never blocks another pool.
    """

    UNIVERSITY_POINTS = 30
    SLEEP_POINTS = 8
    CLEANLINESS_POINTS = 8
    CLEANLINESS_TOLERANCE = 1
    NOISE_POINTS = 5
    SMOKING_POINTS = 2
    COOKING_POINTS = 2
    POINTS_PER_INTEREST = 4
    MAX_INTEREST_POINTS = 20
    MAX_SCORE = 100

    HIGH_COMPATIBILITY = 70
    MAX_DISPLAYED_INTERESTS = 3

    def __init__(self, budget_tiers: Sequence[Tuple[float, int]] = DEFAULT_BUDGET_TIERS):
        self.budget_tiers = tuple(sorted(budget_tiers))

    # --- pools ---
    def _same_university(self, a: RoommateProfile, b: RoommateProfile) -> bool:
        return bool(a.university) and bool(b.university) and a.university == b.university

    def university_points(self, a: RoommateProfile, b: RoommateProfile) -> int:
        return self.UNIVERSITY_POINTS if self._same_university(a, b) else 0

    def budget_points(self, a: RoommateProfile, b: RoommateProfile) -> int:
        if a.budget is None or b.budget is None:
            return 0
        gap = abs(a.budget.midpoint - b.budget.midpoint)
        for limit, points in self.budget_tiers:
            if gap < limit:
                return points
        return 0

    def habit_points(self, a: RoommateProfile, b: RoommateProfile) -> int:
        if a.habits is None or b.habits is None:
            return 0
        ha, hb = a.habits, b.habits
        points = 0

        if _both_equal(ha.sleep_schedule, hb.sleep_schedule):
            points += self.SLEEP_POINTS
        if ha.cleanliness is not None and hb.cleanliness is not None:
            if abs(ha.cleanliness - hb.cleanliness) <= self.CLEANLINESS_TOLERANCE:
                points += self.CLEANLINESS_POINTS
        if _both_equal(ha.noise, hb.noise):
            points += self.NOISE_POINTS
        if _both_equal(ha.smoking, hb.smoking):
            points += self.SMOKING_POINTS
        if _both_equal(ha.cooking, hb.cooking):
            points += self.COOKING_POINTS
        return points

    def interest_points(self, a: RoommateProfile, b: RoommateProfile) -> int:
        shared = len(shared_interests(a, b))
        return min(shared * self.POINTS_PER_INTEREST, self.MAX_INTEREST_POINTS)

    # --- public API ---
    def score(self, a: RoommateProfile, b: RoommateProfile) -> int:
        total = (
            self.university_points(a, b)
            + self.budget_points(a, b)
            + self.habit_points(a, b)
            + self.interest_points(a, b)
        )
        return max(0, min(total, self.MAX_SCORE))

    def reasons(self, profile: RoommateProfile, candidate: RoommateProfile, score: int) -> List[str]:
        """Human-readable reasons, in display order."""
        reasons = []

        if self._same_university(profile, candidate):
            reasons.append("Same university")

        shared = shared_interests(profile, candidate)
        if shared:
            reasons.append(f"Shared interests: {', '.join(shared[:self.MAX_DISPLAYED_INTERESTS])}")

        if score >= self.HIGH_COMPATIBILITY:
            reasons.append("High compatibility")

        return reasons

    def evaluate(self, profile: RoommateProfile, candidate: RoommateProfile, candidate_user_id: str) -> CompatibilityResult:
        score = self.score(profile, candidate)
        return CompatibilityResult(
            candidate_user_id=candidate_user_id,
            score=score,
            reasons=self.reasons(profile, candidate, score),
        )


def _both_equal(x: Optional[object], y: Optional[object]) -> bool:
    return x is not None and y is not None and x == y


def shared_interests(a: RoommateProfile, b: RoommateProfile) -> List[str]:
    """
    Interests present in both profiles, deduplicated, in the order they
    appear in `a`.
    """
    other = set(b.interests)
    seen = set()
    shared = []
    for interest in a.interests:
        if interest in other and interest not in seen:
            seen.add(interest)
            shared.append(interest)
    return shared


compatibility_scorer = CompatibilityScorer()
