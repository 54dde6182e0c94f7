from __future__ import annotations

from careerproof.types import CareerPhase, ClassificationInput

# Upper bound (inclusive) on years of experience for each phase, checked in order.
PHASE_THRESHOLDS: tuple[tuple[float, CareerPhase], ...] = (
    (2, "early_career"),
    (7, "mid_career"),
    (12, "leadership"),
    (25, "executive"),
)


def classify_career_phase(data: ClassificationInput) -> CareerPhase:
    """Map onboarding facts to a career phase.

    Early career covers 0-2 years, or no experience with at least one
    internship. ``education`` is reference data only and never returned here.
    """
    years = data.years_experience
    if years <= 2 or (years == 0 and data.internship_count > 0):
        return "early_career"

    for upper_bound, phase in PHASE_THRESHOLDS[1:]:
        if years <= upper_bound:
            return phase
    return "legacy"
