from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from .engine import EligibilityEvaluator
from .models import DonorProfile, DonorProfileError, EligibilityResult, PermanentlyDeferred
from .policy import MIN_DONATION_INTERVAL_DAYS
from .temporal import add_days, parse_date


@dataclass(frozen=True)
class EligibilitySummary:
    status: str
    message: str
    next_eligible_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "nextEligibleDate": self.next_eligible_date.isoformat() if self.next_eligible_date else None,
        }


class EligibilitySummaryBuilder:
    """Turns an evaluation into the one-line status shown to donors."""

    def __init__(self, evaluator: Optional[EligibilityEvaluator] = None):
        self.evaluator = evaluator or EligibilityEvaluator()

    def summarize(self, result: EligibilityResult) -> EligibilitySummary:
        decision = result.decision
        if result.is_eligible:
            return EligibilitySummary(status=decision.status, message="You are eligible to donate blood!")

        if isinstance(decision, PermanentlyDeferred):
            return EligibilitySummary(
                status=decision.status,
                message=f"You are permanently deferred from donating: {result.permanent_deferrals[0].reason}",
            )

        return EligibilitySummary(
            status=decision.status,
            message=f"You are temporarily deferred: {result.reasons[0]}",
            next_eligible_date=result.next_eligible_date,
        )

    def get_eligibility_summary(
        self,
        profile: DonorProfile,
        last_donation_date=None,
        reference_date: Optional[date] = None,
    ) -> EligibilitySummary:
        if reference_date is None:
            reference_date = datetime.now().date()
        result = self.evaluator.check_eligibility(
            profile, last_donation_date, reference_date=reference_date
        )
        return self.summarize(result)

    def is_eligible_today(self, profile: DonorProfile, last_donation_date=None) -> bool:
        result = self.evaluator.check_eligibility(
            profile, last_donation_date, reference_date=datetime.now().date()
        )
        return result.is_eligible


def get_next_eligible_date(last_donation_date, interval_days: int = MIN_DONATION_INTERVAL_DAYS) -> date:
    """Interval rule only: the first day a donor may give blood again."""
    last = parse_date(last_donation_date)
    if last is None:
        raise DonorProfileError(f"Last donation date {last_donation_date!r} is not a valid date")
    nxt = add_days(last, interval_days)
    if nxt is None:
        raise DonorProfileError(f"Last donation date {last.isoformat()} is out of range")
    return nxt


def get_eligibility_summary(
    profile: DonorProfile,
    last_donation_date=None,
    reference_date: Optional[date] = None,
) -> EligibilitySummary:
    return EligibilitySummaryBuilder().get_eligibility_summary(profile, last_donation_date, reference_date)


def is_eligible_today(profile: DonorProfile, last_donation_date=None) -> bool:
    return EligibilitySummaryBuilder().is_eligible_today(profile, last_donation_date)
