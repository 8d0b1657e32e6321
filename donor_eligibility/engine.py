import logging
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional

from .config import ConfigManager
from .models import (
    Decision,
    DonorProfile,
    Eligible,
    EligibilityResult,
    PermanentDeferral,
    PermanentlyDeferred,
    RuleOutcome,
    TemporarilyDeferred,
    TemporaryDeferral,
)
from .policy import DeferralPolicy
from .regions import RegionTaxonomy
from .rules import EvaluationContext, RuleRegistry
from .temporal import as_date, parse_date

logger = logging.getLogger(__name__)


def decide(
    reasons: Iterable[str],
    temporary: List[TemporaryDeferral],
    permanent: List[PermanentDeferral],
) -> Decision:
    """Fold collected deferrals into a single decision."""
    reasons = tuple(reasons)
    if permanent:
        return PermanentlyDeferred(reasons=reasons)
    if temporary:
        dated = [d.until for d in temporary if d.until is not None]
        return TemporarilyDeferred(until=max(dated) if dated else None, reasons=reasons)
    return Eligible()


class EligibilityEvaluator:
    """
    Runs every deferral rule against one donor snapshot.

    The evaluator is a pure function of its arguments: it never reads the
    clock, never mutates the profile and keeps no state between calls, so a
    single instance can be shared by concurrent request handlers.
    """

    def __init__(
        self,
        policy: Optional[DeferralPolicy] = None,
        registry: Optional[RuleRegistry] = None,
    ):
        self.policy = policy or DeferralPolicy()
        self.registry = registry or RuleRegistry()

    @classmethod
    def from_files(
        cls,
        config_path: Optional[Path] = None,
        ontology_dir: Optional[Path] = None,
        facility_id: Optional[str] = None,
    ) -> "EligibilityEvaluator":
        config = ConfigManager(config_path)
        regions = RegionTaxonomy(ontology_dir) if ontology_dir else None
        return cls(DeferralPolicy.from_config(config, facility_id=facility_id, regions=regions))

    def check_eligibility(
        self,
        profile: DonorProfile,
        last_donation_date=None,
        *,
        reference_date: date,
    ) -> EligibilityResult:
        """
        Evaluate ``profile`` as of ``reference_date``.

        ``last_donation_date`` overrides the one stored on the profile. A
        malformed last-donation date is ignored, a missing or malformed birth
        date raises ``DonorProfileError``.
        """
        raw_last = last_donation_date if last_donation_date is not None else profile.last_donation_date
        last = parse_date(raw_last)
        if last is None and raw_last is not None:
            logger.debug("Ignoring unusable last donation date %r", raw_last)

        ctx = EvaluationContext(
            profile=profile,
            birth_date=profile.resolved_birth_date(),
            last_donation_date=last,
            reference_date=as_date(reference_date),
            policy=self.policy,
        )

        outcomes = self.registry.evaluate_all(ctx)
        result = self._aggregate(outcomes)
        logger.debug(
            "Eligibility evaluated as of %s: %s (%d reasons)",
            ctx.reference_date,
            result.status,
            len(result.reasons),
        )
        return result

    def _aggregate(self, outcomes: List[RuleOutcome]) -> EligibilityResult:
        reasons: List[str] = []
        temporary: List[TemporaryDeferral] = []
        permanent: List[PermanentDeferral] = []
        for outcome in outcomes:
            reasons.extend(outcome.reasons)
            temporary.extend(outcome.temporary)
            permanent.extend(outcome.permanent)

        return EligibilityResult(
            decision=decide(reasons, temporary, permanent),
            reasons=tuple(reasons),
            temporary_deferrals=tuple(temporary),
            permanent_deferrals=tuple(permanent),
        )


def check_eligibility(
    profile: DonorProfile,
    last_donation_date=None,
    *,
    reference_date: date,
    policy: Optional[DeferralPolicy] = None,
) -> EligibilityResult:
    return EligibilityEvaluator(policy).check_eligibility(
        profile, last_donation_date, reference_date=reference_date
    )
