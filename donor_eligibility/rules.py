from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .models import (
    DonorProfile,
    DonorProfileError,
    MedicalHistory,
    PermanentDeferral,
    RuleOutcome,
    TemporaryDeferral,
)
from .policy import DeferralPolicy
from .temporal import add_days, add_years, calculate_age, days_between, parse_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationContext:
    """Everything a rule may look at for one evaluation."""

    profile: DonorProfile
    birth_date: date
    last_donation_date: Optional[date]
    reference_date: date
    policy: DeferralPolicy

    @property
    def history(self) -> Optional[MedicalHistory]:
        history = self.profile.medical_history
        return history if history.supplied else None


class DeferralRule:
    """A single independent check producing zero or more deferrals."""

    rule_id: str = ""
    description: str = ""

    def evaluate(self, ctx: EvaluationContext) -> RuleOutcome:
        outcome = RuleOutcome()
        self.apply(ctx, outcome)
        return outcome

    def apply(self, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        raise NotImplementedError


class AgeRule(DeferralRule):
    rule_id = "age"
    description = "Donor age within the permitted range"

    def apply(self, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        policy = ctx.policy
        age = calculate_age(ctx.birth_date, ctx.reference_date)

        if age < policy.min_age_years:
            eligible_from = add_years(ctx.birth_date, policy.min_age_years)
            if eligible_from is None:
                raise DonorProfileError(f"Donor birth date {ctx.birth_date.isoformat()} is out of range")
            outcome.defer(
                TemporaryDeferral(
                    reason="Below minimum donor age",
                    until=eligible_from,
                    notes=f"Eligible from the donor's {policy.min_age_years}th birthday",
                ),
                f"Must be at least {policy.min_age_years} years old",
            )
        elif age > policy.max_age_years:
            outcome.disqualify(
                PermanentDeferral(
                    reason=f"Age limit exceeded (maximum {policy.max_age_years} years)",
                    notes="Permanent deferral due to age restrictions",
                ),
                "Age limit exceeded",
            )


class DonationIntervalRule(DeferralRule):
    rule_id = "donation_interval"
    description = "Minimum interval between whole blood donations"

    def apply(self, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        last = ctx.last_donation_date
        if last is None:
            return

        interval = ctx.policy.min_donation_interval_days
        until = add_days(last, interval)
        if until is None:
            logger.debug("Skipping last donation date %s outside the calendar window", last)
            return
        days_since = days_between(last, ctx.reference_date)
        if days_since < interval:
            outcome.defer(
                TemporaryDeferral(
                    reason="Minimum interval between donations not met",
                    until=until,
                    notes=f"Must wait {interval} days between whole blood donations",
                ),
                f"Must wait {interval - days_since} more days since last donation",
            )


class MedicalHistoryRule(DeferralRule):
    """Base for checks that only apply when a medical history was supplied."""

    def apply(self, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        history = ctx.history
        if history is not None:
            self.check(history, ctx, outcome)

    def check(self, history: MedicalHistory, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        raise NotImplementedError


class ChronicConditionRule(MedicalHistoryRule):
    rule_id = "chronic_conditions"
    description = "Conditions that permanently disqualify a donor"

    def check(self, history: MedicalHistory, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        for condition in history.chronic_conditions:
            keyword = ctx.policy.match_permanent_condition(condition.name)
            if keyword is None:
                continue
            outcome.disqualify(
                PermanentDeferral(
                    reason=f"Medical condition: {condition.name} ({keyword})",
                    notes=condition.notes,
                ),
                f"Medical condition: {condition.name}",
            )


class MedicationRule(MedicalHistoryRule):
    rule_id = "medications"
    description = "Medications that defer donation while they are being taken"

    def check(self, history: MedicalHistory, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        for medication in history.current_medications:
            if ctx.policy.match_deferral_medication(medication) is None:
                continue
            # Open-ended: cleared once the medication is no longer listed.
            outcome.defer(
                TemporaryDeferral(
                    reason=f"Current medication: {medication}",
                    notes="Consult with medical staff about medication deferral period",
                ),
                f"Current medication may affect eligibility: {medication}",
            )


class TransfusionRule(MedicalHistoryRule):
    rule_id = "blood_transfusions"
    description = "Deferral window after receiving a transfusion"

    def check(self, history: MedicalHistory, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        window = ctx.policy.transfusion_deferral_days
        for transfusion in history.blood_transfusions:
            received = parse_date(transfusion.date)
            if received is None:
                logger.debug("Skipping transfusion entry with unusable date %r", transfusion.date)
                continue
            until = add_days(received, window)
            if until is None:
                logger.debug("Skipping transfusion dated %s outside the calendar window", received)
                continue
            if ctx.reference_date < until:
                outcome.defer(
                    TemporaryDeferral(
                        reason="Recent blood transfusion",
                        until=until,
                        notes=f"Must wait {window} days after blood transfusion",
                    ),
                    f"Recent blood transfusion - must wait until {until.isoformat()}",
                )


class PregnancyRule(MedicalHistoryRule):
    rule_id = "pregnancy"
    description = "Postpartum window"

    def check(self, history: MedicalHistory, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        pregnancies = history.pregnancies
        if not pregnancies.has_been_pregnant:
            return
        last = parse_date(pregnancies.last_pregnancy_date)
        if last is None:
            if pregnancies.last_pregnancy_date is not None:
                logger.debug("Skipping pregnancy date %r", pregnancies.last_pregnancy_date)
            return

        window = ctx.policy.pregnancy_deferral_days
        until = add_days(last, window)
        if until is None:
            logger.debug("Skipping pregnancy dated %s outside the calendar window", last)
            return
        if ctx.reference_date < until:
            remaining = days_between(ctx.reference_date, until)
            outcome.defer(
                TemporaryDeferral(
                    reason="Recent pregnancy",
                    until=until,
                    notes=f"Must wait {window} days after pregnancy",
                ),
                f"Recent pregnancy - must wait {remaining} more days",
            )


class TattooPiercingRule(MedicalHistoryRule):
    rule_id = "tattoo_piercing"
    description = "Recent tattoo or piercing"

    def check(self, history: MedicalHistory, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        lifestyle = history.lifestyle
        if not (lifestyle.recent_tattoos or lifestyle.recent_piercings):
            return
        # The flags carry no date, so the window cannot be anchored.
        window = ctx.policy.tattoo_piercing_deferral_days
        outcome.defer(
            TemporaryDeferral(
                reason="Recent tattoo or piercing",
                notes=f"Must wait {window} days after tattoo or piercing",
            ),
            f"Recent tattoo/piercing - must wait {window} days",
        )


class TravelRule(MedicalHistoryRule):
    rule_id = "travel"
    description = "Recent travel to a risk region"

    def check(self, history: MedicalHistory, ctx: EvaluationContext, outcome: RuleOutcome) -> None:
        window = ctx.policy.travel_risk_deferral_days
        for trip in history.lifestyle.recent_travel:
            region = ctx.policy.matched_risk_region(trip.country)
            if region is None:
                continue
            returned = parse_date(trip.date_to)
            if returned is None:
                logger.debug("Skipping travel to %s with unusable return date %r", trip.country, trip.date_to)
                continue
            until = add_days(returned, window)
            if until is None:
                logger.debug("Skipping travel to %s returning %s outside the calendar window", trip.country, returned)
                continue
            if ctx.reference_date < until:
                outcome.defer(
                    TemporaryDeferral(
                        reason=f"Recent travel to {trip.country}",
                        until=until,
                        notes=f"Travel within {ctx.policy.region_label(region)} requires a {window}-day deferral",
                    ),
                    f"Recent travel to high-risk area: {trip.country}",
                )


class RuleRegistry:
    """The fixed, ordered set of rules every evaluation runs."""

    def __init__(self, rules: Optional[List[DeferralRule]] = None):
        self.rules: List[DeferralRule] = rules if rules is not None else self._default_rules()

    @staticmethod
    def _default_rules() -> List[DeferralRule]:
        return [
            AgeRule(),
            DonationIntervalRule(),
            ChronicConditionRule(),
            MedicationRule(),
            TransfusionRule(),
            PregnancyRule(),
            TattooPiercingRule(),
            TravelRule(),
        ]

    def evaluate_all(self, ctx: EvaluationContext) -> List[RuleOutcome]:
        """One outcome per rule, in registry order. No rule is skipped."""
        return [rule.evaluate(ctx) for rule in self.rules]
