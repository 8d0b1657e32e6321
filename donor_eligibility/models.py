from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .temporal import parse_date

DateLike = Union[date, str]


class DonorProfileError(ValueError):
    """The caller supplied a profile the engine cannot reason about at all."""


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class ChronicCondition:
    name: str
    diagnosed: Optional[DateLike] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Union[str, Mapping[str, Any]]) -> "ChronicCondition":
        if isinstance(data, str):
            return cls(name=data)
        return cls(
            name=_pick(data, "name", "condition", default=""),
            diagnosed=_pick(data, "diagnosed"),
            notes=_pick(data, "notes"),
        )


@dataclass(frozen=True)
class BloodTransfusion:
    date: Optional[DateLike] = None
    reason: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BloodTransfusion":
        return cls(
            date=_pick(data, "date"),
            reason=_pick(data, "reason"),
            location=_pick(data, "location"),
        )


@dataclass(frozen=True)
class PregnancyHistory:
    has_been_pregnant: bool = False
    number_of_pregnancies: Optional[int] = None
    last_pregnancy_date: Optional[DateLike] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PregnancyHistory":
        return cls(
            has_been_pregnant=bool(_pick(data, "has_been_pregnant", "hasBeenPregnant", default=False)),
            number_of_pregnancies=_pick(data, "number_of_pregnancies", "numberOfPregnancies"),
            last_pregnancy_date=_pick(data, "last_pregnancy_date", "lastPregnancyDate"),
        )


@dataclass(frozen=True)
class TravelEntry:
    country: str
    date_from: Optional[DateLike] = None
    date_to: Optional[DateLike] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TravelEntry":
        return cls(
            country=_pick(data, "country", default=""),
            date_from=_pick(data, "date_from", "dateFrom"),
            date_to=_pick(data, "date_to", "dateTo"),
        )


@dataclass(frozen=True)
class Lifestyle:
    smoker: bool = False
    alcohol_consumption: str = "none"
    recent_tattoos: bool = False
    recent_piercings: bool = False
    recent_travel: Tuple[TravelEntry, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Lifestyle":
        return cls(
            smoker=bool(_pick(data, "smoker", default=False)),
            alcohol_consumption=_pick(data, "alcohol_consumption", "alcoholConsumption", default="none"),
            recent_tattoos=bool(_pick(data, "recent_tattoos", "recentTattoos", default=False)),
            recent_piercings=bool(_pick(data, "recent_piercings", "recentPiercings", default=False)),
            recent_travel=tuple(
                TravelEntry.from_dict(t) for t in _pick(data, "recent_travel", "recentTravel", default=[])
            ),
        )


@dataclass(frozen=True)
class MedicalHistory:
    """Supplied medical history. Absent sections are empty, never None."""

    chronic_conditions: Tuple[ChronicCondition, ...] = ()
    current_medications: Tuple[str, ...] = ()
    blood_transfusions: Tuple[BloodTransfusion, ...] = ()
    pregnancies: PregnancyHistory = field(default_factory=PregnancyHistory)
    lifestyle: Lifestyle = field(default_factory=Lifestyle)

    supplied = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MedicalHistory":
        return cls(
            chronic_conditions=tuple(
                ChronicCondition.from_dict(c)
                for c in _pick(data, "chronic_conditions", "chronicConditions", default=[])
            ),
            current_medications=tuple(
                _pick(data, "current_medications", "currentMedications", default=[])
            ),
            blood_transfusions=tuple(
                BloodTransfusion.from_dict(t)
                for t in _pick(data, "blood_transfusions", "bloodTransfusions", default=[])
            ),
            pregnancies=PregnancyHistory.from_dict(_pick(data, "pregnancies", default={})),
            lifestyle=Lifestyle.from_dict(_pick(data, "lifestyle", default={})),
        )


class NotSupplied:
    """Marker for a donor who has not filled in any medical history."""

    supplied = False

    def __repr__(self) -> str:
        return "NOT_SUPPLIED"


NOT_SUPPLIED = NotSupplied()

HistoryState = Union[MedicalHistory, NotSupplied]


@dataclass(frozen=True)
class DonorProfile:
    birth_date: Optional[DateLike]
    blood_type: Optional[str] = None
    last_donation_date: Optional[DateLike] = None
    medical_history: HistoryState = NOT_SUPPLIED

    def resolved_birth_date(self) -> date:
        """Birth date as a ``date``; a missing or malformed one is a caller error."""
        if self.birth_date is None:
            raise DonorProfileError("Donor profile has no birth date")
        parsed = parse_date(self.birth_date)
        if parsed is None:
            raise DonorProfileError(f"Donor birth date {self.birth_date!r} is not a valid date")
        return parsed

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DonorProfile":
        history = _pick(data, "medical_history", "medicalHistory")
        return cls(
            birth_date=_pick(data, "birth_date", "dateOfBirth", "date_of_birth"),
            blood_type=_pick(data, "blood_type", "bloodType"),
            last_donation_date=_pick(data, "last_donation_date", "lastDonationDate"),
            medical_history=MedicalHistory.from_dict(history) if history is not None else NOT_SUPPLIED,
        )


@dataclass(frozen=True)
class TemporaryDeferral:
    reason: str
    until: Optional[date] = None
    notes: Optional[str] = None

    @property
    def open_ended(self) -> bool:
        return self.until is None


@dataclass(frozen=True)
class PermanentDeferral:
    reason: str
    notes: Optional[str] = None


@dataclass
class RuleOutcome:
    """What a single rule contributes to the evaluation."""

    reasons: List[str] = field(default_factory=list)
    temporary: List[TemporaryDeferral] = field(default_factory=list)
    permanent: List[PermanentDeferral] = field(default_factory=list)

    def defer(self, deferral: TemporaryDeferral, reason: str) -> None:
        self.temporary.append(deferral)
        self.reasons.append(reason)

    def disqualify(self, deferral: PermanentDeferral, reason: str) -> None:
        self.permanent.append(deferral)
        self.reasons.append(reason)


# Decision variants: the engine's primary representation of an outcome.


@dataclass(frozen=True)
class Eligible:
    status = "eligible"


@dataclass(frozen=True)
class TemporarilyDeferred:
    until: Optional[date]
    reasons: Tuple[str, ...]

    status = "temporarily-deferred"


@dataclass(frozen=True)
class PermanentlyDeferred:
    reasons: Tuple[str, ...]

    status = "permanently-deferred"


Decision = Union[Eligible, TemporarilyDeferred, PermanentlyDeferred]


@dataclass(frozen=True)
class EligibilityResult:
    decision: Decision
    reasons: Tuple[str, ...] = ()
    temporary_deferrals: Tuple[TemporaryDeferral, ...] = ()
    permanent_deferrals: Tuple[PermanentDeferral, ...] = ()

    @property
    def is_eligible(self) -> bool:
        return isinstance(self.decision, Eligible)

    @property
    def next_eligible_date(self) -> Optional[date]:
        if isinstance(self.decision, TemporarilyDeferred):
            return self.decision.until
        return None

    @property
    def status(self) -> str:
        return self.decision.status

    def to_dict(self) -> Dict[str, Any]:
        nxt = self.next_eligible_date
        return {
            "isEligible": self.is_eligible,
            "status": self.status,
            "reasons": list(self.reasons),
            "temporaryDeferrals": [
                {
                    "reason": d.reason,
                    "until": d.until.isoformat() if d.until else None,
                    "notes": d.notes,
                }
                for d in self.temporary_deferrals
            ],
            "permanentDeferrals": [
                {"reason": d.reason, "notes": d.notes} for d in self.permanent_deferrals
            ],
            "nextEligibleDate": nxt.isoformat() if nxt else None,
        }
