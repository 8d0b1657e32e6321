from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from donor_eligibility.models import (
    BloodTransfusion,
    ChronicCondition,
    DonorProfile,
    Lifestyle,
    MedicalHistory,
    NOT_SUPPLIED,
    PregnancyHistory,
    TravelEntry,
)

# History dates stay strings: a malformed one must reach the engine, which skips it.


class ChronicConditionSchema(BaseModel):
    condition: str
    diagnosed: Optional[str] = None
    notes: Optional[str] = None


class TransfusionSchema(BaseModel):
    date: Optional[str] = None
    reason: Optional[str] = None
    location: Optional[str] = None


class PregnancySchema(BaseModel):
    hasBeenPregnant: bool = False
    numberOfPregnancies: Optional[int] = Field(None, ge=0)
    lastPregnancyDate: Optional[str] = None


class TravelSchema(BaseModel):
    country: str
    dateFrom: str
    dateTo: str


class LifestyleSchema(BaseModel):
    smoker: bool = False
    alcoholConsumption: str = Field("none", pattern="^(none|occasional|moderate|heavy)$")
    recentTattoos: bool = False
    recentPiercings: bool = False
    recentTravel: List[TravelSchema] = []


class MedicalHistorySchema(BaseModel):
    hasChronicConditions: bool = False
    chronicConditions: List[ChronicConditionSchema] = []
    currentMedications: List[str] = []
    bloodTransfusions: List[TransfusionSchema] = []
    pregnancies: Optional[PregnancySchema] = None
    lifestyle: Optional[LifestyleSchema] = None

    def to_model(self) -> MedicalHistory:
        pregnancies = self.pregnancies or PregnancySchema()
        lifestyle = self.lifestyle or LifestyleSchema()
        return MedicalHistory(
            chronic_conditions=tuple(
                ChronicCondition(name=c.condition, diagnosed=c.diagnosed, notes=c.notes)
                for c in self.chronicConditions
            ),
            current_medications=tuple(self.currentMedications),
            blood_transfusions=tuple(
                BloodTransfusion(date=t.date, reason=t.reason, location=t.location)
                for t in self.bloodTransfusions
            ),
            pregnancies=PregnancyHistory(
                has_been_pregnant=pregnancies.hasBeenPregnant,
                number_of_pregnancies=pregnancies.numberOfPregnancies,
                last_pregnancy_date=pregnancies.lastPregnancyDate,
            ),
            lifestyle=Lifestyle(
                smoker=lifestyle.smoker,
                alcohol_consumption=lifestyle.alcoholConsumption,
                recent_tattoos=lifestyle.recentTattoos,
                recent_piercings=lifestyle.recentPiercings,
                recent_travel=tuple(
                    TravelEntry(country=t.country, date_from=t.dateFrom, date_to=t.dateTo)
                    for t in lifestyle.recentTravel
                ),
            ),
        )


class DonorRequest(BaseModel):
    dateOfBirth: date
    bloodType: Optional[str] = Field(None, pattern="^(A|B|AB|O)[+-]$")
    lastDonationDate: Optional[date] = None
    medicalHistory: Optional[MedicalHistorySchema] = None
    referenceDate: Optional[date] = None

    @field_validator("bloodType", mode="before")
    @classmethod
    def upper_blood_type(cls, v):
        return v.upper() if isinstance(v, str) else v

    def to_profile(self) -> DonorProfile:
        return DonorProfile(
            birth_date=self.dateOfBirth,
            blood_type=self.bloodType,
            last_donation_date=self.lastDonationDate,
            medical_history=self.medicalHistory.to_model() if self.medicalHistory else NOT_SUPPLIED,
        )


class TemporaryDeferralItem(BaseModel):
    reason: str
    until: Optional[str] = None
    notes: Optional[str] = None


class PermanentDeferralItem(BaseModel):
    reason: str
    notes: Optional[str] = None


class EligibilityItem(BaseModel):
    isEligible: bool
    status: str
    message: str
    reasons: List[str]
    temporaryDeferrals: List[TemporaryDeferralItem]
    permanentDeferrals: List[PermanentDeferralItem]
    nextEligibleDate: Optional[str] = None


class EligibilityResponse(BaseModel):
    referenceDate: str
    eligibility: EligibilityItem


class SummaryResponse(BaseModel):
    status: str
    message: str
    nextEligibleDate: Optional[str] = None


class NextDateResponse(BaseModel):
    lastDonationDate: str
    nextEligibleDate: str
