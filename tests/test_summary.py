import datetime as dt

import pytest

from donor_eligibility.models import (
    ChronicCondition,
    DonorProfile,
    DonorProfileError,
    Lifestyle,
    MedicalHistory,
)
from donor_eligibility.summary import (
    EligibilitySummaryBuilder,
    get_eligibility_summary,
    get_next_eligible_date,
    is_eligible_today,
)

REFERENCE = dt.date(2024, 1, 15)


@pytest.fixture
def builder():
    return EligibilitySummaryBuilder()


@pytest.fixture
def profile():
    return DonorProfile(birth_date="1990-01-01", blood_type="O+")


def test_next_eligible_date():
    assert get_next_eligible_date("2024-01-01") == dt.date(2024, 2, 26)
    assert get_next_eligible_date(dt.date(2023, 12, 1)) == dt.date(2024, 1, 26)


def test_next_eligible_date_rejects_garbage():
    with pytest.raises(DonorProfileError):
        get_next_eligible_date("soon")


def test_next_eligible_date_past_calendar_edge_is_rejected():
    with pytest.raises(DonorProfileError):
        get_next_eligible_date("9999-12-31")


def test_eligible_summary(builder, profile):
    summary = builder.get_eligibility_summary(profile, reference_date=REFERENCE)

    assert summary.status == "eligible"
    assert summary.message == "You are eligible to donate blood!"
    assert summary.next_eligible_date is None


def test_permanent_summary(builder):
    profile = DonorProfile(
        birth_date="1990-01-01",
        medical_history=MedicalHistory(chronic_conditions=(ChronicCondition(name="hepatitis-b"),)),
    )
    summary = builder.get_eligibility_summary(profile, reference_date=REFERENCE)

    assert summary.status == "permanently-deferred"
    assert summary.message.startswith("You are permanently deferred from donating: ")
    assert "hepatitis-b" in summary.message
    assert summary.next_eligible_date is None


def test_temporary_summary(builder, profile):
    summary = builder.get_eligibility_summary(profile, "2023-12-01", reference_date=REFERENCE)

    assert summary.status == "temporarily-deferred"
    assert summary.message == "You are temporarily deferred: Must wait 11 more days since last donation"
    assert summary.next_eligible_date == dt.date(2024, 1, 26)
    assert summary.to_dict()["nextEligibleDate"] == "2024-01-26"


def test_open_ended_summary_has_no_date(builder):
    profile = DonorProfile(
        birth_date="1990-01-01",
        medical_history=MedicalHistory(lifestyle=Lifestyle(recent_tattoos=True)),
    )
    summary = builder.get_eligibility_summary(profile, reference_date=REFERENCE)

    assert summary.status == "temporarily-deferred"
    assert summary.next_eligible_date is None


def test_summary_defaults_to_today(profile):
    assert get_eligibility_summary(profile).status == "eligible"
    assert is_eligible_today(profile) is True


def test_recent_donation_blocks_today(profile):
    yesterday = dt.date.today() - dt.timedelta(days=1)
    assert is_eligible_today(profile, yesterday) is False
