import json

import pytest
from fastapi.testclient import TestClient

from api.dependencies import _evaluator_for_facility, get_evaluator
from donor_eligibility.engine import EligibilityEvaluator
from main import app


@pytest.fixture
def client():
    app.dependency_overrides[get_evaluator] = lambda: EligibilityEvaluator()
    yield TestClient(app)
    app.dependency_overrides.clear()


def payload(**extra):
    body = {"dateOfBirth": "1990-01-01", "bloodType": "o+", "referenceDate": "2024-01-15"}
    body.update(extra)
    return body


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_eligible_donor(client):
    resp = client.post("/eligibility", json=payload())

    assert resp.status_code == 200
    data = resp.json()
    assert data["referenceDate"] == "2024-01-15"
    assert data["eligibility"]["isEligible"] is True
    assert data["eligibility"]["message"] == "You are eligible to donate blood!"


def test_deferred_donor(client):
    body = payload(
        lastDonationDate="2023-12-01",
        medicalHistory={
            "hasChronicConditions": False,
            "bloodTransfusions": [{"date": "invalid-date", "reason": "Surgery"}],
            "lifestyle": {"recentTattoos": True},
        },
    )
    resp = client.post("/eligibility", json=body)

    assert resp.status_code == 200
    elig = resp.json()["eligibility"]
    assert elig["isEligible"] is False
    assert elig["status"] == "temporarily-deferred"
    assert [d["reason"] for d in elig["temporaryDeferrals"]] == [
        "Minimum interval between donations not met",
        "Recent tattoo or piercing",
    ]
    assert elig["nextEligibleDate"] == "2024-01-26"
    assert elig["message"] == "You are temporarily deferred: Must wait 11 more days since last donation"


def test_summary_endpoint(client):
    body = payload(medicalHistory={"chronicConditions": [{"condition": "HIV positive"}]})
    resp = client.post("/eligibility/summary", json=body)

    assert resp.status_code == 200
    assert resp.json()["status"] == "permanently-deferred"
    assert resp.json()["nextEligibleDate"] is None


def test_structurally_invalid_payload_is_rejected(client):
    resp = client.post("/eligibility", json={"dateOfBirth": "not a date"})
    assert resp.status_code == 422


def test_next_date_endpoint(client):
    resp = client.get("/eligibility/next-date", params={"last_donation_date": "2024-01-01"})

    assert resp.status_code == 200
    assert resp.json() == {"lastDonationDate": "2024-01-01", "nextEligibleDate": "2024-02-26"}


def test_dates_past_calendar_edge_are_unprocessable(client):
    resp = client.post("/eligibility", json=payload(dateOfBirth="9999-06-01"))
    assert resp.status_code == 422

    resp = client.get("/eligibility/next-date", params={"last_donation_date": "9999-12-31"})
    assert resp.status_code == 422


def test_facility_header_selects_overrides(tmp_path, monkeypatch):
    (tmp_path / "default.json").write_text(
        json.dumps({"facility_overrides": {"f1": {"thresholds": {"min_donation_interval_days": 84}}}})
    )
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("ONTOLOGY_DIR", str(tmp_path / "ontologies"))
    _evaluator_for_facility.cache_clear()

    client = TestClient(app)
    body = payload(lastDonationDate="2023-11-01")
    try:
        base = client.post("/eligibility", json=body)
        facility = client.post("/eligibility", json=body, headers={"X-Facility-Id": "f1"})
    finally:
        _evaluator_for_facility.cache_clear()

    assert base.json()["eligibility"]["isEligible"] is True
    assert facility.json()["eligibility"]["isEligible"] is False
