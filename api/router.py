import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_evaluator
from api.schemas import DonorRequest, EligibilityResponse, NextDateResponse, SummaryResponse
from donor_eligibility.engine import EligibilityEvaluator
from donor_eligibility.models import DonorProfileError, EligibilityResult
from donor_eligibility.summary import EligibilitySummaryBuilder, get_next_eligible_date

logger = logging.getLogger(__name__)

router = APIRouter()


def _evaluate(payload: DonorRequest, evaluator: EligibilityEvaluator) -> tuple:
    # "Now" is pinned once here; the engine itself never reads the clock.
    reference_date = payload.referenceDate or datetime.now().date()
    try:
        result = evaluator.check_eligibility(payload.to_profile(), reference_date=reference_date)
    except DonorProfileError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return reference_date, result


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.post("/eligibility", response_model=EligibilityResponse)
async def check_eligibility(
    payload: DonorRequest,
    evaluator: EligibilityEvaluator = Depends(get_evaluator),
):
    reference_date, result = _evaluate(payload, evaluator)
    summary = EligibilitySummaryBuilder(evaluator).summarize(result)
    logger.info("Eligibility check as of %s: %s", reference_date, result.status)

    body = result.to_dict()
    body["message"] = summary.message
    return EligibilityResponse(referenceDate=reference_date.isoformat(), eligibility=body)


@router.post("/eligibility/summary", response_model=SummaryResponse)
async def eligibility_summary(
    payload: DonorRequest,
    evaluator: EligibilityEvaluator = Depends(get_evaluator),
):
    _, result = _evaluate(payload, evaluator)
    return SummaryResponse(**EligibilitySummaryBuilder(evaluator).summarize(result).to_dict())


@router.get("/eligibility/next-date", response_model=NextDateResponse)
async def next_eligible_date(
    last_donation_date: date,
    evaluator: EligibilityEvaluator = Depends(get_evaluator),
):
    try:
        nxt = get_next_eligible_date(last_donation_date, evaluator.policy.min_donation_interval_days)
    except DonorProfileError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return NextDateResponse(
        lastDonationDate=last_donation_date.isoformat(),
        nextEligibleDate=nxt.isoformat(),
    )
