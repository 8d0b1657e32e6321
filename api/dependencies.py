import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from fastapi import Header

from donor_eligibility.engine import EligibilityEvaluator


def _resolve_config_path() -> Path:
    config_dir = Path(os.getenv("CONFIG_DIR", "./configs"))
    for suffix in (".yaml", ".yml", ".json"):
        candidate = config_dir / f"default{suffix}"
        if candidate.exists():
            return candidate
    return config_dir / "default.json"


@lru_cache(maxsize=64)
def _evaluator_for_facility(facility_id: Optional[str]) -> EligibilityEvaluator:
    return EligibilityEvaluator.from_files(
        config_path=_resolve_config_path(),
        ontology_dir=Path(os.getenv("ONTOLOGY_DIR", "./ontologies")),
        facility_id=facility_id,
    )


def get_evaluator(x_facility_id: Optional[str] = Header(None)) -> EligibilityEvaluator:
    return _evaluator_for_facility(x_facility_id)
