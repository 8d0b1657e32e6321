from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from .config import ConfigManager
from .regions import RegionTaxonomy, region_slug

MIN_AGE_YEARS = 16
MAX_AGE_YEARS = 100
MIN_DONATION_INTERVAL_DAYS = 56
TRANSFUSION_DEFERRAL_DAYS = 365
PREGNANCY_DEFERRAL_DAYS = 42
TRAVEL_RISK_DEFERRAL_DAYS = 365
TATTOO_PIERCING_DEFERRAL_DAYS = 90

PERMANENT_DEFERRAL_CONDITIONS: Tuple[str, ...] = tuple(ConfigManager.DEFAULT_CONFIG["permanent_conditions"])
DEFERRAL_MEDICATIONS: Tuple[str, ...] = tuple(ConfigManager.DEFAULT_CONFIG["deferral_medications"])
RISK_REGIONS: FrozenSet[str] = frozenset(ConfigManager.DEFAULT_CONFIG["risk_regions"])


@dataclass(frozen=True)
class DeferralPolicy:
    """
    Every window length and keyword table the rules consult.

    Rules never inline these values; tuning a threshold or swapping the
    risk-region table is a configuration change (see ``from_config``).
    """

    min_age_years: int = MIN_AGE_YEARS
    max_age_years: int = MAX_AGE_YEARS
    min_donation_interval_days: int = MIN_DONATION_INTERVAL_DAYS
    transfusion_deferral_days: int = TRANSFUSION_DEFERRAL_DAYS
    pregnancy_deferral_days: int = PREGNANCY_DEFERRAL_DAYS
    travel_risk_deferral_days: int = TRAVEL_RISK_DEFERRAL_DAYS
    tattoo_piercing_deferral_days: int = TATTOO_PIERCING_DEFERRAL_DAYS
    permanent_conditions: Tuple[str, ...] = PERMANENT_DEFERRAL_CONDITIONS
    deferral_medications: Tuple[str, ...] = DEFERRAL_MEDICATIONS
    risk_regions: FrozenSet[str] = RISK_REGIONS
    regions: Optional[RegionTaxonomy] = field(default=None, compare=False)

    @classmethod
    def from_config(
        cls,
        config: ConfigManager,
        facility_id: Optional[str] = None,
        regions: Optional[RegionTaxonomy] = None,
    ) -> "DeferralPolicy":
        cfg = config.for_facility(facility_id) if facility_id else config
        t = "thresholds"
        return cls(
            min_age_years=int(cfg.get(f"{t}.min_age_years", MIN_AGE_YEARS)),
            max_age_years=int(cfg.get(f"{t}.max_age_years", MAX_AGE_YEARS)),
            min_donation_interval_days=int(
                cfg.get(f"{t}.min_donation_interval_days", MIN_DONATION_INTERVAL_DAYS)
            ),
            transfusion_deferral_days=int(
                cfg.get(f"{t}.transfusion_deferral_days", TRANSFUSION_DEFERRAL_DAYS)
            ),
            pregnancy_deferral_days=int(cfg.get(f"{t}.pregnancy_deferral_days", PREGNANCY_DEFERRAL_DAYS)),
            travel_risk_deferral_days=int(
                cfg.get(f"{t}.travel_risk_deferral_days", TRAVEL_RISK_DEFERRAL_DAYS)
            ),
            tattoo_piercing_deferral_days=int(
                cfg.get(f"{t}.tattoo_piercing_deferral_days", TATTOO_PIERCING_DEFERRAL_DAYS)
            ),
            permanent_conditions=tuple(
                c.lower() for c in cfg.get("permanent_conditions", PERMANENT_DEFERRAL_CONDITIONS)
            ),
            deferral_medications=tuple(
                m.lower() for m in cfg.get("deferral_medications", DEFERRAL_MEDICATIONS)
            ),
            risk_regions=frozenset(region_slug(r) for r in cfg.get("risk_regions", RISK_REGIONS)),
            regions=regions,
        )

    def match_permanent_condition(self, condition: str) -> Optional[str]:
        """The permanent-deferral keyword contained in ``condition``, if any."""
        lowered = (condition or "").lower()
        return next((k for k in self.permanent_conditions if k in lowered), None)

    def match_deferral_medication(self, medication: str) -> Optional[str]:
        lowered = (medication or "").lower()
        return next((m for m in self.deferral_medications if m in lowered), None)

    def matched_risk_region(self, country: str) -> Optional[str]:
        """The risk region ``country`` is, or falls within; None if it is not a risk."""
        if not country or not country.strip():
            return None
        slug = region_slug(country)
        if slug in self.risk_regions:
            return slug
        if self.regions is None:
            return None
        return self.regions.within_any(country, sorted(self.risk_regions))

    def region_label(self, region: str) -> str:
        if self.regions is None:
            return region
        return self.regions.label(region)
