import json
from pathlib import Path

config = {
    "thresholds": {
        "min_age_years": 16,
        "max_age_years": 100,
        "min_donation_interval_days": 56,
        "transfusion_deferral_days": 365,
        "pregnancy_deferral_days": 42,
        "travel_risk_deferral_days": 365,
        "tattoo_piercing_deferral_days": 90,
    },
    "risk_regions": ["malaria-endemic-countries"],
    "facility_overrides": {
        "facility_001": {"thresholds": {"min_age_years": 17, "min_donation_interval_days": 84}}
    },
}

out_path = Path(__file__).resolve().parent.parent / "configs" / "default.json"
out_path.parent.mkdir(parents=True, exist_ok=True)
out_path.write_text(json.dumps(config, indent=2))
print(f"Wrote example config to {out_path}")
