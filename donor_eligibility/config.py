import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigManager:
    """Loads JSON/YAML deferral policy configuration and provides dot-notation access."""

    DEFAULT_CONFIG: Dict[str, Any] = {
        "thresholds": {
            "min_age_years": 16,
            "max_age_years": 100,
            "min_donation_interval_days": 56,
            "transfusion_deferral_days": 365,
            "pregnancy_deferral_days": 42,
            "travel_risk_deferral_days": 365,
            "tattoo_piercing_deferral_days": 90,
        },
        "permanent_conditions": [
            "hiv",
            "hepatitis-b",
            "hepatitis-c",
            "variant-creutzfeldt-jakob-disease",
            "babesiosis",
            "chagas-disease",
            "leishmaniasis",
        ],
        "deferral_medications": [
            "isotretinoin",
            "finasteride",
            "dutasteride",
            "warfarin",
            "heparin",
            "aspirin",
        ],
        "risk_regions": ["malaria-endemic-countries"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        if config_path and config_path.exists():
            self._deep_update(self.config, self._load_config(config_path))

    def _load_config(self, config_path: Path) -> Dict[str, Any]:
        suffix = config_path.suffix.lower()
        with open(config_path, "r") as f:
            if suffix in {".yaml", ".yml"}:
                return yaml.safe_load(f) or {}
            return json.load(f)

    def _deep_update(self, base: Dict[str, Any], updates: Dict[str, Any]) -> None:
        for key, value in updates.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._deep_update(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Key can be dot-separated, e.g. 'thresholds.min_age_years'."""
        parts = key.split(".")
        cur = self.config
        for p in parts:
            if isinstance(cur, dict) and p in cur:
                cur = cur[p]
            else:
                return default
        return cur

    def update_facility_rules(self, facility_id: str, rules: Dict[str, Any]) -> None:
        if "facility_overrides" not in self.config:
            self.config["facility_overrides"] = {}
        self.config["facility_overrides"][facility_id] = rules

    def for_facility(self, facility_id: Optional[str]) -> "ConfigManager":
        """A copy with the facility's overrides merged over the base settings."""
        merged = ConfigManager()
        merged.config = copy.deepcopy(self.config)
        overrides = self.get(f"facility_overrides.{facility_id}") if facility_id else None
        if isinstance(overrides, dict):
            self._deep_update(merged.config, copy.deepcopy(overrides))
        return merged
