import datetime as dt
import json
from pathlib import Path

import pytest
import yaml

from donor_eligibility.config import ConfigManager
from donor_eligibility.engine import EligibilityEvaluator
from donor_eligibility.models import DonorProfile
from donor_eligibility.policy import (
    MIN_DONATION_INTERVAL_DAYS,
    PREGNANCY_DEFERRAL_DAYS,
    DeferralPolicy,
)
from donor_eligibility.regions import RegionTaxonomy, region_slug

ONTOLOGY_DIR = Path(__file__).resolve().parent.parent / "ontologies"


@pytest.fixture
def taxonomy():
    return RegionTaxonomy(ONTOLOGY_DIR)


def test_default_policy_matches_constants():
    policy = DeferralPolicy.from_config(ConfigManager())

    assert policy == DeferralPolicy()
    assert policy.min_donation_interval_days == MIN_DONATION_INTERVAL_DAYS == 56
    assert policy.pregnancy_deferral_days == PREGNANCY_DEFERRAL_DAYS


def test_yaml_config_is_merged_over_defaults(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text(yaml.safe_dump({"thresholds": {"pregnancy_deferral_days": 180}}))

    config = ConfigManager(path)

    assert config.get("thresholds.pregnancy_deferral_days") == 180
    assert config.get("thresholds.min_age_years") == 16
    assert config.get("thresholds.unknown", "fallback") == "fallback"


def test_json_config_replaces_tables(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({"deferral_medications": ["Isotretinoin"]}))

    policy = DeferralPolicy.from_config(ConfigManager(path))

    assert policy.match_deferral_medication("isotretinoin 20mg") == "isotretinoin"
    assert policy.match_deferral_medication("Warfarin") is None


def test_missing_config_file_uses_defaults(tmp_path):
    config = ConfigManager(tmp_path / "absent.json")
    assert config.get("thresholds.max_age_years") == 100


def test_loading_config_does_not_touch_class_defaults(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({"thresholds": {"min_age_years": 18}}))

    ConfigManager(path)

    assert ConfigManager.DEFAULT_CONFIG["thresholds"]["min_age_years"] == 16


def test_facility_overrides():
    config = ConfigManager()
    config.update_facility_rules("facility_001", {"thresholds": {"min_donation_interval_days": 84}})

    facility_policy = DeferralPolicy.from_config(config, facility_id="facility_001")
    base_policy = DeferralPolicy.from_config(config)
    profile = DonorProfile(birth_date="1990-01-01")
    reference = dt.date(2024, 1, 15)

    assert facility_policy.min_donation_interval_days == 84
    assert base_policy.min_donation_interval_days == 56
    assert EligibilityEvaluator(base_policy).check_eligibility(
        profile, "2023-11-01", reference_date=reference
    ).is_eligible
    assert not EligibilityEvaluator(facility_policy).check_eligibility(
        profile, "2023-11-01", reference_date=reference
    ).is_eligible


def test_unknown_facility_falls_back_to_base():
    policy = DeferralPolicy.from_config(ConfigManager(), facility_id="nowhere")
    assert policy == DeferralPolicy()


def test_permanent_condition_matching_is_case_insensitive():
    policy = DeferralPolicy()

    assert policy.match_permanent_condition("HIV positive") == "hiv"
    assert policy.match_permanent_condition("Chagas-Disease") == "chagas-disease"
    assert policy.match_permanent_condition("Asthma") is None
    assert policy.match_permanent_condition("") is None


def test_risk_region_lookup_without_taxonomy():
    policy = DeferralPolicy()

    assert policy.matched_risk_region("Malaria-Endemic-Countries") == "malaria-endemic-countries"
    assert policy.matched_risk_region("malaria endemic countries") == "malaria-endemic-countries"
    assert policy.matched_risk_region("region-alpha") is None
    assert policy.matched_risk_region("   ") is None
    assert policy.region_label("malaria-endemic-countries") == "malaria-endemic-countries"


def test_risk_region_lookup_with_taxonomy(taxonomy):
    policy = DeferralPolicy(regions=taxonomy)

    assert policy.matched_risk_region("region-alpha") == "malaria-endemic-countries"
    assert policy.matched_risk_region("Region Alpha North") == "malaria-endemic-countries"
    assert policy.matched_risk_region("region-beta") is None
    assert policy.region_label("malaria-endemic-countries") == "Malaria-endemic countries"


def test_taxonomy_labels_and_nesting(taxonomy):
    assert region_slug("  Region  Alpha ") == "region-alpha"
    assert taxonomy.label("region-alpha") == "Region Alpha"
    assert taxonomy.label("unmapped-place") == "unmapped-place"
    assert taxonomy.within_any("region-alpha-north", ["malaria-endemic-countries"]) == "malaria-endemic-countries"
    assert taxonomy.within_any("malaria-endemic-countries", ["region-alpha"]) is None


def test_taxonomy_tolerates_missing_directory(tmp_path):
    taxonomy = RegionTaxonomy(tmp_path / "nope")
    assert len(taxonomy.graph) == 0
    assert taxonomy.within_any("region-alpha", ["malaria-endemic-countries"]) is None
