"""
Tests for per-entity list query configuration (services/query_config.py).
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from services.query_config import (
    DEFAULT_CONFIG, allowed_array_items, get_model_config, validate_filter_value,
)
from services.query_presets import FILTER_CONFIGS, POPULATE_CONFIGS, SEARCH_CONFIGS, get_preset


class TestMerge:

    @pytest.mark.unit
    def test_model_overrides_environment(self):
        config = get_model_config("Product", "test")
        assert config["pagination"] == {"default_page": 1, "default_limit": 12, "max_limit": 50}

    @pytest.mark.unit
    def test_environment_overrides_defaults(self):
        """Models without pagination settings inherit the environment's."""
        config = get_model_config("User", "test")
        assert config["pagination"]["default_limit"] == 5
        assert config["pagination"]["max_limit"] == 20

        config = get_model_config("User", "development")
        assert config["pagination"]["max_limit"] == 1000
        assert config["performance"]["enable_query_logging"] is True

    @pytest.mark.unit
    def test_sections_merge_key_by_key(self):
        config = get_model_config("User", "production")
        assert config["security"]["enable_field_whitelist"] is True
        assert "email" in config["security"]["allowed_fields"]
        assert config["sorting"]["default_sort"] == {"createdAt": -1}

    @pytest.mark.unit
    def test_unknown_model_and_environment(self):
        config = get_model_config("Voucher", "staging")
        assert config["pagination"] == DEFAULT_CONFIG["pagination"]
        assert config["filterable_fields"] == {}

    @pytest.mark.unit
    def test_returns_independent_copies(self):
        first = get_model_config("Order", "test")
        first["filterable_fields"]["status"]["values"].append("returned")
        second = get_model_config("Order", "test")
        assert "returned" not in second["filterable_fields"]["status"]["values"]


class TestValidateFilterValue:

    CONFIG = {
        "filterable_fields": {
            "minPrice": {"type": "range", "field": "price", "min": 0, "max": 1000},
            "role": {"type": "regex", "values": ["admin", "customer"]},
            "code": {"type": "array", "max_items": 2},
            "sku": {"type": "regex", "required": True},
        }
    }

    @pytest.mark.unit
    @pytest.mark.parametrize("field,value,expected", [
        ("minPrice", "10", True),
        ("minPrice", "-1", False),
        ("minPrice", "1001", False),
        ("minPrice", "cheap", False),
        ("role", "admin", True),
        ("role", "root", False),
        ("code", "cod,vnpay", True),
        ("code", "cod,vnpay,momo", False),
        ("sku", "", False),
        ("unlisted", "anything", True),
    ])
    def test_rules(self, field, value, expected):
        assert validate_filter_value(field, value, self.CONFIG) is expected

    @pytest.mark.unit
    def test_allowed_array_items(self):
        config = {"filterable_fields": {"status": {"type": "array", "values": ["pending", "shipped"]}}}
        assert allowed_array_items("status", ["pending", "lost", "shipped"], config) == ["pending", "shipped"]
        assert allowed_array_items("tags", ["a"], config) == ["a"]


class TestPresets:

    @pytest.mark.unit
    @pytest.mark.parametrize("entity", [
        "product", "user", "order", "category", "review", "post", "banner", "productVariant",
    ])
    def test_entity_has_filter_and_search_presets(self, entity):
        assert FILTER_CONFIGS[entity]
        assert entity in SEARCH_CONFIGS

    @pytest.mark.unit
    def test_model_configs_built_from_presets(self):
        config = get_model_config("Order", "test")
        assert config["filterable_fields"] == FILTER_CONFIGS["order"]
        assert config["search_fields"] == SEARCH_CONFIGS["order"]
        assert config["default_populate"] == POPULATE_CONFIGS["order"]

    @pytest.mark.unit
    def test_get_preset(self):
        preset = get_preset("review")
        assert preset["search_fields"] == ["comment"]
        assert preset["default_populate"] == "user product order"
        preset["filter_config"]["product"]["type"] = "regex"
        assert FILTER_CONFIGS["review"]["product"]["type"] == "objectId"

    @pytest.mark.unit
    def test_unknown_entity_preset_is_empty(self):
        assert get_preset("wishList") == {"search_fields": [], "filter_config": {}, "default_populate": ""}
