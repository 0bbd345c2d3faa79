"""Tests for configuration classes in rotalabs-conditions.

Tests cover:
- EngineConfig defaults and validation
- ConditionGate modes and evaluation
- ConditionsConfig serialization (dict/JSON/YAML) and file loading
"""

import json

import pytest

from rotalabs_conditions.core.config import ConditionGate, ConditionsConfig, EngineConfig
from rotalabs_conditions.evaluation.manager import ConditionManager


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_defaults(self):
        """Test default settings."""
        config = EngineConfig()

        assert config.max_depth == 32
        assert config.cache_invalid_expressions is True
        assert config.attribute_delimiter == "%"

    def test_invalid_depth(self):
        """Test non-positive depth is rejected."""
        with pytest.raises(ValueError, match="max_depth"):
            EngineConfig(max_depth=0)

    def test_depth_above_cap_rejected(self):
        """Test depths deeper than the parser supports are rejected."""
        with pytest.raises(ValueError, match="max_depth"):
            EngineConfig(max_depth=2000)

    def test_invalid_delimiter(self):
        """Test multi-character delimiters are rejected."""
        with pytest.raises(ValueError, match="attribute_delimiter"):
            EngineConfig(attribute_delimiter="{{")

    def test_from_dict(self):
        """Test creating engine config from dictionary."""
        config = EngineConfig.from_dict({"max_depth": 8, "cache_invalid_expressions": False})

        assert config.max_depth == 8
        assert config.cache_invalid_expressions is False
        assert config.attribute_delimiter == "%"

    def test_custom_delimiter_used_by_manager(self, player):
        """Test the manager's parser honors a custom delimiter."""
        manager = ConditionManager(
            resolver=lambda subject, token: {"$level$": "12"}.get(token, token),
            config=EngineConfig(attribute_delimiter="$"),
        )

        assert manager.evaluate(player, "$level$ > 10") is True
        assert manager.is_valid_expression("%player_level% > 10") is False


class TestConditionGate:
    """Tests for ConditionGate."""

    def test_all_mode(self, manager, player):
        """Test all-mode gates require every expression."""
        gate = ConditionGate(
            name="lounge",
            conditions=["perm lounge.enter", "%player_level% >= 10"],
        )

        assert gate.evaluate(manager, player) is True

    def test_all_mode_fails(self, manager, guest):
        """Test all-mode gate failing."""
        gate = ConditionGate(name="lounge", conditions=["perm lounge.enter", "%player_level% >= 10"])

        assert gate.evaluate(manager, guest) is False

    def test_any_mode(self, manager, player):
        """Test any-mode gates need one expression."""
        gate = ConditionGate(name="fly", conditions=["perm essentials.fly", "%player_level% > 10"], mode="any")

        assert gate.evaluate(manager, player) is True

    def test_invalid_mode(self):
        """Test unknown modes are rejected."""
        with pytest.raises(ValueError, match="Invalid gate mode"):
            ConditionGate(name="g", mode="xor")

    def test_empty_name(self):
        """Test gates need a name."""
        with pytest.raises(ValueError):
            ConditionGate(name="")

    def test_from_bare_list(self):
        """Test a gate defined as a plain list of expressions."""
        gate = ConditionGate.from_dict("simple", ["perm a", "perm b"])

        assert gate.mode == "all"
        assert gate.conditions == ["perm a", "perm b"]

    def test_to_dict(self):
        """Test converting gate to dictionary."""
        gate = ConditionGate(name="g", conditions=["perm a"], mode="any", description="Test gate")

        assert gate.to_dict() == {"mode": "any", "conditions": ["perm a"], "description": "Test gate"}


class TestConditionsConfig:
    """Tests for ConditionsConfig."""

    @pytest.fixture
    def config_data(self):
        return {
            "engine": {"max_depth": 16},
            "gates": {
                "vip_lounge": {
                    "mode": "all",
                    "description": "Lounge access",
                    "conditions": ["permission lounge.enter", "%player_level% >= 10"],
                },
                "broken": ["all [perm a", "perm b"],
            },
        }

    def test_from_dict(self, config_data):
        """Test creating config from dictionary."""
        config = ConditionsConfig.from_dict(config_data)

        assert config.engine.max_depth == 16
        assert set(config.gates) == {"vip_lounge", "broken"}
        assert config.get_gate("vip_lounge").description == "Lounge access"
        assert config.get_gate("missing") is None

    def test_empty_dict(self):
        """Test an empty dictionary gives defaults."""
        config = ConditionsConfig.from_dict({})

        assert config.engine == EngineConfig()
        assert config.gates == {}

    def test_invalid_expressions(self, config_data, manager):
        """Test listing expressions that do not parse."""
        config = ConditionsConfig.from_dict(config_data)

        assert config.invalid_expressions(manager) == {"broken": ["all [perm a"]}

    def test_to_json(self, config_data):
        """Test converting config to JSON."""
        config = ConditionsConfig.from_dict(config_data)

        parsed = json.loads(config.to_json())

        assert parsed["engine"]["max_depth"] == 16
        assert parsed["gates"]["vip_lounge"]["conditions"][1] == "%player_level% >= 10"

    def test_to_yaml(self, config_data):
        """Test converting config to YAML."""
        config = ConditionsConfig.from_dict(config_data)

        yaml_str = config.to_yaml()

        assert "vip_lounge:" in yaml_str
        assert "max_depth: 16" in yaml_str

    def test_from_yaml_file(self, tmp_path, manager, player):
        """Test loading gates from a YAML file."""
        path = tmp_path / "conditions.yml"
        path.write_text(
            "engine:\n"
            "  max_depth: 8\n"
            "gates:\n"
            "  vip_lounge:\n"
            "    conditions:\n"
            "      - permission lounge.enter\n"
            "      - \"%player_level% >= 10\"\n",
            encoding="utf-8",
        )

        config = ConditionsConfig.from_file(path)

        assert config.engine.max_depth == 8
        assert config.get_gate("vip_lounge").evaluate(manager, player) is True

    def test_from_json_file(self, tmp_path, config_data):
        """Test loading gates from a JSON file."""
        path = tmp_path / "conditions.json"
        path.write_text(json.dumps(config_data), encoding="utf-8")

        config = ConditionsConfig.from_file(str(path))

        assert config.get_gate("broken").conditions == ["all [perm a", "perm b"]

    def test_unsupported_suffix(self, tmp_path):
        """Test unsupported file formats are rejected."""
        path = tmp_path / "conditions.toml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ValueError, match="Unsupported file format"):
            ConditionsConfig.from_file(path)

    def test_round_trip_dict(self, config_data):
        """Test dict round trip keeps gates and settings."""
        original = ConditionsConfig.from_dict(config_data)

        restored = ConditionsConfig.from_dict(original.to_dict())

        assert restored == original
