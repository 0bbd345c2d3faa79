"""Configuration classes for the condition engine.

This module defines engine settings and declarative condition gates: named
lists of expressions that are loaded from JSON or YAML and evaluated
together.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

try:
    import yaml

    YAML_AVAILABLE = True
except ImportError:
    YAML_AVAILABLE = False

from rotalabs_conditions.core.subject import PermissionSubject
from rotalabs_conditions.parsing.parser import MAX_DEPTH_LIMIT

if TYPE_CHECKING:
    from rotalabs_conditions.evaluation.manager import ConditionManager


@dataclass
class EngineConfig:
    """Settings for parsing and caching.

    Attributes:
        max_depth: Maximum combinator/negation nesting depth.
        cache_invalid_expressions: Whether failed parses are remembered.
        attribute_delimiter: Character wrapping bare attribute tokens.
    """

    max_depth: int = 32
    cache_invalid_expressions: bool = True
    attribute_delimiter: str = "%"

    def __post_init__(self):
        """Validate engine configuration."""
        if not 1 <= self.max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}, got {self.max_depth}")
        if len(self.attribute_delimiter) > 1:
            raise ValueError(f"attribute_delimiter must be a single character, got {self.attribute_delimiter!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert engine config to dictionary."""
        return {
            "max_depth": self.max_depth,
            "cache_invalid_expressions": self.cache_invalid_expressions,
            "attribute_delimiter": self.attribute_delimiter,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create engine config from dictionary."""
        return cls(
            max_depth=data.get("max_depth", 32),
            cache_invalid_expressions=data.get("cache_invalid_expressions", True),
            attribute_delimiter=data.get("attribute_delimiter", "%"),
        )


@dataclass
class ConditionGate:
    """A named list of expressions evaluated together.

    In ``all`` mode every expression must hold, in ``any`` mode at least one.
    Each expression is cached independently by the manager.

    Attributes:
        name: Unique gate identifier.
        conditions: Expression strings.
        mode: Combination mode (all, any).
        description: Optional human readable description.
    """

    name: str
    conditions: List[str] = field(default_factory=list)
    mode: str = "all"
    description: Optional[str] = None

    def __post_init__(self):
        """Validate gate configuration."""
        if not self.name:
            raise ValueError("Gate name must not be empty")
        valid_modes = {"all", "any"}
        if self.mode not in valid_modes:
            raise ValueError(f"Invalid gate mode: {self.mode}. Must be one of {valid_modes}")

    def evaluate(self, manager: "ConditionManager", subject: PermissionSubject) -> bool:
        """Evaluate the gate against a subject.

        Args:
            manager: Manager used to parse, cache and evaluate expressions.
            subject: Subject to check.

        Returns:
            True if the gate passes.
        """
        if self.mode == "any":
            return manager.evaluate_any(subject, self.conditions)
        return manager.evaluate_all(subject, self.conditions)

    def to_dict(self) -> Dict[str, Any]:
        """Convert gate to dictionary."""
        result = {"mode": self.mode, "conditions": list(self.conditions)}
        if self.description is not None:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, name: str, data: Union[Dict[str, Any], List[str]]) -> "ConditionGate":
        """Create gate from dictionary or a bare list of expressions."""
        if isinstance(data, list):
            return cls(name=name, conditions=[str(c) for c in data])

        return cls(
            name=name,
            conditions=[str(c) for c in data.get("conditions", [])],
            mode=data.get("mode", "all"),
            description=data.get("description"),
        )


@dataclass
class ConditionsConfig:
    """Complete condition configuration: engine settings plus gates.

    Attributes:
        engine: Engine settings.
        gates: Gates keyed by name.
    """

    engine: EngineConfig = field(default_factory=EngineConfig)
    gates: Dict[str, ConditionGate] = field(default_factory=dict)

    def get_gate(self, name: str) -> Optional[ConditionGate]:
        """Get a gate by name."""
        return self.gates.get(name)

    def invalid_expressions(self, manager: "ConditionManager") -> Dict[str, List[str]]:
        """Find expressions that do not parse.

        Args:
            manager: Manager used to validate expressions.

        Returns:
            Mapping of gate name to its invalid expressions. Gates without
            invalid expressions are omitted.
        """
        invalid = {}
        for name, gate in self.gates.items():
            bad = [expr for expr in gate.conditions if not manager.is_valid_expression(expr)]
            if bad:
                invalid[name] = bad
        return invalid

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "engine": self.engine.to_dict(),
            "gates": {name: gate.to_dict() for name, gate in self.gates.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConditionsConfig":
        """Create config from dictionary."""
        engine = EngineConfig.from_dict(data.get("engine") or {})
        gates = {
            name: ConditionGate.from_dict(name, gate_data)
            for name, gate_data in (data.get("gates") or {}).items()
        }
        return cls(engine=engine, gates=gates)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ConditionsConfig":
        """Load config from JSON or YAML file.

        Args:
            path: Path to configuration file (.json or .yaml/.yml).

        Returns:
            Loaded configuration.

        Raises:
            ValueError: If file format is unsupported.
            ImportError: If YAML file provided but PyYAML not installed.
        """
        path = Path(path)
        suffix = path.suffix.lower()

        with open(path, "r", encoding="utf-8") as f:
            if suffix == ".json":
                data = json.load(f)
            elif suffix in (".yaml", ".yml"):
                if not YAML_AVAILABLE:
                    raise ImportError("PyYAML is required to load YAML files. Install with: pip install pyyaml")
                data = yaml.safe_load(f)
            else:
                raise ValueError(f"Unsupported file format: {suffix}. Use .json, .yaml, or .yml")

        return cls.from_dict(data or {})

    def to_json(self, indent: int = 2) -> str:
        """Convert config to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def to_yaml(self) -> str:
        """Convert config to YAML string.

        Raises:
            ImportError: If PyYAML is not installed.
        """
        if not YAML_AVAILABLE:
            raise ImportError("PyYAML is required to export to YAML. Install with: pip install pyyaml")
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
