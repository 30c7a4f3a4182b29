"""Owner classification from the owner-of-record name."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml

from parcelmatch.core.types import OwnerType

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "owner_rules.yml"

DEFAULT_RULES: list[tuple[OwnerType, tuple[str, ...]]] = [
    (OwnerType.BUSINESS, ("llc", "inc", "corp", "trust", "properties")),
    (OwnerType.GOVERNMENT, ("city of", "county", "state of", "department")),
]


@runtime_checkable
class OwnerClassifier(Protocol):
    """Anything that can map an owner name to an ``OwnerType``."""

    def classify(self, owner_name: str) -> OwnerType: ...


class KeywordOwnerClassifier:
    """Substring rule table. First matching rule wins."""

    def __init__(
        self,
        rules: list[tuple[OwnerType, tuple[str, ...]]] | None = None,
        default: OwnerType = OwnerType.INDIVIDUAL,
    ) -> None:
        source = DEFAULT_RULES if rules is None else rules
        self._rules = [
            (owner_type, tuple(k.lower() for k in keywords))
            for owner_type, keywords in source
        ]
        self._default = default

    @classmethod
    def from_yaml(cls, config_path: str | Path | None = None) -> KeywordOwnerClassifier:
        """Load the rule table from YAML; falls back to the built-in table if the file is absent."""
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        if not path.exists():
            logger.warning("Owner rules file %s not found, using built-in rules", path)
            return cls()
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}

        rules = [
            (OwnerType(rule["owner_type"]), tuple(rule.get("keywords", [])))
            for rule in data.get("rules", [])
        ]
        default = OwnerType(data.get("default", OwnerType.INDIVIDUAL))
        return cls(rules=rules, default=default)

    def classify(self, owner_name: str) -> OwnerType:
        name = (owner_name or "").lower()
        for owner_type, keywords in self._rules:
            if any(keyword in name for keyword in keywords):
                return owner_type
        return self._default
