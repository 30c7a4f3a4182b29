"""Tests for owner classification."""

from __future__ import annotations

import pytest

from parcelmatch.core.types import OwnerType
from parcelmatch.properties.classifier import KeywordOwnerClassifier, OwnerClassifier


class TestKeywordOwnerClassifier:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Acme Holdings LLC", OwnerType.BUSINESS),
            ("ACME CORP", OwnerType.BUSINESS),
            ("Smith Family Trust", OwnerType.BUSINESS),
            ("City of Springfield", OwnerType.GOVERNMENT),
            ("Sangamon County", OwnerType.GOVERNMENT),
            ("Jane Doe", OwnerType.INDIVIDUAL),
            ("", OwnerType.INDIVIDUAL),
        ],
    )
    def test_default_rules(self, name, expected):
        assert KeywordOwnerClassifier().classify(name) == expected

    def test_first_rule_wins(self):
        # "county" and "properties" both match; business comes first.
        assert KeywordOwnerClassifier().classify("County Line Properties") == OwnerType.BUSINESS

    def test_custom_rules_and_default(self):
        classifier = KeywordOwnerClassifier(
            rules=[(OwnerType.GOVERNMENT, ("Authority",))],
            default=OwnerType.BUSINESS,
        )
        assert classifier.classify("Port authority") == OwnerType.GOVERNMENT
        assert classifier.classify("Jane Doe") == OwnerType.BUSINESS

    def test_satisfies_protocol(self):
        assert isinstance(KeywordOwnerClassifier(), OwnerClassifier)


class TestFromYaml:
    def test_loads_rules(self, tmp_path):
        path = tmp_path / "rules.yml"
        path.write_text(
            "default: business\n"
            "rules:\n"
            "  - owner_type: government\n"
            "    keywords: [township]\n"
        )
        classifier = KeywordOwnerClassifier.from_yaml(path)
        assert classifier.classify("Capital Township") == OwnerType.GOVERNMENT
        assert classifier.classify("Jane Doe") == OwnerType.BUSINESS
        assert classifier.classify("Acme LLC") == OwnerType.BUSINESS

    def test_missing_file_falls_back(self, tmp_path):
        classifier = KeywordOwnerClassifier.from_yaml(tmp_path / "absent.yml")
        assert classifier.classify("Acme LLC") == OwnerType.BUSINESS

    def test_shipped_rules_file(self):
        classifier = KeywordOwnerClassifier.from_yaml()
        assert classifier.classify("State of Illinois") == OwnerType.GOVERNMENT
