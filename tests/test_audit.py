"""Tests for the hash-chained match decision log."""

from __future__ import annotations

import json

import pytest

from parcelmatch.core.config import AuditConfig
from parcelmatch.governance.audit import MatchAuditLog


@pytest.fixture
def audit(tmp_path):
    return MatchAuditLog(AuditConfig(enabled=True, log_dir=str(tmp_path)))


class TestMatchAuditLog:
    def test_record_decision(self, audit):
        entry = audit.record_decision("p1", "matched", {"property_id": "prop-1"})
        assert entry.event.resource == "photo:p1"
        assert entry.event.actor == "system"
        assert audit.last_hash == entry.entry_hash
        assert audit.log_path.exists()

    def test_chain_links_entries(self, audit):
        first = audit.record_decision("p1", "unassigned", {"reason": "no parcel data"})
        second = audit.record_decision("p1", "matched", {"property_id": "prop-1"}, actor="operator")
        assert second.previous_hash == first.entry_hash
        assert audit.verify_chain()

    def test_decisions_for_filters_by_photo(self, audit):
        audit.record_decision("p1", "matched", {})
        audit.record_decision("p2", "failed", {"message": "boom"})
        audit.record_decision("p1", "unassigned", {})
        assert [e.action for e in audit.decisions_for("p1")] == ["matched", "unassigned"]
        assert audit.decisions_for("p3") == []

    def test_tampering_is_detected(self, audit):
        audit.record_decision("p1", "unassigned", {"reason": "low confidence"})
        audit.record_decision("p2", "matched", {})
        lines = audit.log_path.read_text().splitlines()
        data = json.loads(lines[0])
        data["event"]["details"]["reason"] = "edited"
        lines[0] = json.dumps(data)
        audit.log_path.write_text("\n".join(lines) + "\n")
        assert not audit.verify_chain()

    def test_reopen_continues_chain(self, tmp_path, audit):
        entry = audit.record_decision("p1", "matched", {})
        reopened = MatchAuditLog(AuditConfig(log_dir=str(tmp_path)))
        assert reopened.last_hash == entry.entry_hash
        reopened.record_decision("p2", "matched", {})
        assert reopened.verify_chain()

    def test_empty_log_verifies(self, audit):
        assert audit.verify_chain()
