"""Append-only log of match decisions.

Every decision the orchestrator persists (match, unassignment, error or
manual assignment) is written as one JSONL line whose
SHA-256 hash covers the previous line's hash. Editing or deleting a past
line breaks verification for everything after it.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from parcelmatch.core.config import AuditConfig
from parcelmatch.core.types import AuditEvent

logger = logging.getLogger(__name__)

GENESIS_SEED = b"parcelmatch-genesis"


class AuditEntry:
    """An AuditEvent plus its position in the hash chain."""

    def __init__(self, event: AuditEvent, previous_hash: str, entry_hash: str) -> None:
        self.event = event
        self.previous_hash = previous_hash
        self.entry_hash = entry_hash

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous_hash": self.previous_hash,
            "entry_hash": self.entry_hash,
            "event": json.loads(self.event.model_dump_json()),
        }


def _chain_hash(previous_hash: str, event_json: str) -> str:
    return hashlib.sha256((previous_hash + event_json).encode("utf-8")).hexdigest()


class MatchAuditLog:
    """Hash-chained JSONL writer for match decisions.

    Args:
        config: Where to write. Defaults to ``AuditConfig()``.
        log_file: File name inside ``config.log_dir``.
    """

    def __init__(
        self,
        config: AuditConfig | None = None,
        log_file: str = "match_decisions.jsonl",
    ) -> None:
        self._config = config or AuditConfig()
        log_dir = Path(self._config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        self._log_path = log_dir / log_file
        self._last_hash = hashlib.sha256(GENESIS_SEED).hexdigest()
        if self._log_path.exists():
            for data in self._read():
                self._last_hash = data["entry_hash"]

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def last_hash(self) -> str:
        return self._last_hash

    def _read(self):
        with open(self._log_path) as fh:
            for line in fh:
                stripped = line.strip()
                if stripped:
                    yield json.loads(stripped)

    def log(self, event: AuditEvent) -> AuditEntry:
        event_json = event.model_dump_json()
        entry = AuditEntry(
            event=event,
            previous_hash=self._last_hash,
            entry_hash=_chain_hash(self._last_hash, event_json),
        )
        with open(self._log_path, "a") as fh:
            fh.write(json.dumps(entry.to_dict()) + "\n")
        self._last_hash = entry.entry_hash
        return entry

    def record_decision(
        self,
        photo_id: str,
        action: str,
        details: dict[str, Any],
        actor: str = "system",
    ) -> AuditEntry:
        """Log one decision about ``photo_id``; ``action`` is the outcome kind."""
        return self.log(AuditEvent(
            actor=actor,
            action=action,
            resource=f"photo:{photo_id}",
            details=details,
        ))

    def verify_chain(self) -> bool:
        """Recompute every hash; False if any entry was altered, removed or reordered."""
        if not self._log_path.exists():
            return True
        previous_hash = hashlib.sha256(GENESIS_SEED).hexdigest()
        for line_number, data in enumerate(self._read(), start=1):
            event_json = AuditEvent(**data["event"]).model_dump_json()
            if (
                data["previous_hash"] != previous_hash
                or data["entry_hash"] != _chain_hash(previous_hash, event_json)
            ):
                logger.warning("Audit chain broken at line %d of %s", line_number, self._log_path)
                return False
            previous_hash = data["entry_hash"]
        return True

    def decisions_for(self, photo_id: str) -> list[AuditEvent]:
        if not self._log_path.exists():
            return []
        resource = f"photo:{photo_id}"
        return [
            event
            for event in (AuditEvent(**data["event"]) for data in self._read())
            if event.resource == resource
        ]
