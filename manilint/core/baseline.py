"""Baseline of accepted violations.

A baseline records the violations a team has decided to live with, so that
``manilint lint --baseline`` only reports new findings. Entries are keyed by
a signature that ignores line numbers and message wording, which keeps the
file stable across unrelated edits.

The file is plain, sorted JSON so it can be committed and reviewed in git.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from manilint.core.schema.violation import Violation

logger = logging.getLogger(__name__)

BASELINE_VERSION = "1.0"

Signature = Tuple[str, str, str, str]


def build_signature(violation: Violation) -> Signature:
    """Fingerprint a violation for baseline matching.

    The signature is (id, source, resource, field path). Line numbers and
    messages are left out on purpose so reformatting a file does not
    invalidate the baseline.
    """
    fields = "/".join(str(p) for p in violation.path[2:])
    return (violation.id, violation.source, violation.resource, fields)


@dataclass
class BaselineEntry:
    """Accepted violation.

    Attributes:
        signature: Result of build_signature()
        message: Message at the time the entry was recorded (informational)
        metadata: Timestamps and the like
    """
    signature: Signature
    message: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


class Baseline:
    """Persistent set of accepted violations.

    Example:
        >>> baseline = Baseline(".manilint-baseline.json")
        >>> new_violations = baseline.filter(violations)
    """

    def __init__(self, file_path: Optional[str] = None):
        """Initialize the baseline.

        Args:
            file_path: Path to JSON file for persistence (None disables persistence)
        """
        self.file_path = file_path
        self.entries: Dict[Signature, BaselineEntry] = {}

        if file_path and Path(file_path).exists():
            self.load()

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, violation: Violation) -> bool:
        return build_signature(violation) in self.entries

    def filter(self, violations: List[Violation]) -> List[Violation]:
        """Return the violations that are not in the baseline."""
        remaining = [v for v in violations if v not in self]
        suppressed = len(violations) - len(remaining)
        if suppressed:
            logger.info(f"Baseline suppressed {suppressed} known violation(s)")
        return remaining

    def record(self, violations: List[Violation], replace: bool = True) -> int:
        """Accept violations into the baseline and persist it.

        Args:
            violations: Violations to accept
            replace: If True, entries not present in ``violations`` are dropped
                     so fixed findings do not linger

        Returns:
            Number of entries that were not in the baseline before
        """
        now = datetime.now().isoformat()
        previous = self.entries
        self.entries = {} if replace else dict(previous)

        added = 0
        for violation in violations:
            signature = build_signature(violation)
            if signature in self.entries:
                continue
            entry = previous.get(signature)
            if entry is None:
                entry = BaselineEntry(
                    signature=signature,
                    message=violation.message,
                    metadata={"created_at": now},
                )
                added += 1
            self.entries[signature] = entry

        logger.info(f"Baseline now has {len(self.entries)} entries ({added} new)")
        self.save()
        return added

    def save(self) -> None:
        """Persist baseline to JSON file."""
        if not self.file_path:
            return

        data = {
            "version": BASELINE_VERSION,
            "entries": [
                self._entry_to_dict(self.entries[sig]) for sig in sorted(self.entries)
            ],
        }

        json_str = json.dumps(data, indent=2, sort_keys=True)
        Path(self.file_path).write_text(json_str + "\n", encoding="utf-8")

        logger.debug(f"Saved baseline to {self.file_path}")

    def load(self) -> None:
        """Load baseline from JSON file.

        Raises:
            ValueError: If the file is not a valid baseline
        """
        if not self.file_path:
            return

        try:
            data = json.loads(Path(self.file_path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid baseline file {self.file_path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("entries", []), list):
            raise ValueError(f"Invalid baseline file {self.file_path}: missing entries list")

        self.entries = {}
        for raw in data.get("entries", []):
            entry = self._dict_to_entry(raw)
            self.entries[entry.signature] = entry
        logger.info(f"Loaded {len(self.entries)} entries from baseline {self.file_path}")

    def _entry_to_dict(self, entry: BaselineEntry) -> Dict[str, Any]:
        check_id, source, resource, fields = entry.signature
        return {
            "id": check_id,
            "source": source,
            "resource": resource,
            "path": fields,
            "message": entry.message,
            "metadata": entry.metadata,
        }

    def _dict_to_entry(self, d: Dict[str, Any]) -> BaselineEntry:
        return BaselineEntry(
            signature=(d["id"], d.get("source", ""), d.get("resource", ""), d.get("path", "")),
            message=d.get("message", ""),
            metadata=d.get("metadata", {}),
        )
