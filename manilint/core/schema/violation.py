"""Violation model for lint findings."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Higher rank means more severe
SEVERITY_RANK = {"info": 0, "warning": 1, "error": 2}


@dataclass
class Violation:
    """A single finding reported by a check.

    Attributes:
        id: Identifier of the form "<check>.<CODE>" (e.g., "probe.NO_HANDLER")
        message: Human-readable description of the violation
        path: Location path: source file, "Kind/name" reference, then the
              field path inside the document
              (e.g., ["app.yaml", "Deployment/web", "spec", "replicas"])
        severity: "error", "warning", or "info"
        evidence: Supporting data. Well-known keys are ``line`` (first line
                  of the document), ``document`` (index in the file) and
                  ``fix`` (a serialized PatchOp the fixer can apply).
    """

    id: str
    message: str
    path: List[str]
    severity: str = "error"
    evidence: Optional[Dict[str, Any]] = None

    @property
    def check(self) -> str:
        """Name of the check that produced this violation."""
        return self.id.split(".", 1)[0]

    @property
    def code(self) -> str:
        return self.id.split(".", 1)[-1]

    @property
    def source(self) -> str:
        return self.path[0] if self.path else ""

    @property
    def resource(self) -> str:
        return self.path[1] if len(self.path) > 1 else ""

    @property
    def line(self) -> Optional[int]:
        if self.evidence:
            return self.evidence.get("line")
        return None

    def fix_hint(self) -> Optional[Dict[str, Any]]:
        """Return the serialized PatchOp that would resolve this violation."""
        if self.evidence:
            return self.evidence.get("fix")
        return None

    def is_at_least(self, severity: str) -> bool:
        return SEVERITY_RANK.get(self.severity, 0) >= SEVERITY_RANK[severity]

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "message": self.message,
            "path": list(self.path),
            "severity": self.severity,
        }
        if self.evidence:
            result["evidence"] = dict(self.evidence)
        return result
