"""Patch DSL for structured manifest edits.

Patches are ordered lists of operations applied to a manifest set. They are
produced by the composer (namespace, common labels) and by the fixer (from
violation fix hints), and can be serialized for logging or JSON output.

JSON Transport Format
---------------------

Example::

    {
      "ops": [
        {"op": "EnsureNamespace", "args": {"namespace": "payments"}},
        {
          "op": "EnsureProbe",
          "args": {
            "container": "api",
            "probe": "readiness",
            "target": {"kind": "Deployment", "name": "api"}
          }
        }
      ],
      "meta": {"origin": "fix"}
    }
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PatchOp:
    """Single atomic patch operation.

    Attributes:
        op: Operation name (e.g., "EnsureLabel")
        args: Operation-specific arguments as a dictionary. The optional
              ``target`` key restricts the operation to matching documents.
    """

    op: str
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "args": dict(self.args)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchOp":
        return cls(op=data["op"], args=dict(data.get("args") or {}))


@dataclass
class Patch:
    """Structured edit program.

    Attributes:
        ops: List of patch operations to apply sequentially
        meta: Optional metadata dictionary (origin, tool version, etc.)
    """

    ops: List[PatchOp]
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"ops": [op.to_dict() for op in self.ops], "meta": self.meta or {}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Patch":
        return cls(
            ops=[PatchOp.from_dict(op) for op in data.get("ops", [])],
            meta=data.get("meta"),
        )
