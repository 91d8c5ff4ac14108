"""
Core schema definitions for artifacts, violations, patches, and checks.
"""

from manilint.core.schema.artifact import Artifact, to_serializable
from manilint.core.schema.check import Check
from manilint.core.schema.patch_dsl import Patch, PatchOp
from manilint.core.schema.violation import SEVERITY_RANK, Violation

__all__ = [
    "Artifact",
    "to_serializable",
    "Check",
    "Patch",
    "PatchOp",
    "SEVERITY_RANK",
    "Violation",
]
