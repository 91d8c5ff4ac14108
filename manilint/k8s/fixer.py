"""Mechanical fixes for lint findings.

Checks attach a serialized PatchOp to violations they know how to fix
(removed apiVersions, missing probes, missing requests). The fixer turns
those hints into a patch, applies it, and re-checks, repeating while new
fixes keep appearing.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Set, Tuple

from manilint.core.schema.check import Check
from manilint.core.schema.patch_dsl import Patch, PatchOp
from manilint.core.schema.violation import Violation
from manilint.k8s.artifact import ManifestSet
from manilint.k8s.checks import run_checks

logger = logging.getLogger(__name__)


def _op_key(op: PatchOp) -> str:
    return json.dumps(op.to_dict(), sort_keys=True, default=str)


def plan_fixes(violations: List[Violation]) -> Patch:
    """Collect fix hints into a patch, de-duplicated, in violation order."""
    ops = []
    seen: Set[str] = set()
    for violation in violations:
        hint = violation.fix_hint()
        if not hint:
            continue
        op = PatchOp.from_dict(hint)
        key = _op_key(op)
        if key not in seen:
            seen.add(key)
            ops.append(op)
    return Patch(ops=ops, meta={"origin": "fix"})


def fix(
    manifests: ManifestSet,
    checks: List[Check],
    disabled: Iterable[str] = (),
    max_iters: int = 3,
) -> Tuple[ManifestSet, Dict[str, Any]]:
    """Apply fix hints until no new ones appear.

    Args:
        manifests: Manifests to fix
        checks: Checks to run (usually a profile's checks)
        disabled: Violation ids or check names to ignore
        max_iters: Upper bound on fix/re-check rounds

    Returns:
        Tuple of (fixed ManifestSet, metadata). Metadata keys:
        ``status`` ("clean", "fixed" or "partial"), ``iterations``,
        ``applied`` (list of op dicts), ``initial`` (number of violations
        before fixing) and ``remaining`` (list of Violations).
    """
    disabled = list(disabled)
    violations = run_checks(manifests, checks, disabled)
    initial = len(violations)
    if not violations:
        return manifests, {"status": "clean", "iterations": 0, "applied": [], "initial": 0, "remaining": []}

    applied: List[PatchOp] = []
    applied_keys: Set[str] = set()
    iterations = 0

    for iterations in range(1, max_iters + 1):
        patch = plan_fixes(violations)
        new_ops = [op for op in patch.ops if _op_key(op) not in applied_keys]
        if not new_ops:
            iterations -= 1
            break

        logger.info(f"Fix round {iterations}: applying {len(new_ops)} operation(s)")
        manifests = manifests.apply_patch(Patch(ops=new_ops, meta=patch.meta))
        for op in new_ops:
            applied_keys.add(_op_key(op))
            applied.append(op)
        violations = run_checks(manifests, checks, disabled)

    status = "fixed" if not violations else "partial"
    return manifests, {
        "status": status,
        "iterations": iterations,
        "applied": [op.to_dict() for op in applied],
        "initial": initial,
        "remaining": violations,
    }
