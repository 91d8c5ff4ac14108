"""Check profiles.

A profile names the set of checks to run and the severity at which
``manilint lint`` fails. Profiles are shared by the CLI, the fixer and the
tests so "default" means the same thing everywhere.
"""

from typing import List, Optional

from manilint.core.schema.check import Check
from manilint.k8s.checks import (
    ProbeCheck,
    ReferenceCheck,
    ResourceCheck,
    SchemaCheck,
    ServiceCheck,
    SyntaxCheck,
    WorkloadCheck,
)


class CheckConfig:
    """Configuration for a check profile."""

    def __init__(
        self,
        name: str,
        checks: List[Check],
        fail_on: str = "error",
        description: str = ""
    ):
        """Initialize check profile.

        Args:
            name: Profile name (e.g., "default", "strict")
            checks: Check instances, run in order
            fail_on: Lowest severity that makes lint fail
            description: Description of this profile
        """
        self.name = name
        self.checks = checks
        self.fail_on = fail_on
        self.description = description

    def get_checks(self) -> List[Check]:
        return list(self.checks)


def _full_checks() -> List[Check]:
    return [
        SyntaxCheck(),
        SchemaCheck(),
        WorkloadCheck(),
        ProbeCheck(),
        ResourceCheck(),
        ServiceCheck(),
        ReferenceCheck(),
    ]


MINIMAL_CONFIG = CheckConfig(
    name="minimal",
    checks=[SyntaxCheck(), SchemaCheck(), ReferenceCheck()],
    description="Syntax, object schema and duplicate resources only",
)

DEFAULT_CONFIG = CheckConfig(
    name="default",
    checks=_full_checks(),
    description="All checks; fails on errors",
)

STRICT_CONFIG = CheckConfig(
    name="strict",
    checks=_full_checks(),
    fail_on="warning",
    description="All checks; fails on warnings too",
)

PROFILES = {
    "minimal": MINIMAL_CONFIG,
    "default": DEFAULT_CONFIG,
    "strict": STRICT_CONFIG,
}


def get_check_config(config_name: Optional[str] = None) -> CheckConfig:
    """Get check profile by name.

    Args:
        config_name: "minimal", "default" or "strict" (None means "default")

    Returns:
        CheckConfig instance

    Raises:
        ValueError: If config_name is not recognized
    """
    name = config_name or "default"
    if name not in PROFILES:
        raise ValueError(
            f"Unknown check profile: {name}. "
            f"Available: {', '.join(PROFILES.keys())}"
        )
    return PROFILES[name]
