"""Check protocol for validation functions."""

from typing import Any, List, Protocol

from manilint.core.schema.violation import Violation


class Check(Protocol):
    """Validation function interface.

    A check is a callable that inspects an artifact and returns the list of
    violations it found. Checks are combined into profiles (see
    ``manilint.k8s.check_config``) and run one after another.

    Example:
        def no_default_namespace(artifact: ManifestSet) -> List[Violation]:
            violations = []
            # ... inspect documents ...
            return violations
    """

    def __call__(self, artifact: Any) -> List[Violation]:
        """Check artifact and return violations.

        Args:
            artifact: The artifact to inspect

        Returns:
            List of violations, empty if the artifact passes.
        """
        ...
