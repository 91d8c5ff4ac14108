"""Artifact protocol for the objects checks and patches operate on."""

from typing import Any, Protocol


class Artifact(Protocol):
    """Anything that can be checked, patched and reported on.

    The only artifact shipped today is a set of Kubernetes manifest files,
    but checks and the baseline only rely on this protocol.
    """

    def to_serializable(self) -> Any:
        """Convert artifact to JSON-serializable format."""
        ...


def to_serializable(artifact: Any) -> Any:
    """Helper to serialize any artifact.

    Uses the artifact's own to_serializable() when present, otherwise
    returns the object unchanged.
    """
    if hasattr(artifact, "to_serializable"):
        return artifact.to_serializable()
    return artifact
