"""Exceptions raised while reading, patching and ordering manifests."""

from typing import Any, List, Optional


class ManifestParseError(Exception):
    """Raised when a manifest document cannot be parsed.

    Checks turn parse failures into ``syntax.INVALID_YAML`` violations; this
    exception is raised where a parsed document is required (composing,
    ordering, patching).

    Attributes:
        source: File the document came from
        line: 1-based first line of the offending document
    """

    def __init__(self, message: str, source: str = "", line: Optional[int] = None) -> None:
        location = source
        if line is not None:
            location = f"{source}:{line}"
        super().__init__(f"{location}: {message}" if location else message)
        self.source = source
        self.line = line


class PatchApplyError(Exception):
    """Raised when patch application fails.

    Covers unknown operations, missing arguments and operations that do not
    make sense for the targeted document.

    Attributes:
        patch_op: The PatchOp that failed (optional)
        source: File being patched (optional)
    """

    def __init__(
        self, message: str, patch_op: Optional[Any] = None, source: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.patch_op = patch_op
        self.source = source


class OrderingError(Exception):
    """Raised when documents cannot be put in dependency order.

    Attributes:
        cycle: References ("Kind/name") of the documents left in a cycle
    """

    def __init__(self, message: str, cycle: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.cycle = cycle or []
