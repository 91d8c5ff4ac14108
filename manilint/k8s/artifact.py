"""Manifest set artifact.

This module provides the ManifestSet class: a group of Kubernetes YAML files
that are checked, ordered, patched and composed together.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from manilint.core.schema.patch_dsl import Patch
from manilint.k8s.splitter import ManifestDocument, split_documents

logger = logging.getLogger(__name__)

MANIFEST_PATTERNS = ("*.yaml", "*.yml")
STDIN_SOURCE = "<stdin>"


@dataclass(frozen=True)
class ManifestSet:
    """Kubernetes manifest files.

    Attributes:
        files: Mapping from file path to YAML content as string.
               Example: ``{"deployment.yaml": "apiVersion: apps/v1\\n..."}``

    Example:
        >>> manifests = ManifestSet.from_paths(["k8s/"])
        >>> [doc.ref for doc in manifests.documents()]
        ['Namespace/shop', 'Deployment/web', 'Service/web']
    """
    files: Dict[str, str]
    _documents: Dict[bool, List[ManifestDocument]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def to_serializable(self) -> Dict:
        """Return dict representation for JSON output or logging."""
        return {"files": self.files}

    def documents(self, expand_lists: bool = True) -> List[ManifestDocument]:
        """Split every file into documents, in file then document order.

        Files are parsed once per set; later calls return the same documents
        in a new list. The parsed bodies are shared and must not be edited,
        use apply_patch instead.
        """
        if expand_lists not in self._documents:
            documents: List[ManifestDocument] = []
            for source, content in self.files.items():
                documents.extend(split_documents(content, source, expand_lists=expand_lists))
            self._documents[expand_lists] = documents
        return list(self._documents[expand_lists])

    def apply_patch(self, patch: Patch) -> "ManifestSet":
        """Apply patch operations to create a new manifest set.

        Args:
            patch: Patch containing manifest operations

        Returns:
            New ManifestSet with patch applied (original unchanged)
        """
        from manilint.k8s.patch_dsl import apply_manifest_patch

        return ManifestSet(files=apply_manifest_patch(self.files, patch))

    def write_to_dir(self, dir_path: str) -> List[Path]:
        """Write all files below a directory, keeping relative paths.

        Absolute source paths are written by file name only.

        Returns:
            Paths written
        """
        dir_path_obj = Path(dir_path)
        dir_path_obj.mkdir(parents=True, exist_ok=True)

        written = []
        for rel_path, content in self.files.items():
            rel = Path(rel_path)
            if rel.is_absolute() or rel_path == STDIN_SOURCE:
                rel = Path(rel.name if rel_path != STDIN_SOURCE else "stdin.yaml")
            file_path = dir_path_obj / rel
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
            written.append(file_path)
        return written

    @classmethod
    def from_text(cls, content: str, source: str = STDIN_SOURCE) -> "ManifestSet":
        return cls(files={source: content})

    @classmethod
    def from_file(cls, file_path: str) -> "ManifestSet":
        """Load a single manifest file, keyed by the path as given."""
        path = Path(file_path)
        return cls(files={str(path): path.read_text(encoding="utf-8")})

    @classmethod
    def from_dir(
        cls, dir_path: str, patterns: Sequence[str] = MANIFEST_PATTERNS, recursive: bool = True
    ) -> "ManifestSet":
        """Load all manifest files below a directory.

        Args:
            dir_path: Directory containing YAML files
            patterns: Glob patterns for files to include
            recursive: Descend into subdirectories

        Returns:
            ManifestSet keyed by path relative to ``dir_path``, sorted
        """
        dir_path_obj = Path(dir_path)
        found = set()
        for pattern in patterns:
            matches = dir_path_obj.rglob(pattern) if recursive else dir_path_obj.glob(pattern)
            found.update(p for p in matches if p.is_file())

        files = {}
        for file_path in sorted(found):
            rel_path = file_path.relative_to(dir_path_obj)
            files[str(rel_path)] = file_path.read_text(encoding="utf-8")

        logger.debug(f"Loaded {len(files)} manifest file(s) from {dir_path}")
        return cls(files=files)

    @classmethod
    def from_paths(cls, paths: Iterable[str], stdin=None) -> "ManifestSet":
        """Load files, directories and ``-`` (stdin) into one set.

        Directory contents are keyed by path relative to the current
        working directory when possible, so names stay unique.

        Raises:
            FileNotFoundError: If a path does not exist
        """
        files: Dict[str, str] = {}
        for raw in paths:
            if raw == "-":
                stream = stdin if stdin is not None else sys.stdin
                files[STDIN_SOURCE] = stream.read()
                continue

            path = Path(raw)
            if path.is_dir():
                for rel, content in cls.from_dir(str(path)).files.items():
                    files[str(path / rel)] = content
            elif path.is_file():
                files[str(path)] = path.read_text(encoding="utf-8")
            else:
                raise FileNotFoundError(f"No such file or directory: {raw}")

        return cls(files=files)

