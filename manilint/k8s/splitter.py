"""Multi-document YAML splitting.

A manifest file may hold any number of documents separated by ``---``
lines. Splitting is done on the raw text first so that every document
keeps its own text, comments and starting line; each chunk is then parsed
on its own so that one broken document does not hide the others.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ruamel.yaml.error import YAMLError

from manilint.k8s.utils import get_nested, resource_ref
from manilint.k8s.yamlio import dump_document, load_document

logger = logging.getLogger(__name__)

_SEPARATOR_RE = re.compile(r"^---(?:[ \t]+(?P<rest>.*?))?[ \t]*$")
_END_RE = re.compile(r"^\.\.\.[ \t]*$")


@dataclass(frozen=True)
class ManifestDocument:
    """One YAML document from a manifest file.

    Attributes:
        source: File the document was read from
        index: Position among the non-null documents of the file
        line: 1-based line of the document's first significant line
        text: Raw document text (without separators)
        body: Parsed document, None if parsing failed
        error: Parse error message, None if parsing succeeded
        item: Position inside an expanded ``kind: List`` document, else None
        leading: Comment-only or directive text between the previous
            document and this one, separators included
    """
    source: str
    index: int
    line: int
    text: str
    body: Any = None
    error: Optional[str] = None
    item: Optional[int] = None
    leading: str = ""

    @property
    def is_mapping(self) -> bool:
        return self.error is None and isinstance(self.body, dict)

    @property
    def kind(self) -> str:
        return str(self.body.get("kind") or "") if self.is_mapping else ""

    @property
    def api_version(self) -> str:
        return str(self.body.get("apiVersion") or "") if self.is_mapping else ""

    @property
    def name(self) -> str:
        return str(get_nested(self.body, "metadata", "name") or "")

    @property
    def namespace(self) -> str:
        return str(get_nested(self.body, "metadata", "namespace") or "")

    @property
    def ref(self) -> str:
        return resource_ref(self.body) if self.is_mapping else f"<document {self.index}>"

    @property
    def location(self) -> str:
        return f"{self.source}:{self.line}"


def resource_key(doc: ManifestDocument) -> Tuple[str, str, str]:
    """Identity of the resource a document describes: (kind, namespace, name)."""
    return (doc.kind, doc.namespace, doc.name)


def _is_blank(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#") or stripped.startswith("%")


def _split_chunks(content: str) -> List[Tuple[int, List[str]]]:
    """Split raw text into (first line number, lines) chunks."""
    chunks: List[Tuple[int, List[str]]] = []
    current: List[str] = []
    start = 1

    for lineno, line in enumerate(content.splitlines(), start=1):
        match = _SEPARATOR_RE.match(line)
        if match:
            chunks.append((start, current))
            current = []
            start = lineno + 1
            rest = match.group("rest")
            if rest and not rest.startswith("#"):
                # "--- key: value" starts the next document on the same line
                current.append(rest)
                start = lineno
            continue
        if _END_RE.match(line):
            chunks.append((start, current))
            current = []
            start = lineno + 1
            continue
        current.append(line)

    chunks.append((start, current))
    return chunks


def _format_error(error: YAMLError, first_line: int) -> str:
    mark = getattr(error, "problem_mark", None)
    problem = getattr(error, "problem", None)
    if mark is not None and problem:
        return f"{problem} (line {first_line + mark.line})"
    return " ".join(str(error).split())


def _chunk_text(lines: List[str]) -> str:
    return "\n".join(lines) + "\n"


def split_stream(
    content: str, source: str = "<string>", expand_lists: bool = True
) -> Tuple[List[ManifestDocument], str]:
    """Split a multi-document YAML stream, keeping the text between documents.

    Comment-only, directive-only and null chunks are not documents. Their
    text is attached to the next document as ``leading`` (each chunk
    followed by the ``---`` that closed it), and whatever follows the last
    document is returned as the trailer, so a stream can be rebuilt as
    ``leading + text`` per document joined by ``---`` plus the trailer.

    Args:
        content: File content
        source: File name used in positions and messages
        expand_lists: Replace ``kind: List`` documents by their items

    Returns:
        (documents in file order, trailing text after the last document)
    """
    documents: List[ManifestDocument] = []
    count = 0
    pending = ""

    for start, lines in _split_chunks(content):
        significant = [i for i, line in enumerate(lines) if not _is_blank(line)]
        if not significant:
            if any(line.strip() for line in lines):
                pending += _chunk_text(lines) + "---\n"
            continue

        first_line = start + significant[0]
        text = _chunk_text(lines)

        try:
            body = load_document(text)
        except YAMLError as e:
            message = _format_error(e, start)
            logger.debug(f"{source}:{first_line}: parse error: {message}")
            documents.append(ManifestDocument(source, count, first_line, text, error=message, leading=pending))
            count += 1
            pending = ""
            continue

        if body is None:
            pending += text + "---\n"
            continue

        index = count
        count += 1
        leading, pending = pending, ""

        items = get_nested(body, "items") if isinstance(body, dict) else None
        if expand_lists and isinstance(items, list) and str(body.get("kind", "")).endswith("List"):
            # Each item of a List becomes a document of its own
            for position, item in enumerate(items):
                documents.append(ManifestDocument(
                    source, index, first_line, dump_document(item), body=item, item=position,
                    leading=leading if position == 0 else "",
                ))
            continue

        documents.append(ManifestDocument(source, index, first_line, text, body=body, leading=leading))

    trailer = "---\n" + pending[:-len("---\n")] if pending else ""
    return documents, trailer


def split_documents(content: str, source: str = "<string>", expand_lists: bool = True) -> List[ManifestDocument]:
    """Split a multi-document YAML stream into documents.

    Empty documents (only blank lines, comments or directives) and null
    documents are dropped and do not take an index. Documents that fail to
    parse are returned with ``error`` set rather than raising, so callers
    can report every problem in one pass.

    Args:
        content: File content
        source: File name used in positions and messages
        expand_lists: Replace ``kind: List`` documents by their items

    Returns:
        Documents in file order
    """
    documents, _ = split_stream(content, source, expand_lists)
    return documents
