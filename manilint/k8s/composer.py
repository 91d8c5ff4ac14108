"""Compose several manifest files into one ordered multi-document stream."""

import logging
from typing import Dict, List, Optional

from manilint.core.schema.patch_dsl import Patch, PatchOp
from manilint.k8s.artifact import ManifestSet
from manilint.k8s.ordering import order_documents, require_parsed
from manilint.k8s.yamlio import join_documents

logger = logging.getLogger(__name__)


def composition_patch(
    namespace: Optional[str] = None,
    labels: Optional[Dict[str, str]] = None,
    annotations: Optional[Dict[str, str]] = None,
    label_scope: str = "both",
    override_namespace: bool = False,
) -> Patch:
    """Build the patch that applies common settings to every document."""
    ops: List[PatchOp] = []
    if namespace:
        ops.append(PatchOp("EnsureNamespace", {"namespace": namespace, "override": override_namespace}))
    for key, value in (labels or {}).items():
        ops.append(PatchOp("EnsureLabel", {"key": key, "value": value, "scope": label_scope}))
    for key, value in (annotations or {}).items():
        ops.append(PatchOp("EnsureAnnotation", {"key": key, "value": value}))
    return Patch(ops=ops, meta={"origin": "compose"})


def compose(
    manifests: ManifestSet,
    namespace: Optional[str] = None,
    labels: Optional[Dict[str, str]] = None,
    annotations: Optional[Dict[str, str]] = None,
    order: bool = True,
    reverse: bool = False,
    annotate_source: bool = False,
    override_namespace: bool = False,
) -> str:
    """Compose manifests into a single ``---`` separated stream.

    Args:
        manifests: Files to compose
        namespace: Namespace for namespaced resources that have none
        labels: Labels added to every object (and workload pod templates)
        annotations: Annotations added to every object
        order: Sort documents into install order; otherwise keep file order
        reverse: With order, emit delete order instead
        annotate_source: Prefix each document with a ``# Source:`` comment
        override_namespace: Replace namespaces that are already set

    Returns:
        The composed YAML stream

    Raises:
        ManifestParseError: If a document cannot be parsed
        OrderingError: If dependencies form a cycle
    """
    patch = composition_patch(namespace, labels, annotations, override_namespace=override_namespace)
    if patch.ops:
        manifests = manifests.apply_patch(patch)

    documents = manifests.documents()
    require_parsed(documents)
    if order:
        documents = order_documents(documents, reverse=reverse)

    texts = []
    for doc in documents:
        text = doc.text
        if annotate_source:
            text = f"# Source: {doc.source}\n{text}"
        texts.append(text)

    logger.info(f"Composed {len(texts)} document(s) from {len(manifests.files)} file(s)")
    return join_documents(texts)
