"""Dependency-aware ordering of manifest documents.

Documents are ordered so that everything a resource depends on is applied
before it: namespaces before their contents, CustomResourceDefinitions
before custom resources, ConfigMaps/Secrets/claims/service accounts before
the workloads that mount them, and so on. Within those constraints the
fixed install order of kinds decides, then the original position, which
keeps the result deterministic.
"""

import heapq
import logging
from typing import Dict, List, Optional, Set, Tuple

from manilint.core.errors import ManifestParseError, OrderingError
from manilint.k8s.constants import INSTALL_ORDER, WORKLOAD_KINDS
from manilint.k8s.splitter import ManifestDocument
from manilint.k8s.utils import (
    api_group,
    as_list,
    as_mapping,
    get_nested,
    get_pod_spec,
    iter_pod_spec_references,
    namespace_of,
)

logger = logging.getLogger(__name__)

_RANKS = {kind: position for position, kind in enumerate(INSTALL_ORDER)}

Key = Tuple[str, str, str]


def kind_rank(kind: str) -> int:
    """Position of a kind in install order; unknown kinds rank last."""
    return _RANKS.get(kind, len(INSTALL_ORDER))


def require_parsed(documents: List[ManifestDocument]) -> None:
    """Raise ManifestParseError for the first document that is not a parsed mapping."""
    for doc in documents:
        if doc.error is not None:
            raise ManifestParseError(doc.error, doc.source, doc.line)
        if not isinstance(doc.body, dict):
            raise ManifestParseError("document is not a mapping", doc.source, doc.line)


class _Index:
    """Lookup tables over the documents of a set."""

    def __init__(self, documents: List[ManifestDocument]):
        self.by_key: Dict[Key, int] = {}
        self.crds: Dict[Tuple[str, str], int] = {}
        for idx, doc in enumerate(documents):
            key = (doc.kind, namespace_of(doc.body), doc.name)
            self.by_key.setdefault(key, idx)
            if doc.kind == "CustomResourceDefinition":
                group = get_nested(doc.body, "spec", "group")
                kind = get_nested(doc.body, "spec", "names", "kind")
                if group and kind:
                    self.crds.setdefault((str(group), str(kind)), idx)

    def find(self, kind: str, namespace: str, name: Optional[str]) -> Optional[int]:
        if not name:
            return None
        return self.by_key.get((kind, namespace, str(name)))


def _dependencies(doc: ManifestDocument, index: _Index) -> Set[int]:
    """Indexes of documents ``doc`` must come after."""
    body = doc.body
    kind = doc.kind
    namespace = namespace_of(body)
    deps: Set[Optional[int]] = set()

    if namespace:
        deps.add(index.find("Namespace", "", namespace))

    deps.add(index.crds.get((api_group(doc.api_version), kind)))

    if kind in WORKLOAD_KINDS:
        for ref_kind, ref_name in iter_pod_spec_references(get_pod_spec(body)):
            deps.add(index.find(ref_kind, namespace, ref_name))
        for claim in as_list(get_nested(body, "spec", "volumeClaimTemplates")):
            deps.add(index.find("StorageClass", "", get_nested(claim, "spec", "storageClassName")))

    if kind == "PersistentVolumeClaim":
        deps.add(index.find("StorageClass", "", get_nested(body, "spec", "storageClassName")))
        deps.add(index.find("PersistentVolume", "", get_nested(body, "spec", "volumeName")))

    if kind in ("RoleBinding", "ClusterRoleBinding"):
        role_ref = as_mapping(body.get("roleRef"))
        role_kind = role_ref.get("kind")
        if role_kind == "Role":
            deps.add(index.find("Role", namespace, role_ref.get("name")))
        elif role_kind == "ClusterRole":
            deps.add(index.find("ClusterRole", "", role_ref.get("name")))
        for subject in as_list(body.get("subjects")):
            subject = as_mapping(subject)
            if subject.get("kind") == "ServiceAccount":
                deps.add(index.find(
                    "ServiceAccount", str(subject.get("namespace") or namespace), subject.get("name")
                ))

    if kind == "Ingress":
        spec = as_mapping(body.get("spec"))
        backends = [spec.get("defaultBackend"), spec.get("backend")]
        for rule in as_list(spec.get("rules")):
            for path in as_list(get_nested(rule, "http", "paths")):
                backends.append(get_nested(path, "backend"))
        for backend in backends:
            name = get_nested(backend, "service", "name") or get_nested(backend, "serviceName")
            deps.add(index.find("Service", namespace, name))
        deps.add(index.find("IngressClass", "", spec.get("ingressClassName")))

    if kind == "HorizontalPodAutoscaler":
        target = as_mapping(get_nested(body, "spec", "scaleTargetRef"))
        deps.add(index.find(str(target.get("kind") or ""), namespace, target.get("name")))

    own = index.find(kind, namespace, doc.name)
    return {d for d in deps if d is not None and d != own}


def dependency_graph(documents: List[ManifestDocument]) -> Dict[int, Set[int]]:
    """Map each document index to the indexes of documents it depends on.

    Raises:
        ManifestParseError: If a document failed to parse
    """
    require_parsed(documents)
    index = _Index(documents)
    graph = {}
    for idx, doc in enumerate(documents):
        deps = _dependencies(doc, index)
        deps.discard(idx)
        graph[idx] = deps
    return graph


def order_documents(documents: List[ManifestDocument], reverse: bool = False) -> List[ManifestDocument]:
    """Sort documents into install order (or delete order with reverse=True).

    Args:
        documents: Parsed documents, e.g. from ManifestSet.documents()
        reverse: Return the exact reverse of install order, for deletion

    Returns:
        New list of the same documents

    Raises:
        ManifestParseError: If a document failed to parse
        OrderingError: If dependencies form a cycle
    """
    graph = dependency_graph(documents)

    dependents: Dict[int, List[int]] = {idx: [] for idx in graph}
    pending = {idx: len(deps) for idx, deps in graph.items()}
    for idx, deps in graph.items():
        for dep in deps:
            dependents[dep].append(idx)

    heap = [(kind_rank(documents[idx].kind), idx) for idx, count in pending.items() if count == 0]
    heapq.heapify(heap)

    ordered: List[int] = []
    while heap:
        _, idx = heapq.heappop(heap)
        ordered.append(idx)
        for dependent in dependents[idx]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                heapq.heappush(heap, (kind_rank(documents[dependent].kind), dependent))

    if len(ordered) != len(documents):
        stuck = sorted(idx for idx, count in pending.items() if count > 0)
        refs = [documents[idx].ref for idx in stuck]
        raise OrderingError(f"Dependency cycle between: {', '.join(refs)}", cycle=refs)

    logger.debug(f"Ordered {len(ordered)} document(s)")
    result = [documents[idx] for idx in ordered]
    if reverse:
        result.reverse()
    return result
