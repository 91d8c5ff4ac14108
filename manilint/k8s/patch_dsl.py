"""Patch DSL operations for manifest documents.

Operations are applied per document with ruamel.yaml round-tripping, so
comments and key order survive. Documents no operation touches keep their
original text byte for byte.

Every operation accepts an optional ``target`` argument
(``{"source": ..., "kind": ..., "name": ..., "generateName": ...}``, all
keys optional) that restricts it to matching documents.

Comment-only chunks between documents (license headers, ``%YAML``
directives) are written back around the documents of a changed file.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from manilint.core.errors import ManifestParseError, PatchApplyError
from manilint.core.schema.patch_dsl import Patch, PatchOp
from manilint.k8s.constants import (
    CLUSTER_SCOPED_KINDS,
    HTTP_PORT_NAMES,
    PROBE_DEFAULTS,
    WORKLOAD_KINDS,
)
from manilint.k8s.splitter import ManifestDocument, split_stream
from manilint.k8s.utils import as_list, find_container, get_nested, get_pod_template
from manilint.k8s.yamlio import dump_document, join_documents

logger = logging.getLogger(__name__)

PROBE_KEYS = {"readiness": "readinessProbe", "liveness": "livenessProbe", "startup": "startupProbe"}


def apply_manifest_patch(files: Dict[str, str], patch: Patch) -> Dict[str, str]:
    """Apply patch operations to manifest files.

    Args:
        files: Dict mapping file paths to YAML content strings
        patch: Patch containing manifest operations

    Returns:
        Dict with patched YAML content

    Raises:
        PatchApplyError: If an operation is unknown or its arguments are invalid
        ManifestParseError: If a file contains an unparsable document

    Example:
        >>> patch = Patch(ops=[PatchOp("EnsureNamespace", {"namespace": "shop"})])
        >>> patched_files = apply_manifest_patch({"app.yaml": "..."}, patch)
    """
    for op in patch.ops:
        _handler_for(op)

    result = {}
    for source, content in files.items():
        documents, trailer = split_stream(content, source, expand_lists=False)
        texts = []
        changed = False
        for doc in documents:
            if doc.error is not None:
                raise ManifestParseError(doc.error, doc.source, doc.line)
            doc_changed = False
            for body in _patchable_bodies(doc):
                for op in patch.ops:
                    if _matches_target(source, body, op.args.get("target")):
                        doc_changed = apply_manifest_op(body, op, source) or doc_changed
            texts.append(doc.leading + (dump_document(doc.body) if doc_changed else doc.text))
            changed = changed or doc_changed

        result[source] = join_documents(texts) + trailer if changed else content
        if changed:
            logger.info(f"Patched {source}")
    return result


def apply_manifest_op(body: dict, op: PatchOp, source: Optional[str] = None) -> bool:
    """Apply a single operation to a parsed document in place.

    Returns:
        True if the document was modified

    Raises:
        PatchApplyError: If operation kind is unknown or arguments are missing
    """
    handler = _handler_for(op)
    try:
        return handler(body, op.args)
    except KeyError as e:
        raise PatchApplyError(f"{op.op}: missing argument {e}", patch_op=op, source=source) from e


def _handler_for(op: PatchOp) -> Callable[[dict, dict], bool]:
    handler = _OPERATIONS.get(op.op)
    if handler is None:
        raise PatchApplyError(f"Unknown manifest patch operation: {op.op}", patch_op=op)
    return handler


def _patchable_bodies(doc: ManifestDocument) -> List[dict]:
    """Objects of a document: its body, or the items of a ``kind: List``."""
    body = doc.body
    if not isinstance(body, dict):
        return []
    items = body.get("items")
    if str(body.get("kind", "")).endswith("List") and isinstance(items, list):
        return [item for item in items if isinstance(item, dict)]
    return [body]


def _matches_target(source: str, body: dict, target: Optional[Dict[str, Any]]) -> bool:
    if not target:
        return True
    if target.get("source") and target["source"] != source:
        return False
    if target.get("kind") and target["kind"] != body.get("kind"):
        return False
    for key in ("name", "generateName"):
        # An explicit empty value only matches objects without that field
        if key in target and str(target[key] or "") != str(get_nested(body, "metadata", key) or ""):
            return False
    return True


def _ensure_mapping(parent: dict, key: str) -> dict:
    if not isinstance(parent.get(key), dict):
        parent[key] = {}
    return parent[key]


def _apply_ensure_namespace(body: dict, args: dict) -> bool:
    """Set metadata.namespace on namespaced resources.

    Args:
        args: {namespace: str, override: bool = False}
              Without override, resources already in another namespace are
              left alone.
    """
    namespace = args["namespace"]
    if body.get("kind") in CLUSTER_SCOPED_KINDS:
        return False

    metadata = _ensure_mapping(body, "metadata")
    current = metadata.get("namespace")
    if current == namespace:
        return False
    if current and not args.get("override", False):
        logger.debug(f"Keeping namespace {current} on {body.get('kind')}/{metadata.get('name')}")
        return False
    metadata["namespace"] = namespace
    return True


def _apply_ensure_label(body: dict, args: dict) -> bool:
    """Add or update a label.

    Args:
        args: {key: str, value: str, scope: "metadata" | "podTemplate" | "both"}
              The pod template is only touched on workloads.
    """
    key = args["key"]
    value = str(args["value"])
    scope = args.get("scope", "both")
    if scope not in ("metadata", "podTemplate", "both"):
        raise PatchApplyError(f"EnsureLabel: unknown scope {scope!r}")

    changed = False
    if scope in ("metadata", "both"):
        labels = _ensure_mapping(_ensure_mapping(body, "metadata"), "labels")
        if labels.get(key) != value:
            labels[key] = value
            changed = True

    if scope in ("podTemplate", "both") and body.get("kind") in WORKLOAD_KINDS and body.get("kind") != "Pod":
        template = get_pod_template(body)
        if template is not None:
            labels = _ensure_mapping(_ensure_mapping(template, "metadata"), "labels")
            if labels.get(key) != value:
                labels[key] = value
                changed = True
    return changed


def _apply_ensure_annotation(body: dict, args: dict) -> bool:
    """Add or update a metadata annotation.

    Args:
        args: {key: str, value: str}
    """
    key = args["key"]
    value = str(args["value"])
    annotations = _ensure_mapping(_ensure_mapping(body, "metadata"), "annotations")
    if annotations.get(key) == value:
        return False
    annotations[key] = value
    return True


def _apply_replace_api_version(body: dict, args: dict) -> bool:
    """Move a kind to another apiVersion.

    Args:
        args: {kind: str, to: str}
    """
    if body.get("kind") != args["kind"] or body.get("apiVersion") == args["to"]:
        return False
    body["apiVersion"] = args["to"]
    return True


def default_probe(container: dict, probe: str) -> Optional[dict]:
    """Derive a probe from the container's first declared port.

    Named ports that look like HTTP endpoints get an httpGet probe on ``/``,
    anything else a tcpSocket probe. Returns None for containers without
    ports.
    """
    ports = [p for p in as_list(container.get("ports")) if isinstance(p, dict) and p.get("containerPort")]
    if not ports:
        return None

    port = ports[0]
    name = port.get("name")
    if name and str(name) in HTTP_PORT_NAMES:
        spec = {"httpGet": {"path": "/", "port": str(name)}}
    else:
        spec = {"tcpSocket": {"port": name if name else port["containerPort"]}}
    spec.update(PROBE_DEFAULTS[probe])
    return spec


def _apply_ensure_probe(body: dict, args: dict) -> bool:
    """Add a probe to a container if it has none of that type.

    Args:
        args: {container: str, probe: "readiness" | "liveness" | "startup",
               spec: dict (optional, derived from the container ports otherwise)}
    """
    probe = args["probe"]
    if probe not in PROBE_KEYS:
        raise PatchApplyError(f"EnsureProbe: unknown probe type {probe!r}")

    container = find_container(body, args["container"])
    if container is None:
        return False

    key = PROBE_KEYS[probe]
    if key in container:
        return False

    spec = args.get("spec") or default_probe(container, probe)
    if spec is None:
        raise PatchApplyError(
            f"EnsureProbe: container {args['container']} declares no ports, pass an explicit spec"
        )
    container[key] = dict(spec)
    return True


def _apply_ensure_resources(body: dict, args: dict) -> bool:
    """Fill in missing resource requests/limits, never overriding set values.

    Args:
        args: {container: str, requests: dict (optional), limits: dict (optional)}
    """
    container = find_container(body, args["container"])
    if container is None:
        return False

    changed = False
    resources = None
    for section in ("requests", "limits"):
        values = args.get(section) or {}
        if not values:
            continue
        if resources is None:
            resources = _ensure_mapping(container, "resources")
        current = _ensure_mapping(resources, section)
        for name, quantity in values.items():
            if name not in current:
                current[name] = quantity
                changed = True
    return changed


_OPERATIONS: Dict[str, Callable[[dict, dict], bool]] = {
    "EnsureNamespace": _apply_ensure_namespace,
    "EnsureLabel": _apply_ensure_label,
    "EnsureAnnotation": _apply_ensure_annotation,
    "ReplaceApiVersion": _apply_replace_api_version,
    "EnsureProbe": _apply_ensure_probe,
    "EnsureResources": _apply_ensure_resources,
}

OPERATION_NAMES: List[str] = sorted(_OPERATIONS)
