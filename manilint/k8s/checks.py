"""Kubernetes manifest checks.

Each check is a callable taking a ManifestSet and returning Violations.
Violations that have a mechanical fix carry it as a serialized PatchOp in
``evidence["fix"]``; see ``manilint.k8s.fixer``.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from manilint.core.schema.check import Check
from manilint.core.schema.patch_dsl import PatchOp
from manilint.core.schema.violation import Violation
from manilint.k8s.artifact import ManifestSet
from manilint.k8s.constants import (
    CLUSTER_SCOPED_KINDS,
    DEFAULT_REQUESTS,
    DEPRECATED_API_VERSIONS,
    KIND_API_VERSIONS,
    LONG_RUNNING_KINDS,
    PROBE_HANDLERS,
    PROBE_KINDS,
    SELECTOR_REQUIRED_KINDS,
    WORKLOAD_KINDS,
)
from manilint.k8s.patch_dsl import default_probe
from manilint.k8s.quantity import parse_quantity
from manilint.k8s.splitter import ManifestDocument
from manilint.k8s.utils import (
    api_group,
    as_list,
    as_mapping,
    container_port_names,
    get_containers,
    get_init_containers,
    get_nested,
    get_pod_spec,
    get_pod_template,
    image_tag,
    iter_pod_spec_references,
    namespace_of,
    selector_matches,
)

logger = logging.getLogger(__name__)

DNS_SUBDOMAIN_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")
LABEL_NAME_RE = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?$")

BUILTIN_GROUPS = {api_group(v) for versions in KIND_API_VERSIONS.values() for v in versions}


def make_violation(
    check_id: str,
    message: str,
    doc: ManifestDocument,
    fields: Iterable[Any] = (),
    severity: str = "error",
    evidence: Optional[Dict[str, Any]] = None,
    fix: Optional[PatchOp] = None,
) -> Violation:
    """Build a Violation located at a document (and a field path inside it)."""
    data = {"line": doc.line, "document": doc.index}
    if evidence:
        data.update(evidence)
    if fix is not None:
        data["fix"] = fix.to_dict()
    return Violation(
        id=check_id,
        message=message,
        path=[doc.source, doc.ref] + [str(f) for f in fields],
        severity=severity,
        evidence=data,
    )


def target_of(doc: ManifestDocument) -> Dict[str, str]:
    """Patch target selecting exactly this document.

    Objects named by the server carry their ``generateName`` prefix instead
    of an empty name, which would otherwise match any object of the kind.
    """
    target = {"source": doc.source, "kind": doc.kind, "name": doc.name}
    if not doc.name:
        target["generateName"] = str(get_nested(doc.body, "metadata", "generateName") or "")
    return target


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _pod_spec_fields(doc: ManifestDocument) -> List[str]:
    kind = doc.kind
    if kind == "Pod":
        return ["spec"]
    if kind == "CronJob":
        return ["spec", "jobTemplate", "spec", "template", "spec"]
    return ["spec", "template", "spec"]


class SyntaxCheck:
    """Reports documents that are not valid YAML or not a mapping."""

    def __call__(self, artifact: ManifestSet) -> List[Violation]:
        violations = []
        for doc in artifact.documents():
            if doc.error is not None:
                violations.append(make_violation(
                    "syntax.INVALID_YAML",
                    f"Failed to parse YAML: {doc.error}",
                    doc,
                ))
            elif not isinstance(doc.body, dict):
                violations.append(make_violation(
                    "syntax.NOT_A_MAPPING",
                    f"Document must be a mapping, got {type(doc.body).__name__}",
                    doc,
                ))
        return violations


class SchemaCheck:
    """Validates the fields every Kubernetes object must carry.

    Checks apiVersion/kind presence, metadata.name format, known
    kind/apiVersion pairs (including removed beta versions) and label
    syntax. Kinds defined by a CustomResourceDefinition in the same set are
    not reported as unknown.
    """

    def __call__(self, artifact: ManifestSet) -> List[Violation]:
        documents = [d for d in artifact.documents() if d.is_mapping]
        crd_kinds = _defined_custom_kinds(documents)

        violations = []
        for doc in documents:
            violations.extend(self._check_document(doc, crd_kinds))
        return violations

    def _check_document(self, doc: ManifestDocument, crd_kinds: Set[Tuple[str, str]]) -> List[Violation]:
        violations = []
        body = doc.body
        api_version = doc.api_version
        kind = doc.kind

        if not api_version:
            violations.append(make_violation(
                "schema.MISSING_API_VERSION", "apiVersion is required", doc, ["apiVersion"]
            ))
        if not kind:
            violations.append(make_violation(
                "schema.MISSING_KIND", "kind is required", doc, ["kind"]
            ))

        metadata = body.get("metadata")
        if not isinstance(metadata, dict):
            violations.append(make_violation(
                "schema.MISSING_NAME", "metadata.name is required", doc, ["metadata"]
            ))
            metadata = {}
        else:
            name = metadata.get("name")
            if name is None and not metadata.get("generateName"):
                violations.append(make_violation(
                    "schema.MISSING_NAME", "metadata.name is required", doc, ["metadata", "name"]
                ))
            elif name is not None and not _valid_dns_subdomain(name):
                violations.append(make_violation(
                    "schema.INVALID_NAME",
                    f"metadata.name {name!r} must be a lowercase RFC 1123 subdomain of at most 253 characters",
                    doc,
                    ["metadata", "name"],
                    evidence={"name": str(name)},
                ))

        if api_version and kind:
            violations.extend(self._check_api_version(doc, crd_kinds))

        if kind in CLUSTER_SCOPED_KINDS and metadata.get("namespace"):
            violations.append(make_violation(
                "schema.NAMESPACE_ON_CLUSTER_SCOPED",
                f"{kind} is cluster-scoped; metadata.namespace is ignored",
                doc,
                ["metadata", "namespace"],
                severity="warning",
            ))

        violations.extend(self._check_labels(doc, metadata.get("labels"), ["metadata", "labels"]))
        if kind in WORKLOAD_KINDS and kind != "Pod":
            template_fields = ["spec", "jobTemplate", "spec", "template"] if kind == "CronJob" else ["spec", "template"]
            template = get_pod_template(body)
            violations.extend(self._check_labels(
                doc, get_nested(template, "metadata", "labels"), template_fields + ["metadata", "labels"]
            ))
        return violations

    def _check_api_version(self, doc: ManifestDocument, crd_kinds: Set[Tuple[str, str]]) -> List[Violation]:
        api_version = doc.api_version
        kind = doc.kind

        replacement = DEPRECATED_API_VERSIONS.get((api_version, kind))
        if replacement:
            return [make_violation(
                "schema.DEPRECATED_API_VERSION",
                f"{kind} {api_version} is no longer served, use {replacement}",
                doc,
                ["apiVersion"],
                evidence={"apiVersion": api_version, "replacement": replacement},
                fix=PatchOp("ReplaceApiVersion", {"kind": kind, "to": replacement, "target": target_of(doc)}),
            )]

        served = KIND_API_VERSIONS.get(kind)
        if served is not None:
            if api_version not in served:
                return [make_violation(
                    "schema.API_VERSION_MISMATCH",
                    f"{kind} is served as {', '.join(sorted(served))}, got {api_version}",
                    doc,
                    ["apiVersion"],
                    evidence={"apiVersion": api_version, "served": sorted(served)},
                )]
            return []

        if (api_group(api_version), kind) in crd_kinds:
            return []

        builtin = api_group(api_version) in BUILTIN_GROUPS
        return [make_violation(
            "schema.UNKNOWN_KIND",
            f"Unknown kind {kind} in {api_version}"
            + ("" if builtin else " (custom resource without a definition in this set)"),
            doc,
            ["kind"],
            severity="warning" if builtin else "info",
        )]

    def _check_labels(self, doc: ManifestDocument, labels: Any, fields: List[str]) -> List[Violation]:
        if labels is None:
            return []
        if not isinstance(labels, dict):
            return [make_violation(
                "schema.INVALID_LABEL", "labels must be a mapping", doc, fields
            )]

        violations = []
        for key, value in labels.items():
            problem = _label_problem(key, value)
            if problem:
                violations.append(make_violation(
                    "schema.INVALID_LABEL",
                    f"Label {key!r}: {problem}",
                    doc,
                    fields + [key],
                    evidence={"key": str(key), "value": str(value)},
                ))
        return violations


def _valid_dns_subdomain(value: Any) -> bool:
    return isinstance(value, str) and len(value) <= 253 and bool(DNS_SUBDOMAIN_RE.match(value))


def _label_problem(key: Any, value: Any) -> Optional[str]:
    if not isinstance(key, str):
        return "key must be a string"
    prefix, _, name = key.rpartition("/")
    if prefix and not _valid_dns_subdomain(prefix):
        return "key prefix must be a DNS subdomain"
    if not name or len(name) > 63 or not LABEL_NAME_RE.match(name):
        return "key name must be 1-63 alphanumeric characters, '-', '_' or '.'"
    if not isinstance(value, str):
        return f"value must be a string, got {type(value).__name__} (quote it)"
    if value and (len(value) > 63 or not LABEL_NAME_RE.match(value)):
        return "value must be at most 63 alphanumeric characters, '-', '_' or '.'"
    return None


def _defined_custom_kinds(documents: List[ManifestDocument]) -> Set[Tuple[str, str]]:
    """(group, kind) pairs defined by CustomResourceDefinitions in the set."""
    kinds = set()
    for doc in documents:
        if doc.kind != "CustomResourceDefinition":
            continue
        group = get_nested(doc.body, "spec", "group")
        kind = get_nested(doc.body, "spec", "names", "kind")
        if group and kind:
            kinds.add((str(group), str(kind)))
    return kinds


class WorkloadCheck:
    """Validates pod-bearing workloads: selectors, containers, images, ports."""

    def __call__(self, artifact: ManifestSet) -> List[Violation]:
        violations = []
        for doc in artifact.documents():
            if doc.is_mapping and doc.kind in WORKLOAD_KINDS:
                violations.extend(self._check_workload(doc))
        return violations

    def _check_workload(self, doc: ManifestDocument) -> List[Violation]:
        violations = []
        body = doc.body
        kind = doc.kind
        spec = as_mapping(body.get("spec"))
        pod_fields = _pod_spec_fields(doc)

        replicas = spec.get("replicas")
        if kind != "Pod" and replicas is not None and not (_is_int(replicas) and replicas >= 0):
            violations.append(make_violation(
                "workload.INVALID_REPLICAS",
                f"spec.replicas must be a non-negative integer, got {replicas!r}",
                doc,
                ["spec", "replicas"],
            ))

        if kind in SELECTOR_REQUIRED_KINDS:
            violations.extend(self._check_selector(doc, spec))

        if kind == "StatefulSet" and not spec.get("serviceName"):
            violations.append(make_violation(
                "workload.MISSING_SERVICE_NAME",
                "StatefulSet should set spec.serviceName to its governing headless Service",
                doc,
                ["spec", "serviceName"],
                severity="warning",
            ))

        containers = get_containers(body)
        if not containers:
            violations.append(make_violation(
                "workload.NO_CONTAINERS",
                f"{kind} must define at least one container",
                doc,
                pod_fields + ["containers"],
            ))
            return violations

        seen: Set[str] = set()
        for group, items in (("containers", containers), ("initContainers", get_init_containers(body))):
            for position, container in enumerate(items):
                name = container.get("name")
                fields = pod_fields + [group, name or str(position)]
                if not name:
                    violations.append(make_violation(
                        "workload.CONTAINER_MISSING_NAME",
                        f"{group}[{position}] must have a name",
                        doc,
                        fields + ["name"],
                    ))
                elif name in seen:
                    violations.append(make_violation(
                        "workload.DUPLICATE_CONTAINER_NAME",
                        f"Container name {name!r} is used more than once",
                        doc,
                        fields + ["name"],
                    ))
                else:
                    seen.add(name)
                violations.extend(self._check_container(doc, container, fields))
        return violations

    def _check_selector(self, doc: ManifestDocument, spec: dict) -> List[Violation]:
        selector = spec.get("selector")
        if not isinstance(selector, dict) or not (selector.get("matchLabels") or selector.get("matchExpressions")):
            return [make_violation(
                "workload.MISSING_SELECTOR",
                f"{doc.kind} requires spec.selector with matchLabels or matchExpressions",
                doc,
                ["spec", "selector"],
            )]

        template_labels = get_nested(get_pod_template(doc.body), "metadata", "labels")
        if not selector_matches(selector, template_labels):
            return [make_violation(
                "workload.SELECTOR_MISMATCH",
                "spec.selector does not match the pod template labels",
                doc,
                ["spec", "selector"],
                evidence={
                    "selector": dict(as_mapping(selector.get("matchLabels"))),
                    "labels": dict(as_mapping(template_labels)),
                },
            )]
        return []

    def _check_container(self, doc: ManifestDocument, container: dict, fields: List[str]) -> List[Violation]:
        violations = []
        name = container.get("name") or "<unnamed>"
        image = container.get("image")

        if not image:
            violations.append(make_violation(
                "workload.CONTAINER_MISSING_IMAGE",
                f"Container {name} must set image",
                doc,
                fields + ["image"],
            ))
        else:
            tag = image_tag(str(image))
            if tag is None or tag == "latest":
                violations.append(make_violation(
                    "workload.IMAGE_TAG_LATEST",
                    f"Container {name} image {image} should be pinned to a version tag or digest",
                    doc,
                    fields + ["image"],
                    severity="warning",
                    evidence={"image": str(image)},
                ))

        for position, port in enumerate(as_list(container.get("ports"))):
            port = as_mapping(port)
            for key in ("containerPort", "hostPort"):
                value = port.get(key)
                if key == "hostPort" and value is None:
                    continue
                if not (_is_int(value) and 1 <= value <= 65535):
                    violations.append(make_violation(
                        "workload.INVALID_PORT",
                        f"Container {name} ports[{position}].{key} must be 1-65535, got {value!r}",
                        doc,
                        fields + ["ports", str(position), key],
                    ))
        return violations


class ProbeCheck:
    """Validates liveness, readiness and startup probes.

    A probe needs exactly one handler, sane timing values and, for named
    ports, a matching container port. Long-running workloads serving ports
    are expected to declare a readiness probe; a liveness probe is
    suggested. Both carry an EnsureProbe fix.
    """

    def __call__(self, artifact: ManifestSet) -> List[Violation]:
        violations = []
        for doc in artifact.documents():
            if doc.is_mapping and doc.kind in WORKLOAD_KINDS:
                violations.extend(self._check_workload(doc))
        return violations

    def _check_workload(self, doc: ManifestDocument) -> List[Violation]:
        violations = []
        pod_fields = _pod_spec_fields(doc)

        for container in get_containers(doc.body):
            name = container.get("name") or "<unnamed>"
            fields = pod_fields + ["containers", name]
            for probe_key in PROBE_KINDS:
                probe = container.get(probe_key)
                if probe is not None:
                    violations.extend(self._check_probe(doc, container, probe_key, probe, fields + [probe_key]))

            liveness = container.get("livenessProbe")
            readiness = container.get("readinessProbe")
            if isinstance(liveness, dict) and isinstance(readiness, dict) and dict(liveness) == dict(readiness):
                violations.append(make_violation(
                    "probe.LIVENESS_EQUALS_READINESS",
                    f"Container {name} uses the same liveness and readiness probe; "
                    "a failing dependency will restart the container instead of taking it out of rotation",
                    doc,
                    fields + ["livenessProbe"],
                    severity="warning",
                ))

            if doc.kind in LONG_RUNNING_KINDS:
                violations.extend(self._check_missing(doc, container, fields))

        for container in get_init_containers(doc.body):
            if container.get("restartPolicy") == "Always":
                # Sidecar init containers may carry probes
                continue
            name = container.get("name") or "<unnamed>"
            for probe_key in PROBE_KINDS:
                if probe_key in container:
                    violations.append(make_violation(
                        "probe.INIT_CONTAINER_PROBE",
                        f"Init container {name} cannot define {probe_key}",
                        doc,
                        pod_fields + ["initContainers", name, probe_key],
                    ))
        return violations

    def _check_missing(self, doc: ManifestDocument, container: dict, fields: List[str]) -> List[Violation]:
        violations = []
        name = container.get("name")
        has_ports = bool(as_list(container.get("ports")))

        def fix(probe: str) -> Optional[PatchOp]:
            # No hint unless a default probe can be derived from a declared port
            if not name or default_probe(container, probe) is None:
                return None
            return PatchOp("EnsureProbe", {"container": name, "probe": probe, "target": target_of(doc)})

        if has_ports and "readinessProbe" not in container:
            violations.append(make_violation(
                "probe.MISSING_READINESS",
                f"Container {name} exposes ports but has no readinessProbe; traffic is routed before it is ready",
                doc,
                fields + ["readinessProbe"],
                severity="warning",
                fix=fix("readiness"),
            ))
        if "livenessProbe" not in container:
            violations.append(make_violation(
                "probe.MISSING_LIVENESS",
                f"Container {name} has no livenessProbe; a hung process will not be restarted",
                doc,
                fields + ["livenessProbe"],
                severity="info",
                fix=fix("liveness"),
            ))
        return violations

    def _check_probe(
        self, doc: ManifestDocument, container: dict, probe_key: str, probe: Any, fields: List[str]
    ) -> List[Violation]:
        name = container.get("name") or "<unnamed>"
        label = f"Container {name} {probe_key}"
        if not isinstance(probe, dict):
            return [make_violation("probe.NO_HANDLER", f"{label} must be a mapping", doc, fields)]

        violations = []
        handlers = [h for h in PROBE_HANDLERS if h in probe]
        if not handlers:
            violations.append(make_violation(
                "probe.NO_HANDLER",
                f"{label} needs one of {', '.join(PROBE_HANDLERS)}",
                doc,
                fields,
            ))
        elif len(handlers) > 1:
            violations.append(make_violation(
                "probe.MULTIPLE_HANDLERS",
                f"{label} may only define one handler, got {', '.join(handlers)}",
                doc,
                fields,
                evidence={"handlers": handlers},
            ))

        for handler in handlers:
            violations.extend(self._check_handler(doc, container, label, handler, probe[handler], fields + [handler]))

        for key in ("periodSeconds", "timeoutSeconds", "successThreshold", "failureThreshold"):
            value = probe.get(key)
            if value is not None and not (_is_int(value) and value >= 1):
                violations.append(make_violation(
                    "probe.INVALID_FIELD",
                    f"{label}.{key} must be an integer >= 1, got {value!r}",
                    doc,
                    fields + [key],
                ))
        delay = probe.get("initialDelaySeconds")
        if delay is not None and not (_is_int(delay) and delay >= 0):
            violations.append(make_violation(
                "probe.INVALID_FIELD",
                f"{label}.initialDelaySeconds must be an integer >= 0, got {delay!r}",
                doc,
                fields + ["initialDelaySeconds"],
            ))

        success = probe.get("successThreshold")
        if probe_key in ("livenessProbe", "startupProbe") and _is_int(success) and success != 1:
            violations.append(make_violation(
                "probe.SUCCESS_THRESHOLD",
                f"{label}.successThreshold must be 1, got {success}",
                doc,
                fields + ["successThreshold"],
            ))

        period = probe.get("periodSeconds", 10)
        timeout = probe.get("timeoutSeconds", 1)
        if _is_int(period) and _is_int(timeout) and timeout > period:
            violations.append(make_violation(
                "probe.TIMEOUT_EXCEEDS_PERIOD",
                f"{label}.timeoutSeconds ({timeout}) is longer than periodSeconds ({period})",
                doc,
                fields + ["timeoutSeconds"],
                severity="warning",
            ))
        return violations

    def _check_handler(
        self, doc: ManifestDocument, container: dict, label: str, handler: str, spec: Any, fields: List[str]
    ) -> List[Violation]:
        spec = as_mapping(spec)
        if handler == "exec":
            command = spec.get("command")
            if not isinstance(command, list) or not command:
                return [make_violation(
                    "probe.EMPTY_COMMAND",
                    f"{label} exec.command must be a non-empty list",
                    doc,
                    fields + ["command"],
                )]
            return []

        port = spec.get("port")
        if port is None:
            return [make_violation(
                "probe.MISSING_PORT", f"{label} {handler}.port is required", doc, fields + ["port"]
            )]
        if isinstance(port, str) and not port.isdigit():
            if port not in container_port_names(container):
                return [make_violation(
                    "probe.UNKNOWN_PORT",
                    f"{label} refers to port {port!r}, which the container does not declare",
                    doc,
                    fields + ["port"],
                    evidence={"port": port, "declared": container_port_names(container)},
                )]
            return []
        number = int(port) if isinstance(port, str) else port
        if not (_is_int(number) and 1 <= number <= 65535):
            return [make_violation(
                "probe.INVALID_FIELD",
                f"{label} {handler}.port must be 1-65535, got {port!r}",
                doc,
                fields + ["port"],
            )]
        return []


class ResourceCheck:
    """Validates container resource requests and limits."""

    def __call__(self, artifact: ManifestSet) -> List[Violation]:
        violations = []
        for doc in artifact.documents():
            if doc.is_mapping and doc.kind in WORKLOAD_KINDS:
                violations.extend(self._check_workload(doc))
        return violations

    def _check_workload(self, doc: ManifestDocument) -> List[Violation]:
        violations = []
        pod_fields = _pod_spec_fields(doc)
        groups = (("containers", get_containers(doc.body)), ("initContainers", get_init_containers(doc.body)))

        for group, containers in groups:
            for container in containers:
                name = container.get("name") or "<unnamed>"
                fields = pod_fields + [group, name, "resources"]
                resources = as_mapping(container.get("resources"))
                requests = resources.get("requests")
                limits = resources.get("limits")

                if group == "containers":
                    if not requests:
                        fix = None
                        if container.get("name"):
                            fix = PatchOp("EnsureResources", {
                                "container": name,
                                "requests": dict(DEFAULT_REQUESTS),
                                "target": target_of(doc),
                            })
                        violations.append(make_violation(
                            "resource.MISSING_REQUESTS",
                            f"Container {name} has no resource requests; the scheduler cannot place it reliably",
                            doc,
                            fields + ["requests"],
                            severity="warning",
                            fix=fix,
                        ))
                    if not limits:
                        violations.append(make_violation(
                            "resource.MISSING_LIMITS",
                            f"Container {name} has no resource limits",
                            doc,
                            fields + ["limits"],
                            severity="warning",
                        ))

                parsed_requests = self._parse_all(doc, requests, fields + ["requests"], violations)
                parsed_limits = self._parse_all(doc, limits, fields + ["limits"], violations)

                for resource_name, request in parsed_requests.items():
                    limit = parsed_limits.get(resource_name)
                    if limit is not None and request > limit:
                        violations.append(make_violation(
                            "resource.REQUEST_EXCEEDS_LIMIT",
                            f"Container {name} requests more {resource_name} "
                            f"({requests[resource_name]}) than its limit ({limits[resource_name]})",
                            doc,
                            fields + ["requests", resource_name],
                            evidence={
                                "resource": str(resource_name),
                                "request": str(requests[resource_name]),
                                "limit": str(limits[resource_name]),
                            },
                        ))
        return violations

    def _parse_all(self, doc: ManifestDocument, values: Any, fields: List[str], violations: List[Violation]) -> dict:
        parsed = {}
        for resource_name, raw in as_mapping(values).items():
            try:
                parsed[resource_name] = parse_quantity(raw)
            except ValueError:
                violations.append(make_violation(
                    "resource.INVALID_QUANTITY",
                    f"{resource_name} quantity {raw!r} is not a valid Kubernetes quantity",
                    doc,
                    fields + [resource_name],
                ))
        return parsed


class ServiceCheck:
    """Validates Services and that their selectors reach a workload in the set."""

    def __call__(self, artifact: ManifestSet) -> List[Violation]:
        documents = [d for d in artifact.documents() if d.is_mapping]
        workloads = [d for d in documents if d.kind in WORKLOAD_KINDS]

        violations = []
        for doc in documents:
            if doc.kind == "Service":
                violations.extend(self._check_service(doc, workloads))
        return violations

    def _check_service(self, doc: ManifestDocument, workloads: List[ManifestDocument]) -> List[Violation]:
        violations = []
        spec = as_mapping(doc.body.get("spec"))
        service_type = spec.get("type") or "ClusterIP"

        if service_type == "ExternalName":
            if not spec.get("externalName"):
                violations.append(make_violation(
                    "service.MISSING_EXTERNAL_NAME",
                    "ExternalName Service requires spec.externalName",
                    doc,
                    ["spec", "externalName"],
                ))
            return violations

        ports = [as_mapping(p) for p in as_list(spec.get("ports"))]
        names: Set[str] = set()
        for position, port in enumerate(ports):
            fields = ["spec", "ports", str(position)]
            number = port.get("port")
            if not (_is_int(number) and 1 <= number <= 65535):
                violations.append(make_violation(
                    "service.INVALID_PORT",
                    f"ports[{position}].port must be 1-65535, got {number!r}",
                    doc,
                    fields + ["port"],
                ))
            target = port.get("targetPort")
            if _is_int(target) and not 1 <= target <= 65535:
                violations.append(make_violation(
                    "service.INVALID_PORT",
                    f"ports[{position}].targetPort must be 1-65535, got {target!r}",
                    doc,
                    fields + ["targetPort"],
                ))
            name = port.get("name")
            if len(ports) > 1 and not name:
                violations.append(make_violation(
                    "service.MISSING_PORT_NAME",
                    f"ports[{position}] must be named when a Service exposes several ports",
                    doc,
                    fields + ["name"],
                ))
            elif name:
                if name in names:
                    violations.append(make_violation(
                        "service.DUPLICATE_PORT_NAME",
                        f"Port name {name!r} is used more than once",
                        doc,
                        fields + ["name"],
                    ))
                names.add(name)

        selector = spec.get("selector")
        if not selector:
            violations.append(make_violation(
                "service.MISSING_SELECTOR",
                "Service has no selector; endpoints must be managed manually",
                doc,
                ["spec", "selector"],
                severity="info",
            ))
            return violations

        namespace = namespace_of(doc.body)
        candidates = [w for w in workloads if namespace_of(w.body) == namespace]
        if not candidates:
            return violations

        matched = [
            w for w in candidates
            if selector_matches(selector, get_nested(get_pod_template(w.body), "metadata", "labels"))
        ]
        if not matched:
            violations.append(make_violation(
                "service.SELECTOR_NO_MATCH",
                f"Service selector {dict(as_mapping(selector))} matches no workload in this set",
                doc,
                ["spec", "selector"],
                severity="warning",
                evidence={"selector": dict(as_mapping(selector))},
            ))
            return violations

        declared = set()
        for workload in matched:
            for container in get_containers(workload.body):
                declared.update(container_port_names(container))
        for position, port in enumerate(ports):
            target = port.get("targetPort")
            if isinstance(target, str) and not target.isdigit() and target not in declared:
                violations.append(make_violation(
                    "service.UNKNOWN_TARGET_PORT",
                    f"targetPort {target!r} is not a named port of any selected workload",
                    doc,
                    ["spec", "ports", str(position), "targetPort"],
                    severity="warning",
                ))
        return violations


class ReferenceCheck:
    """Cross-document checks: duplicate resources and dangling references.

    References to objects missing from the set are reported as info only,
    since they commonly exist in the cluster already.
    """

    def __call__(self, artifact: ManifestSet) -> List[Violation]:
        documents = [d for d in artifact.documents() if d.is_mapping]
        violations = []

        seen: Dict[Tuple[str, str, str], ManifestDocument] = {}
        for doc in documents:
            if not doc.kind or not doc.name:
                continue
            key = (doc.kind, namespace_of(doc.body), doc.name)
            first = seen.get(key)
            if first is not None:
                violations.append(make_violation(
                    "reference.DUPLICATE_RESOURCE",
                    f"{doc.ref} is already defined at {first.location}",
                    doc,
                    ["metadata", "name"],
                    evidence={"first": first.location},
                ))
            else:
                seen[key] = doc

        for doc in documents:
            if doc.kind not in WORKLOAD_KINDS:
                continue
            namespace = namespace_of(doc.body)
            reported = set()
            for ref_kind, ref_name in iter_pod_spec_references(get_pod_spec(doc.body)):
                if ref_kind == "ServiceAccount" and ref_name == "default":
                    continue
                if (ref_kind, namespace, ref_name) in seen or (ref_kind, ref_name) in reported:
                    continue
                reported.add((ref_kind, ref_name))
                violations.append(make_violation(
                    "reference.MISSING_REFERENCE",
                    f"{doc.ref} references {ref_kind}/{ref_name}, which is not part of this set",
                    doc,
                    _pod_spec_fields(doc),
                    severity="info",
                    evidence={"kind": ref_kind, "name": ref_name},
                ))
        return violations


def run_checks(artifact: ManifestSet, checks: List[Check], disabled: Iterable[str] = ()) -> List[Violation]:
    """Run checks in order and collect their violations.

    Args:
        artifact: Manifests to check
        checks: Check callables
        disabled: Violation ids (``"probe.MISSING_LIVENESS"``) or check
                  names (``"probe"``) to drop from the result

    Returns:
        Violations in check order
    """
    disabled = set(disabled)
    violations = []
    for check in checks:
        found = check(artifact)
        logger.debug(f"{type(check).__name__}: {len(found)} violation(s)")
        violations.extend(v for v in found if v.id not in disabled and v.check not in disabled)
    return violations
