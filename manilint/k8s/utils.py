"""Shared helpers for navigating Kubernetes manifests.

Parsed documents are ruamel.yaml CommentedMaps, but every helper only
relies on the plain dict/list interface.
"""

from typing import Any, Iterator, List, Optional, Tuple

from manilint.k8s.constants import CLUSTER_SCOPED_KINDS


def get_nested(manifest: Any, *keys: Any, default: Any = None) -> Any:
    """Walk nested mappings, returning default on any missing or non-mapping step."""
    current = manifest
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def as_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def get_pod_template(manifest: dict) -> Optional[dict]:
    """Return the pod template (metadata + spec) of a workload.

    For a bare Pod the manifest itself is the template.
    """
    kind = manifest.get("kind")
    if kind == "Pod":
        return manifest
    if kind == "CronJob":
        template = get_nested(manifest, "spec", "jobTemplate", "spec", "template")
    else:
        template = get_nested(manifest, "spec", "template")
    return template if isinstance(template, dict) else None


def get_pod_spec(manifest: dict) -> Optional[dict]:
    template = get_pod_template(manifest)
    if template is None:
        return None
    spec = template.get("spec")
    return spec if isinstance(spec, dict) else None



def get_containers(manifest: dict) -> list:
    """Extract regular containers of a workload, empty list if not found."""
    return [c for c in as_list(get_nested(get_pod_spec(manifest), "containers")) if isinstance(c, dict)]


def get_init_containers(manifest: dict) -> list:
    return [c for c in as_list(get_nested(get_pod_spec(manifest), "initContainers")) if isinstance(c, dict)]


def find_container(manifest: dict, name: Optional[str]) -> Optional[dict]:
    """Find a regular container by name; None name selects the first one."""
    containers = get_containers(manifest)
    if name is None:
        return containers[0] if containers else None
    for container in containers:
        if container.get("name") == name:
            return container
    return None


def resource_ref(manifest: Any) -> str:
    """Short "Kind/name" reference used in violation paths and messages."""
    if not isinstance(manifest, dict):
        return "<document>"
    kind = manifest.get("kind") or "<unknown>"
    name = get_nested(manifest, "metadata", "name") or get_nested(manifest, "metadata", "generateName")
    return f"{kind}/{name or '<unnamed>'}"


def api_group(api_version: str) -> str:
    """Group part of an apiVersion ("apps/v1" -> "apps", "v1" -> "")."""
    if "/" in api_version:
        return api_version.split("/", 1)[0]
    return ""


def iter_pod_spec_references(pod_spec: Optional[dict]) -> Iterator[Tuple[str, str]]:
    """Yield (kind, name) of objects a pod spec depends on.

    Covers ConfigMaps and Secrets (volumes, projected volumes, envFrom,
    env valueFrom, imagePullSecrets), PersistentVolumeClaims and the
    ServiceAccount.
    """
    if not isinstance(pod_spec, dict):
        return

    account = pod_spec.get("serviceAccountName") or pod_spec.get("serviceAccount")
    if account:
        yield ("ServiceAccount", str(account))

    for secret in as_list(pod_spec.get("imagePullSecrets")):
        if isinstance(secret, dict) and secret.get("name"):
            yield ("Secret", str(secret["name"]))

    for volume in as_list(pod_spec.get("volumes")):
        if not isinstance(volume, dict):
            continue
        name = get_nested(volume, "configMap", "name")
        if name:
            yield ("ConfigMap", str(name))
        name = get_nested(volume, "secret", "secretName")
        if name:
            yield ("Secret", str(name))
        name = get_nested(volume, "persistentVolumeClaim", "claimName")
        if name:
            yield ("PersistentVolumeClaim", str(name))
        for source in as_list(get_nested(volume, "projected", "sources")):
            name = get_nested(source, "configMap", "name")
            if name:
                yield ("ConfigMap", str(name))
            name = get_nested(source, "secret", "name")
            if name:
                yield ("Secret", str(name))

    containers = as_list(pod_spec.get("containers")) + as_list(pod_spec.get("initContainers"))
    for container in containers:
        if not isinstance(container, dict):
            continue
        for env_from in as_list(container.get("envFrom")):
            name = get_nested(env_from, "configMapRef", "name")
            if name:
                yield ("ConfigMap", str(name))
            name = get_nested(env_from, "secretRef", "name")
            if name:
                yield ("Secret", str(name))
        for env in as_list(container.get("env")):
            name = get_nested(env, "valueFrom", "configMapKeyRef", "name")
            if name:
                yield ("ConfigMap", str(name))
            name = get_nested(env, "valueFrom", "secretKeyRef", "name")
            if name:
                yield ("Secret", str(name))


def container_port_names(container: dict) -> List[str]:
    return [
        str(p["name"]) for p in as_list(container.get("ports"))
        if isinstance(p, dict) and p.get("name")
    ]


def namespace_of(manifest: dict) -> str:
    """Namespace a resource lives in; "" for cluster-scoped or unset."""
    if manifest.get("kind") in CLUSTER_SCOPED_KINDS:
        return ""
    return str(get_nested(manifest, "metadata", "namespace") or "")


def selector_matches(selector: Any, labels: Any) -> bool:
    """Evaluate a label selector against a label set.

    Accepts both the plain map form (Service, ReplicationController) and
    the LabelSelector form with matchLabels/matchExpressions. An empty
    selector matches nothing.
    """
    labels = as_mapping(labels)
    selector = as_mapping(selector)
    if not selector:
        return False

    if "matchLabels" not in selector and "matchExpressions" not in selector:
        return all(k in labels and str(labels[k]) == str(v) for k, v in selector.items())

    for key, value in as_mapping(selector.get("matchLabels")).items():
        if key not in labels or str(labels[key]) != str(value):
            return False

    for expression in as_list(selector.get("matchExpressions")):
        if not isinstance(expression, dict):
            return False
        key = expression.get("key")
        operator = expression.get("operator")
        values = [str(v) for v in as_list(expression.get("values"))]
        if operator == "In":
            if key not in labels or str(labels[key]) not in values:
                return False
        elif operator == "NotIn":
            if key in labels and str(labels[key]) in values:
                return False
        elif operator == "Exists":
            if key not in labels:
                return False
        elif operator == "DoesNotExist":
            if key in labels:
                return False
        else:
            return False

    return True


def image_tag(image: str) -> Optional[str]:
    """Tag of an image reference, None when untagged.

    Digest references ("repo@sha256:...") return the digest.
    """
    if "@" in image:
        return image.split("@", 1)[1]
    last_segment = image.rsplit("/", 1)[-1]
    if ":" in last_segment:
        return last_segment.rsplit(":", 1)[1]
    return None
