"""Kubernetes constants shared by checks, ordering and patch operations.

Kept in one module so checks and the orderer agree on what a kind is.
"""

# Kinds with no namespace
CLUSTER_SCOPED_KINDS = {
    "APIService",
    "CertificateSigningRequest",
    "ClusterRole",
    "ClusterRoleBinding",
    "CustomResourceDefinition",
    "IngressClass",
    "MutatingWebhookConfiguration",
    "Namespace",
    "Node",
    "PersistentVolume",
    "PodSecurityPolicy",
    "PriorityClass",
    "RuntimeClass",
    "StorageClass",
    "ValidatingWebhookConfiguration",
    "VolumeAttachment",
}

# Served apiVersions for built-in kinds
KIND_API_VERSIONS = {
    "APIService": {"apiregistration.k8s.io/v1"},
    "ClusterRole": {"rbac.authorization.k8s.io/v1"},
    "ClusterRoleBinding": {"rbac.authorization.k8s.io/v1"},
    "ConfigMap": {"v1"},
    "CronJob": {"batch/v1"},
    "CustomResourceDefinition": {"apiextensions.k8s.io/v1"},
    "DaemonSet": {"apps/v1"},
    "Deployment": {"apps/v1"},
    "Endpoints": {"v1"},
    "HorizontalPodAutoscaler": {"autoscaling/v1", "autoscaling/v2"},
    "Ingress": {"networking.k8s.io/v1"},
    "IngressClass": {"networking.k8s.io/v1"},
    "Job": {"batch/v1"},
    "LimitRange": {"v1"},
    "MutatingWebhookConfiguration": {"admissionregistration.k8s.io/v1"},
    "Namespace": {"v1"},
    "NetworkPolicy": {"networking.k8s.io/v1"},
    "PersistentVolume": {"v1"},
    "PersistentVolumeClaim": {"v1"},
    "Pod": {"v1"},
    "PodDisruptionBudget": {"policy/v1"},
    "PriorityClass": {"scheduling.k8s.io/v1"},
    "ReplicaSet": {"apps/v1"},
    "ReplicationController": {"v1"},
    "ResourceQuota": {"v1"},
    "Role": {"rbac.authorization.k8s.io/v1"},
    "RoleBinding": {"rbac.authorization.k8s.io/v1"},
    "RuntimeClass": {"node.k8s.io/v1"},
    "Secret": {"v1"},
    "Service": {"v1"},
    "ServiceAccount": {"v1"},
    "StatefulSet": {"apps/v1"},
    "StorageClass": {"storage.k8s.io/v1"},
    "ValidatingWebhookConfiguration": {"admissionregistration.k8s.io/v1"},
}

# Removed apiVersions and their replacement
DEPRECATED_API_VERSIONS = {
    ("extensions/v1beta1", "Deployment"): "apps/v1",
    ("apps/v1beta1", "Deployment"): "apps/v1",
    ("apps/v1beta2", "Deployment"): "apps/v1",
    ("extensions/v1beta1", "DaemonSet"): "apps/v1",
    ("apps/v1beta2", "DaemonSet"): "apps/v1",
    ("extensions/v1beta1", "ReplicaSet"): "apps/v1",
    ("apps/v1beta2", "ReplicaSet"): "apps/v1",
    ("apps/v1beta1", "StatefulSet"): "apps/v1",
    ("apps/v1beta2", "StatefulSet"): "apps/v1",
    ("extensions/v1beta1", "Ingress"): "networking.k8s.io/v1",
    ("networking.k8s.io/v1beta1", "Ingress"): "networking.k8s.io/v1",
    ("networking.k8s.io/v1beta1", "IngressClass"): "networking.k8s.io/v1",
    ("extensions/v1beta1", "NetworkPolicy"): "networking.k8s.io/v1",
    ("batch/v1beta1", "CronJob"): "batch/v1",
    ("policy/v1beta1", "PodDisruptionBudget"): "policy/v1",
    ("autoscaling/v2beta1", "HorizontalPodAutoscaler"): "autoscaling/v2",
    ("autoscaling/v2beta2", "HorizontalPodAutoscaler"): "autoscaling/v2",
    ("rbac.authorization.k8s.io/v1beta1", "Role"): "rbac.authorization.k8s.io/v1",
    ("rbac.authorization.k8s.io/v1beta1", "RoleBinding"): "rbac.authorization.k8s.io/v1",
    ("rbac.authorization.k8s.io/v1beta1", "ClusterRole"): "rbac.authorization.k8s.io/v1",
    ("rbac.authorization.k8s.io/v1beta1", "ClusterRoleBinding"): "rbac.authorization.k8s.io/v1",
    ("apiextensions.k8s.io/v1beta1", "CustomResourceDefinition"): "apiextensions.k8s.io/v1",
    ("scheduling.k8s.io/v1beta1", "PriorityClass"): "scheduling.k8s.io/v1",
    ("storage.k8s.io/v1beta1", "StorageClass"): "storage.k8s.io/v1",
    ("admissionregistration.k8s.io/v1beta1", "MutatingWebhookConfiguration"): "admissionregistration.k8s.io/v1",
    ("admissionregistration.k8s.io/v1beta1", "ValidatingWebhookConfiguration"): "admissionregistration.k8s.io/v1",
}

# Kinds that carry a pod template (or are a pod)
WORKLOAD_KINDS = {
    "CronJob",
    "DaemonSet",
    "Deployment",
    "Job",
    "Pod",
    "ReplicaSet",
    "ReplicationController",
    "StatefulSet",
}

# Workloads whose pods are expected to keep running and serve traffic
LONG_RUNNING_KINDS = {"DaemonSet", "Deployment", "ReplicaSet", "ReplicationController", "StatefulSet"}

# Workloads that must declare spec.selector
SELECTOR_REQUIRED_KINDS = {"DaemonSet", "Deployment", "ReplicaSet", "StatefulSet"}

# Apply order for known kinds; anything else (custom resources) goes last
INSTALL_ORDER = [
    "Namespace",
    "NetworkPolicy",
    "ResourceQuota",
    "LimitRange",
    "PodSecurityPolicy",
    "PodDisruptionBudget",
    "ServiceAccount",
    "Secret",
    "SecretList",
    "ConfigMap",
    "StorageClass",
    "PersistentVolume",
    "PersistentVolumeClaim",
    "CustomResourceDefinition",
    "ClusterRole",
    "ClusterRoleList",
    "ClusterRoleBinding",
    "ClusterRoleBindingList",
    "Role",
    "RoleList",
    "RoleBinding",
    "RoleBindingList",
    "Service",
    "DaemonSet",
    "Pod",
    "ReplicationController",
    "ReplicaSet",
    "Deployment",
    "HorizontalPodAutoscaler",
    "StatefulSet",
    "Job",
    "CronJob",
    "IngressClass",
    "Ingress",
    "APIService",
    "MutatingWebhookConfiguration",
    "ValidatingWebhookConfiguration",
]

PROBE_KINDS = ("livenessProbe", "readinessProbe", "startupProbe")
PROBE_HANDLERS = ("httpGet", "tcpSocket", "exec", "grpc")

# Timing defaults inserted by EnsureProbe, by probe type
PROBE_DEFAULTS = {
    "readiness": {"initialDelaySeconds": 5, "periodSeconds": 10, "timeoutSeconds": 1, "failureThreshold": 3},
    "liveness": {"initialDelaySeconds": 15, "periodSeconds": 20, "timeoutSeconds": 1, "failureThreshold": 3},
    "startup": {"periodSeconds": 10, "timeoutSeconds": 1, "failureThreshold": 30},
}

# Default requests inserted by EnsureResources
DEFAULT_REQUESTS = {"cpu": "100m", "memory": "128Mi"}

# Port names treated as HTTP endpoints when deriving a default probe
HTTP_PORT_NAMES = {"http", "http-web", "web", "http-api", "api", "metrics", "http-metrics"}
