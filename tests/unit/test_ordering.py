"""Tests for dependency-aware document ordering."""

import pytest

from manilint.core.errors import ManifestParseError, OrderingError
from manilint.k8s.constants import INSTALL_ORDER
from manilint.k8s.ordering import dependency_graph, kind_rank, order_documents
from manilint.k8s.splitter import split_documents

SHOP = """apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  namespace: shop
spec:
  template:
    spec:
      serviceAccountName: web
      containers:
      - name: web
        image: web:1.0
        envFrom:
        - configMapRef:
            name: web-config
---
apiVersion: v1
kind: Service
metadata:
  name: web
  namespace: shop
---
apiVersion: v1
kind: ConfigMap
metadata:
  name: web-config
  namespace: shop
---
apiVersion: v1
kind: ServiceAccount
metadata:
  name: web
  namespace: shop
---
apiVersion: v1
kind: Namespace
metadata:
  name: shop
"""


def _refs(documents):
    return [doc.ref for doc in documents]


class TestKindRank:
    """Tests for kind_rank()."""

    def test_known_kinds(self):
        """Test that install order ranks are used."""
        assert kind_rank("Namespace") == 0
        assert kind_rank("ConfigMap") < kind_rank("Deployment")
        assert kind_rank("Service") < kind_rank("Deployment")

    def test_unknown_kind_last(self):
        """Test that custom kinds rank after every known kind."""
        assert kind_rank("Widget") == len(INSTALL_ORDER)


class TestOrderDocuments:
    """Tests for order_documents()."""

    def test_install_order(self):
        """Test that prerequisites come first."""
        ordered = order_documents(split_documents(SHOP))

        assert _refs(ordered) == [
            "Namespace/shop",
            "ServiceAccount/web",
            "ConfigMap/web-config",
            "Service/web",
            "Deployment/web",
        ]

    def test_reverse_is_delete_order(self):
        """Test that reverse gives the exact reverse of install order."""
        documents = split_documents(SHOP)

        assert _refs(order_documents(documents, reverse=True)) == list(reversed(_refs(order_documents(documents))))

    def test_stable_for_same_kind(self):
        """Test that documents of one kind keep their original order."""
        content = "".join(
            f"---\napiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: {name}\n" for name in ("c", "a", "b")
        )

        assert _refs(order_documents(split_documents(content))) == ["ConfigMap/c", "ConfigMap/a", "ConfigMap/b"]

    def test_dependency_overrides_kind_order(self):
        """Test that an HPA follows the StatefulSet it scales."""
        content = """apiVersion: autoscaling/v2
kind: HorizontalPodAutoscaler
metadata:
  name: db
spec:
  scaleTargetRef:
    apiVersion: apps/v1
    kind: StatefulSet
    name: db
---
apiVersion: apps/v1
kind: StatefulSet
metadata:
  name: db
"""
        assert _refs(order_documents(split_documents(content))) == [
            "StatefulSet/db", "HorizontalPodAutoscaler/db",
        ]

    def test_custom_resource_after_definition(self):
        """Test that custom resources follow their CRD."""
        content = """apiVersion: example.com/v1
kind: Widget
metadata:
  name: w
---
apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: widgets.example.com
spec:
  group: example.com
  names:
    kind: Widget
"""
        assert _refs(order_documents(split_documents(content))) == [
            "CustomResourceDefinition/widgets.example.com", "Widget/w",
        ]

    def test_cycle_raises(self):
        """Test that circular dependencies are reported."""
        content = """apiVersion: autoscaling/v2
kind: HorizontalPodAutoscaler
metadata:
  name: a
spec:
  scaleTargetRef:
    kind: HorizontalPodAutoscaler
    name: b
---
apiVersion: autoscaling/v2
kind: HorizontalPodAutoscaler
metadata:
  name: b
spec:
  scaleTargetRef:
    kind: HorizontalPodAutoscaler
    name: a
"""
        with pytest.raises(OrderingError) as excinfo:
            order_documents(split_documents(content))

        assert excinfo.value.cycle == ["HorizontalPodAutoscaler/a", "HorizontalPodAutoscaler/b"]
        assert "Dependency cycle" in str(excinfo.value)

    def test_parse_error_raises(self):
        """Test that unparsable documents cannot be ordered."""
        documents = split_documents("apiVersion: v1\nkind: ConfigMap\n---\nkind: [oops\n", "bad.yaml")

        with pytest.raises(ManifestParseError, match="bad.yaml:4"):
            order_documents(documents)

    def test_non_mapping_raises(self):
        """Test that list documents cannot be ordered."""
        with pytest.raises(ManifestParseError, match="not a mapping"):
            order_documents(split_documents("- a\n"))


class TestDependencyGraph:
    """Tests for dependency_graph()."""

    def test_pod_spec_references(self):
        """Test edges from a workload to what its pods use."""
        graph = dependency_graph(split_documents(SHOP))

        # Deployment depends on the ConfigMap, ServiceAccount and Namespace
        assert graph[0] == {2, 3, 4}
        assert graph[4] == set()

    def test_other_namespace_is_not_a_dependency(self):
        """Test that references resolve inside the workload namespace only."""
        content = SHOP.replace("  name: web-config\n  namespace: shop\n", "  name: web-config\n  namespace: other\n")
        graph = dependency_graph(split_documents(content))

        assert 2 not in graph[0]

    def test_rbac_and_ingress(self):
        """Test RoleBinding and Ingress edges."""
        content = """apiVersion: rbac.authorization.k8s.io/v1
kind: RoleBinding
metadata:
  name: read
roleRef:
  kind: Role
  name: reader
subjects:
- kind: ServiceAccount
  name: bot
---
apiVersion: rbac.authorization.k8s.io/v1
kind: Role
metadata:
  name: reader
---
apiVersion: v1
kind: ServiceAccount
metadata:
  name: bot
---
apiVersion: networking.k8s.io/v1
kind: Ingress
metadata:
  name: web
spec:
  ingressClassName: nginx
  rules:
  - http:
      paths:
      - path: /
        pathType: Prefix
        backend:
          service:
            name: web
            port:
              number: 80
---
apiVersion: v1
kind: Service
metadata:
  name: web
---
apiVersion: networking.k8s.io/v1
kind: IngressClass
metadata:
  name: nginx
"""
        graph = dependency_graph(split_documents(content))

        assert graph[0] == {1, 2}
        assert graph[3] == {4, 5}

    def test_claims_and_storage_classes(self):
        """Test PersistentVolumeClaim and volumeClaimTemplates edges."""
        content = """apiVersion: storage.k8s.io/v1
kind: StorageClass
metadata:
  name: fast
---
apiVersion: v1
kind: PersistentVolumeClaim
metadata:
  name: data
spec:
  storageClassName: fast
---
apiVersion: apps/v1
kind: StatefulSet
metadata:
  name: db
spec:
  volumeClaimTemplates:
  - metadata:
      name: pgdata
    spec:
      storageClassName: fast
  template:
    spec:
      containers:
      - name: db
        image: postgres:16.2
      volumes:
      - name: shared
        persistentVolumeClaim:
          claimName: data
"""
        graph = dependency_graph(split_documents(content))

        assert graph[1] == {0}
        assert graph[2] == {0, 1}
