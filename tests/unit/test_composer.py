"""Tests for manifest composition."""

import pytest

from manilint.core.errors import ManifestParseError
from manilint.k8s.artifact import ManifestSet
from manilint.k8s.composer import compose, composition_patch
from manilint.k8s.splitter import split_documents

NAMESPACE = """apiVersion: v1
kind: Namespace
metadata:
  name: shop
"""

APP = """apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
spec:
  selector:
    matchLabels:
      app: web
  template:
    metadata:
      labels:
        app: web
    spec:
      containers:
      - name: web
        image: web:1.0  # pinned by release tooling
---
apiVersion: v1
kind: Service
metadata:
  name: web
  namespace: legacy
spec:
  selector:
    app: web
"""


def _manifests() -> ManifestSet:
    return ManifestSet(files={"app.yaml": APP, "namespace.yaml": NAMESPACE})


def _refs(content: str):
    return [doc.ref for doc in split_documents(content)]


class TestCompositionPatch:
    """Tests for composition_patch()."""

    def test_ops(self):
        """Test the operations built from compose settings."""
        patch = composition_patch("shop", {"team": "payments"}, {"owner": "alice"})

        assert [op.op for op in patch.ops] == ["EnsureNamespace", "EnsureLabel", "EnsureAnnotation"]
        assert patch.ops[0].args == {"namespace": "shop", "override": False}
        assert patch.ops[1].args == {"key": "team", "value": "payments", "scope": "both"}
        assert patch.meta == {"origin": "compose"}

    def test_empty(self):
        """Test that no settings give no operations."""
        assert composition_patch().ops == []


class TestCompose:
    """Tests for compose()."""

    def test_orders_documents(self):
        """Test that the Namespace comes first."""
        output = compose(_manifests())

        assert _refs(output) == ["Namespace/shop", "Service/web", "Deployment/web"]
        assert output.count("---\n") == 2

    def test_no_order_keeps_file_order(self):
        """Test composing in input order."""
        output = compose(_manifests(), order=False)

        assert _refs(output) == ["Deployment/web", "Service/web", "Namespace/shop"]

    def test_reverse(self):
        """Test delete order."""
        output = compose(_manifests(), reverse=True)

        assert _refs(output) == ["Deployment/web", "Service/web", "Namespace/shop"]

    def test_namespace_and_labels(self):
        """Test that common settings are applied to every object."""
        output = compose(_manifests(), namespace="shop", labels={"team": "payments"}, annotations={"owner": "alice"})
        documents = {doc.ref: doc.body for doc in split_documents(output)}

        deployment = documents["Deployment/web"]
        assert deployment["metadata"]["namespace"] == "shop"
        assert deployment["metadata"]["labels"]["team"] == "payments"
        assert deployment["spec"]["template"]["metadata"]["labels"]["team"] == "payments"
        assert deployment["metadata"]["annotations"]["owner"] == "alice"
        # explicit namespaces are kept unless overridden
        assert documents["Service/web"]["metadata"]["namespace"] == "legacy"
        # cluster-scoped objects are labeled but not namespaced
        assert "namespace" not in documents["Namespace/shop"]["metadata"]
        assert documents["Namespace/shop"]["metadata"]["labels"]["team"] == "payments"

    def test_override_namespace(self):
        """Test replacing explicit namespaces."""
        output = compose(_manifests(), namespace="shop", override_namespace=True)
        documents = {doc.ref: doc.body for doc in split_documents(output)}

        assert documents["Service/web"]["metadata"]["namespace"] == "shop"

    def test_comments_preserved(self):
        """Test that comments in the input survive composition."""
        output = compose(_manifests(), namespace="shop")

        assert "# pinned by release tooling" in output

    def test_annotate_source(self):
        """Test the source comments."""
        output = compose(_manifests(), annotate_source=True)

        assert output.startswith("# Source: namespace.yaml\n")
        assert output.count("# Source: app.yaml\n") == 2

    def test_parse_error(self):
        """Test that broken documents stop composition."""
        manifests = ManifestSet(files={"bad.yaml": "kind: [oops\n"})

        with pytest.raises(ManifestParseError):
            compose(manifests)
