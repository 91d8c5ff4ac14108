"""
manilint: Kubernetes manifest linter and composer

Splits multi-document YAML manifests, validates them against the resource
conventions operators rely on (schemas, selectors, health probes, resources),
sorts them into a safe apply order and composes them into a single stream.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
