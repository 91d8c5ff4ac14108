"""
Core domain-agnostic components for manilint.

This package contains the schemas, configuration loading, error types and
the violation baseline that work independently of the manifest format.
"""

__all__ = []
