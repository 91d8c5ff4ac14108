"""Kubernetes manifest support for manilint.

- ManifestSet: one or more YAML files, each holding one or more documents
- splitter: multi-document splitting with source positions
- checks: schema, workload, probe, resource, service and reference checks
- ordering: dependency-aware install order
- composer / fixer: patch application and single-stream output
"""
