"""ruamel.yaml round-trip loading and dumping for manifest documents."""

from io import StringIO
from typing import Any

from ruamel.yaml import YAML


def create_yaml() -> YAML:
    """Create configured ruamel.yaml instance for manifest editing.

    Returns:
        YAML instance configured to:
        - Preserve quotes and formatting
        - Not wrap long strings (image references, annotations)
        - Use block style (not flow style)
        - Keep insertion order of mappings added by patch operations
    """
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = 4096
    yaml.default_flow_style = False
    yaml.allow_unicode = True
    yaml.sort_base_mapping_type_on_output = False
    return yaml


def load_document(text: str) -> Any:
    """Parse a single YAML document, keeping comments and key order."""
    return create_yaml().load(text)


def dump_document(body: Any) -> str:
    """Serialize a parsed document back to YAML text."""
    stream = StringIO()
    create_yaml().dump(body, stream)
    return stream.getvalue()


def join_documents(texts: list) -> str:
    """Join document texts into one multi-document stream."""
    parts = []
    for text in texts:
        if not text.endswith("\n"):
            text += "\n"
        parts.append(text)
    return "---\n".join(parts)
