"""Format detection and parsing of uploaded schema documents.

JSON is tried first because every JSON document is also valid YAML.
"""
import json

import yaml

from registry.errors import SchemaValidationError
from registry.models.schema import FileFormat


def parse_document(content: str | None) -> tuple[FileFormat, dict]:
    """Parse ``content`` into a key-value document.

    Returns the detected format together with the parsed mapping. Scalars
    and lists are rejected since an OpenAPI document is always a mapping.
    """
    fmt, document = _load(content)
    if not isinstance(document, dict):
        raise SchemaValidationError(
            f"Failed to parse content as {fmt.value}: top-level value must be an object"
        )
    return fmt, document


def _load(content: str | None) -> tuple[FileFormat, object]:
    if content is None or not content.strip():
        raise SchemaValidationError("Content cannot be empty")

    text = content.strip()
    try:
        return FileFormat.JSON, json.loads(text)
    except ValueError:
        pass

    try:
        return FileFormat.YAML, yaml.safe_load(text)
    except yaml.YAMLError:
        raise SchemaValidationError("Content is neither valid JSON nor YAML")
