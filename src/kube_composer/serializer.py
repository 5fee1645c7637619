"""Minimal object-to-YAML renderer for generated resources.

The renderer follows a fixed textual convention: two-space indentation,
``key: value`` scalars with no quoting, ``key: []`` for empty lists, and
list items of mappings written as a bare ``-`` line followed by the item's
block indented one level deeper. Keys are emitted in mapping order and
``None`` values are skipped.

Scalars are never quoted or escaped, so values containing ``:``, ``#``,
leading indicator characters or newlines can produce text that a YAML
parser reads differently. :func:`check_parseable` runs the output through
PyYAML for callers that want to detect that.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Tuple

import yaml

from .types import SerializationError

INDENT = "  "


def _entries(value: Any) -> Iterable[Tuple[str, Any]]:
    if isinstance(value, Mapping):
        return ((str(key), item) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return ((str(index), item) for index, item in enumerate(value))
    raise SerializationError(f"Cannot render {type(value).__name__} as a YAML block")


def format_scalar(value: Any) -> str:
    """Render a scalar exactly as it should appear after ``key: ``."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    raise SerializationError(f"Unsupported scalar type: {type(value).__name__}")


def render(obj: Any, indent: int = 0) -> str:
    """
    Render a mapping as YAML text.

    Args:
        obj: Mapping (or list, rendered by index) to serialize
        indent: Nesting level; each level is two spaces

    Returns:
        YAML text, every line terminated by a newline

    Raises:
        SerializationError: If a value has no YAML rendering
    """
    spaces = INDENT * indent
    lines: List[str] = []

    for key, value in _entries(obj):
        if value is None:
            continue

        if isinstance(value, Mapping):
            lines.append(f"{spaces}{key}:\n")
            lines.append(render(value, indent + 1))
        elif isinstance(value, (list, tuple)):
            if not value:
                lines.append(f"{spaces}{key}: []\n")
                continue
            lines.append(f"{spaces}{key}:\n")
            for item in value:
                if item is None:
                    raise SerializationError(f"List under '{key}' contains an empty item")
                if isinstance(item, (Mapping, list, tuple)):
                    lines.append(f"{spaces}{INDENT}-\n")
                    lines.append(render(item, indent + 2))
                else:
                    lines.append(f"{spaces}{INDENT}- {format_scalar(item)}\n")
        else:
            lines.append(f"{spaces}{key}: {format_scalar(value)}\n")

    return "".join(lines)


def check_parseable(text: str) -> List[Any]:
    """
    Parse generated text with PyYAML and return the non-empty documents.

    Raises:
        SerializationError: If the text is not valid YAML
    """
    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as e:
        raise SerializationError(f"Generated YAML does not parse: {e}", text=text) from e
    return [document for document in documents if document is not None]
