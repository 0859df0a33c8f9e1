"""Upload information and its JSON encoding in the info object."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class FileInfo:
    """General information about an upload."""

    id: str = ""
    size: int = 0
    size_is_deferred: bool = False
    offset: int = 0
    meta_data: dict[str, str] | None = None
    is_partial: bool = False
    is_final: bool = False
    partial_uploads: list[str] | None = None
    storage: dict[str, str] | None = None


def _sorted_map(mapping: dict[str, str] | None) -> dict[str, str] | None:
    if mapping is None:
        return None
    return {key: mapping[key] for key in sorted(mapping)}


def encode_info(info: FileInfo) -> bytes:
    """Encode the info as compact JSON with the field order of the info object."""
    document = {
        "ID": info.id,
        "Size": info.size,
        "SizeIsDeferred": info.size_is_deferred,
        "Offset": info.offset,
        "MetaData": _sorted_map(info.meta_data),
        "IsPartial": info.is_partial,
        "IsFinal": info.is_final,
        "PartialUploads": None if info.partial_uploads is None else list(info.partial_uploads),
        "Storage": _sorted_map(info.storage),
    }
    text = json.dumps(document, ensure_ascii=False, separators=(",", ":"))
    text = "".join(_ESCAPES.get(char, char) for char in text)
    return text.encode("utf-8")


def _field(document: dict[str, Any], name: str, kind: type, default: Any) -> Any:
    value = document.get(name)
    if value is None:
        return default
    if kind is int and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValueError(f"info field {name} must be an integer")
    if kind is not int and not isinstance(value, kind):
        raise ValueError(f"info field {name} has an unexpected type")
    return value


def _string_map(document: dict[str, Any], name: str) -> dict[str, str] | None:
    value = _field(document, name, dict, None)
    if value is None:
        return None
    if not all(isinstance(item, str) for item in value.values()):
        raise ValueError(f"info field {name} must map strings to strings")
    return dict(value)


def decode_info(data: bytes | str) -> FileInfo:
    """Decode an info object; missing or null fields take their defaults."""
    document = json.loads(data)
    if not isinstance(document, dict):
        raise ValueError("info object must be a JSON object")
    partial_uploads = _field(document, "PartialUploads", list, None)
    if partial_uploads is not None and not all(isinstance(item, str) for item in partial_uploads):
        raise ValueError("info field PartialUploads must be a list of strings")
    return FileInfo(
        id=_field(document, "ID", str, ""),
        size=_field(document, "Size", int, 0),
        size_is_deferred=_field(document, "SizeIsDeferred", bool, False),
        offset=_field(document, "Offset", int, 0),
        meta_data=_string_map(document, "MetaData"),
        is_partial=_field(document, "IsPartial", bool, False),
        is_final=_field(document, "IsFinal", bool, False),
        partial_uploads=None if partial_uploads is None else list(partial_uploads),
        storage=_string_map(document, "Storage"),
    )