"""
Canonical record strings for salted checksum signatures.
"""

from __future__ import annotations

import functools
import hashlib
import types
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

_SCALAR_TYPES = (str, bool, int)


def _scalar_type(annotation: Any) -> type | None:
    """Return the scalar type a field renders as, or None for composite fields."""
    if annotation in _SCALAR_TYPES:
        return annotation
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1 and args[0] in _SCALAR_TYPES:
            return args[0]
    return None


@functools.cache
def field_manifest(model: type[BaseModel]) -> tuple[tuple[str, str, type | None], ...]:
    """Ordered ``(external_name, attribute, scalar_type)`` entries for a model.

    Fields sort by their serialized name, so declaration order never matters.
    """
    entries = []
    for name, info in model.model_fields.items():
        external = info.serialization_alias or info.alias or name
        entries.append((external, name, _scalar_type(info.annotation)))
    return tuple(sorted(entries, key=lambda entry: entry[0]))


def _render(value: Any, scalar_type: type | None) -> str:
    if scalar_type is None or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ChecksumModel(BaseModel):
    """Base model for records that carry a salted SHA-256 checksum."""

    def hashable_string(self, salt: str) -> str:
        """Concatenate scalar fields in name order and append the salt.

        Composite fields keep their position but contribute an empty string.
        """
        parts = [
            _render(getattr(self, attr), scalar_type)
            for _, attr, scalar_type in field_manifest(type(self))
        ]
        return "".join(parts) + salt

    def get_sig(self, salt: str) -> str:
        return hashlib.sha256(self.hashable_string(salt).encode("utf-8")).hexdigest()
