"""Decoding of project field listings.

GitHub hands back project fields in several shapes depending on the surface:
a bare array (`gh project field-list --jq .fields`), an object wrapping the
array under `fields` or `items`, or a GraphQL connection (`{"nodes": [...]}`),
possibly nested one level (`{"fields": {"nodes": [...]}}`). All shape handling
lives in `decode_field_listing`; everything downstream works on `ProjectField`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_LIST_KEYS: tuple[str, ...] = ("fields", "items", "nodes")
_TYPE_KEYS: tuple[str, ...] = ("type", "dataType", "__typename")


@dataclass(frozen=True, slots=True)
class FieldOption:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ProjectField:
    """A project field as listed by GitHub."""

    id: str
    name: str
    type: str
    options: tuple[FieldOption, ...] = ()

    @property
    def is_single_select(self) -> bool:
        normalized = self.type.lower().replace("_", "").replace(" ", "")
        return "singleselect" in normalized

    @property
    def option_names(self) -> list[str]:
        return [o.name for o in self.options]

    def option_id(self, name: str) -> str | None:
        """Return the id of the option whose name matches exactly, if any."""

        for option in self.options:
            if option.name == name:
                return option.id
        return None


def _unwrap(raw: Any) -> list[Any]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for key in _LIST_KEYS:
            if key in raw and raw[key] is not None:
                return _unwrap(raw[key])
    return []


def _decode_options(raw: Any) -> tuple[FieldOption, ...]:
    if not isinstance(raw, list):
        return ()
    options: list[FieldOption] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        option_id = item.get("id")
        if isinstance(name, str) and isinstance(option_id, str):
            options.append(FieldOption(id=option_id, name=name))
    return tuple(options)


def _decode_field(raw: Any) -> ProjectField | None:
    if not isinstance(raw, dict):
        return None
    name = raw.get("name")
    field_id = raw.get("id")
    if not isinstance(name, str) or not isinstance(field_id, str):
        # GraphQL returns `{}` for fields that match none of the inline fragments.
        return None

    field_type = ""
    for key in _TYPE_KEYS:
        value = raw.get(key)
        if value is not None:
            field_type = str(value)
            break

    return ProjectField(
        id=field_id,
        name=name,
        type=field_type,
        options=_decode_options(raw.get("options")),
    )


def decode_field_listing(raw: Any) -> list[ProjectField]:
    """Normalize any supported field-listing shape into a list of fields, in listing order."""

    fields: list[ProjectField] = []
    for item in _unwrap(raw):
        field = _decode_field(item)
        if field is not None:
            fields.append(field)
    return fields


def find_single_select_field(fields: list[ProjectField], name: str) -> ProjectField | None:
    """Return the first single-select field whose name matches case-insensitively."""

    wanted = name.casefold()
    for field in fields:
        if field.name.casefold() == wanted and field.is_single_select:
            return field
    return None
