"""Ordered, case-insensitive header block."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field


class Headers(BaseModel):
    """Header fields of one MIME entity, kept in the order they were read.

    Field names compare case-insensitively. A name may repeat (``Received``,
    ``Comments``); ``get`` returns the first occurrence and ``get_all`` every
    occurrence in order.
    """

    model_config = ConfigDict(frozen=True)

    fields: tuple[tuple[str, str], ...] = Field(
        default=(), description="Raw (name, value) pairs in insertion order"
    )

    def get(self, name: str, default: str | None = None) -> str | None:
        key = name.lower()
        for field_name, value in self.fields:
            if field_name.lower() == key:
                return value
        return default

    def get_all(self, name: str) -> list[str]:
        key = name.lower()
        return [value for field_name, value in self.fields if field_name.lower() == key]

    def names(self) -> list[str]:
        return [field_name for field_name, _ in self.fields]

    def append(self, name: str, value: str) -> Headers:
        """Return a copy with ``name: value`` added at the end."""
        return Headers(fields=(*self.fields, (name, value)))

    def replace(self, name: str, value: str) -> Headers:
        """Return a copy where the first ``name`` field holds ``value``.

        Later duplicates of the field are dropped. The field is appended when
        it is not present.
        """
        key = name.lower()
        fields: list[tuple[str, str]] = []
        replaced = False
        for field_name, field_value in self.fields:
            if field_name.lower() != key:
                fields.append((field_name, field_value))
            elif not replaced:
                fields.append((field_name, value))
                replaced = True
        if not replaced:
            fields.append((name, value))
        return Headers(fields=tuple(fields))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)
