"""Domain primitives: scalar aliases + small value objects."""

from __future__ import annotations

from dataclasses import dataclass

type Identifier = str


@dataclass(frozen=True, slots=True)
class GroupHandle:
    """Opaque reference to a group held by the remote authority."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("group handle must be a non-empty string")

    def __str__(self) -> str:
        return self.value
