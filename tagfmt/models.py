from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Entry:
    key: str
    value: str
    index: int

    def to_text(self) -> str:
        return f'{self.key}:"{self.value}"'

    def name(self) -> str:
        return self.value.split(",", 1)[0]


@dataclass(eq=False)
class Field:
    index: int
    names: tuple[str, ...]
    struct: str
    scope: int
    line: int
    end_line: int
    decl_end: int
    tag_start: Optional[int] = None
    tag_end: Optional[int] = None
    quote: str = "`"
    embedded: bool = False
    original_tag: Optional[str] = None
    original_gap: str = ""
    tag: Optional[str] = None
    gap: str = ""
    start: int = 0
    original_literal: str = ""
    decl_text: str = field(default="", repr=False)

    @property
    def name(self) -> str:
        return self.names[0] if self.names else ""

    @property
    def has_tag(self) -> bool:
        return self.tag is not None

    @property
    def single_line(self) -> bool:
        return self.line == self.end_line

    @property
    def changed(self) -> bool:
        return self.tag != self.original_tag or self.gap != self.original_gap


@dataclass(frozen=True)
class PendingEdit:
    field: Field
    text: str
    slot: str = "tag"

    def apply(self) -> None:
        if self.slot == "gap":
            self.field.gap = self.text
        else:
            self.field.tag = self.text
