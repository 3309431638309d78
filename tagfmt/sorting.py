from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from .errors import Diagnostic, InvalidSortWeight, TagError
from .models import Entry, PendingEdit
from .selector import Selectors
from .source import SourceFile
from .tag import parse, serialize

ITEM_SEPARATOR = "|"


@dataclass(frozen=True)
class SortPolicy:
    order: tuple[str, ...] = ()
    weights: dict[str, int] = field(default_factory=dict)

    def rank(self, entry: Entry) -> tuple[float, int, int]:
        try:
            position: float = self.order.index(entry.key)
        except ValueError:
            position = math.inf
        return position, -self.weights.get(entry.key, 0), entry.index


def sort_entries(entries: Iterable[Entry], policy: SortPolicy) -> list[Entry]:
    return sorted(entries, key=policy.rank)


def parse_sort_order(text: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in text.split(ITEM_SEPARATOR) if item.strip())


def parse_sort_weights(text: str) -> dict[str, int]:
    weights: dict[str, int] = {}
    for item in text.split(ITEM_SEPARATOR):
        item = item.strip()
        if not item:
            continue
        parts = item.split("=")
        if len(parts) != 2 or not parts[0].strip():
            raise InvalidSortWeight(f"E_SORT_WEIGHT_INVALID: {item!r}: expected key=int")
        key = parts[0].strip()
        try:
            weights[key] = int(parts[1].strip())
        except ValueError as exc:
            raise InvalidSortWeight(f"E_SORT_WEIGHT_INVALID: {item!r}: {exc}") from exc
    return weights


class TagSort:
    def __init__(self, source: SourceFile, selectors: Selectors, policy: SortPolicy) -> None:
        self.source = source
        self.selectors = selectors
        self.policy = policy
        self.edits: list[PendingEdit] = []
        self.diagnostics: list[Diagnostic] = []

    def scan(self) -> None:
        for item in self.source.tagged():
            if not self.selectors.accepts(item):
                continue
            try:
                entries = parse(item.tag)
            except TagError:
                continue
            ordered = sort_entries(entries, self.policy)
            if ordered != entries:
                self.edits.append(PendingEdit(item, serialize(ordered)))

    def execute(self) -> None:
        for edit in self.edits:
            edit.apply()
        self.edits = []
