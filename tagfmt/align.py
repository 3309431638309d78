from __future__ import annotations

from typing import Iterable, Iterator

from .errors import Diagnostic
from .models import Field, PendingEdit
from .selector import Selectors
from .source import SourceFile

DEFAULT_TAB_WIDTH = 4


def display_width(text: str, tab_width: int = DEFAULT_TAB_WIDTH) -> int:
    return len(text.expandtabs(tab_width))


def _alignable(item: Field) -> bool:
    if not item.single_line:
        return False
    return item.tag_start is None or item.original_gap.strip() == ""


def iter_blocks(fields: Iterable[Field]) -> Iterator[list[Field]]:
    by_scope: dict[int, list[Field]] = {}
    for item in fields:
        by_scope.setdefault(item.scope, []).append(item)

    for members in by_scope.values():
        block: list[Field] = []
        for item in members:
            if not _alignable(item):
                if block:
                    yield block
                block = []
                continue
            if block and item.line != block[-1].end_line + 1:
                yield block
                block = []
            block.append(item)
        if block:
            yield block


class TagAlign:
    def __init__(self, source: SourceFile, selectors: Selectors, tab_width: int = DEFAULT_TAB_WIDTH) -> None:
        self.source = source
        self.selectors = selectors
        self.tab_width = tab_width
        self.edits: list[PendingEdit] = []
        self.diagnostics: list[Diagnostic] = []

    def scan(self) -> None:
        for block in iter_blocks(self.source.fields):
            tagged = [item for item in block if item.has_tag]
            if not tagged:
                continue
            widths = {item.index: display_width(item.decl_text, self.tab_width) for item in tagged}
            target = max(widths.values()) + 1
            for item in tagged:
                if not self.selectors.accepts(item):
                    continue
                gap = " " * (target - widths[item.index])
                if gap != item.gap:
                    self.edits.append(PendingEdit(item, gap, slot="gap"))

    def execute(self) -> None:
        for edit in self.edits:
            edit.apply()
        self.edits = []
