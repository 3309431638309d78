from __future__ import annotations

from .errors import Diagnostic, InvalidTag, TagError, UnclosedBracket, UnclosedQuote
from .models import Field, PendingEdit
from .selector import Selectors
from .source import SourceFile
from .tag import normalize

MAX_REPAIRS = 16


def repair(raw: str) -> tuple[str, list[TagError]]:
    problems: list[TagError] = []
    text = raw
    for _ in range(MAX_REPAIRS):
        try:
            return normalize(text), problems
        except UnclosedQuote as exc:
            problems.append(exc)
            text = text[: exc.offset] + '"' + text[exc.offset :]
        except UnclosedBracket as exc:
            problems.append(exc)
            text = text[: exc.offset] + "]" * exc.depth + text[exc.offset :]
    raise InvalidTag(len(text), f"still malformed after {MAX_REPAIRS} repairs")


class TagDoctor:
    def __init__(self, source: SourceFile, selectors: Selectors, path: str = "<standard input>") -> None:
        self.source = source
        self.selectors = selectors
        self.path = path
        self.edits: list[PendingEdit] = []
        self.diagnostics: list[Diagnostic] = []
        self.recovered: list[Field] = []

    def scan(self) -> None:
        for item in self.source.tagged():
            if not self.selectors.accepts(item):
                continue
            try:
                fixed, problems = repair(item.tag)
            except InvalidTag as exc:
                self._report(item, "error", exc, "tag left unchanged")
                continue
            for problem in problems:
                self._report(item, "warning", problem, "repaired")
            if problems:
                self.recovered.append(item)
            if fixed != item.tag:
                self.edits.append(PendingEdit(item, fixed))

    def execute(self) -> None:
        for edit in self.edits:
            edit.apply()
        self.edits = []

    def _report(self, item: Field, severity: str, exc: TagError, outcome: str) -> None:
        line, col = self.source.position(item.tag_start if item.tag_start is not None else item.decl_end)
        owner = f"{item.struct}.{item.name}" if item.struct else item.name
        self.diagnostics.append(
            Diagnostic(
                path=self.path,
                line=line,
                col=col,
                severity=severity,
                code=exc.code,
                message=f"{owner}: {exc}; {outcome}",
            )
        )
