from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .align import TagAlign
from .config import Settings
from .doctor import TagDoctor
from .errors import Diagnostic
from .fill import TagFill
from .sorting import TagSort
from .source import SourceFile, parse_source

STDIN_NAME = "<standard input>"


class Pass(Protocol):
    diagnostics: list[Diagnostic]

    def scan(self) -> None:
        ...

    def execute(self) -> None:
        ...


@dataclass(frozen=True)
class FormatResult:
    text: str
    changed: bool
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(diag.severity == "error" for diag in self.diagnostics)


def build_passes(source: SourceFile, settings: Settings, path: str = STDIN_NAME) -> list[Pass]:
    passes: list[Pass] = [TagDoctor(source, settings.selectors, path)]
    if settings.fill_rules:
        passes.append(TagFill(source, settings.selectors, list(settings.fill_rules)))
    if settings.sort_policy is not None:
        passes.append(TagSort(source, settings.selectors, settings.sort_policy))
    if settings.align:
        passes.append(TagAlign(source, settings.selectors, settings.tab_width))
    return passes


def run_passes(passes: list[Pass]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for stage in passes:
        stage.scan()
        stage.execute()
        diagnostics.extend(stage.diagnostics)
    return diagnostics


def format_source(text: str, settings: Settings, path: str = STDIN_NAME) -> FormatResult:
    source = parse_source(text)
    diagnostics = run_passes(build_passes(source, settings, path))
    new_text = source.render()
    return FormatResult(text=new_text, changed=new_text != text, diagnostics=diagnostics)
