from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Diagnostic:
    path: str
    line: int
    col: int
    severity: str
    code: str
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "line": self.line,
            "col": self.col,
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
        }

    def format(self) -> str:
        return f"{self.path}:{self.line}:{self.col}: {self.severity}: {self.code} {self.message}"


class TagError(ValueError):
    code = "TAG_INVALID"
    reason = "invalid tag"

    def __init__(self, offset: int, detail: str = "") -> None:
        message = f"{self.reason} at offset {offset}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.offset = offset
        self.detail = detail


class UnclosedQuote(TagError):
    code = "TAG_UNCLOSED_QUOTE"
    reason = "unclosed quote"


class UnclosedBracket(TagError):
    code = "TAG_UNCLOSED_BRACKET"
    reason = "unclosed bracket"

    def __init__(self, offset: int, depth: int, detail: str = "") -> None:
        super().__init__(offset, detail)
        self.depth = depth


class InvalidTag(TagError):
    code = "TAG_INVALID"
    reason = "invalid tag"


class ConfigError(RuntimeError):
    pass


class InvalidFillRule(ConfigError):
    pass


class InvalidSortWeight(ConfigError):
    pass


class InvalidSelectorPattern(ConfigError):
    pass


class SourceError(ValueError):
    def __init__(self, line: int, message: str) -> None:
        super().__init__(f"{line}: {message}")
        self.line = line
        self.message = message
