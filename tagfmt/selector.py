from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import InvalidSelectorPattern
from .models import Field

MATCH_ALL = ".*"


@dataclass(frozen=True)
class Selector:
    rule: re.Pattern[str]
    invert: bool = False

    @classmethod
    def compile(cls, pattern: str, invert: bool = False) -> "Selector":
        try:
            rule = re.compile(pattern)
        except re.error as exc:
            raise InvalidSelectorPattern(f"E_SELECTOR_PATTERN_INVALID: {pattern!r}: {exc}") from exc
        return cls(rule=rule, invert=invert)

    @classmethod
    def from_patterns(cls, pattern: str, inverse_pattern: str) -> "Selector":
        if inverse_pattern:
            return cls.compile(inverse_pattern, invert=True)
        return cls.compile(pattern or MATCH_ALL)

    def matches(self, name: str) -> bool:
        found = self.rule.search(name) is not None
        return not found if self.invert else found


@dataclass(frozen=True)
class Selectors:
    field: Selector
    struct: Selector

    @classmethod
    def all(cls) -> "Selectors":
        return cls(field=Selector.compile(MATCH_ALL), struct=Selector.compile(MATCH_ALL))

    def accepts(self, item: Field) -> bool:
        return self.field.matches(item.name) and self.struct.matches(item.struct)
