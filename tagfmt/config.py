from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from .align import DEFAULT_TAB_WIDTH
from .errors import ConfigError
from .fill import FillRule, parse_fill_rules
from .selector import MATCH_ALL, Selector, Selectors
from .sorting import SortPolicy, parse_sort_order, parse_sort_weights


@dataclass(frozen=True)
class Options:
    pattern: str = MATCH_ALL
    inverse_pattern: str = ""
    struct_pattern: str = MATCH_ALL
    inverse_struct_pattern: str = ""
    sort: bool = False
    sort_order: str = ""
    sort_weight: str = ""
    fill: str = ""
    align: bool = True
    tab_width: int = DEFAULT_TAB_WIDTH

    def compile(self) -> "Settings":
        if self.tab_width < 1:
            raise ConfigError(f"CONFIG_INVALID_VALUE: tab_width must be positive, got {self.tab_width}")
        selectors = Selectors(
            field=Selector.from_patterns(self.pattern, self.inverse_pattern),
            struct=Selector.from_patterns(self.struct_pattern, self.inverse_struct_pattern),
        )
        sort_policy = None
        if self.sort:
            sort_policy = SortPolicy(
                order=parse_sort_order(self.sort_order),
                weights=parse_sort_weights(self.sort_weight),
            )
        return Settings(
            selectors=selectors,
            fill_rules=tuple(parse_fill_rules(self.fill)),
            sort_policy=sort_policy,
            align=self.align,
            tab_width=self.tab_width,
        )


@dataclass(frozen=True)
class Settings:
    selectors: Selectors
    fill_rules: tuple[FillRule, ...]
    sort_policy: Optional[SortPolicy]
    align: bool
    tab_width: int


OPTION_TYPES: dict[str, type] = {item.name: type(item.default) for item in fields(Options)}


def load_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"CONFIG_NOT_FOUND: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"CONFIG_INVALID_JSON: {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"CONFIG_INVALID_JSON: {path}: top level must be an object")
    return check_values(raw, str(path))


def check_values(raw: Mapping[str, Any], origin: str) -> dict[str, Any]:
    unknown = sorted(set(raw) - set(OPTION_TYPES))
    if unknown:
        raise ConfigError(f"CONFIG_UNKNOWN_KEY: {origin}: {', '.join(unknown)}")
    for key, value in raw.items():
        expected = OPTION_TYPES[key]
        if type(value) is not expected:
            raise ConfigError(
                f"CONFIG_INVALID_VALUE: {origin}: {key} must be {expected.__name__}, got {type(value).__name__}"
            )
    return dict(raw)


def build_options(file_values: Mapping[str, Any], overrides: Mapping[str, Any]) -> Options:
    merged = dict(file_values)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return Options(**check_values(merged, "options"))
