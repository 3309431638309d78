from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from .errors import Diagnostic, InvalidFillRule, TagError
from .models import Entry, Field, PendingEdit
from .selector import Selectors
from .source import SourceFile
from .tag import is_key_char, lookup, parse, serialize

FIELD_NAME_PLACEHOLDER = "_val"
RULE_SEPARATOR = "|"

WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+[0-9]*|[A-Z]+[0-9]*|[0-9]+")
RULE_RE = re.compile(
    r"^(?P<key>[^=\s\"]+)\s*=\s*"
    r"(?:(?P<transform>[A-Za-z_][A-Za-z0-9_]*)\s*\(\s*(?P<arg>[^()\s]*)\s*\)|(?P<bare>[^()\s]+))$"
)


def split_words(name: str) -> list[str]:
    return WORD_RE.findall(name)


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def to_snake(name: str) -> str:
    return "_".join(word.lower() for word in split_words(name))


def to_kebab(name: str) -> str:
    return "-".join(word.lower() for word in split_words(name))


def to_camel(name: str) -> str:
    words = split_words(name)
    if not words:
        return ""
    return words[0].lower() + "".join(_capitalize(word) for word in words[1:])


def to_pascal(name: str) -> str:
    return "".join(_capitalize(word) for word in split_words(name))


TRANSFORMS: dict[str, Callable[[str], str]] = {
    "identity": lambda name: name,
    "lower": str.lower,
    "upper": str.upper,
    "snake": to_snake,
    "camel": to_camel,
    "pascal": to_pascal,
    "kebab": to_kebab,
}


@dataclass(frozen=True)
class FillRule:
    key: str
    transform: str
    placeholder: str = FIELD_NAME_PLACEHOLDER

    def derive(self, source: str) -> str:
        return TRANSFORMS[self.transform](source)


def parse_fill_rules(text: str) -> list[FillRule]:
    rules: list[FillRule] = []
    for item in text.split(RULE_SEPARATOR):
        item = item.strip()
        if not item:
            continue
        match = RULE_RE.match(item)
        if not match:
            raise InvalidFillRule(f"E_FILL_RULE_INVALID: {item!r}: expected key=transform(placeholder)")
        key = match.group("key")
        if not all(is_key_char(ch) for ch in key):
            raise InvalidFillRule(f"E_FILL_RULE_INVALID: {item!r}: key {key!r} is not a valid tag key")
        if match.group("bare") is not None:
            transform = "identity"
            placeholder = match.group("bare")
            if placeholder in TRANSFORMS:
                raise InvalidFillRule(
                    f"E_FILL_RULE_INVALID: {item!r}: transform {placeholder!r} needs a placeholder, "
                    f"e.g. {placeholder}({FIELD_NAME_PLACEHOLDER})"
                )
        else:
            transform = match.group("transform")
            placeholder = match.group("arg") or FIELD_NAME_PLACEHOLDER
        if transform not in TRANSFORMS:
            known = ", ".join(sorted(TRANSFORMS))
            raise InvalidFillRule(f"E_FILL_TRANSFORM_UNKNOWN: {transform!r} in {item!r} (known: {known})")
        rules.append(FillRule(key=key, transform=transform, placeholder=placeholder))
    return rules


class TagFill:
    def __init__(self, source: SourceFile, selectors: Selectors, rules: list[FillRule]) -> None:
        self.source = source
        self.selectors = selectors
        self.rules = rules
        self.edits: list[PendingEdit] = []
        self.diagnostics: list[Diagnostic] = []

    def scan(self) -> None:
        for item in self.source.fields:
            if not self.selectors.accepts(item):
                continue
            entries: list[Entry] = []
            if item.has_tag:
                try:
                    entries = parse(item.tag)
                except TagError:
                    continue
            updated, changed = self._fill(item, entries)
            if changed:
                self.edits.append(PendingEdit(item, serialize(updated)))

    def execute(self) -> None:
        for edit in self.edits:
            edit.apply()
        self.edits = []

    def _fill(self, item: Field, entries: list[Entry]) -> tuple[list[Entry], bool]:
        updated = list(entries)
        changed = False
        for rule in self.rules:
            existing = lookup(updated, rule.key)
            if existing is not None and existing.value:
                continue
            value = rule.derive(_placeholder_source(item, entries, rule.placeholder))
            if not value:
                continue
            if existing is None:
                updated.append(Entry(key=rule.key, value=value, index=len(updated)))
            else:
                updated[updated.index(existing)] = Entry(key=existing.key, value=value, index=existing.index)
            changed = True
        return updated, changed


def _placeholder_source(item: Field, entries: list[Entry], placeholder: str) -> str:
    if placeholder != FIELD_NAME_PLACEHOLDER:
        entry = lookup(entries, placeholder)
        if entry is not None and entry.name():
            return entry.name()
    return item.name
