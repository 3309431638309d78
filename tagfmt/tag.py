from __future__ import annotations

from typing import Iterable, Optional

from .errors import InvalidTag, UnclosedBracket, UnclosedQuote
from .models import Entry


def is_key_char(ch: str) -> bool:
    return ch > " " and ch not in (":", '"', "\x7f")


def parse(raw: str) -> list[Entry]:
    entries: list[Entry] = []
    length = len(raw)
    index = 0

    while True:
        while index < length and raw[index] == " ":
            index += 1
        if index >= length:
            break

        key_start = index
        while index < length and is_key_char(raw[index]):
            index += 1
        key = raw[key_start:index]
        if not key:
            raise InvalidTag(index, f"expected key, got {raw[index]!r}")
        if index >= length or raw[index] != ":":
            raise InvalidTag(index, f"key {key!r} is not followed by ':'")
        index += 1
        if index >= length or raw[index] != '"':
            raise InvalidTag(index, f"value of {key!r} does not start with '\"'")
        index += 1

        value_start = index
        depth = 0
        escape = False
        while True:
            if index >= length:
                raise UnclosedQuote(length, f"value of {key!r}")
            ch = raw[index]
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == "[":
                depth += 1
            elif ch == "]":
                depth = max(depth - 1, 0)
            elif ch == '"':
                break
            index += 1
        if depth > 0:
            raise UnclosedBracket(index, depth, f"value of {key!r}")

        entries.append(Entry(key=key, value=raw[value_start:index], index=len(entries)))
        index += 1
        if index < length and raw[index] != " ":
            raise InvalidTag(index, f"missing space after value of {key!r}")

    return entries


def serialize(entries: Iterable[Entry]) -> str:
    return " ".join(entry.to_text() for entry in entries)


def normalize(raw: str) -> str:
    return serialize(parse(raw))


def lookup(entries: Iterable[Entry], key: str) -> Optional[Entry]:
    for entry in entries:
        if entry.key == key:
            return entry
    return None
