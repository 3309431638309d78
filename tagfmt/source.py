from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .errors import SourceError
from .models import Field

OPEN_BRACKETS = "([{"
CLOSE_BRACKETS = ")]}"

_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
}
# prefix length, digit count, base; \x and octal escapes are single bytes
_BYTE_ESCAPES = {
    "x": (2, 2, 16),
    **{digit: (1, 3, 8) for digit in "01234567"},
}
_RUNE_ESCAPES = {
    "u": (2, 4, 16),
    "U": (2, 8, 16),
}
_DIGITS = {8: "01234567", 16: "0123456789abcdefABCDEF"}
# undecodable bytes are carried as lone surrogates, see bytes.decode(errors="surrogateescape")
_RAW_BYTE_LOW = 0xDC80
_RAW_BYTE_HIGH = 0xDCFF
_QUOTE_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int
    line: int
    end_line: int

    def is_op(self, text: str) -> bool:
        return self.kind == "op" and self.text == text

    def is_word(self, text: str) -> bool:
        return self.kind == "ident" and self.text == text


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    length = len(text)
    index = 0
    line = 1

    while index < length:
        ch = text[index]
        next_two = text[index : index + 2]

        if ch == "\n":
            tokens.append(Token("newline", ch, index, index + 1, line, line))
            line += 1
            index += 1
            continue
        if ch in " \t\r\f\ufeff":
            index += 1
            continue

        if next_two == "//":
            end = text.find("\n", index)
            index = length if end == -1 else end
            continue
        if next_two == "/*":
            end = text.find("*/", index + 2)
            if end == -1:
                raise SourceError(line, "comment not terminated")
            newlines = text.count("\n", index, end)
            if newlines:
                tokens.append(Token("newline", "", index, end + 2, line, line + newlines))
                line += newlines
            index = end + 2
            continue

        if ch == "`":
            end = text.find("`", index + 1)
            if end == -1:
                raise SourceError(line, "raw string literal not terminated")
            newlines = text.count("\n", index, end)
            tokens.append(Token("raw", text[index : end + 1], index, end + 1, line, line + newlines))
            line += newlines
            index = end + 1
            continue

        if ch in ('"', "'"):
            end = index + 1
            escape = False
            while True:
                if end >= length or text[end] == "\n":
                    raise SourceError(line, "string literal not terminated")
                current = text[end]
                if escape:
                    escape = False
                elif current == "\\":
                    escape = True
                elif current == ch:
                    break
                end += 1
            kind = "string" if ch == '"' else "char"
            tokens.append(Token(kind, text[index : end + 1], index, end + 1, line, line))
            index = end + 1
            continue

        if ch.isalnum() or ch == "_":
            end = index + 1
            while end < length and (text[end].isalnum() or text[end] == "_"):
                end += 1
            tokens.append(Token("ident", text[index:end], index, end, line, line))
            index = end
            continue

        tokens.append(Token("op", ch, index, index + 1, line, line))
        index += 1

    return tokens


def _escape_value(body: str, index: int, spec: tuple[int, int, int], literal: str, line: int) -> int:
    skip, width, base = spec
    digits = body[index + skip : index + skip + width]
    if len(digits) != width or any(ch not in _DIGITS[base] for ch in digits):
        raise SourceError(line, f"invalid escape sequence in {literal}")
    return int(digits, base)


def unquote(literal: str, line: int = 0) -> str:
    if literal.startswith("`"):
        return literal[1:-1]
    body = literal[1:-1]
    out = bytearray()
    index = 0
    while index < len(body):
        ch = body[index]
        if ch != "\\":
            out += ch.encode("utf-8", "surrogateescape")
            index += 1
            continue
        nxt = body[index + 1] if index + 1 < len(body) else ""
        if nxt in _ESCAPES:
            out += _ESCAPES[nxt].encode("utf-8")
            index += 2
            continue
        if nxt in _BYTE_ESCAPES:
            value = _escape_value(body, index, _BYTE_ESCAPES[nxt], literal, line)
            if value > 0xFF:
                raise SourceError(line, f"octal escape value > 255 in {literal}")
            out.append(value)
            index += sum(_BYTE_ESCAPES[nxt][:2])
            continue
        if nxt in _RUNE_ESCAPES:
            value = _escape_value(body, index, _RUNE_ESCAPES[nxt], literal, line)
            if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
                raise SourceError(line, f"escape sequence is invalid Unicode code point in {literal}")
            out += chr(value).encode("utf-8")
            index += sum(_RUNE_ESCAPES[nxt][:2])
            continue
        raise SourceError(line, f"unknown escape sequence \\{nxt}")
    return out.decode("utf-8", "surrogateescape")


def _is_raw_byte(ch: str) -> bool:
    return _RAW_BYTE_LOW <= ord(ch) <= _RAW_BYTE_HIGH


def quote(content: str, delimiter: str = "`") -> str:
    if delimiter == "`" and "`" not in content and not any(_is_raw_byte(ch) for ch in content):
        return f"`{content}`"
    out = ['"']
    for ch in content:
        if ch in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[ch])
        elif ord(ch) < 0x20 or ch == "\x7f":
            out.append(f"\\x{ord(ch):02x}")
        elif _is_raw_byte(ch):
            out.append(f"\\x{ord(ch) - 0xDC00:02x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


@dataclass
class SourceFile:
    text: str
    fields: list[Field] = field(default_factory=list)

    def tagged(self) -> list[Field]:
        return [item for item in self.fields if item.has_tag]

    def changed(self) -> bool:
        return any(item.changed for item in self.fields)

    def position(self, offset: int) -> tuple[int, int]:
        line = self.text.count("\n", 0, offset) + 1
        col = offset - (self.text.rfind("\n", 0, offset) + 1) + 1
        return line, col

    def render(self) -> str:
        replacements: list[tuple[int, int, str]] = []
        for item in self.fields:
            if not item.changed or item.tag is None:
                continue
            if item.tag == item.original_tag:
                literal = item.original_literal
            else:
                literal = quote(item.tag, item.quote)
            if item.tag_start is None:
                replacements.append((item.decl_end, item.decl_end, (item.gap or " ") + literal))
            else:
                replacements.append((item.decl_end, item.tag_end, item.gap + literal))

        new_text = self.text
        for start, end, replacement in sorted(replacements, key=lambda r: r[0], reverse=True):
            new_text = new_text[:start] + replacement + new_text[end:]
        return new_text


class _StructParser:
    def __init__(self, text: str, tokens: list[Token]) -> None:
        self.text = text
        self.tokens = tokens
        self.struct_names: dict[int, str] = {}
        self.fields: list[Field] = []

    def run(self) -> list[Field]:
        index = 0
        while index < len(self.tokens):
            tok = self.tokens[index]
            if tok.is_word("type"):
                self._note_type_specs(index)
            if tok.is_word("struct") and self._peek(index + 1).is_op("{"):
                index = self._parse_struct(index, self.struct_names.get(index, ""))
                continue
            index += 1

        self.fields.sort(key=lambda item: item.start)
        for position, item in enumerate(self.fields):
            item.index = position
        return self.fields

    def _peek(self, index: int) -> Token:
        if index < len(self.tokens):
            return self.tokens[index]
        end = len(self.text)
        last_line = self.tokens[-1].end_line if self.tokens else 1
        return Token("eof", "", end, end, last_line, last_line)

    def _take(self, index: int, what: str) -> Token:
        tok = self._peek(index)
        if tok.kind == "eof":
            raise SourceError(tok.line, f"unexpected end of file in {what}")
        return tok

    def _skip_balanced(self, index: int) -> int:
        depth = 0
        while True:
            tok = self._take(index, "bracketed expression")
            if tok.kind == "op" and tok.text in OPEN_BRACKETS:
                depth += 1
            elif tok.kind == "op" and tok.text in CLOSE_BRACKETS:
                depth -= 1
                if depth == 0:
                    return index + 1
            index += 1

    def _note_type_specs(self, index: int) -> None:
        nxt = self._peek(index + 1)
        if nxt.kind == "ident":
            self._note_spec(index + 1)
            return
        if not nxt.is_op("("):
            return
        depth = 1
        at_spec_start = True
        cursor = index + 2
        while depth > 0:
            tok = self._take(cursor, "type declaration")
            if tok.kind == "op" and tok.text in OPEN_BRACKETS:
                depth += 1
            elif tok.kind == "op" and tok.text in CLOSE_BRACKETS:
                depth -= 1
            if depth == 1 and at_spec_start and tok.kind == "ident":
                self._note_spec(cursor)
            at_spec_start = depth == 1 and (tok.kind == "newline" or tok.is_op(";") or tok.is_op("("))
            cursor += 1

    def _note_spec(self, index: int) -> None:
        name = self.tokens[index].text
        cursor = index + 1
        if self._peek(cursor).is_op("["):
            cursor = self._skip_balanced(cursor)
        if self._peek(cursor).is_op("="):
            cursor += 1
        if self._peek(cursor).is_word("struct"):
            self.struct_names[cursor] = name

    def _parse_struct(self, index: int, name: str) -> int:
        scope = self.tokens[index].start
        cursor = index + 2
        while True:
            tok = self._take(cursor, f"struct {name}".strip())
            if tok.kind == "newline" or tok.is_op(";"):
                cursor += 1
                continue
            if tok.is_op("}"):
                return cursor + 1
            cursor = self._parse_field(cursor, name, scope)

    def _parse_field(self, index: int, name: str, scope: int) -> int:
        decl: list[Token] = []
        depth = 0
        cursor = index
        while True:
            tok = self._take(cursor, f"struct {name}".strip())
            if depth == 0 and (tok.kind == "newline" or tok.is_op(";") or tok.is_op("}")):
                break
            if tok.is_word("struct") and self._peek(cursor + 1).is_op("{"):
                end = self._parse_struct(cursor, name)
                decl.append(tok)
                decl.append(self.tokens[end - 1])
                cursor = end
                continue
            if tok.kind == "op" and tok.text in OPEN_BRACKETS:
                depth += 1
            elif tok.kind == "op" and tok.text in CLOSE_BRACKETS:
                depth -= 1
            cursor += 1
            if tok.kind != "newline":
                decl.append(tok)

        if decl:
            self.fields.append(self._build_field(decl, name, scope))
        return cursor

    def _build_field(self, decl: list[Token], name: str, scope: int) -> Field:
        tag_tok: Optional[Token] = None
        if len(decl) > 1 and decl[-1].kind in ("raw", "string"):
            tag_tok = decl.pop()
        names, embedded = _field_names(decl)

        last = decl[-1]
        decl_end = last.end
        line_start = self.text.rfind("\n", 0, decl_end) + 1
        item = Field(
            index=len(self.fields),
            names=names,
            struct=name,
            scope=scope,
            line=decl[0].line,
            end_line=(tag_tok or last).end_line,
            decl_end=decl_end,
            embedded=embedded,
            start=decl[0].start,
            decl_text=self.text[line_start:decl_end],
        )
        if tag_tok is not None:
            content = unquote(tag_tok.text, tag_tok.line)
            gap = self.text[decl_end : tag_tok.start]
            item.tag_start = tag_tok.start
            item.tag_end = tag_tok.end
            item.quote = tag_tok.text[0]
            item.original_literal = tag_tok.text
            item.original_tag = content
            item.tag = content
            item.original_gap = gap
            item.gap = gap
        return item


def _field_names(decl: list[Token]) -> tuple[tuple[str, ...], bool]:
    cursor = 1 if decl[0].is_op("*") else 0
    if cursor < len(decl) and decl[cursor].kind == "ident":
        last = decl[cursor]
        cursor += 1
        if cursor + 1 < len(decl) and decl[cursor].is_op(".") and decl[cursor + 1].kind == "ident":
            last = decl[cursor + 1]
            cursor += 2
        if cursor < len(decl) and decl[cursor].is_op("["):
            depth = 0
            while cursor < len(decl):
                tok = decl[cursor]
                cursor += 1
                if tok.kind == "op" and tok.text in OPEN_BRACKETS:
                    depth += 1
                elif tok.kind == "op" and tok.text in CLOSE_BRACKETS:
                    depth -= 1
                    if depth == 0:
                        break
        if cursor == len(decl):
            return (last.text,), True

    names: list[str] = []
    cursor = 0
    while cursor < len(decl) and decl[cursor].kind == "ident":
        names.append(decl[cursor].text)
        cursor += 1
        if cursor < len(decl) and decl[cursor].is_op(","):
            cursor += 1
            continue
        break
    return tuple(names), False


def parse_source(text: str) -> SourceFile:
    tokens = tokenize(text)
    fields = _StructParser(text, tokens).run()
    return SourceFile(text=text, fields=fields)
