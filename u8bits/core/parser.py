"""Parser for the field declaration mini-language.

A generation unit is a sequence of entries, each declaring one field:

    /// foo is bit 4 of byte 0
    #[deprecated]
    foo: rw 0, 4;
    Mode, mode: rw? 1, 0, 1;
    flag: r 3;              # byte defaults to 0

Entries are parsed by recursive descent: one entry is consumed, then the
parser recurses on the remaining tokens until none are left.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from u8bits.core.exceptions import GrammarError
from u8bits.core.field_spec import Direction, FieldSpec, Metadata

DOC = "DOC"
ATTR = "ATTR"
IDENT = "IDENT"
INT = "INT"
PUNCT = "PUNCT"

_SKIP_RE = re.compile(r"[ \t\r\n]+")
_DOC_RE = re.compile(r"///([^\r\n]*)")
_COMMENT_RE = re.compile(r"(?:#(?!\[)|//(?!/))[^\n]*")
_INT_RE = re.compile(r"0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+|[0-9][0-9_]*")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*")
_PUNCT_RE = re.compile(r"[,:;?]")


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int
    column: int


class _Lexer:
    """Turns declaration text into a tuple of tokens."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.line_start = 0

    def tokenize(self) -> tuple[Token, ...]:
        tokens = []
        while self.pos < len(self.text):
            if self._skip(_SKIP_RE):
                continue
            column = self.pos - self.line_start + 1
            match = _DOC_RE.match(self.text, self.pos)
            if match:
                tokens.append(Token(DOC, _strip_doc(match.group(1)), self.line, column))
                self._advance(match.end())
                continue
            if self._skip(_COMMENT_RE):
                continue
            if self.text.startswith("#[", self.pos):
                tokens.append(Token(ATTR, self._scan_attribute(), self.line, column))
                continue
            for kind, pattern in ((INT, _INT_RE), (IDENT, _IDENT_RE), (PUNCT, _PUNCT_RE)):
                match = pattern.match(self.text, self.pos)
                if match:
                    tokens.append(Token(kind, match.group(0), self.line, column))
                    self._advance(match.end())
                    break
            else:
                raise GrammarError(
                    f"Unexpected character {self.text[self.pos]!r}", self.line, column
                )
        return tuple(tokens)

    def _skip(self, pattern: re.Pattern) -> bool:
        match = pattern.match(self.text, self.pos)
        if not match:
            return False
        self._advance(match.end())
        return True

    def _advance(self, end: int) -> None:
        chunk = self.text[self.pos:end]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.line_start = self.pos + chunk.rindex("\n") + 1
        self.pos = end

    def _scan_attribute(self) -> str:
        """Consume `#[ ... ]`, honoring nested brackets and quoted strings."""
        line, column = self.line, self.pos - self.line_start + 1
        start = self.pos + 2
        depth = 1
        quote = None
        i = start
        while i < len(self.text):
            ch = self.text[i]
            if quote:
                if ch == "\\":
                    i += 1
                elif ch == quote:
                    quote = None
            elif ch in "\"'":
                quote = ch
            elif ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    body = self.text[start:i].strip()
                    self._advance(i + 1)
                    return body
            i += 1
        raise GrammarError("Unterminated attribute", line, column)


def _strip_doc(text: str) -> str:
    # `/// foo` documents "foo"
    return text[1:] if text.startswith(" ") else text


def tokenize(text: str) -> tuple[Token, ...]:
    """Split declaration text into tokens."""
    return _Lexer(text).tokenize()


class FieldParser:
    """Recursive-descent parser producing FieldSpecs in declaration order."""

    def __init__(self, text: str):
        self.tokens = tokenize(text)

    def parse(self) -> tuple[FieldSpec, ...]:
        return self._entries(0)

    # Grammar rules ---------------------------------------------------------

    def _entries(self, pos: int) -> tuple[FieldSpec, ...]:
        specs = []
        while pos < len(self.tokens):
            spec, pos = self._entry(pos)
            specs.append(spec)
        return tuple(specs)

    def _entry(self, pos: int) -> tuple[FieldSpec, int]:
        metadata = []
        while self._peek(pos, DOC) or self._peek(pos, ATTR):
            token = self.tokens[pos]
            metadata.append(Metadata("doc" if token.kind == DOC else "attr", token.text))
            pos += 1

        first, pos = self._expect(pos, IDENT, "field identifier or type")
        semantic_type = None
        if self._peek(pos, PUNCT, ","):
            semantic_type = first.text
            ident, pos = self._expect(pos + 1, IDENT, "field identifier")
        else:
            ident = first
        if "." in ident.text:
            raise GrammarError(
                f"Invalid field identifier {ident.text!r}", ident.line, ident.column
            )
        _, pos = self._expect(pos, PUNCT, "':'", ":")

        direction, pos = self._direction(pos)
        args, pos = self._arguments(pos)
        _, pos = self._expect(pos, PUNCT, "';'", ";")

        return self._build(ident, semantic_type, direction, args, tuple(metadata)), pos

    def _direction(self, pos: int) -> tuple[Direction, int]:
        token, pos = self._expect(pos, IDENT, "direction (r, w, rw, r? or rw?)")
        text = token.text
        if self._peek(pos, PUNCT, "?"):
            text += "?"
            pos += 1
        direction = Direction.from_token(text)
        if direction is None:
            raise GrammarError(f"Unknown direction {text!r}", token.line, token.column)
        return direction, pos

    def _arguments(self, pos: int) -> tuple[list[int], int]:
        token, pos = self._expect(pos, INT, "position argument")
        args = [_int(token)]
        while self._peek(pos, PUNCT, ","):
            token, pos = self._expect(pos + 1, INT, "position argument")
            args.append(_int(token))
        return args, pos

    def _build(
        self,
        ident: Token,
        semantic_type: Optional[str],
        direction: Direction,
        args: list[int],
        metadata: tuple[Metadata, ...],
    ) -> FieldSpec:
        if semantic_type is None:
            if direction.fallible:
                raise GrammarError(
                    f"Fallible read '{direction.value}' needs a typed range field",
                    ident.line,
                    ident.column,
                )
            if len(args) not in (1, 2):
                raise GrammarError(
                    f"Bit field '{ident.text}' takes 'byte, bit' or 'bit', got {len(args)} arguments",
                    ident.line,
                    ident.column,
                )
            if len(args) == 1:
                args = [0] + args
            return FieldSpec.bit(ident.text, direction, args[0], args[1], metadata)

        if len(args) not in (2, 3):
            raise GrammarError(
                f"Range field '{ident.text}' takes 'byte, lsb, msb' or 'lsb, msb', got {len(args)} arguments",
                ident.line,
                ident.column,
            )
        if len(args) == 2:
            args = [0] + args
        return FieldSpec.bit_range(
            ident.text, semantic_type, direction, args[0], args[1], args[2], metadata
        )

    # Token helpers ---------------------------------------------------------

    def _peek(self, pos: int, kind: str, text: Optional[str] = None) -> bool:
        if pos >= len(self.tokens):
            return False
        token = self.tokens[pos]
        return token.kind == kind and (text is None or token.text == text)

    def _expect(
        self, pos: int, kind: str, what: str, text: Optional[str] = None
    ) -> tuple[Token, int]:
        if pos >= len(self.tokens):
            last = self.tokens[-1] if self.tokens else None
            raise GrammarError(
                f"Expected {what} but reached end of input",
                last.line if last else None,
                last.column if last else None,
            )
        token = self.tokens[pos]
        if not self._peek(pos, kind, text):
            raise GrammarError(f"Expected {what}, got {token.text!r}", token.line, token.column)
        return token, pos + 1


def _int(token: Token) -> int:
    text = token.text.replace("_", "")
    try:
        if text[:2].lower() in ("0x", "0b", "0o"):
            return int(text, 0)
        return int(text, 10)
    except ValueError as exc:
        raise GrammarError(
            f"Invalid integer literal {token.text!r}", token.line, token.column
        ) from exc


def parse_fields(text: str) -> tuple[FieldSpec, ...]:
    """Parse declaration text into FieldSpecs.

    Raises:
        GrammarError: if the text does not follow the field grammar
    """
    return FieldParser(text).parse()
