"""Template parser – turns ``[[ ... ]]`` template text into a list of nodes.

Grammar inside the delimiters::

    action   := comment | literal | call
    comment  := "/*" ... "*/"
    literal  := STRING
    call     := IDENT STRING*
    STRING   := '"' (char | escape)* '"' | '`' raw-char* '`'

``[[- `` trims whitespace before the action and `` -]]`` trims whitespace
after it.  Anything else (variables, pipelines, nested calls, control
structures) is a :class:`TemplateSyntaxError`.
"""
from __future__ import annotations

import dataclasses
import re

from secret_controller.application.template.nodes import CallNode, LiteralNode, Node, TextNode
from secret_controller.kernel.errors import TemplateSyntaxError

LEFT_DELIM = "[["
RIGHT_DELIM = "]]"

_SPACE = " \t\r\n"
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r",
    "t": "\t", "v": "\v", "\\": "\\", '"': '"', "'": "'",
}
_HEX_ESCAPE_DIGITS = {"x": 2, "u": 4, "U": 8}
_KEYWORDS = frozenset({"block", "break", "continue", "define", "else", "end", "if", "range", "template", "with"})

_IDENT = "ident"
_STRING = "string"


@dataclasses.dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    position: int


class Parser:
    """Single-use parser for one template text."""

    def __init__(self, text: str, name: str = "") -> None:
        self._text = text
        self._name = name

    def _error(self, message: str, position: int) -> TemplateSyntaxError:
        line = self._text.count("\n", 0, position) + 1
        return TemplateSyntaxError(f"{line}: {message}", template=self._name, position=position)

    def parse(self) -> list[Node]:
        text = self._text
        nodes: list[Node] = []
        pos = 0
        trim_next = False
        while True:
            start = text.find(LEFT_DELIM, pos)
            chunk = text[pos:] if start < 0 else text[pos:start]
            if trim_next:
                chunk = chunk.lstrip(_SPACE)
            if start < 0:
                if chunk:
                    nodes.append(TextNode(chunk))
                return nodes

            inner = start + len(LEFT_DELIM)
            if text.startswith("-", inner) and inner + 1 < len(text) and text[inner + 1] in _SPACE:
                chunk = chunk.rstrip(_SPACE)
                inner += 2
            if chunk:
                nodes.append(TextNode(chunk))

            node, pos, trim_next = self._parse_action(inner, start)
            if node is not None:
                nodes.append(node)

    def _close(self, pos: int) -> tuple[int, bool] | None:
        """Return ``(end, trim)`` when a right delimiter starts at *pos*."""
        text = self._text
        if text.startswith(RIGHT_DELIM, pos):
            return pos + len(RIGHT_DELIM), False
        if text[pos] in _SPACE and text.startswith("-" + RIGHT_DELIM, pos + 1):
            return pos + 1 + 1 + len(RIGHT_DELIM), True
        return None

    def _parse_action(self, pos: int, action_start: int) -> tuple[Node | None, int, bool]:
        text = self._text
        if text.startswith("/*", pos):
            end = text.find("*/", pos + 2)
            if end < 0:
                raise self._error("unclosed comment", action_start)
            pos = end + 2
            closed = self._close(pos) if pos < len(text) else None
            if closed is None:
                raise self._error("comment ends before closing delimiter", action_start)
            return None, closed[0], closed[1]

        tokens: list[_Token] = []
        while True:
            if pos >= len(text):
                raise self._error("unclosed action", action_start)
            closed = self._close(pos)
            if closed is not None:
                return self._build(tokens, action_start), closed[0], closed[1]
            ch = text[pos]
            if ch in _SPACE:
                pos += 1
            elif ch == '"':
                value, end = self._lex_quoted(pos)
                tokens.append(_Token(_STRING, value, pos))
                pos = end
            elif ch == "`":
                end = text.find("`", pos + 1)
                if end < 0:
                    raise self._error("unterminated raw quoted string", pos)
                tokens.append(_Token(_STRING, text[pos + 1:end], pos))
                pos = end + 1
            else:
                match = _IDENT_RE.match(text, pos)
                if match is None:
                    raise self._error(f"unexpected {ch!r} in action", pos)
                tokens.append(_Token(_IDENT, match.group(), pos))
                pos = match.end()

    def _lex_quoted(self, pos: int) -> tuple[str, int]:
        text = self._text
        buf: list[str] = []
        i = pos + 1
        while i < len(text):
            ch = text[i]
            if ch == '"':
                return "".join(buf), i + 1
            if ch == "\n":
                break
            if ch != "\\":
                buf.append(ch)
                i += 1
                continue
            if i + 1 >= len(text):
                break
            esc = text[i + 1]
            if esc in _ESCAPES:
                buf.append(_ESCAPES[esc])
                i += 2
            elif esc in _HEX_ESCAPE_DIGITS:
                width = _HEX_ESCAPE_DIGITS[esc]
                digits = text[i + 2:i + 2 + width]
                try:
                    if len(digits) != width:
                        raise ValueError(digits)
                    buf.append(chr(int(digits, 16)))
                except ValueError:
                    raise self._error(f"invalid escape sequence \\{esc}{digits}", i) from None
                i += 2 + width
            else:
                raise self._error(f"unknown escape sequence \\{esc}", i)
        raise self._error("unterminated quoted string", pos)

    def _build(self, tokens: list[_Token], action_start: int) -> Node:
        if not tokens:
            raise self._error("missing value for command", action_start)
        head, args = tokens[0], tokens[1:]
        if head.kind == _STRING:
            if args:
                raise self._error(f"can't give argument to non-function {head.value!r}", args[0].position)
            return LiteralNode(head.value, position=head.position)
        if head.value in _KEYWORDS:
            raise self._error(f"unsupported action {head.value!r}", head.position)
        for arg in args:
            if arg.kind != _STRING:
                raise self._error(
                    f"argument {arg.value!r} to {head.value} must be a string literal", arg.position
                )
        return CallNode(head.value, tuple(arg.value for arg in args), position=head.position)


def parse(text: str, name: str = "") -> list[Node]:
    """Parse *text* into nodes; raises :class:`TemplateSyntaxError`."""
    return Parser(text, name).parse()


__all__ = ["LEFT_DELIM", "RIGHT_DELIM", "Parser", "parse"]
