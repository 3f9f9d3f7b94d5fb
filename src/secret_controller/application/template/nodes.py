"""Template AST – text, string literals and single function calls."""
from __future__ import annotations

import dataclasses
from typing import TypeAlias


@dataclasses.dataclass(frozen=True)
class TextNode:
    """Literal text outside any action."""

    text: str


@dataclasses.dataclass(frozen=True)
class LiteralNode:
    """``[[ "value" ]]`` – renders the string itself."""

    value: str
    position: int = 0


@dataclasses.dataclass(frozen=True)
class CallNode:
    """``[[ name "arg" ... ]]`` – renders the result of one function call."""

    name: str
    args: tuple[str, ...] = ()
    position: int = 0


Node: TypeAlias = TextNode | LiteralNode | CallNode

__all__ = ["CallNode", "LiteralNode", "Node", "TextNode"]
