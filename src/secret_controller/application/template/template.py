"""Template – a parsed template rendered against a per-call function table."""
from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Mapping

from secret_controller.application.template.nodes import CallNode, LiteralNode, Node, TextNode
from secret_controller.application.template.parser import parse
from secret_controller.kernel.errors import TemplateSyntaxError

TemplateFunction = Callable[..., Awaitable[str]]


class Template:
    """Parsed template.

    Usage::

        tpl = Template.parse('user=[[ secretValue "db#user" ]]', name="dsn")
        text = await tpl.render({"secretValue": lookup})

    Every call is checked against *functions* before the first one runs, so
    a template naming an unknown function, or passing the wrong number of
    arguments, fails without side effects.
    """

    def __init__(self, name: str, nodes: list[Node]) -> None:
        self.name = name
        self.nodes = nodes

    @classmethod
    def parse(cls, text: str, name: str = "") -> "Template":
        return cls(name, parse(text, name))

    @property
    def calls(self) -> list[CallNode]:
        return [node for node in self.nodes if isinstance(node, CallNode)]

    def check(self, functions: Mapping[str, TemplateFunction]) -> None:
        for call in self.calls:
            fn = functions.get(call.name)
            if fn is None:
                raise TemplateSyntaxError(
                    f'function "{call.name}" not defined', template=self.name, position=call.position
                )
            try:
                inspect.signature(fn).bind(*call.args)
            except TypeError:
                raise TemplateSyntaxError(
                    f"wrong number of args for {call.name}: got {len(call.args)}",
                    template=self.name,
                    position=call.position,
                ) from None

    async def render(self, functions: Mapping[str, TemplateFunction]) -> str:
        self.check(functions)
        out: list[str] = []
        for node in self.nodes:
            match node:
                case TextNode(text=text):
                    out.append(text)
                case LiteralNode(value=value):
                    out.append(value)
                case CallNode(name=name, args=args):
                    out.append(str(await functions[name](*args)))
        return "".join(out)


async def render(text: str, functions: Mapping[str, TemplateFunction], name: str = "") -> str:
    """Parse and render *text* in one step."""
    return await Template.parse(text, name).render(functions)


__all__ = ["Template", "TemplateFunction", "render"]
