"""Application template – the call-only ``[[ ... ]]`` expression language."""
from secret_controller.application.template.nodes import CallNode, LiteralNode, Node, TextNode
from secret_controller.application.template.parser import LEFT_DELIM, RIGHT_DELIM, Parser, parse
from secret_controller.application.template.template import Template, TemplateFunction, render

__all__ = [
    "LEFT_DELIM",
    "RIGHT_DELIM",
    "CallNode",
    "LiteralNode",
    "Node",
    "Parser",
    "Template",
    "TemplateFunction",
    "TextNode",
    "parse",
    "render",
]
