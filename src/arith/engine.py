"""Public entry points: text in, number (or a structured error) out."""

from __future__ import annotations

import logging

from arith.evaluator import Number, evaluate_tree
from arith.lexer import Lexer, Token
from arith.nodes import Node, depth
from arith.parser import DEFAULT_MAX_DEPTH, Parser

logger = logging.getLogger("arith.engine")


def tokenize(source: str) -> list[Token]:
    """Lex all of `source` eagerly; the last token is always END."""
    return list(Lexer(source))


def parse(source: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Node:
    """Parse `source` into an AST.

    Raises `LexError` or `ParseError`.
    """
    tree = Parser(Lexer(source), max_depth=max_depth).parse()
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Parsed %r into a tree of depth %d", source, depth(tree))
    return tree


def evaluate(source: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Number:
    """Parse and evaluate `source`, returning an int or a float.

    Raises `LexError`, `ParseError` or `EvalError` (all `ArithError`).
    """
    return evaluate_tree(parse(source, max_depth=max_depth))
