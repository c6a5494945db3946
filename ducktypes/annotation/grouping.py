"""Build the nested token tree mirroring an annotation's parenthesisation."""

from __future__ import annotations

from typing import Sequence, Union

from ..exceptions import AnnotationSyntaxError
from .lexer import GROUP_CLOSE, GROUP_OPEN, Token

__all__ = ["TokenTree", "build_tree"]

TokenTree = list[Union[Token, "TokenTree"]]


def build_tree(tokens: Sequence[Token]) -> TokenTree:
    """Return the grouped tree for a flat token sequence.

    The builder keeps an insertion cursor into the current sequence and an
    explicit stack of ``(index, parent)`` pairs, one per open group.  A closed
    group occupies exactly one slot of its parent.
    """

    tree: TokenTree = []
    current = tree
    index = 0
    stack: list[tuple[int, TokenTree]] = []

    for token in tokens:
        if token.kind == GROUP_OPEN:
            if index < len(current):
                index += 1
            group: TokenTree = []
            _place(current, index, group)
            stack.append((index, current))
            current = group
            index = 0
        elif token.kind == GROUP_CLOSE:
            if not stack:
                raise AnnotationSyntaxError("Unexpected `)` without a matching opening group")
            index, current = stack.pop()
            index += 1
        else:
            _place(current, index, token)
            index += 1

    if stack:
        raise AnnotationSyntaxError(f"Unclosed group: {len(stack)} opening group(s) never closed")
    return tree


def _place(sequence: TokenTree, index: int, item: Token | TokenTree) -> None:
    if index == len(sequence):
        sequence.append(item)
    else:
        sequence[index] = item
