"""Lexer for the annotation mini-language.

The surface syntax is small but context sensitive: ``{|`` opens an exact shape
while ``|`` alone is a union, ``?`` marks an optional type except inside
``key?:``, and ``[`` opens either a tuple or an array suffix.  Rather than a
character-by-character scanner the lexer rewrites the source into a canonical
form where every composite construct is one marker character followed by a
parenthesised group, and then splits that form on the separator set.

Marker characters are reserved: an annotation that contains any of them
outside a string literal is rejected before rewriting starts.  String literals
are set aside first and restored token by token, so their content (whitespace
included) reaches the parser unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..exceptions import AnnotationSyntaxError, UnsupportedAnnotationError

__all__ = [
    "ARRAY",
    "ARRAY_SUFFIX",
    "COLON",
    "COMMA",
    "EXACT_SHAPE",
    "GROUP_CLOSE",
    "GROUP_OPEN",
    "INTERSECTION",
    "MARKERS",
    "NAME",
    "OPTIONAL",
    "OPTIONAL_KEY_SENTINEL",
    "RESERVED_CHARACTERS",
    "SHAPE",
    "TUPLE",
    "Token",
    "UNION",
    "tokenize",
]


GROUP_OPEN = "GROUP_OPEN"
GROUP_CLOSE = "GROUP_CLOSE"
UNION = "UNION"
INTERSECTION = "INTERSECTION"
OPTIONAL = "OPTIONAL"
COMMA = "COMMA"
COLON = "COLON"
EXACT_SHAPE = "EXACT_SHAPE"
SHAPE = "SHAPE"
ARRAY = "ARRAY"
TUPLE = "TUPLE"
ARRAY_SUFFIX = "ARRAY_SUFFIX"
NAME = "NAME"

# Composite markers introduced by the rewrite step.
MARKERS: dict[str, str] = {
    "#": EXACT_SHAPE,
    "@": SHAPE,
    "~": ARRAY,
    "^": TUPLE,
    "$": ARRAY_SUFFIX,
}

RESERVED_CHARACTERS = frozenset(MARKERS)

# Masks the ``?`` of ``key?:`` so it is not read as the optional-type operator.
OPTIONAL_KEY_SENTINEL = "¿"

_PUNCTUATION: dict[str, str] = {
    "(": GROUP_OPEN,
    ")": GROUP_CLOSE,
    "|": UNION,
    "&": INTERSECTION,
    "?": OPTIONAL,
    ",": COMMA,
    ":": COLON,
    **MARKERS,
}

_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_WHITESPACE = re.compile(r"[ \t\r\n]+")
_PLACEHOLDER_MARK = "\x00"
_PLACEHOLDER = re.compile(_PLACEHOLDER_MARK + r"(\d+)" + _PLACEHOLDER_MARK)
_STRING_LITERAL = re.compile(r"""(["'])(?:\\.|(?!\1)[^\\\n])*\1""")
_QUOTED_KEY = re.compile(
    _PLACEHOLDER_MARK + r"(\d+)" + _PLACEHOLDER_MARK + "(" + OPTIONAL_KEY_SENTINEL + "?):"
)
_OBJECT_KEY = re.compile(r"(?<![\w" + _PLACEHOLDER_MARK + r"])([\w" + OPTIONAL_KEY_SENTINEL + r"]+):")
_NAMED_INDEXER = re.compile(
    r"\[(\"[\w" + OPTIONAL_KEY_SENTINEL + r"]+\"|" + _PLACEHOLDER.pattern + r"):[^\[\]]+\]:"
)
_UNNAMED_INDEXER = re.compile(r"\[([^\[\]]+)\]:")
_SEPARATORS = re.compile(r"([()&|?#@$^~:,])")

# Leading operators right after an opening construct are tolerated and dropped.
_DANGLING_OPERATORS = (":|", ":&", "[|", "[&", "(|", "(&")


@dataclass(slots=True, frozen=True)
class Token:
    """Single lexical token: a structural marker or a leaf name/literal."""

    kind: str
    value: str

    @property
    def is_marker(self) -> bool:
        return self.kind != NAME

    def __str__(self) -> str:
        return self.value


def tokenize(annotation: str) -> list[Token]:
    """Return the flat token sequence for ``annotation``."""

    if not isinstance(annotation, str):
        raise TypeError(f"annotation must be a string, received {type(annotation).__name__}")
    source, literals = _rewrite(annotation)
    return [
        _classify(_restore(fragment, literals))
        for fragment in _SEPARATORS.split(source)
        if fragment
    ]


def rewrite(annotation: str) -> str:
    """Rewrite surface syntax into the canonical marker form.

    >>> rewrite("{| name: string, tags?: string[] |}")
    '#("name":string,"tags¿":string$)'
    """

    source, literals = _rewrite(annotation)
    return _restore(source, literals)


def _rewrite(annotation: str) -> tuple[str, list[str]]:
    if _PLACEHOLDER_MARK in annotation:
        raise AnnotationSyntaxError("Annotation contains a NUL character", annotation=annotation)

    # String literals are set aside so no rewrite below can touch their content.
    literals: list[str] = []

    def _mask(match: re.Match[str]) -> str:
        literals.append(match.group(0))
        return f"{_PLACEHOLDER_MARK}{len(literals) - 1}{_PLACEHOLDER_MARK}"

    source = _STRING_LITERAL.sub(_mask, annotation)
    source = _COMMENT.sub("", source)
    source = _WHITESPACE.sub("", source)

    source = source.strip("|&")
    for dangling in _DANGLING_OPERATORS:
        source = source.replace(dangling, dangling[0])

    reserved = sorted(RESERVED_CHARACTERS.intersection(source))
    if reserved:
        raise AnnotationSyntaxError(
            f"Any of `{''.join(sorted(RESERVED_CHARACTERS))}` are reserved for notations, "
            f"found `{''.join(reserved)}`",
            annotation=annotation,
        )

    # Object keys
    source = source.replace("?:", OPTIONAL_KEY_SENTINEL + ":")

    def _quoted_key(match: re.Match[str]) -> str:
        index = int(match.group(1))
        literals[index] = f'"{_unquote(literals[index])}{match.group(2)}"'
        return f"{_PLACEHOLDER_MARK}{index}{_PLACEHOLDER_MARK}:"

    source = _QUOTED_KEY.sub(_quoted_key, source)
    source = _OBJECT_KEY.sub(r'"\1":', source)

    source = source.replace("{|", "#(").replace("|}", ")")
    source = source.replace("{", "@(").replace("}", ")")

    if _NAMED_INDEXER.search(source):
        raise UnsupportedAnnotationError(
            "Naming indexer is not supported, use an unnamed indexer such as `[string]: T`",
            annotation=annotation,
        )
    source = _UNNAMED_INDEXER.sub(r"\1:", source)

    # Arrays and tuples
    source = source.replace("[]", "$")
    source = source.replace("Array<", "~(").replace(">", ")")
    source = source.replace("[", "^(").replace("]", ")")
    return source, literals


def _restore(text: str, literals: list[str]) -> str:
    return _PLACEHOLDER.sub(lambda match: literals[int(match.group(1))], text)


def _unquote(literal: str) -> str:
    quote = literal[0]
    return literal[1:-1].replace("\\" + quote, quote)


def _classify(fragment: str) -> Token:
    kind = _PUNCTUATION.get(fragment, NAME)
    return Token(kind, fragment)
