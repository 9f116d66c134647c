"""Free-text boolean query parser.

Grammar::

    expr     := and_expr ((OR)? and_expr)*
    and_expr := unary (AND unary)*
    unary    := (NOT | '-' | '+') unary | primary
    primary  := '(' expr ')' | TERM

Adjacent clauses, separated by whitespace or commas, are OR-ed. ``AND``
binds tighter than ``OR``, ``NOT``/``-`` exclude and ``+`` requires.
Operators are uppercase keywords. ``field:term`` targets another field than
the default.

The parser emits the same immutable nodes as the structured builder, so the
evaluator does not know which path produced a query.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from ir_workbench.search.analyzers import AnalyzerConfig, analyze
from ir_workbench.search.errors import QuerySyntaxError
from ir_workbench.search.query import BooleanGroup, Occurrence, QueryNode, TermMatch


_TOKEN_SPEC = [
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("PLUS", r"\+"),
    ("MINUS", r"-"),
    ("TERM", r"\w(?:[\w'’.:\-]|(?<=\d),(?=\d))*"),
    ("SKIP", r"[\s,]+"),
    ("MISMATCH", r"."),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC), re.UNICODE)
_KEYWORDS = {"AND", "OR", "NOT"}
_FIELD_PREFIX = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*):(.+)$")


@dataclass(frozen=True)
class _Lexeme:
    kind: str
    value: str
    position: int


# A parsed clause: modifier (None for a plain clause, MUST for '+', MUST_NOT
# for NOT/'-') and the node it applies to. A node of None is a clause whose
# words were all removed by the analyzer.
_Clause = tuple[Occurrence | None, QueryNode | None]


def tokenize(text: str) -> list[_Lexeme]:
    lexemes: list[_Lexeme] = []
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup or "MISMATCH"
        value = match.group()
        if kind == "SKIP":
            continue
        if kind == "MISMATCH":
            raise QuerySyntaxError(f"Unexpected character {value!r}", query=text, position=match.start())
        if kind == "TERM" and value in _KEYWORDS:
            kind = value
        lexemes.append(_Lexeme(kind, value, match.start()))
    return lexemes


def _as_role(node: QueryNode, role: Occurrence, parent: Occurrence) -> QueryNode:
    """Shape ``node`` so it takes ``role`` when placed in a ``parent`` group."""

    if role is Occurrence.MUST_NOT:
        return BooleanGroup(Occurrence.MUST_NOT, [node])
    if isinstance(node, TermMatch):
        natural = Occurrence.MUST if parent is Occurrence.MUST else Occurrence.SHOULD
        return node if natural is role else BooleanGroup(role, [node])
    if isinstance(node, BooleanGroup) and node.occurrence is role:
        return node
    return BooleanGroup(role, [node])


class _Parser:
    def __init__(self, text: str, field: str, config: AnalyzerConfig | None) -> None:
        self.text = text
        self.field = field
        self.config = config
        self.lexemes = tokenize(text)
        self.pos = 0

    def parse(self) -> BooleanGroup:
        if not self.lexemes:
            raise QuerySyntaxError("Empty query", query=self.text, position=0)
        node = self._combine(self._expr())
        leftover = self._peek()
        if leftover is not None:
            raise QuerySyntaxError("Unbalanced ')'", query=self.text, position=leftover.position)
        if node is None:
            return BooleanGroup(Occurrence.MUST, [])
        if isinstance(node, TermMatch):
            return BooleanGroup(Occurrence.MUST, [node])
        return node

    def _peek(self) -> _Lexeme | None:
        if self.pos < len(self.lexemes):
            return self.lexemes[self.pos]
        return None

    def _advance(self) -> _Lexeme:
        lexeme = self.lexemes[self.pos]
        self.pos += 1
        return lexeme

    def _expr(self) -> list[_Clause]:
        clauses = [self._and_expr()]
        while (lexeme := self._peek()) is not None and lexeme.kind != "RPAREN":
            if lexeme.kind == "OR":
                self._advance()
            clauses.append(self._and_expr())
        return clauses

    def _and_expr(self) -> _Clause:
        items = [self._unary()]
        while (lexeme := self._peek()) is not None and lexeme.kind == "AND":
            self._advance()
            items.append(self._unary())
        if len(items) == 1:
            return items[0]
        children = [
            _as_role(node, modifier or Occurrence.MUST, Occurrence.MUST) for modifier, node in items if node is not None
        ]
        if not children:
            return None, None
        return None, BooleanGroup(Occurrence.MUST, children)

    def _unary(self) -> _Clause:
        lexeme = self._peek()
        if lexeme is not None and lexeme.kind in ("NOT", "MINUS", "PLUS"):
            self._advance()
            modifier, inner = self._unary()
            if inner is not None and modifier is Occurrence.MUST_NOT:
                inner = BooleanGroup(Occurrence.MUST_NOT, [inner])
            role = Occurrence.MUST if lexeme.kind == "PLUS" else Occurrence.MUST_NOT
            return role, inner
        return self._primary()

    def _primary(self) -> _Clause:
        lexeme = self._peek()
        if lexeme is None:
            raise QuerySyntaxError("Unexpected end of query", query=self.text, position=len(self.text))
        if lexeme.kind == "LPAREN":
            self._advance()
            if (closing := self._peek()) is not None and closing.kind == "RPAREN":
                raise QuerySyntaxError("Empty group", query=self.text, position=closing.position)
            clauses = self._expr()
            closing = self._peek()
            if closing is None:
                raise QuerySyntaxError("Missing ')'", query=self.text, position=len(self.text))
            self._advance()
            return None, self._combine(clauses)
        if lexeme.kind == "TERM":
            self._advance()
            return None, self._term(lexeme.value)
        raise QuerySyntaxError(f"Unexpected {lexeme.value!r}", query=self.text, position=lexeme.position)

    def _term(self, value: str) -> QueryNode | None:
        field = self.field
        if match := _FIELD_PREFIX.match(value):
            field, value = match.group(1), match.group(2)
        terms = analyze(value, self.config) if self.config is not None else [value.lower()]
        if not terms:
            return None
        if len(terms) == 1:
            return TermMatch(field, terms[0])
        return BooleanGroup(Occurrence.MUST, [TermMatch(field, term) for term in terms])

    def _combine(self, clauses: list[_Clause]) -> QueryNode | None:
        kept = [(modifier, node) for modifier, node in clauses if node is not None]
        if not kept:
            return None
        if len(kept) == 1 and kept[0][0] is None:
            return kept[0][1]
        return BooleanGroup(
            Occurrence.SHOULD,
            [_as_role(node, modifier or Occurrence.SHOULD, Occurrence.SHOULD) for modifier, node in kept],
        )


def parse_query(text: str, field: str = "abstract", config: AnalyzerConfig | None = None) -> BooleanGroup:
    """Parse a boolean expression into a query tree over ``field``.

    Words are normalized with ``config`` (the index's analyzer) so they line
    up with indexed terms. Raises ``QuerySyntaxError`` on malformed input.
    """

    return _Parser(text, field, config).parse()
