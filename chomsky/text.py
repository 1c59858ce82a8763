"""Reading and writing grammars as text.

The format is the one you'd write on a whiteboard:

    V_N = {S, A, B}
    V_T = {a, b}
    P = {
        S -> aSb | ε,
        A -> a B
    }

Productions are separated by commas (or newlines), and alternatives by `|`.
Right-hand sides are split into declared names, longest first, so `aSb` and
`a S b` mean the same thing, and multi-character names like `T_a` or `X1` work
as long as they're declared. A run like `abc` with terminals `a`, `ab` and `bc`
backs off to `a bc` when `ab` leaves nothing that fits. Where more than one
split works, the one that takes the longest names first wins; use spaces to
say otherwise. `ε` is the empty right-hand side.
"""

import logging
import pathlib
import re
import typing

from .grammar import EPSILON, Grammar, NonTerminal, Production, Symbol, Terminal

text_log = logging.getLogger("chomsky.text")

_SECTION = r"(?<![A-Za-z0-9_]){key}\s*=\s*\{{([^{{}}]*)\}}"
NONTERMINALS_PATTERN = re.compile(_SECTION.format(key="V_N"), re.IGNORECASE)
TERMINALS_PATTERN = re.compile(_SECTION.format(key="V_T"), re.IGNORECASE)
RULES_PATTERN = re.compile(_SECTION.format(key="P"), re.IGNORECASE)

DEFAULT_START = "S"


class GrammarSyntaxError(ValueError):
    """Raised when a grammar definition can't be understood."""

    pass


def _section(content: str, pattern: re.Pattern, label: str) -> list[str]:
    match = pattern.search(content)
    if match is None:
        raise GrammarSyntaxError(f"Missing {label} section ({label} = {{...}})")

    # Preserve the declared order, and drop duplicates.
    elements: dict[str, None] = {}
    for element in re.split(r"[,\n]", match.group(1)):
        element = element.strip()
        if element:
            elements[element] = None
    return list(elements)


def _split(chunk: str, names: list[str]) -> typing.Tuple[list[str] | None, int]:
    """Split `chunk` into declared names.

    Longer names are tried first, but if the rest of the chunk can't be split
    after one, shorter ones get a turn. Returns the names, or None and the
    furthest position where nothing fit.
    """
    dead: set[int] = set()

    def split_from(position: int) -> list[str] | None:
        if position == len(chunk):
            return []
        if position in dead:
            return None
        for name in names:
            if chunk.startswith(name, position):
                rest = split_from(position + len(name))
                if rest is not None:
                    return [name] + rest
        dead.add(position)
        return None

    result = split_from(0)
    return result, max(dead, default=0)


def _tokenize(body: str, symbols: dict[str, Symbol]) -> list[Symbol]:
    names = sorted(symbols, key=len, reverse=True)

    result: list[Symbol] = []
    for chunk in body.split():
        split, position = _split(chunk, names)
        if split is None:
            raise GrammarSyntaxError(
                f"Unknown symbol at position {position} of '{chunk}' in '{body}'"
            )
        result.extend(symbols[name] for name in split)
    return result


def parse_grammar(content: str, start: str = DEFAULT_START) -> Grammar:
    """Parse a grammar definition, raising GrammarSyntaxError if it's bad."""
    if not content or not content.strip():
        raise GrammarSyntaxError("Grammar content cannot be empty")

    nonterminal_names = _section(content, NONTERMINALS_PATTERN, "V_N")
    if len(nonterminal_names) == 0:
        raise GrammarSyntaxError("No nonterminal symbols found in the grammar")

    terminal_names = _section(content, TERMINALS_PATTERN, "V_T")

    overlap = set(nonterminal_names) & set(terminal_names)
    if len(overlap) > 0:
        raise GrammarSyntaxError(
            f"Symbols cannot be both terminal and nonterminal: {', '.join(sorted(overlap))}"
        )

    if start not in nonterminal_names:
        raise GrammarSyntaxError(
            f"Start symbol '{start}' is not defined in the nonterminals set"
        )

    symbols: dict[str, Symbol] = {}
    for name in terminal_names:
        symbols[name] = Terminal(name)
    for name in nonterminal_names:
        symbols[name] = NonTerminal(name)

    productions: set[Production] = set()
    for rule in _section(content, RULES_PATTERN, "P"):
        left, arrow, right = rule.partition("->")
        if not arrow:
            raise GrammarSyntaxError(f"Invalid rule format (check for missing ->): {rule}")

        left = left.strip()
        lhs = symbols.get(left)
        if not isinstance(lhs, NonTerminal):
            raise GrammarSyntaxError(f"Left-hand side must be a nonterminal: '{left}'")

        for alternative in right.split("|"):
            alternative = alternative.strip()
            if not alternative:
                continue
            if alternative == EPSILON:
                productions.add(Production(lhs, ()))
            else:
                productions.add(Production(lhs, tuple(_tokenize(alternative, symbols))))

    grammar = Grammar(
        nonterminals=frozenset(NonTerminal(n) for n in nonterminal_names),
        terminals=frozenset(Terminal(t) for t in terminal_names),
        start=NonTerminal(start),
        productions=frozenset(productions),
    )
    try:
        grammar.validate()
    except ValueError as e:
        raise GrammarSyntaxError(str(e)) from e

    text_log.debug(
        "parsed %d nonterminals, %d terminals, %d productions",
        len(grammar.nonterminals),
        len(grammar.terminals),
        len(grammar.productions),
    )
    return grammar


def load_grammar(path: str | pathlib.Path, start: str = DEFAULT_START) -> Grammar:
    """Read and parse a grammar definition from a file."""
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    text_log.info("Reading grammar from %s", path)
    return parse_grammar(content, start=start)


def format_grammar(grammar: Grammar) -> str:
    """The inverse of `parse_grammar`."""
    return grammar.format()
