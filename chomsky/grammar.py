"""The data model for context-free grammars.

A grammar here is the textbook 4-tuple: a set of nonterminals, a set of
terminals, a start symbol, and a set of productions. Everything is immutable;
the normalization passes never modify a grammar, they build a new one. That
makes it safe to hang on to every intermediate grammar for inspection, and it
means a pass can be re-run on its own output without any worry about what it
did the last time around.

Symbols are tagged with their kind. A terminal named "a" and a nonterminal
named "a" are different symbols (and a valid grammar never has both), so we
can always look at a symbol and know what to do with it without having to go
find the grammar it came from.
"""

import collections
import dataclasses
import typing


@dataclasses.dataclass(frozen=True)
class Terminal:
    """A terminal symbol: appears literally in generated strings."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True)
class NonTerminal:
    """A nonterminal symbol: something that productions rewrite."""

    name: str

    def __str__(self) -> str:
        return self.name


Symbol = Terminal | NonTerminal

EPSILON = "ε"


def format_right(right: typing.Sequence[Symbol]) -> str:
    if len(right) == 0:
        return EPSILON
    return " ".join(s.name for s in right)


def symbol_key(symbol: Symbol) -> typing.Tuple[str, int]:
    """A sort key for symbols, since terminals and nonterminals don't compare
    with each other. Sorts by name; nonterminals first on a (bogus) tie.
    """
    return (symbol.name, 0 if isinstance(symbol, NonTerminal) else 1)


@dataclasses.dataclass(frozen=True)
class Production:
    """A single rewrite rule, `left -> right`.

    `right` is a tuple so that productions hash; an empty tuple is an
    epsilon production.
    """

    left: NonTerminal
    right: typing.Tuple[Symbol, ...]

    @property
    def is_epsilon(self) -> bool:
        return len(self.right) == 0

    @property
    def is_unit(self) -> bool:
        """True if this is a renaming, `A -> B`."""
        return len(self.right) == 1 and isinstance(self.right[0], NonTerminal)

    @property
    def is_cnf(self) -> bool:
        """True if this production has one of the two shapes Chomsky Normal
        Form allows: `A -> a` or `A -> B C`.
        """
        match self.right:
            case (Terminal(),):
                return True
            case (NonTerminal(), NonTerminal()):
                return True
            case _:
                return False

    def sort_key(self) -> typing.Tuple:
        return (self.left.name, len(self.right), [symbol_key(s) for s in self.right])

    def __str__(self) -> str:
        return f"{self.left} -> {format_right(self.right)}"


@dataclasses.dataclass(frozen=True)
class Grammar:
    """A context-free grammar, G = (V_N, V_T, S, P).

    Grammars are values. The boundary invariants are:

      - `start` is one of the `nonterminals`.
      - Every symbol used by a production is declared, in the right set.
      - No name is both a terminal and a nonterminal.

    These are checked by `validate`, but nothing in the normalization passes
    calls it; a grammar that comes from somewhere trustworthy (like the text
    reader, which does call it) is assumed to be fine.
    """

    nonterminals: frozenset[NonTerminal]
    terminals: frozenset[Terminal]
    start: NonTerminal
    productions: frozenset[Production]

    @classmethod
    def from_table(
        cls,
        start: str,
        table: typing.Iterable[typing.Tuple[str, typing.Iterable[str]]],
    ) -> "Grammar":
        """Build a grammar from a flat list of productions, like:

            [
                ("S", ["a", "S", "b"]),
                ("S", []),
            ]

        Any name that shows up on the left of a production is a nonterminal,
        and every other name is a terminal. The start symbol is always a
        nonterminal, even if nothing defines it.
        """
        rows = [(left, list(right)) for left, right in table]
        names = {start} | {left for left, _ in rows}

        def symbol(name: str) -> Symbol:
            if name in names:
                return NonTerminal(name)
            return Terminal(name)

        productions = frozenset(
            Production(NonTerminal(left), tuple(symbol(s) for s in right))
            for left, right in rows
        )
        terminals = frozenset(
            s for p in productions for s in p.right if isinstance(s, Terminal)
        )
        return cls(
            nonterminals=frozenset(NonTerminal(n) for n in names),
            terminals=terminals,
            start=NonTerminal(start),
            productions=productions,
        )

    def replace(self, **changes) -> "Grammar":
        return dataclasses.replace(self, **changes)

    def by_left(self) -> dict[NonTerminal, list[Production]]:
        """Group the productions by their left-hand side."""
        result: dict[NonTerminal, list[Production]] = collections.defaultdict(list)
        for production in self.sorted_productions():
            result[production.left].append(production)
        return result

    def alternatives(self, nonterminal: NonTerminal) -> list[typing.Tuple[Symbol, ...]]:
        """The right-hand sides of every production for `nonterminal`."""
        return [p.right for p in self.sorted_productions() if p.left == nonterminal]

    def symbol_names(self) -> set[str]:
        return {n.name for n in self.nonterminals} | {t.name for t in self.terminals}

    def sorted_productions(self) -> list[Production]:
        """The productions in a stable order: start symbol first, then by name."""
        return sorted(
            self.productions,
            key=lambda p: (p.left != self.start,) + p.sort_key(),
        )

    def is_cnf(self) -> bool:
        return all(p.is_cnf for p in self.productions)

    def validate(self):
        """Check the boundary invariants, raising ValueError if any of them
        are broken.
        """
        if self.start not in self.nonterminals:
            raise ValueError(f"The start symbol {self.start} is not a declared nonterminal")

        overlap = {n.name for n in self.nonterminals} & {t.name for t in self.terminals}
        if len(overlap) > 0:
            raise ValueError(
                f"Symbols cannot be both terminal and nonterminal: {', '.join(sorted(overlap))}"
            )

        for production in self.sorted_productions():
            if production.left not in self.nonterminals:
                raise ValueError(
                    f"The left side of '{production}' is not a declared nonterminal"
                )
            for symbol in production.right:
                match symbol:
                    case Terminal():
                        declared = symbol in self.terminals
                    case NonTerminal():
                        declared = symbol in self.nonterminals
                    case _:
                        typing.assert_never(symbol)

                if not declared:
                    raise ValueError(f"'{production}' uses an undeclared symbol '{symbol}'")

    def format(self) -> str:
        """Render the grammar in the text format that `chomsky.text` reads."""
        nonterminals = sorted(self.nonterminals, key=lambda n: (n != self.start, n.name))
        terminals = sorted(t.name for t in self.terminals)

        lines = [
            f"V_N = {{{', '.join(n.name for n in nonterminals)}}}",
            f"V_T = {{{', '.join(terminals)}}}",
        ]

        rules = []
        for nonterminal in nonterminals:
            bodies = [format_right(right) for right in self.alternatives(nonterminal)]
            if len(bodies) == 0:
                continue
            rules.append(f"    {nonterminal} -> {' | '.join(bodies)}")

        if len(rules) == 0:
            lines.append("P = {}")
        else:
            lines.append("P = {")
            lines.append(",\n".join(rules))
            lines.append("}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()
