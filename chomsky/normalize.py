"""Conversion of context-free grammars to Chomsky Normal Form.

A grammar is in Chomsky Normal Form (CNF) when every production looks like
`A -> B C` (two nonterminals) or `A -> a` (one terminal). Getting there is a
sequence of rewrites, each of which preserves the language of the grammar
(minus the empty string, see below):

  1. Eliminate epsilon productions (`A -> ε`).
  2. Eliminate unit productions (`A -> B`).
  3. Eliminate non-productive symbols (ones that can never finish deriving a
     string of terminals).
  4. Eliminate inaccessible symbols (ones the start symbol can never reach).
  5. Shape every remaining production: replace terminals inside long
     right-hand sides with proxy nonterminals (`T_a -> a`), then break the
     long right-hand sides into chains of binary productions.
  6-8. Run steps 2-4 again.

The order matters. Removing epsilon productions can create unit productions,
so (2) has to come after (1); removing unit productions and non-productive
symbols can leave things unreachable, so (4) comes after both. And the
shaping in (5) can itself leave behind unit productions and dead helper
nonterminals, which is why the cleanup passes run again at the end. Get any of
this wrong and you get a grammar that *looks* like CNF but doesn't describe
the same language, which is exactly the kind of thing nobody notices.

Every pass is a plain function from Grammar to Grammar. None of them modify
their input.

A note on the empty string: a CNF grammar can't say that it generates "",
since it has no epsilon productions. So `normalize` records whether the input
generated the empty string as a separate fact (`Conversion.generates_empty`)
rather than trying to smuggle it into the grammar.
"""

import collections
import dataclasses
import enum
import functools
import itertools
import logging
import re
import typing

from .grammar import Grammar, NonTerminal, Production, Symbol, Terminal

normalize_log = logging.getLogger("chomsky.normalize")


def _used_terminals(productions: typing.Iterable[Production]) -> frozenset[Terminal]:
    return frozenset(s for p in productions for s in p.right if isinstance(s, Terminal))


###############################################################################
# Epsilon productions
###############################################################################
def nullable_symbols(grammar: Grammar) -> set[NonTerminal]:
    """Compute the set of nonterminals that can derive the empty string.

    A nonterminal is nullable if it has an epsilon production, or if it has a
    production where every symbol on the right is a nullable nonterminal.
    (Note that the first case is really just the second case with zero
    symbols: `all` of nothing is True.) We iterate to a fixed point, the same
    way FIRST sets get computed.
    """
    nullable: set[NonTerminal] = set()
    changed = True
    while changed:
        changed = False
        for production in grammar.productions:
            if production.left in nullable:
                continue

            if all(isinstance(s, NonTerminal) and s in nullable for s in production.right):
                nullable.add(production.left)
                changed = True

    return nullable


def nullable_variants(
    right: typing.Tuple[Symbol, ...], nullable: set[NonTerminal]
) -> set[typing.Tuple[Symbol, ...]]:
    """Every right-hand side you can get by deleting some subset of the
    nullable symbols from `right`.

    This is exponential in the number of nullable symbols in `right`, which is
    fine, because right-hand sides are short.
    """
    positions = [
        index
        for index, symbol in enumerate(right)
        if isinstance(symbol, NonTerminal) and symbol in nullable
    ]

    variants: set[typing.Tuple[Symbol, ...]] = set()
    for count in range(len(positions) + 1):
        for omitted in itertools.combinations(positions, count):
            variants.add(tuple(s for i, s in enumerate(right) if i not in omitted))
    return variants


def eliminate_epsilon(grammar: Grammar) -> Grammar:
    """Remove all epsilon productions from the grammar.

    Each production `A -> X1 ... Xk` is replaced by every variant with some of
    its nullable symbols deleted, and the `A -> ε` productions are dropped.
    Variants that come out empty are dropped too; the nullability they
    represent is already accounted for in the productions that use `A`.
    """
    nullable = nullable_symbols(grammar)

    productions: set[Production] = set()
    for production in grammar.productions:
        if production.is_epsilon:
            continue

        for right in nullable_variants(production.right, nullable):
            if len(right) > 0:
                productions.add(Production(production.left, right))

    if normalize_log.isEnabledFor(logging.DEBUG):
        normalize_log.debug(
            "nullable: {%s}; %d productions -> %d",
            ", ".join(sorted(n.name for n in nullable)),
            len(grammar.productions),
            len(productions),
        )

    return grammar.replace(productions=frozenset(productions))


###############################################################################
# Unit productions
###############################################################################
def unit_pairs(grammar: Grammar) -> set[typing.Tuple[NonTerminal, NonTerminal]]:
    """Compute every pair (A, B) such that A derives B using nothing but unit
    productions. This includes (A, A) for every nonterminal.

    We do this with a worklist of freshly discovered pairs rather than by
    repeatedly rewriting productions: rewriting one unit production into
    another can chase its own tail forever on a cycle like `B -> C, C -> B`,
    while the set of pairs is finite and only ever grows.
    """
    edges: dict[NonTerminal, set[NonTerminal]] = collections.defaultdict(set)
    seeds = set(grammar.nonterminals)
    for production in grammar.productions:
        seeds.add(production.left)
        if production.is_unit:
            target = production.right[0]
            assert isinstance(target, NonTerminal)
            edges[production.left].add(target)

    pairs = {(n, n) for n in seeds}
    queue = list(pairs)
    while len(queue) > 0:
        origin, via = queue.pop()
        for target in edges.get(via, ()):
            pair = (origin, target)
            if pair not in pairs:
                pairs.add(pair)
                queue.append(pair)

    return pairs


def eliminate_units(grammar: Grammar) -> Grammar:
    """Remove all unit productions (`A -> B`) from the grammar.

    If A derives B through a chain of unit productions, then A gets a copy of
    every non-unit production of B. Self loops (`A -> A`) simply vanish.
    Consider:

        S -> A
        A -> B
        B -> c

    Here S reaches A and B, and A reaches B, so the result has `S -> c`,
    `A -> c` and `B -> c`.
    """
    by_left = grammar.by_left()

    productions: set[Production] = set()
    for origin, target in unit_pairs(grammar):
        for production in by_left.get(target, ()):
            if not production.is_unit:
                productions.add(Production(origin, production.right))

    if normalize_log.isEnabledFor(logging.DEBUG):
        removed = sum(1 for p in grammar.productions if p.is_unit)
        normalize_log.debug(
            "removed %d unit productions; %d productions -> %d",
            removed,
            len(grammar.productions),
            len(productions),
        )

    return grammar.replace(productions=frozenset(productions))


###############################################################################
# Useless symbols
###############################################################################
def productive_symbols(grammar: Grammar) -> set[NonTerminal]:
    """Compute the set of nonterminals that derive at least one string made
    only of terminals.

    Productions with an empty right side, or with only terminals, seed the
    set; after that, a production whose nonterminals are all productive makes
    its left side productive too.
    """
    productive: set[NonTerminal] = set()
    changed = True
    while changed:
        changed = False
        for production in grammar.productions:
            if production.left in productive:
                continue

            if all(isinstance(s, Terminal) or s in productive for s in production.right):
                productive.add(production.left)
                changed = True

    return productive


def eliminate_non_productive(grammar: Grammar) -> Grammar:
    """Remove every nonterminal that can't derive a string of terminals, along
    with every production that mentions one.

    If the start symbol turns out to be non-productive then the language is
    empty. That's not an error; we log it and keep going. The start symbol
    stays declared either way, it just doesn't have any productions.
    """
    productive = productive_symbols(grammar)

    productions = frozenset(
        p
        for p in grammar.productions
        if p.left in productive
        and all(isinstance(s, Terminal) or s in productive for s in p.right)
    )

    nonterminals = {n for n in grammar.nonterminals if n in productive}
    if grammar.start in grammar.nonterminals:
        nonterminals.add(grammar.start)

    if grammar.start not in productive:
        normalize_log.warning(
            "Start symbol '%s' is non-productive; the language is empty", grammar.start
        )

    if normalize_log.isEnabledFor(logging.DEBUG):
        dropped = sorted(n.name for n in grammar.nonterminals - nonterminals)
        normalize_log.debug("non-productive: {%s}", ", ".join(dropped))

    return Grammar(
        nonterminals=frozenset(nonterminals),
        terminals=_used_terminals(productions),
        start=grammar.start,
        productions=productions,
    )


def accessible_symbols(grammar: Grammar) -> set[Symbol]:
    """Compute the set of symbols (terminals and nonterminals both) that can
    appear in some sentential form derived from the start symbol.

    If the start symbol isn't a declared nonterminal then nothing is
    accessible at all.
    """
    if grammar.start not in grammar.nonterminals:
        return set()

    declared: set[Symbol] = set(grammar.nonterminals) | set(grammar.terminals)
    by_left = grammar.by_left()

    accessible: set[Symbol] = {grammar.start}
    queue: list[NonTerminal] = [grammar.start]
    while len(queue) > 0:
        nonterminal = queue.pop()
        for production in by_left.get(nonterminal, ()):
            for symbol in production.right:
                if symbol in declared and symbol not in accessible:
                    accessible.add(symbol)
                    if isinstance(symbol, NonTerminal):
                        queue.append(symbol)

    return accessible


def eliminate_inaccessible(grammar: Grammar) -> Grammar:
    """Remove every symbol that the start symbol can't reach, along with the
    productions that define or mention them.
    """
    accessible = accessible_symbols(grammar)
    if grammar.start not in accessible:
        normalize_log.warning(
            "Start symbol '%s' is not a declared nonterminal; the language is empty",
            grammar.start,
        )

    nonterminals = frozenset(n for n in grammar.nonterminals if n in accessible)
    productions = frozenset(
        p
        for p in grammar.productions
        if p.left in nonterminals
        and all(isinstance(s, Terminal) or s in nonterminals for s in p.right)
    )

    if normalize_log.isEnabledFor(logging.DEBUG):
        dropped = sorted(n.name for n in grammar.nonterminals - nonterminals)
        normalize_log.debug("inaccessible: {%s}", ", ".join(dropped))

    return Grammar(
        nonterminals=nonterminals,
        terminals=_used_terminals(productions) & grammar.terminals,
        start=grammar.start,
        productions=productions,
    )


###############################################################################
# Shaping (TERM + BIN)
###############################################################################
class FreshNames:
    """Hands out nonterminal names that aren't used anywhere in a grammar.

    One of these belongs to exactly one call to `to_chomsky_form`; it starts
    out knowing every name in the grammar, plus any `reserved` names, and
    remembers every name it hands out, so nothing it generates can collide
    with anything, and two conversions running side by side can't step on
    each other.

    `reserved` is for names that were in play before the grammar got here.
    Earlier passes may have dropped an unused terminal called `T_a`, but that
    doesn't make `T_a` a good name for a new nonterminal.
    """

    taken: set[str]
    counter: int

    def __init__(self, grammar: Grammar, reserved: typing.Iterable[str] = ()):
        self.taken = grammar.symbol_names()
        self.taken.update(reserved)
        self.taken.update(p.left.name for p in grammar.productions)
        self.counter = 0

    def _claim(self, name: str) -> NonTerminal:
        assert name not in self.taken
        self.taken.add(name)
        return NonTerminal(name)

    def proxy(self, terminal: Terminal) -> NonTerminal:
        """A readable name for a nonterminal that stands for `terminal`:
        `T_a` for `a`, or `T_a_0`, `T_a_1`, ... if that's taken.
        """
        cleaned = re.sub(r"[^a-zA-Z0-9]", "", terminal.name)
        base = f"T_{cleaned}" if cleaned else "T"

        name = base
        suffix = 0
        while name in self.taken:
            name = f"{base}_{suffix}"
            suffix += 1
        return self._claim(name)

    def intermediate(self) -> NonTerminal:
        """A name for a binarization helper: X1, X2, and so on."""
        while True:
            self.counter += 1
            name = f"X{self.counter}"
            if name not in self.taken:
                return self._claim(name)


def _dedicated_proxies(productions: typing.Iterable[Production]) -> dict[Terminal, NonTerminal]:
    """Find nonterminals that already do the job of a terminal proxy.

    That's a nonterminal whose one and only production is `P -> t`. A
    nonterminal with other productions besides `P -> t` won't do: putting it
    in place of `t` would let those other productions in too.
    """
    alternatives: dict[NonTerminal, list[Production]] = collections.defaultdict(list)
    for production in productions:
        alternatives[production.left].append(production)

    proxies: dict[Terminal, NonTerminal] = {}
    for left in sorted(alternatives, key=lambda n: n.name):
        match alternatives[left]:
            case [Production(right=(Terminal() as terminal,))]:
                proxies.setdefault(terminal, left)
            case _:
                pass

    return proxies


def _shape(
    production: Production,
    names: FreshNames,
    proxies: dict[Terminal, NonTerminal],
) -> list[Production]:
    """Rewrite a single production into CNF shape, returning the productions
    that replace it (including any new proxy productions).
    """
    if production.is_cnf:
        return [production]

    if production.is_epsilon:
        # Nothing should be left of these by now, and there's no CNF form for
        # them anyway.
        normalize_log.debug("dropping epsilon production %s", production)
        return []

    result: list[Production] = []

    # TERM: terminals inside a longer right-hand side get replaced by a
    # nonterminal that produces exactly that terminal.
    right: list[NonTerminal] = []
    for symbol in production.right:
        match symbol:
            case Terminal():
                proxy = proxies.get(symbol)
                if proxy is None:
                    proxy = names.proxy(symbol)
                    proxies[symbol] = proxy
                    result.append(Production(proxy, (symbol,)))
                right.append(proxy)

            case NonTerminal():
                right.append(symbol)

            case _:
                typing.assert_never(symbol)

    if len(right) <= 2:
        result.append(Production(production.left, tuple(right)))
        return result

    # BIN: A -> N1 N2 ... Nk becomes A -> N1 X1, X1 -> N2 X2, ...,
    # X(k-2) -> N(k-1) Nk.
    left = production.left
    for symbol in right[:-2]:
        helper = names.intermediate()
        result.append(Production(left, (symbol, helper)))
        left = helper
    result.append(Production(left, (right[-2], right[-1])))
    return result


def to_chomsky_form(grammar: Grammar, reserved: typing.Iterable[str] = ()) -> Grammar:
    """Rewrite every production into one of the two CNF shapes.

    Productions that are already `A -> a` or `A -> B C` are left alone.
    Everything else has its terminals replaced with proxies and is then broken
    up into a chain of binary productions. For example, `S -> a b c` becomes:

        S -> T_a X1
        X1 -> T_b T_c
        T_a -> a
        T_b -> b
        T_c -> c

    Unit productions are passed through untouched; cleaning those up is the
    job of `eliminate_units`, which runs again after this.

    The rewrite is repeated until a pass doesn't change anything. New names
    avoid everything in the grammar and everything in `reserved`.
    """
    names = FreshNames(grammar, reserved)
    proxies = _dedicated_proxies(grammar.productions)

    productions = frozenset(grammar.productions)
    passes = 0
    while True:
        passes += 1
        rewritten: set[Production] = set()
        for production in sorted(productions, key=Production.sort_key):
            rewritten.update(_shape(production, names, proxies))

        if rewritten == productions:
            break
        productions = frozenset(rewritten)

    nonterminals = set(grammar.nonterminals)
    nonterminals.update(p.left for p in productions)
    terminals = frozenset(
        s for p in productions if len(p.right) == 1 for s in p.right if isinstance(s, Terminal)
    )

    normalize_log.debug(
        "shaped in %d passes; %d new nonterminals",
        passes,
        len(nonterminals) - len(grammar.nonterminals),
    )

    return Grammar(
        nonterminals=frozenset(nonterminals),
        terminals=terminals,
        start=grammar.start,
        productions=productions,
    )


###############################################################################
# The pipeline
###############################################################################
class Observation(enum.Enum):
    """Things worth knowing about a grammar that aren't errors."""

    START_NON_PRODUCTIVE = "start symbol is non-productive; the language is empty"
    START_INACCESSIBLE = "start symbol is inaccessible; the language is empty"


@dataclasses.dataclass(frozen=True)
class Stage:
    """The grammar produced by one step of the pipeline."""

    name: str
    grammar: Grammar
    observations: typing.Tuple[Observation, ...] = ()


PassFunction = typing.Callable[[Grammar], Grammar]

PIPELINE: list[typing.Tuple[str, PassFunction]] = [
    ("Eliminate ε-productions", eliminate_epsilon),
    ("Eliminate unit productions", eliminate_units),
    ("Eliminate non-productive symbols", eliminate_non_productive),
    ("Eliminate inaccessible symbols", eliminate_inaccessible),
    ("Transform productions to CNF", to_chomsky_form),
    ("Post-CNF cleanup: eliminate unit productions", eliminate_units),
    ("Post-CNF cleanup: eliminate non-productive symbols", eliminate_non_productive),
    ("Post-CNF cleanup: eliminate inaccessible symbols", eliminate_inaccessible),
]


@dataclasses.dataclass(frozen=True)
class Conversion:
    """The full record of a conversion: where we started, every stage along
    the way, and the final grammar.

    `generates_empty` is True if the original grammar derives the empty
    string. The language of `original` is exactly the language of `result`,
    plus "" when `generates_empty` is set.
    """

    original: Grammar
    stages: typing.Tuple[Stage, ...]
    generates_empty: bool

    @property
    def result(self) -> Grammar:
        if len(self.stages) == 0:
            return self.original
        return self.stages[-1].grammar

    @property
    def observations(self) -> list[typing.Tuple[str, Observation]]:
        return [(stage.name, o) for stage in self.stages for o in stage.observations]

    @property
    def empty_language(self) -> bool:
        """True if the original grammar generates no strings at all."""
        if self.generates_empty:
            return False
        result = self.result
        return not any(p.left == result.start for p in result.productions)


def _observe(step: PassFunction, before: Grammar) -> typing.Tuple[Observation, ...]:
    if step is eliminate_non_productive:
        if before.start not in productive_symbols(before):
            return (Observation.START_NON_PRODUCTIVE,)
    elif step is eliminate_inaccessible:
        if before.start not in accessible_symbols(before):
            return (Observation.START_INACCESSIBLE,)
    return ()


def normalize(grammar: Grammar) -> Conversion:
    """Convert the grammar to Chomsky Normal Form, keeping every intermediate
    grammar around.
    """
    generates_empty = grammar.start in nullable_symbols(grammar)

    # Names from the input stay off limits for the shaping step, even if the
    # passes before it have dropped the symbols that carried them.
    reserved = grammar.symbol_names()
    reserved.update(p.left.name for p in grammar.productions)

    stages: list[Stage] = []
    current = grammar
    for name, step in PIPELINE:
        observations = _observe(step, current)
        if step is to_chomsky_form:
            step = functools.partial(to_chomsky_form, reserved=reserved)
        current = step(current)
        stages.append(Stage(name=name, grammar=current, observations=observations))

        if normalize_log.isEnabledFor(logging.DEBUG):
            normalize_log.debug("%s:\n%s", name, current.format())

    return Conversion(original=grammar, stages=tuple(stages), generates_empty=generates_empty)


def convert_to_cnf(grammar: Grammar) -> Grammar:
    """Convert the grammar to an equivalent grammar in Chomsky Normal Form."""
    return normalize(grammar).result
