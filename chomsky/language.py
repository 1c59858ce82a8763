"""Brute-force enumeration of the (short) strings a grammar generates.

This is not a parser. It answers one question, "what are all the strings of
length at most N in this language?", by computing, for every nonterminal, the
set of terminal strings of length at most N that it derives. Like FIRST sets,
that is a fixed point: start everything empty and keep applying productions
until nothing grows. The domain is finite (there are only so many strings of
length N over a finite alphabet), so it always stops, even for grammars full
of epsilon productions and unit cycles.

It is slow and that's fine. What it's for is checking that two grammars agree,
which is how we convince ourselves the normalization passes don't change the
language.
"""

import typing

from .grammar import Grammar, NonTerminal, Symbol, Terminal

Word = typing.Tuple[str, ...]


def update_changed(items: set[Word], other: set[Word]) -> bool:
    """Merge the `other` set into the `items` set, and return True if this
    changed the items set.
    """
    old_len = len(items)
    items.update(other)
    return old_len != len(items)


def _concatenate(
    right: typing.Tuple[Symbol, ...],
    languages: dict[NonTerminal, set[Word]],
    max_length: int,
) -> set[Word]:
    partial: set[Word] = {()}
    for symbol in right:
        match symbol:
            case Terminal(name=name):
                options: set[Word] = {(name,)}
            case NonTerminal():
                options = languages.get(symbol, set())
            case _:
                typing.assert_never(symbol)

        partial = {
            prefix + option
            for prefix in partial
            for option in options
            if len(prefix) + len(option) <= max_length
        }
        if len(partial) == 0:
            break

    return partial


def derivable(grammar: Grammar, max_length: int) -> dict[NonTerminal, set[Word]]:
    """For every nonterminal, the set of terminal strings no longer than
    `max_length` that it derives.
    """
    if max_length < 0:
        raise ValueError(f"max_length must not be negative, got {max_length}")

    languages: dict[NonTerminal, set[Word]] = {n: set() for n in grammar.nonterminals}
    for production in grammar.productions:
        languages.setdefault(production.left, set())

    changed = True
    while changed:
        changed = False
        for production in grammar.productions:
            produced = _concatenate(production.right, languages, max_length)
            changed = update_changed(languages[production.left], produced) or changed

    return languages


def strings(grammar: Grammar, max_length: int) -> set[Word]:
    """Every string of length at most `max_length` in the language."""
    return set(derivable(grammar, max_length).get(grammar.start, set()))


def accepts(grammar: Grammar, word: typing.Sequence[str]) -> bool:
    """True if the grammar generates `word`, a sequence of terminal names.

    (A plain str works as a word when every terminal is one character.)
    """
    word = tuple(word)
    return word in strings(grammar, len(word))


def compare(left: Grammar, right: Grammar, max_length: int) -> set[Word]:
    """The strings of length at most `max_length` that are in one language
    but not the other. Empty if the two agree up to that length.
    """
    return strings(left, max_length) ^ strings(right, max_length)


def format_word(word: Word) -> str:
    if len(word) == 0:
        return "ε"
    if all(len(symbol) == 1 for symbol in word):
        return "".join(word)
    return " ".join(word)
