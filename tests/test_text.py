import pathlib

import pytest

from chomsky import (
    Grammar,
    GrammarSyntaxError,
    NonTerminal,
    Production,
    Terminal,
    convert_to_cnf,
    format_grammar,
    load_grammar,
    parse_grammar,
)
from chomsky.language import strings

EXAMPLES = pathlib.Path(__file__).parent.parent / "examples"

S = NonTerminal("S")
A = NonTerminal("A")
a = Terminal("a")
b = Terminal("b")


def test_parse_simple():
    G = parse_grammar(
        """
        V_N = {S}
        V_T = {a, b}
        P = {
            S -> aSb | ε
        }
        """
    )
    assert G.start == S
    assert G.nonterminals == {S}
    assert G.terminals == {a, b}
    assert G.productions == {Production(S, (a, S, b)), Production(S, ())}


def test_parse_spacing_does_not_matter():
    tight = parse_grammar("V_N={S,A} V_T={a,b} P={S->aA|b, A->a}")
    loose = parse_grammar("v_n = { S, A }\nv_t = { a, b }\np = {\n  S -> a A | b,\n  A -> a\n}")
    assert tight == loose


def test_parse_commas_or_newlines():
    commas = parse_grammar("V_N={S,A} V_T={a} P={S->A, A->a}")
    newlines = parse_grammar("V_N={S,A} V_T={a} P={\nS->A\nA->a\n}")
    assert commas == newlines


def test_parse_longest_match():
    G = parse_grammar("V_N={S, T_a, X1} V_T={a, X} P={S -> T_aX1 | X, T_a -> a, X1 -> a}")
    T_a = NonTerminal("T_a")
    X1 = NonTerminal("X1")
    assert Production(S, (T_a, X1)) in G.productions
    assert Production(S, (Terminal("X"),)) in G.productions


def test_parse_backs_off_to_shorter_names():
    G = parse_grammar("V_N={S} V_T={a, ab, bc} P={S -> abc | abab}")
    ab = Terminal("ab")
    bc = Terminal("bc")
    assert Production(S, (a, bc)) in G.productions
    assert Production(S, (ab, ab)) in G.productions


def test_parse_unknown_symbol_position():
    with pytest.raises(GrammarSyntaxError, match="position 2 of 'abx'"):
        parse_grammar("V_N={S} V_T={a, ab, b} P={S -> abx}")


def test_parse_other_start():
    G = parse_grammar("V_N={E} V_T={i} P={E -> i}", start="E")
    assert G.start == NonTerminal("E")


@pytest.mark.parametrize(
    "content",
    [
        "",
        "   \n  ",
        "V_T={a} P={S->a}",
        "V_N={} V_T={a} P={S->a}",
        "V_N={S} P={S->a}",
        "V_N={S} V_T={a}",
        "V_N={S, a} V_T={a} P={S->a}",
        "V_N={A} V_T={a} P={A->a}",
        "V_N={S} V_T={a} P={S a}",
        "V_N={S} V_T={a} P={S -> ab}",
        "V_N={S} V_T={a} P={a -> S}",
        "V_N={S} V_T={a} P={Q -> a}",
    ],
)
def test_parse_errors(content):
    with pytest.raises(GrammarSyntaxError):
        parse_grammar(content)


def test_syntax_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse_grammar("V_N={S} V_T={a} P={S -> b}")


def test_round_trip():
    G = parse_grammar((EXAMPLES / "variant.txt").read_text(encoding="utf-8"))
    cnf = convert_to_cnf(G)

    assert parse_grammar(format_grammar(G)) == G
    assert parse_grammar(format_grammar(cnf)) == cnf


def test_round_trip_empty():
    G = Grammar(
        nonterminals=frozenset({S}),
        terminals=frozenset(),
        start=S,
        productions=frozenset(),
    )
    assert parse_grammar(format_grammar(G)) == G


def test_load_grammar(tmp_path):
    path = tmp_path / "rules.txt"
    path.write_text("V_N={S} V_T={a} P={S -> aS | a}", encoding="utf-8")

    G = load_grammar(path)
    assert G.productions == {Production(S, (a, S)), Production(S, (a,))}


def test_load_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_grammar(tmp_path / "nope.txt")


def test_load_examples():
    anbn = load_grammar(EXAMPLES / "anbn.txt")
    assert strings(anbn, 4) == {(), ("a", "b"), ("a", "a", "b", "b")}

    useless = load_grammar(EXAMPLES / "useless.txt")
    assert NonTerminal("Z") in useless.nonterminals

    arithmetic = load_grammar(EXAMPLES / "arithmetic.txt", start="E")
    assert ("(", "i", ")") in strings(arithmetic, 3)
