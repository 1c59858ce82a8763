import pytest

from chomsky import Grammar, NonTerminal, Production, Terminal


S = NonTerminal("S")
A = NonTerminal("A")
B = NonTerminal("B")
a = Terminal("a")
b = Terminal("b")


def test_symbol_kind_matters():
    """A terminal and a nonterminal with the same name are different symbols."""
    assert Terminal("a") == Terminal("a")
    assert NonTerminal("a") == NonTerminal("a")
    assert Terminal("a") != NonTerminal("a")
    assert len({Terminal("a"), NonTerminal("a")}) == 2


def test_production_shapes():
    assert Production(S, ()).is_epsilon
    assert Production(S, (A,)).is_unit
    assert not Production(S, (a,)).is_unit

    assert Production(S, (a,)).is_cnf
    assert Production(S, (A, B)).is_cnf
    assert not Production(S, ()).is_cnf
    assert not Production(S, (A,)).is_cnf
    assert not Production(S, (a, B)).is_cnf
    assert not Production(S, (A, B, A)).is_cnf


def test_production_str():
    assert str(Production(S, (a, S, b))) == "S -> a S b"
    assert str(Production(S, ())) == "S -> ε"


def test_from_table():
    G = Grammar.from_table("S", [("S", ["a", "S", "b"]), ("S", [])])

    assert G.start == S
    assert G.nonterminals == {S}
    assert G.terminals == {a, b}
    assert G.productions == {Production(S, (a, S, b)), Production(S, ())}
    G.validate()


def test_from_table_start_always_nonterminal():
    G = Grammar.from_table("S", [("A", ["a"])])
    assert G.nonterminals == {S, A}
    G.validate()


def test_grammars_are_values():
    left = Grammar.from_table("S", [("S", ["a"]), ("S", ["A"]), ("A", ["b"])])
    right = Grammar.from_table("S", [("A", ["b"]), ("S", ["A"]), ("S", ["a"])])
    assert left == right
    assert hash(left) == hash(right)


def test_alternatives():
    G = Grammar.from_table("S", [("S", ["a", "S"]), ("S", ["b"]), ("A", ["a"])])
    assert G.alternatives(S) == [(b,), (a, S)]
    assert G.alternatives(A) == [(a,)]
    assert G.alternatives(B) == []


def test_validate_undeclared_start():
    G = Grammar(
        nonterminals=frozenset({A}),
        terminals=frozenset({a}),
        start=S,
        productions=frozenset({Production(A, (a,))}),
    )
    with pytest.raises(ValueError):
        G.validate()


def test_validate_overlapping_names():
    G = Grammar(
        nonterminals=frozenset({S, NonTerminal("a")}),
        terminals=frozenset({a}),
        start=S,
        productions=frozenset({Production(S, (a,))}),
    )
    with pytest.raises(ValueError):
        G.validate()


def test_validate_undeclared_symbol():
    G = Grammar(
        nonterminals=frozenset({S}),
        terminals=frozenset({a}),
        start=S,
        productions=frozenset({Production(S, (a, B))}),
    )
    with pytest.raises(ValueError):
        G.validate()


def test_validate_kind_mismatch():
    # "b" is declared, but as a terminal, not a nonterminal.
    G = Grammar(
        nonterminals=frozenset({S}),
        terminals=frozenset({a, b}),
        start=S,
        productions=frozenset({Production(S, (a, NonTerminal("b")))}),
    )
    with pytest.raises(ValueError):
        G.validate()


def test_is_cnf():
    assert Grammar.from_table("S", [("S", ["A", "A"]), ("A", ["a"])]).is_cnf()
    assert not Grammar.from_table("S", [("S", ["a", "A"]), ("A", ["a"])]).is_cnf()


def test_format():
    G = Grammar.from_table(
        "S",
        [("S", ["a", "S", "b"]), ("S", []), ("A", ["a"])],
    )
    assert G.format() == "\n".join(
        [
            "V_N = {S, A}",
            "V_T = {a, b}",
            "P = {",
            "    S -> ε | a S b,",
            "    A -> a",
            "}",
        ]
    )


def test_format_empty():
    G = Grammar(
        nonterminals=frozenset({S}),
        terminals=frozenset(),
        start=S,
        productions=frozenset(),
    )
    assert str(G) == "V_N = {S}\nV_T = {}\nP = {}"
