from .grammar import (
    EPSILON,
    Grammar,
    NonTerminal,
    Production,
    Symbol,
    Terminal,
)
from .normalize import (
    Conversion,
    FreshNames,
    Observation,
    Stage,
    accessible_symbols,
    convert_to_cnf,
    eliminate_epsilon,
    eliminate_inaccessible,
    eliminate_non_productive,
    eliminate_units,
    normalize,
    nullable_symbols,
    productive_symbols,
    to_chomsky_form,
    unit_pairs,
)
from .text import GrammarSyntaxError, format_grammar, load_grammar, parse_grammar
