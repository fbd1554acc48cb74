"""This is a small library for analyzing context-free grammars the way an LR(1)
parser generator needs them analyzed.

Give it a grammar:

    grammar = build_grammar(
        "E",
        {
            "E": [["E", "+", "T"], ["T"]],
            "T": [["T", "*", "F"], ["F"]],
            "F": [["(", "E", ")"], ["id"]],
        },
        augment=True,
    )

and you get back FIRST and FOLLOW for every symbol (`first_of_symbol`,
`first_of_sequence`, `follow_of`), the LR(1) `closure` and `goto_`
operators, and the `canonical_collection` of LR(1) item sets. If you want to
go all the way, `build_table` turns the collection into canonical LR(1) parse
tables and `Parser` runs them.

Grammars are immutable once built, so any number of threads can ask them
questions at once.
"""

from .automaton import StateGraph, canonical_collection, closure, goto_, initial_set
from .grammar import (
    Grammar,
    GrammarError,
    build_grammar,
    first_of_sequence,
    first_of_symbol,
    follow_of,
)
from .items import Item, ItemSet
from .runtime import ParseError, Parser, Tree
from .symbols import (
    END,
    END_NAME,
    EPSILON,
    EPSILON_NAME,
    Symbol,
    SymbolKind,
    augmented_start,
    nonterminal,
    terminal,
)
from .table import (
    Accept,
    Action,
    Conflict,
    ConflictError,
    ParseTable,
    Reduce,
    Shift,
    build_table,
)
