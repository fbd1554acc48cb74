import json

import pytest

from lrgrammar import (
    END,
    Item,
    ItemSet,
    augmented_start,
    build_grammar,
    canonical_collection,
    closure,
    goto_,
    initial_set,
    nonterminal,
    terminal,
)

S = nonterminal("S")
C = nonterminal("C")
c = terminal("c")
d = terminal("d")


def cc_grammar():
    """The grammar from the dragon book's LR(1) examples (4.54 in the second
    edition).
    """
    return build_grammar(
        "S",
        {
            "S": [["C", "C"]],
            "C": [["c", "C"], ["d"]],
        },
        augment=True,
    )


def test_item_set_is_canonical():
    a = Item(C, 0, 0, c)
    b = Item(C, 1, 0, d)

    assert ItemSet.of([a, b]) == ItemSet.of([b, a, b])
    assert hash(ItemSet.of([a, b])) == hash(ItemSet.of([b, a]))
    assert len(ItemSet.of([a, a])) == 1
    assert ItemSet.of([a]) <= ItemSet.of([a, b])
    assert not (ItemSet.of([b]) <= ItemSet.of([a]))
    assert ItemSet.of([a]) | ItemSet.of([b]) == ItemSet.of([a, b])


def test_item_ordering():
    items = [
        Item(S, 0, 1, END),
        Item(C, 1, 0, d),
        Item(C, 0, 1, c),
        Item(C, 0, 0, d),
        Item(C, 0, 0, c),
    ]
    assert sorted(items) == [
        Item(C, 0, 0, c),
        Item(C, 0, 0, d),
        Item(C, 0, 1, c),
        Item(C, 1, 0, d),
        Item(S, 0, 1, END),
    ]


def test_item_format():
    G = cc_grammar()
    assert Item(C, 0, 1, d).format(G) == "C -> c * C, d"
    assert Item(C, 1, 1, END).format(G) == "C -> d *, $"


def test_item_format_epsilon():
    G = build_grammar("A", {"A": [["x", "A"], ["ε"]]})
    A = nonterminal("A")
    x = terminal("x")
    assert Item(A, 1, 0, x).format(G) == "A -> *, x"
    assert Item(A, 0, 0, END).format(G) == "A -> * x A, $"


def test_closure():
    G = cc_grammar()
    start = augmented_start("S")

    I0 = closure(G, [Item(start, 0, 0, END)])

    assert set(I0) == {
        Item(start, 0, 0, END),
        Item(S, 0, 0, END),
        Item(C, 0, 0, c),
        Item(C, 0, 0, d),
        Item(C, 1, 0, c),
        Item(C, 1, 0, d),
    }
    assert I0 == initial_set(G)


def test_closure_of_complete_item():
    G = cc_grammar()
    item = Item(C, 1, 1, c)
    assert closure(G, [item]) == ItemSet.of([item])


def test_closure_with_nullable_tail():
    """The lookahead of the closed-over item comes from after the nonterminal,
    and if all of that can be empty then from the item's own lookahead.
    """
    G = build_grammar(
        "S",
        {
            "S": [["A", "B"]],
            "A": [["a"]],
            "B": [["b"], []],
        },
        augment=True,
    )
    A = nonterminal("A")

    I = closure(G, [Item(S, 0, 0, END)])
    assert set(I) == {
        Item(S, 0, 0, END),
        Item(A, 0, 0, terminal("b")),
        Item(A, 0, 0, END),
    }


def test_closure_of_epsilon_rule():
    G = build_grammar("S", {"S": [["A", "x"]], "A": [["ε"]]}, augment=True)
    A = nonterminal("A")

    I = closure(G, [Item(S, 0, 0, END)])
    assert Item(A, 0, 0, terminal("x")) in I
    assert Item(A, 0, 0, terminal("x")).is_complete(G)


def test_closure_is_idempotent():
    G = cc_grammar()
    I0 = initial_set(G)
    assert closure(G, I0) == I0


def test_closure_malformed_items():
    G = cc_grammar()

    with pytest.raises(LookupError):
        closure(G, [Item(nonterminal("Z"), 0, 0, END)])

    with pytest.raises(LookupError):
        closure(G, [Item(C, 2, 0, END)])

    with pytest.raises(LookupError):
        closure(G, [Item(C, 0, 3, END)])

    with pytest.raises(LookupError):
        closure(G, [Item(C, 0, 0, nonterminal("S"))])


def test_closure_wrongly_typed_items():
    G = cc_grammar()

    # Names where symbols belong.
    with pytest.raises(LookupError):
        closure(G, [Item(C, 0, 0, "$")])
    with pytest.raises(LookupError):
        closure(G, [Item("C", 0, 0, END)])

    # Rule and position have to be real ints.
    with pytest.raises(LookupError):
        closure(G, [Item(C, "0", 0, END)])
    with pytest.raises(LookupError):
        closure(G, [Item(C, True, 0, END)])
    with pytest.raises(LookupError):
        closure(G, [Item(C, 0, 1.0, END)])


def test_closure_unknown_lookahead():
    G = cc_grammar()

    with pytest.raises(LookupError):
        closure(G, [Item(C, 0, 0, terminal("zzz"))])
    with pytest.raises(LookupError):
        goto_(G, [Item(C, 0, 0, terminal("zzz"))], c)

    # The end marker is always fine, even though it's not written anywhere.
    assert Item(C, 1, 0, END) in closure(G, [Item(C, 1, 0, END)])


def test_goto():
    G = cc_grammar()
    I0 = initial_set(G)

    assert set(goto_(G, I0, C)) == {
        Item(S, 0, 1, END),
        Item(C, 0, 0, END),
        Item(C, 1, 0, END),
    }

    assert set(goto_(G, I0, "c")) == {
        Item(C, 0, 1, c),
        Item(C, 0, 1, d),
        Item(C, 0, 0, c),
        Item(C, 0, 0, d),
        Item(C, 1, 0, c),
        Item(C, 1, 0, d),
    }

    assert set(goto_(G, I0, d)) == {Item(C, 1, 1, c), Item(C, 1, 1, d)}


def test_goto_empty():
    G = cc_grammar()
    I0 = initial_set(G)

    assert goto_(G, I0, END) == ItemSet()
    assert len(goto_(G, I0, "nope")) == 0
    assert goto_(G, [], C) == ItemSet()


def test_goto_malformed_items():
    G = cc_grammar()
    with pytest.raises(LookupError):
        goto_(G, [Item(C, 7, 0, END)], C)


def test_canonical_collection():
    G = cc_grammar()
    graph = canonical_collection(G)

    assert len(graph.sets) == 10
    assert len(set(graph.sets)) == 10
    assert graph.sets[0] == initial_set(G)

    # Every transition is a GOTO.
    for (state, symbol), successor in graph.transitions.items():
        assert goto_(G, graph.sets[state], symbol) == graph.sets[successor]

    # Every non-empty GOTO is a transition.
    symbols = G.terminals | G.nonterminals
    for state, item_set in enumerate(graph.sets):
        for symbol in symbols:
            if len(goto_(G, item_set, symbol)) > 0:
                assert symbol in graph.successors[state]


def test_canonical_collection_is_deterministic():
    G = cc_grammar()
    assert canonical_collection(G).sets == canonical_collection(G).sets


def test_canonical_collection_paths():
    G = cc_grammar()
    graph = canonical_collection(G)

    target = goto_(G, goto_(G, graph.sets[0], C), "c")
    assert graph.find_path_to_set(target) == [C, c]
    assert graph.find_path_to_set(0) == []


def test_canonical_collection_unaugmented():
    """Without S' we start from every production of the start symbol."""
    G = build_grammar("S", {"S": [["C", "C"]], "C": [["c", "C"], ["d"]]})
    graph = canonical_collection(G)

    assert Item(S, 0, 0, END) in graph.sets[0]
    # The augmented version has one more state: the one after S.
    assert len(graph) == 9


def test_dump_state():
    G = cc_grammar()
    dumped = json.loads(canonical_collection(G).dump_state(G))

    assert len(dumped) == 10
    assert "S' -> * S, $" in dumped["0"]["items"]
    assert dumped["0"]["successors"]["S"] is not None
