"""CLOSURE, GOTO, and the canonical collection of LR(1) item sets.

(The notes I followed for all of this are at
http://dragonbook.stanford.edu/lecture-notes/Stanford-CS143/, handout 8,
'Bottom-up-parsing', and the LR(1) section of the dragon book.)
"""

import collections
import dataclasses
import json
import logging
import typing

from .grammar import Grammar, SymbolLike
from .items import Item, ItemSet
from .sets import first_of_sequence
from .symbols import END, EPSILON, Symbol

states_log = logging.getLogger("lrgrammar.states")


def closure(grammar: Grammar, items: typing.Iterable[Item]) -> ItemSet:
    """Compute the closure of the given items.

    Some of the items might be positioned right before nonterminals. In that
    case, obviously, we should *also* behave as if we were right at the
    beginning of each production for that nonterminal. For the item

        A -> x * B y, a

    that means adding B -> * z, b for every production B -> z and every
    terminal b in FIRST(y a). (That's where the "1" in LR(1) comes from: the
    lookahead for the new items is whatever can come after B here.) The set
    of all those items combined with all the incoming items is the closure.

    Raises LookupError if any of the items don't make sense in the grammar.
    """
    result: set[Item] = set()
    for item in items:
        grammar.check_item(item)
        result.add(item)

    # Each item only ever adds the same things, so once we've expanded an
    # item there's no point expanding it again on a later pass.
    expanded: set[Item] = set()

    added = 1
    while added > 0:
        added = 0
        for item in sorted(result - expanded):
            expanded.add(item)

            next = item.next_symbol(grammar)
            if next is None or not next.is_nonterminal:
                # No closure for this one: we're at the end, or we're in
                # front of a terminal.
                continue

            lookaheads = first_of_sequence(grammar.first, item.rest(grammar) + (item.lookahead,))
            for rule, _ in enumerate(grammar.productions[next]):
                for lookahead in lookaheads:
                    if lookahead == EPSILON:
                        continue

                    new_item = Item.initial(next, rule, lookahead)
                    if new_item not in result:
                        result.add(new_item)
                        added += 1

    return ItemSet.of(result)


def goto_(grammar: Grammar, items: typing.Iterable[Item], symbol: SymbolLike) -> ItemSet:
    """Compute the successor of the given items on the given symbol.

    The successor represents the next state of the parser after seeing the
    symbol: every item with the dot right before `symbol` gets the dot moved
    over it, and then we close the result. If nothing has the dot right
    before `symbol` then the result is empty.

    Raises LookupError if any of the items don't make sense in the grammar.
    """
    resolved = grammar.symbol(symbol)
    kernel = []
    for item in items:
        next = item.next_symbol(grammar)
        if resolved is not None and next == resolved:
            kernel.append(item.advance())

    if len(kernel) == 0:
        return ItemSet()
    return closure(grammar, kernel)


@dataclasses.dataclass
class StateGraph:
    """The canonical collection of LR(1) item sets, along with the transitions
    between them. (That is, the states of the LR(1) automaton, and its
    edges.)

    The index of a set in `sets` is its state number. State 0 is always the
    initial state.
    """

    sets: list[ItemSet]

    # All the sucessors for all of the sets. `successors[i]` is the mapping
    # from grammar symbol to the index of the set you get by processing that
    # symbol.
    successors: list[dict[Symbol, int]]

    # Map an ItemSet back to its index.
    set_key: dict[ItemSet, int]

    def __init__(self):
        self.sets = []
        self.successors = []
        self.set_key = {}

    def __len__(self) -> int:
        return len(self.sets)

    def register_set(self, c: ItemSet) -> typing.Tuple[int, bool]:
        """Potentially add a new item set to the collection. Returns the index
        of the set, along with a boolean indicating whether the set was just
        added or not.
        """
        existing = self.set_key.get(c)
        if existing is not None:
            return existing, False

        index = len(self.sets)
        self.sets.append(c)
        self.successors.append({})
        self.set_key[c] = index
        return index, True

    def add_successor(self, c_id: int, symbol: Symbol, successor: int):
        self.successors[c_id][symbol] = successor

    @property
    def transitions(self) -> dict[typing.Tuple[int, Symbol], int]:
        """All the edges, as (state, symbol) -> state."""
        return {
            (index, symbol): successor
            for index, successors in enumerate(self.successors)
            for symbol, successor in successors.items()
        }

    def find_path_to_set(self, target: ItemSet | int) -> list[Symbol]:
        """Trace the path of grammar symbols from the first set (which is
        always set 0) to the target set. This is useful in conflict
        reporting, because we'll be *at* a set and want to show the grammar
        symbols that get us to where we found the conflict.

        This function raises KeyError if no path is found.
        """
        if isinstance(target, ItemSet):
            target_index = self.set_key[target]
        else:
            target_index = target
        visited = set()

        queue: collections.deque = collections.deque()
        queue.appendleft((0, []))
        while len(queue) > 0:
            set_index, path = queue.pop()
            if set_index == target_index:
                return path

            if set_index in visited:
                continue
            visited.add(set_index)

            for symbol, successor in self.successors[set_index].items():
                queue.appendleft((successor, path + [symbol]))

        raise KeyError("Unable to find a path to the target set!")

    def dump_state(self, grammar: Grammar) -> str:
        return json.dumps(
            {
                str(set_index): {
                    "items": [item.format(grammar) for item in item_set],
                    "successors": {str(k): str(v) for k, v in successors.items()},
                }
                for set_index, (item_set, successors) in enumerate(
                    zip(self.sets, self.successors)
                )
            },
            indent=4,
            sort_keys=True,
        )


def initial_set(grammar: Grammar) -> ItemSet:
    """The first state of the automaton.

    For an augmented grammar this is CLOSURE({S' -> * S, $}). We don't insist
    on augmentation, though: otherwise we start from every production of the
    start symbol, with the end marker as the lookahead.
    """
    seeds = [
        Item.initial(grammar.start_symbol, rule, END)
        for rule, _ in enumerate(grammar.productions[grammar.start_symbol])
    ]
    return closure(grammar, seeds)


def all_successors(grammar: Grammar, item_set: ItemSet) -> list[typing.Tuple[Symbol, ItemSet]]:
    """Return all of the non-empty successors for the given item set.

    (That is, given the item set, pretend we see all the symbols we could
    possibly see, and figure out which item sets we get from those symbols.
    Those are the successors of this set.)
    """
    possible = sorted(
        {next for item in item_set if (next := item.next_symbol(grammar)) is not None}
    )

    result = []
    for symbol in possible:
        successor = goto_(grammar, item_set, symbol)
        if len(successor) > 0:
            result.append((symbol, successor))

    return result


def canonical_collection(grammar: Grammar) -> StateGraph:
    """Generate all of the LR(1) item sets reachable from the initial set, and
    the transitions between them.

    Sets are numbered in the order we find them, breadth first, and we visit
    symbols in sorted order, so the numbering is the same every time.
    """
    result = StateGraph()

    successors = []
    pending = [initial_set(grammar)]
    pending_next: list[ItemSet] = []
    while len(pending) > 0:
        for item_set in pending:
            id, is_new = result.register_set(item_set)
            if is_new:
                for symbol, successor in all_successors(grammar, item_set):
                    successors.append((id, symbol, successor))
                    pending_next.append(successor)

        temp = pending
        pending = pending_next
        pending_next = temp
        pending_next.clear()

    for id, symbol, successor in successors:
        result.add_successor(id, symbol, result.set_key[successor])

    states_log.debug(
        "Canonical collection has %d states and %d transitions",
        len(result.sets),
        len(successors),
    )
    return result
