"""Turn the canonical collection into canonical LR(1) parse tables.

Every state of the automaton becomes a row. Complete items reduce on their
lookahead, items in front of a terminal shift, and the transitions on
nonterminals become the GOTO part of the row.

There is no precedence or associativity here: if two different actions land
in the same cell then the grammar is not LR(1), and we report every such cell
as a `Conflict`, with the items that asked for each action.
"""

import dataclasses
import logging
import typing

from .automaton import StateGraph, canonical_collection
from .grammar import Grammar, GrammarError, SymbolLike
from .items import Item
from .symbols import END, Symbol

table_log = logging.getLogger("lrgrammar.states")


@dataclasses.dataclass(frozen=True)
class Shift:
    state: int


@dataclasses.dataclass(frozen=True)
class Reduce:
    """Pop `count` values and make a `head` out of them, by rule `rule`."""

    head: Symbol
    rule: int
    count: int


@dataclasses.dataclass(frozen=True)
class Accept:
    pass


Action = Shift | Reduce | Accept


def describe_action(action: Action) -> str:
    match action:
        case Shift(state=state):
            return f"shift to state {state}"
        case Reduce(head=head, count=count):
            return f"reduce {count} symbols to {head}"
        case Accept():
            return "accept"


@dataclasses.dataclass(frozen=True)
class Conflict:
    """Two or more actions in the same cell of the table.

    `path` is the shortest run of symbols that gets the parser from state 0
    to `state`, and `choices` pairs each competing action with the item
    (already formatted) that wanted it.
    """

    state: int
    path: typing.Tuple[Symbol, ...]
    lookahead: Symbol
    choices: typing.Tuple[typing.Tuple[Action, str], ...]

    @property
    def actions(self) -> typing.Tuple[Action, ...]:
        return tuple(action for action, _ in self.choices)

    def __str__(self) -> str:
        path = " ".join(str(s) for s in self.path)
        lines = [f"In state {self.state}, after '{path}', on {self.lookahead} we could:"]
        for action, item in self.choices:
            lines.append(f"  {describe_action(action)}  ({item})")
        return "\n".join(lines)


class ConflictError(GrammarError):
    """The grammar is not LR(1). `conflicts` has every cell that went wrong."""

    conflicts: typing.List[Conflict]

    def __init__(self, conflicts: typing.List[Conflict]):
        message = f"The grammar is not LR(1), {len(conflicts)} conflicts:\n\n" + "\n\n".join(
            str(conflict) for conflict in conflicts
        )
        super().__init__(message, symbol=conflicts[0].lookahead.name if conflicts else None)
        self.conflicts = conflicts


@dataclasses.dataclass
class ParseTable:
    """The ACTION and GOTO tables, one row per state. State 0 is the start.

    `actions[state]` maps a terminal to what to do; anything missing is a
    syntax error. `gotos[state]` maps a nonterminal to the state to push after
    reducing to it. The columns are the grammar's terminals and nonterminals,
    in symbol order.
    """

    grammar: Grammar
    terminals: typing.Tuple[Symbol, ...]
    nonterminals: typing.Tuple[Symbol, ...]
    actions: list[dict[Symbol, Action]]
    gotos: list[dict[Symbol, int]]

    def __len__(self) -> int:
        return len(self.actions)

    def action(self, state: int, symbol: SymbolLike) -> Action | None:
        resolved = self.grammar.symbol(symbol)
        if resolved is None:
            return None
        return self.actions[state].get(resolved)

    def goto(self, state: int, symbol: SymbolLike) -> int | None:
        resolved = self.grammar.symbol(symbol)
        if resolved is None:
            return None
        return self.gotos[state].get(resolved)

    def format(self) -> str:
        """Format the table so pretty, one line per state."""

        def cell(action: Action | None) -> str:
            match action:
                case Shift(state=state):
                    return f"s{state}"
                case Reduce(head=head, rule=rule):
                    return f"r{head}:{rule}"
                case Accept():
                    return "accept"
                case _:
                    return ""

        header = ["state"] + [str(s) for s in self.terminals + self.nonterminals]
        rows = []
        for state, (actions, gotos) in enumerate(zip(self.actions, self.gotos)):
            row = [str(state)]
            row.extend(cell(actions.get(t)) for t in self.terminals)
            row.extend(str(gotos[n]) if n in gotos else "" for n in self.nonterminals)
            rows.append(row)

        widths = [max(len(row[i]) for row in [header] + rows) for i in range(len(header))]

        def line(cells: list[str]) -> str:
            return " | ".join(c.ljust(w) for c, w in zip(cells, widths)).rstrip()

        return "\n".join(
            [line(header), "-+-".join("-" * w for w in widths)] + [line(row) for row in rows]
        )


def _row_candidates(
    grammar: Grammar, graph: StateGraph, state: int
) -> dict[Symbol, dict[Action, list[Item]]]:
    """Every action every item in the state asks for, by terminal."""
    candidates: dict[Symbol, dict[Action, list[Item]]] = {}
    successors = graph.successors[state]

    for item in graph.sets[state]:
        next = item.next_symbol(grammar)
        if next is None:
            if item.head == grammar.start_symbol:
                action: Action = Accept()
            else:
                count = len(grammar.body(item.head, item.rule))
                action = Reduce(item.head, item.rule, count)
            on = item.lookahead
        elif next.is_terminal:
            action = Shift(successors[next])
            on = next
        else:
            continue

        candidates.setdefault(on, {}).setdefault(action, []).append(item)

    return candidates


def build_table(grammar: Grammar) -> ParseTable:
    """Generate the canonical LR(1) parse table for an augmented grammar.

    Raises GrammarError if the grammar wasn't augmented, and ConflictError
    (which is a GrammarError too) if the grammar is not LR(1).
    """
    if not grammar.augmented:
        raise GrammarError(
            "Only augmented grammars can be made into tables",
            symbol=grammar.start_symbol.name,
        )

    graph = canonical_collection(grammar)
    actions: list[dict[Symbol, Action]] = []
    gotos: list[dict[Symbol, int]] = []
    conflicts: list[Conflict] = []

    for state in range(len(graph)):
        row: dict[Symbol, Action] = {}
        for symbol, wanted in sorted(_row_candidates(grammar, graph, state).items()):
            if len(wanted) > 1:
                choices = tuple(
                    (action, item.format(grammar))
                    for action, items in wanted.items()
                    for item in items
                )
                conflicts.append(
                    Conflict(
                        state=state,
                        path=tuple(graph.find_path_to_set(state)),
                        lookahead=symbol,
                        choices=choices,
                    )
                )
            row[symbol] = next(iter(wanted))

        actions.append(row)
        gotos.append(
            {
                symbol: successor
                for symbol, successor in sorted(graph.successors[state].items())
                if symbol.is_nonterminal
            }
        )

    if len(conflicts) > 0:
        raise ConflictError(conflicts)

    table_log.debug("Built a table with %d states", len(actions))
    return ParseTable(
        grammar=grammar,
        terminals=tuple(sorted(grammar.terminals | {END})),
        nonterminals=tuple(sorted(grammar.nonterminals - {grammar.start_symbol})),
        actions=actions,
        gotos=gotos,
    )
