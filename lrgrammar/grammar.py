"""The grammar itself, along with its FIRST and FOLLOW tables.

Grammars come in as a start symbol and a dictionary of productions, like:

    grammar_simple = {
      'E': [
          ['E', '+', 'T'],
          ['T'],
      ],
      'T': [
          ['(', 'E', ')'],
          ['id'],
      ],
    }

Every key is a nonterminal. Every other name that shows up in a body is a
terminal. Use an empty list, or a list with just 'ε' in it, to indicate
nullability, that is:

    'O': [['ε']],

means that O can be matched with nothing. Don't use '$' for anything; it is
reserved to mean end-of-stream.

Once a Grammar is constructed it never changes, so go ahead and share it.
"""

import types
import typing

from .items import Item
from .sets import FirstInfo, FollowInfo, first_of_sequence as _first_of_sequence
from .symbols import (
    END,
    END_NAME,
    EPSILON,
    EPSILON_NAME,
    Symbol,
    augmented_start,
    nonterminal,
    terminal,
)


Body = typing.Tuple[Symbol, ...]

SymbolLike = Symbol | str


class GrammarError(ValueError):
    """Something is wrong with the grammar we were asked to build.

    `symbol` is the name of the symbol that caused the problem and
    `production` is the (head, body) that caused the problem, if we know
    them.
    """

    symbol: str | None
    production: typing.Tuple[str, typing.Tuple[str, ...]] | None

    def __init__(
        self,
        message: str,
        symbol: str | None = None,
        production: typing.Tuple[str, typing.Tuple[str, ...]] | None = None,
    ):
        super().__init__(message)
        self.symbol = symbol
        self.production = production


def _check_name(name: typing.Any, production=None):
    if not isinstance(name, str) or len(name) == 0:
        raise GrammarError(
            f"Symbol names must be non-empty strings, not {name!r}",
            production=production,
        )


class Grammar:
    """A context-free grammar, with FIRST and FOLLOW computed for every symbol.

    If `augment` is True then we add a fresh start symbol S' and the
    production S' -> S, and we add the end marker to the terminals. The LR
    constructions need an augmented grammar: that is how they know when they
    are done.
    """

    # The start symbol. If the grammar is augmented this is S'.
    start_symbol: Symbol

    # The productions, indexed by nonterminal. The index of a body within its
    # tuple is the rule index that items use to refer to it. Epsilon bodies
    # are stored as the empty tuple.
    productions: typing.Mapping[Symbol, typing.Tuple[Body, ...]]

    terminals: frozenset[Symbol]
    nonterminals: frozenset[Symbol]

    # FIRST of every terminal, nonterminal, and epsilon.
    first: typing.Mapping[Symbol, frozenset[Symbol]]
    # FOLLOW of every nonterminal.
    follow: typing.Mapping[Symbol, frozenset[Symbol]]

    augmented: bool

    _symbols: typing.Mapping[str, Symbol]
    _sealed: bool

    def __init__(
        self,
        start: str,
        productions: typing.Mapping[str, typing.Sequence[typing.Sequence[str]]],
        augment: bool = False,
    ):
        self._sealed = False

        # Check to make sure they didn't use anything that will give us
        # heartburn later.
        for head, bodies in productions.items():
            _check_name(head)
            if head in (EPSILON_NAME, END_NAME):
                raise GrammarError(f"Can't use {head} as a nonterminal, it's reserved.", symbol=head)
            if len(bodies) == 0:
                raise GrammarError(f"Nonterminal {head} has no productions", symbol=head)

        _check_name(start)
        if start not in productions:
            raise GrammarError(
                f"The start symbol {start} must be a nonterminal, but it has no productions",
                symbol=start,
            )

        # Work out the alphabet. We count on python dictionaries retaining
        # the insertion order, since that's what gives us our rule indices.
        symbols: dict[str, Symbol] = {head: nonterminal(head) for head in productions}
        full_grammar: dict[Symbol, typing.Tuple[Body, ...]] = {}
        for head, bodies in productions.items():
            rules: list[Body] = []
            for body in bodies:
                production = (head, tuple(body))
                for name in body:
                    _check_name(name, production)

                if len(body) == 1 and body[0] == EPSILON_NAME:
                    rules.append(())
                    continue

                if EPSILON_NAME in body:
                    raise GrammarError(
                        f"{EPSILON_NAME} must be the only symbol in a production: "
                        f"{head} -> {' '.join(body)}",
                        symbol=EPSILON_NAME,
                        production=production,
                    )
                if END_NAME in body:
                    raise GrammarError(
                        f"Can't use {END_NAME} in grammars, it's reserved.",
                        symbol=END_NAME,
                        production=production,
                    )

                rule = []
                for name in body:
                    symbol = symbols.get(name)
                    if symbol is None:
                        symbol = terminal(name)
                        symbols[name] = symbol
                    rule.append(symbol)
                rules.append(tuple(rule))

            full_grammar[symbols[head]] = tuple(rules)

        terminals = {s for s in symbols.values() if s.is_terminal}
        start_symbol = symbols[start]

        if augment:
            new_start = augmented_start(start)
            if new_start.name in symbols:
                raise GrammarError(
                    f"Can't augment the grammar: {new_start.name} is already in use",
                    symbol=new_start.name,
                )

            full_grammar = {new_start: ((start_symbol,),), **full_grammar}
            symbols[new_start.name] = new_start
            terminals.add(END)
            start_symbol = new_start

        symbols[EPSILON_NAME] = EPSILON
        symbols[END_NAME] = END

        self.start_symbol = start_symbol
        self.productions = types.MappingProxyType(full_grammar)
        self.terminals = frozenset(terminals)
        self.nonterminals = frozenset(full_grammar.keys())
        self.augmented = augment
        self._symbols = types.MappingProxyType(symbols)

        assert self.terminals.isdisjoint(self.nonterminals)

        firsts = FirstInfo.from_grammar(self.productions, self.terminals)
        follows = FollowInfo.from_grammar(self.productions, self.start_symbol, firsts)
        self.first = types.MappingProxyType(dict(firsts.firsts))
        self.follow = types.MappingProxyType(dict(follows.follows))

        self._sealed = True

    def __setattr__(self, name: str, value: typing.Any):
        if getattr(self, "_sealed", False):
            raise AttributeError(f"Grammar is read-only, can't set {name}")
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        return f"Grammar(start={self.start_symbol.name!r}, {len(self.productions)} nonterminals)"

    def symbol(self, name: SymbolLike) -> Symbol | None:
        """Look up a symbol by name, or None if there is no such symbol.

        (Symbols just come right back, as long as they are in the grammar.)
        """
        if isinstance(name, Symbol):
            if self._symbols.get(name.name) == name:
                return name
            return None
        return self._symbols.get(name)

    def rules(self) -> typing.Iterator[typing.Tuple[Symbol, int, Body]]:
        """Every production in the grammar, as (head, rule index, body)."""
        for head, bodies in self.productions.items():
            for index, body in enumerate(bodies):
                yield (head, index, body)

    def body(self, head: SymbolLike, rule: int) -> Body:
        """The body of rule number `rule` of `head`.

        Raises LookupError if there is no such rule.
        """
        symbol = self.symbol(head)
        bodies = self.productions.get(symbol) if symbol is not None else None
        if bodies is None:
            raise LookupError(f"{head} is not a nonterminal in this grammar")
        if rule < 0 or rule >= len(bodies):
            raise LookupError(f"{head} has no rule {rule} (it has {len(bodies)})")
        return bodies[rule]

    def check_item(self, item: Item) -> Body:
        """Make sure the item actually refers to something in this grammar,
        and return the body it is positioned within.

        Raises LookupError if the item is malformed: the head isn't one of our
        nonterminals, the rule or position is out of range, or the lookahead
        isn't one of our terminals (or the end marker).
        """
        head, rule, position, lookahead = item
        if not isinstance(head, Symbol) or head not in self.productions:
            raise LookupError(f"{head!r} is not a nonterminal in this grammar")
        for name, value in (("rule", rule), ("position", position)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise LookupError(f"The {name} of an item must be an int, not {value!r}")

        body = self.body(head, rule)
        if position < 0 or position > len(body):
            raise LookupError(f"Position {position} is out of range for {head} rule {rule}")
        if not isinstance(lookahead, Symbol) or not (
            lookahead == END or lookahead in self.terminals
        ):
            raise LookupError(f"Lookahead {lookahead!r} is not a terminal in this grammar")
        return body

    def first_of(self, symbol: SymbolLike) -> frozenset[Symbol]:
        resolved = self.symbol(symbol)
        if resolved is None:
            return frozenset()
        return self.first.get(resolved, frozenset())

    def first_of_sequence(self, symbols: typing.Iterable[SymbolLike]) -> frozenset[Symbol]:
        resolved = []
        stopped = False
        for s in symbols:
            r = self.symbol(s)
            if r is None:
                # Unknown symbols have an empty FIRST, so nothing past them
                # can contribute, and the sequence can't vanish either.
                stopped = True
                break
            resolved.append(r)

        result = _first_of_sequence(self.first, resolved)
        if stopped:
            result = result - {EPSILON}
        return result

    def follow_of(self, symbol: SymbolLike) -> frozenset[Symbol]:
        resolved = self.symbol(symbol)
        if resolved is None:
            return frozenset()
        return self.follow.get(resolved, frozenset())

    def format(self) -> str:
        """Format the productions, FIRST and FOLLOW so pretty."""

        def join(symbols: typing.Iterable[Symbol]) -> str:
            return ", ".join(str(s) for s in sorted(symbols))

        lines = ["PRODUCTIONS:"]
        for head, index, body in self.rules():
            rhs = " ".join(str(s) for s in body) if len(body) > 0 else EPSILON_NAME
            lines.append(f"{index: >3} {head} -> {rhs}")

        lines.append("FIRST:")
        for symbol in sorted(self.nonterminals):
            lines.append(f"{symbol} -> {join(self.first[symbol])}")

        lines.append("FOLLOW:")
        for symbol in sorted(self.nonterminals):
            lines.append(f"{symbol} -> {join(self.follow[symbol])}")

        return "\n".join(lines)


def build_grammar(
    start: str,
    productions: typing.Mapping[str, typing.Sequence[typing.Sequence[str]]],
    augment: bool = False,
) -> Grammar:
    return Grammar(start, productions, augment=augment)


def first_of_symbol(grammar: Grammar, symbol: SymbolLike) -> frozenset[Symbol]:
    """FIRST of a single symbol. Unknown symbols have an empty FIRST."""
    return grammar.first_of(symbol)


def first_of_sequence(
    grammar: Grammar, symbols: typing.Iterable[SymbolLike]
) -> frozenset[Symbol]:
    """FIRST of a sequence of symbols. The empty sequence has an empty FIRST."""
    return grammar.first_of_sequence(symbols)


def follow_of(grammar: Grammar, symbol: SymbolLike) -> frozenset[Symbol]:
    """FOLLOW of a nonterminal. Anything else has an empty FOLLOW."""
    return grammar.follow_of(symbol)
