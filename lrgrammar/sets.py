"""FIRST and FOLLOW.

(See handout 7 of the Stanford CS143 notes, or chapter 4 of the dragon book,
for the definitions.)

Both of these are computed by iterating to a fixed point: keep making passes
over every production, adding whatever we can, until a whole pass adds
nothing at all. The sets only ever grow and they are bounded by the alphabet,
so this always stops.
"""

import dataclasses
import logging
import typing

from .symbols import END, EPSILON, Symbol

sets_log = logging.getLogger("lrgrammar.sets")


Body = typing.Tuple[Symbol, ...]
Productions = typing.Mapping[Symbol, typing.Tuple[Body, ...]]


def update_added(items: set[Symbol], other: typing.Iterable[Symbol]) -> int:
    """Merge the `other` set into the `items` set, and return the number of
    things that were actually added.
    """
    old_len = len(items)
    items.update(other)
    return len(items) - old_len


def first_of_sequence(
    firsts: typing.Mapping[Symbol, typing.AbstractSet[Symbol]],
    symbols: typing.Iterable[Symbol],
) -> frozenset[Symbol]:
    """Return FIRST for a *sequence* of symbols, given the FIRST of every
    individual symbol.

    Walk the sequence from left to right, adding FIRST of each symbol (minus
    epsilon) for as long as everything so far can be empty. If we make it all
    the way to the end then the whole sequence can be empty, and so the
    result has epsilon too.

    The empty sequence has an empty FIRST, *not* {epsilon}. Callers who care
    about that case have to handle it themselves.
    """
    result: set[Symbol] = set()
    count = 0
    for symbol in symbols:
        count += 1
        symbol_firsts = firsts.get(symbol, frozenset())
        result.update(s for s in symbol_firsts if s != EPSILON)
        if EPSILON not in symbol_firsts:
            return frozenset(result)

    if count > 0:
        result.add(EPSILON)
    return frozenset(result)


@dataclasses.dataclass(frozen=True)
class FirstInfo:
    """FIRST for every symbol in a grammar.

    firsts[s] is the set of terminals that can begin a string derived from s,
    plus epsilon if s can derive the empty string. For a terminal t,
    firsts[t] is {t}, and firsts[EPSILON] is {EPSILON}.

    For example, consider the grammar:

        S -> A B c
        A -> a | ε
        B -> b | ε

    FIRST[A] is {a, ε} and FIRST[B] is {b, ε}. FIRST[S] is {a, b, c}: 'a'
    comes from A, but A can be empty so 'b' can start S too, and B can be
    empty so 'c' can as well. 'c' can't be empty, so ε is *not* in FIRST[S].
    """

    firsts: typing.Mapping[Symbol, frozenset[Symbol]]

    @classmethod
    def from_grammar(
        cls,
        productions: Productions,
        terminals: typing.Iterable[Symbol],
    ) -> "FirstInfo":
        firsts: dict[Symbol, set[Symbol]] = {t: {t} for t in terminals}
        firsts[EPSILON] = {EPSILON}
        # The end marker is always a valid lookahead, even when the grammar
        # isn't augmented and so doesn't list it as a terminal.
        firsts[END] = {END}
        for name in productions:
            firsts[name] = set()

        # Every productive round adds at least one symbol to one set, and no
        # set can hold more than every terminal plus epsilon.
        limit = len(productions) * (len(firsts) + 1) + 1

        rounds = 0
        added = 1
        while added > 0:
            rounds += 1
            assert rounds <= limit, "FIRST failed to converge"

            added = 0
            for name, bodies in productions.items():
                f = firsts[name]
                for body in bodies:
                    if len(body) == 0:
                        added += update_added(f, (EPSILON,))
                        continue

                    for index, symbol in enumerate(body):
                        other_firsts = firsts[symbol]
                        added += update_added(f, (s for s in other_firsts if s != EPSILON))
                        if EPSILON not in other_firsts:
                            break

                        if index == len(body) - 1:
                            # Made it to the end and everything can be
                            # empty, so this body can be empty too.
                            added += update_added(f, (EPSILON,))

        sets_log.debug("FIRST converged after %d rounds", rounds)
        return FirstInfo(firsts={k: frozenset(v) for k, v in firsts.items()})


@dataclasses.dataclass(frozen=True)
class FollowInfo:
    """FOLLOW for every nonterminal in a grammar.

    The follow set for a nonterminal is the set of terminals that can come
    right after the nonterminal in some sentential form. The start symbol is
    always followed by the end marker. The sets never contain epsilon.

    To compute it we look at every place a nonterminal B appears, say in the
    production A -> x B y. Everything in FIRST(y) (except epsilon) can follow
    B. If y can be empty, or there is no y at all, then anything that can
    follow A can also follow B.

    We actually walk each body backwards, carrying along the set of things
    that can follow the current position (the "trailer"). It starts as
    FOLLOW(A) and changes every time we step over a symbol: a terminal
    replaces it outright, a nonterminal replaces it with its FIRST, or adds
    its FIRST if the nonterminal can be empty.
    """

    follows: typing.Mapping[Symbol, frozenset[Symbol]]

    @classmethod
    def from_grammar(
        cls,
        productions: Productions,
        start_symbol: Symbol,
        firsts: FirstInfo,
    ) -> "FollowInfo":
        follows: dict[Symbol, set[Symbol]] = {name: set() for name in productions}
        follows[start_symbol].add(END)

        first = firsts.firsts
        limit = len(productions) * (len(first) + 1) + 1

        rounds = 0
        added = 1
        while added > 0:
            rounds += 1
            assert rounds <= limit, "FOLLOW failed to converge"

            added = 0
            for name, bodies in productions.items():
                for body in bodies:
                    trailer = set(follows[name])
                    for symbol in reversed(body):
                        symbol_first = first[symbol]
                        if not symbol.is_nonterminal:
                            trailer = set(symbol_first)
                            continue

                        added += update_added(follows[symbol], trailer)

                        without_epsilon = (s for s in symbol_first if s != EPSILON)
                        if EPSILON in symbol_first:
                            trailer.update(without_epsilon)
                        else:
                            trailer = set(without_epsilon)

        sets_log.debug("FOLLOW converged after %d rounds", rounds)

        # Nothing above ever puts epsilon in a follow set, but make sure.
        return FollowInfo(follows={k: frozenset(v - {EPSILON}) for k, v in follows.items()})
