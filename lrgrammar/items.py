"""LR(1) items and sets of them."""

import dataclasses
import typing

from .symbols import Symbol

if typing.TYPE_CHECKING:
    from .grammar import Grammar


class Item(typing.NamedTuple):
    """An LR(1) item: a position within a rule, with one token of lookahead.

    We don't carry the body of the rule around, just the index of the rule in
    the list of bodies for `head`; the grammar knows the rest. That keeps
    these small and cheap to hash and compare, and we make a *lot* of them.

    Being a tuple, items sort lexicographically on (head, rule, position,
    lookahead), which is exactly the order we want for canonical item sets.
    """

    head: Symbol
    rule: int
    position: int
    lookahead: Symbol

    @classmethod
    def initial(cls, head: Symbol, rule: int, lookahead: Symbol) -> "Item":
        return Item(head=head, rule=rule, position=0, lookahead=lookahead)

    def advance(self) -> "Item":
        return self._replace(position=self.position + 1)

    def next_symbol(self, grammar: "Grammar") -> Symbol | None:
        """The symbol right after the dot, or None if the item is complete."""
        body = grammar.check_item(self)
        if self.position == len(body):
            return None
        return body[self.position]

    def rest(self, grammar: "Grammar") -> typing.Tuple[Symbol, ...]:
        """The symbols after the one right after the dot."""
        body = grammar.check_item(self)
        return body[(self.position + 1) :]

    def is_complete(self, grammar: "Grammar") -> bool:
        return self.next_symbol(grammar) is None

    def format(self, grammar: "Grammar") -> str:
        body = grammar.check_item(self)
        bits = [str(sym) for sym in body]
        bits.insert(self.position, "*")
        return f"{self.head} -> {' '.join(bits)}, {self.lookahead}"


@dataclasses.dataclass(frozen=True)
class ItemSet:
    """A set of items, kept sorted and without duplicates.

    Since the items are always in the same order no matter how we built the
    set, two sets with the same items are equal and hash the same, so these
    can be used as dictionary keys when we build the canonical collection.
    """

    items: typing.Tuple[Item, ...] = ()

    @classmethod
    def of(cls, items: typing.Iterable[Item]) -> "ItemSet":
        return ItemSet(tuple(sorted(set(items))))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> typing.Iterator[Item]:
        return iter(self.items)

    def __contains__(self, item: object) -> bool:
        return item in self.items

    def __le__(self, other: "ItemSet") -> bool:
        return set(self.items) <= set(other.items)

    def __or__(self, other: "ItemSet") -> "ItemSet":
        return ItemSet.of(self.items + other.items)

    def format(self, grammar: "Grammar") -> str:
        return "\n".join(item.format(grammar) for item in self.items)
