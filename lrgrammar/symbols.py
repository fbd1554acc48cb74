"""Grammar symbols.

A symbol is a tagged name. The tag says what kind of symbol it is, and the
name is what humans see. We keep the special symbols (epsilon, the end
marker, and the augmented start) as their own kinds so that they can never be
confused with something the caller wrote, even if the caller picks a silly
name for a terminal.
"""

import dataclasses
import enum


# The names we print for the special symbols. Callers can't use these as the
# names of their own symbols. (Well, they can write EPSILON_NAME as the only
# thing in a body, which means the same thing as an empty body.)
EPSILON_NAME = "ε"
END_NAME = "$"


class SymbolKind(enum.IntEnum):
    """What a symbol is. The order here is the order symbols sort in."""

    TERMINAL = 0
    NONTERMINAL = 1
    EPSILON = 2
    END = 3
    AUGMENTED_START = 4


@dataclasses.dataclass(frozen=True, order=True)
class Symbol:
    kind: SymbolKind
    name: str

    @property
    def is_terminal(self) -> bool:
        """True for anything that can show up as a lookahead, which includes the
        end marker.
        """
        return self.kind in (SymbolKind.TERMINAL, SymbolKind.END)

    @property
    def is_nonterminal(self) -> bool:
        return self.kind in (SymbolKind.NONTERMINAL, SymbolKind.AUGMENTED_START)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        match self.kind:
            case SymbolKind.EPSILON:
                return "EPSILON"
            case SymbolKind.END:
                return "END"
            case SymbolKind.TERMINAL:
                return f"terminal({self.name!r})"
            case SymbolKind.NONTERMINAL:
                return f"nonterminal({self.name!r})"
            case SymbolKind.AUGMENTED_START:
                return f"augmented_start({self.name!r})"
            case _:
                raise Exception(f"unknown symbol kind {self.kind}")


EPSILON = Symbol(SymbolKind.EPSILON, EPSILON_NAME)
END = Symbol(SymbolKind.END, END_NAME)


def terminal(name: str) -> Symbol:
    return Symbol(SymbolKind.TERMINAL, name)


def nonterminal(name: str) -> Symbol:
    return Symbol(SymbolKind.NONTERMINAL, name)


def augmented_start(start: str) -> Symbol:
    """The fresh start symbol for an augmented grammar whose original start is
    `start`. (The classic S' for S.)
    """
    return Symbol(SymbolKind.AUGMENTED_START, start + "'")
