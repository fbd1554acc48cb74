import dataclasses
import logging
import typing

from . import table as tables
from .symbols import END, END_NAME, Symbol


@dataclasses.dataclass
class Tree:
    name: str
    children: typing.Tuple["Tree | str", ...]

    def format_lines(self) -> list[str]:
        lines = []

        def format_node(node: Tree | str, indent: int):
            match node:
                case Tree(name=name, children=children):
                    lines.append((" " * indent) + name)
                    for child in children:
                        format_node(child, indent + 2)

                case str():
                    lines.append((" " * indent) + node)

        format_node(self, 0)
        return lines

    def format(self) -> str:
        return "\n".join(self.format_lines())


class ParseError(ValueError):
    message: str
    position: int
    token: str

    def __init__(self, message: str, position: int, token: str):
        super().__init__(message)
        self.message = message
        self.position = position
        self.token = token


ParseStack = list[typing.Tuple[int, Tree | str | None]]


action_log = logging.getLogger("lrgrammar.action")


class Parser:
    """Run a parse table over a list of tokens.

    This is not a *great* parser, there's no error recovery or anything. It's
    really just here so that we can see the tables do what they say.
    """

    table: tables.ParseTable

    def __init__(self, table: tables.ParseTable):
        self.table = table

    def parse(self, tokens: typing.Sequence[str]) -> Tree:
        """Parse the input and return the concrete syntax tree.

        tokens is a list of terminal names. Don't stick an end-of-stream
        marker on, I'll stick one on for you.

        Raises ParseError if the tokens don't match the grammar, including if
        one of them isn't a terminal of the grammar at all.
        """
        grammar = self.table.grammar
        input: list[Symbol] = []
        for index, token in enumerate(tokens):
            if token == END_NAME:
                raise ParseError(
                    f"Syntax error at {index}: {END_NAME} is reserved for the end of the input",
                    index,
                    token,
                )
            symbol = grammar.symbol(token)
            if symbol is None or not symbol.is_terminal:
                raise ParseError(
                    f"Syntax error at {index}: {token} is not a terminal of the grammar",
                    index,
                    token,
                )
            input.append(symbol)
        input.append(END)
        input_index = 0

        # Our stack is a stack of tuples, where the first entry is the state
        # number and the second entry is the 'value' that was generated when
        # the state was pushed.
        stack: ParseStack = [(0, None)]

        al = action_log
        while True:
            current_state = stack[-1][0]
            current_token = input[input_index]

            action = self.table.actions[current_state].get(current_token)
            if al.isEnabledFor(logging.INFO):
                al.info(
                    "{stack: <30} {input: <15} {action: <5}".format(
                        stack=repr([s[0] for s in stack[-5:]]),
                        input=str(current_token),
                        action=repr(action),
                    )
                )

            match action:
                case tables.Accept():
                    result = stack[-1][1]
                    assert isinstance(result, Tree)
                    return result

                case tables.Reduce(head=head, count=size):
                    children: list[Tree | str] = []
                    if size > 0:
                        for _, c in stack[-size:]:
                            assert c is not None
                            children.append(c)
                        del stack[-size:]

                    goto = self.table.gotos[stack[-1][0]].get(head)
                    assert goto is not None, "Corrupt table?"
                    stack.append((goto, Tree(name=head.name, children=tuple(children))))

                case tables.Shift(state=state):
                    stack.append((state, current_token.name))
                    input_index += 1

                case None:
                    expected = sorted(self.table.actions[current_state].keys())
                    raise ParseError(
                        "Syntax error at {index}: unexpected {sym}, expected one of {expected}".format(
                            index=input_index,
                            sym=current_token,
                            expected=", ".join(str(s) for s in expected),
                        ),
                        input_index,
                        current_token.name,
                    )
