"""Runtime values. Integers, booleans and nil are plain Python int, bool and None; functions are Function objects.

Since bool is a subclass of int in Python, type checks here always use type(value) rather than isinstance so that true
is never mistaken for 1.
"""

from dataclasses import dataclass
from typing import List

from blood.grammar.nodes import Stmt


@dataclass
class Function:
    """A declared function. Captures no environment: the body only sees its parameters, its own locals and globals."""
    name: str
    params: List[str]
    body: List[Stmt]

    def __str__(self):
        return f"<fn {self.name}>"


TYPE_NAMES = {int: "integer", bool: "boolean", type(None): "nil", Function: "function"}


def type_name(value):
    return TYPE_NAMES[type(value)]


def is_int(value):
    return type(value) is int


def is_bool(value):
    return type(value) is bool


def equals(a, b):
    """Structural equality. Values of different types are unequal rather than an error."""
    return type(a) is type(b) and a == b


def render(value):
    """Textual form used by print."""
    if value is None:
        return "nil"
    elif is_bool(value):
        return "true" if value else "false"
    return str(value)
