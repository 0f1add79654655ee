from typing import Any, Final, Self

from loxwalk.errors import LoxRuntimeError
from loxwalk.tokens import Token


class _Uninitialized:
    """Marker stored for `var a;` until the first assignment."""

    def __repr__(self) -> str:
        return "<uninitialized>"

UNINITIALIZED: Final = _Uninitialized()


class Environment:
    """One lexical scope frame.

    Frames are shared by reference: every closure created while a frame is
    active keeps a pointer to it and observes later assignments.
    """

    values: dict[str, Any]
    enclosing: Self | None

    def __init__(self, enclosing: Self | None = None) -> None:
        self.values = {}
        self.enclosing = enclosing

    def define(self, name: str, value: Any) -> None:
        self.values[name] = value

    def ancestor(self, distance: int) -> Self:
        environment = self
        for _ in range(distance):
            if environment.enclosing is None:
                raise ValueError(f"Invalid distance {distance}")
            environment = environment.enclosing

        return environment

    def get(self, name: Token) -> Any:
        if name.lexeme in self.values:
            return self.values[name.lexeme]
        elif self.enclosing is not None:
            return self.enclosing.get(name)
        else:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def get_at(self, distance: int, name: str) -> Any:
        values = self.ancestor(distance).values
        if name not in values:
            raise ValueError(f"Resolved variable '{name}' missing at distance {distance}")
        return values[name]

    def assign(self, name: Token, value: Any) -> None:
        if name.lexeme in self.values:
            self.values[name.lexeme] = value
        elif self.enclosing is not None:
            self.enclosing.assign(name, value)
        else:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign_at(self, distance: int, name: Token, value: Any) -> None:
        values = self.ancestor(distance).values
        if name.lexeme not in values:
            raise ValueError(f"Resolved variable '{name.lexeme}' missing at distance {distance}")
        values[name.lexeme] = value
