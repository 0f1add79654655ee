import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Never, Protocol, TYPE_CHECKING, runtime_checkable

from loxwalk.environment import Environment
from loxwalk.errors import LoxRuntimeError
import loxwalk.expr as ex

if TYPE_CHECKING:
    from loxwalk import interpreter as interp
    from loxwalk import loxclass as cl


class Signal(Enum):
    """Non-local exits of a loop body."""
    BREAK = auto()
    CONTINUE = auto()


@dataclass(frozen=True, slots=True)
class ReturnValue:
    value: Any


# Result of executing a statement. None means execution fell through normally.
type Outcome = Signal | ReturnValue | None


@runtime_checkable
class LoxCallable(Protocol):
    def call(self, interpreter: 'interp.Interpreter', arguments: list) -> Any:
        ...

    def arity(self) -> int:
        ...


class LoxFunction:
    name: str | None
    declaration: ex.Lambda
    closure: Environment
    is_initializer: bool

    def __init__(self,
                 name: str | None,
                 declaration: ex.Lambda,
                 closure: Environment,
                 is_initializer: bool = False
                 ) -> None:
        self.name = name
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    def call(self, interpreter: 'interp.Interpreter', arguments: list) -> Any:
        environment = Environment(self.closure)

        for param, arg in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, arg)

        outcome = interpreter.execute_block(self.declaration.body, environment)

        # An initializer always yields its instance, even after a bare `return;`.
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if isinstance(outcome, ReturnValue):
            return outcome.value
        return None

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: 'cl.LoxInstance') -> 'LoxFunction':
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.name, self.declaration, environment, self.is_initializer)

    def __str__(self) -> str:
        if self.name is not None:
            return f"<fn {self.name}>"
        else:
            return "<fn>"


class NativeFunction:
    def __init__(self, name: str, arity: int, function: Callable) -> None:
        self.name = name
        self._arity = arity
        self.function = function

    def call(self, interpreter: 'interp.Interpreter', arguments: list) -> Any:
        return self.function(interpreter, arguments)

    def arity(self) -> int:
        return self._arity

    def __str__(self) -> str:
        return f"<native fn: {self.name}>"


type LoxFunctionCall = Callable[['interp.Interpreter', list], Any]

def native_fn(*, arity: int, name: str | None = None) -> Callable[[LoxFunctionCall], NativeFunction]:
    def native_fn_decorator(fn: LoxFunctionCall) -> NativeFunction:
        nonlocal name
        if name is None:
            name = fn.__name__

        return NativeFunction(name, arity, fn)

    return native_fn_decorator

@native_fn(arity=0)
def clock(interpreter: 'interp.Interpreter', args: list[Never]) -> float:
    return time.time()

@native_fn(arity=1, name="input")
def lox_input(interpreter: 'interp.Interpreter', args: list[str]) -> str:
    prompt = args[0]
    if not isinstance(prompt, str):
        raise LoxRuntimeError(None, "Invalid arguments for input(), expected (string).")

    return input(prompt)

NATIVES: tuple[NativeFunction, ...] = (clock, lox_input)
