from dataclasses import dataclass
from enum import Enum, auto

from loxwalk import expr as ex
from loxwalk.tokens import Token
from loxwalk.visitor import Visitable

@dataclass(frozen=True, eq=False)
class Stmt(Visitable):
    ...

@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    expression: ex.Expr

@dataclass(frozen=True, eq=False)
class Print(Stmt):
    expression: ex.Expr

@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: ex.Expr | None = None

@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: list[Stmt]

@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: ex.Expr
    then_branch: Stmt
    else_branch: Stmt | None = None

@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: ex.Expr
    body: Stmt
    # Set only by the `for` desugaring; runs after every iteration,
    # including one cut short by `continue`.
    increment: ex.Expr | None = None

@dataclass(frozen=True, eq=False)
class Break(Stmt):
    keyword: Token

@dataclass(frozen=True, eq=False)
class Continue(Stmt):
    keyword: Token

@dataclass(frozen=True, eq=False)
class Function(Stmt):
    name: Token
    function: ex.Lambda

@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: ex.Expr | None


class MethodKind(Enum):
    INSTANCE = auto()
    STATIC = auto()
    GETTER = auto()

@dataclass(frozen=True, eq=False)
class Method:
    name: Token
    function: ex.Lambda
    kind: MethodKind = MethodKind.INSTANCE

@dataclass(frozen=True, eq=False)
class Class(Stmt):
    name: Token
    superclass: ex.Variable | None
    methods: list[Method]

    def members(self, kind: MethodKind) -> list[Method]:
        return [method for method in self.methods if method.kind is kind]
