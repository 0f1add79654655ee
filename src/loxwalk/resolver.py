import logging
from contextlib import contextmanager, nullcontext
from enum import Enum, auto
from functools import singledispatchmethod
from typing import override

from loxwalk.errors import Diagnostic, Phase
from loxwalk.tokens import Token
from loxwalk.visitor import Visitable, Visitor
from loxwalk import stmt as st, expr as ex

logger = logging.getLogger(__name__)


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()
    GETTER = auto()
    STATIC_METHOD = auto()

class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()

class VariableState(Enum):
    DECLARED = auto()
    DEFINED = auto()

METHOD_FUNCTION_TYPES = {
    st.MethodKind.INSTANCE: FunctionType.METHOD,
    st.MethodKind.GETTER: FunctionType.GETTER,
    st.MethodKind.STATIC: FunctionType.STATIC_METHOD,
}

class Resolver(Visitor):
    """Computes how many frames out each local variable reference lives.

    References that are not found in any enclosing scope are left out of
    ``locals`` and looked up in the global frame at run time.
    """

    scopes: list[dict[str, VariableState]]
    locals: dict[ex.Expr, int]
    errors: list[Diagnostic]
    current_function: FunctionType
    current_class: ClassType
    in_static_method: bool

    def __init__(self) -> None:
        self.scopes = []
        self.locals = {}
        self.errors = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.in_static_method = False

    def resolve(self, node: list[st.Stmt] | st.Stmt | ex.Expr) -> None:
        match node:
            case list(statements):
                for statement in statements:
                    self.resolve(statement)
            case st.Stmt() | ex.Expr():
                node.accept(self)
            case _:
                raise NotImplementedError(f"'{node.__class__.__name__}' could not be handled by resolve()")

    def error(self, token: Token, message: str) -> None:
        self.errors.append(Diagnostic.at(token, message, Phase.RESOLVE))

    def begin_scope(self, content: dict[str, VariableState] | None = None) -> None:
        if content is None:
            content = {}
        self.scopes.append(content)

    def end_scope(self) -> None:
        self.scopes.pop()

    @contextmanager
    def scope(self, content: dict[str, VariableState] | None = None):
        try:
            self.begin_scope(content)
            yield self.scopes[-1]
        finally:
            self.end_scope()

    def declare(self, name: Token) -> None:
        if self.scopes:
            scope = self.scopes[-1]
            if name.lexeme in scope:
                self.error(name, "Already a variable with this name in this scope.")

            scope[name.lexeme] = VariableState.DECLARED

    def define(self, name: Token) -> None:
        if self.scopes:
            self.scopes[-1][name.lexeme] = VariableState.DEFINED

    def resolve_local(self, expr: ex.Expr, name: Token) -> None:
        for i, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = i
                return

    def resolve_function(self, function: ex.Lambda, type: FunctionType) -> None:
        enclosing_function = self.current_function
        self.current_function = type

        with self.scope():
            for param in function.params:
                self.declare(param)
                self.define(param)
            self.resolve(function.body)

        self.current_function = enclosing_function

    @singledispatchmethod
    @override
    def visit(self, obj: Visitable) -> None:
        raise NotImplementedError(f"'{obj.__class__.__name__}' could not be dispatched by visit()")

    @visit.register
    def _(self, stmt: st.Block) -> None:
        with self.scope():
            self.resolve(stmt.statements)

    @visit.register
    def _(self, stmt: st.Break) -> None:
        pass

    @visit.register
    def _(self, stmt: st.Continue) -> None:
        pass

    @visit.register
    def _(self, stmt: st.Class) -> None:
        enclosing_class = self.current_class
        enclosing_static = self.in_static_method
        self.current_class = ClassType.CLASS
        self.in_static_method = False

        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.name.lexeme == stmt.superclass.name.lexeme:
                self.error(stmt.superclass.name, "A class can't inherit from itself.")

            self.current_class = ClassType.SUBCLASS
            self.resolve(stmt.superclass)

            super_scope = self.scope({"super": VariableState.DEFINED})
        else:
            super_scope = nullcontext()

        with super_scope:
            with self.scope({"this": VariableState.DEFINED}):
                for method in stmt.methods:
                    if method.kind is st.MethodKind.STATIC:
                        continue
                    declaration = METHOD_FUNCTION_TYPES[method.kind]
                    if method.kind is st.MethodKind.INSTANCE and method.name.lexeme == "init":
                        declaration = FunctionType.INITIALIZER
                    self.resolve_function(method.function, declaration)

            # Static methods close over the class body without a `this` frame.
            self.in_static_method = True
            for method in stmt.members(st.MethodKind.STATIC):
                self.resolve_function(method.function, METHOD_FUNCTION_TYPES[method.kind])

        self.current_class = enclosing_class
        self.in_static_method = enclosing_static

    @visit.register
    def _(self, stmt: st.Expression) -> None:
        self.resolve(stmt.expression)

    @visit.register
    def _(self, stmt: st.Function) -> None:
        self.declare(stmt.name)
        self.define(stmt.name)

        self.resolve_function(stmt.function, FunctionType.FUNCTION)

    @visit.register
    def _(self, stmt: st.If) -> None:
        self.resolve(stmt.condition)
        self.resolve(stmt.then_branch)

        if stmt.else_branch is not None:
            self.resolve(stmt.else_branch)

    @visit.register
    def _(self, stmt: st.Print) -> None:
        self.resolve(stmt.expression)

    @visit.register
    def _(self, stmt: st.Return) -> None:
        if self.current_function is FunctionType.NONE:
            self.error(stmt.keyword, "Can't return from top-level code.")

        if stmt.value is not None:
            if self.current_function is FunctionType.INITIALIZER:
                self.error(stmt.keyword, "Can't return a value from an initializer.")
            self.resolve(stmt.value)

    @visit.register
    def _(self, stmt: st.Var) -> None:
        self.declare(stmt.name)
        if stmt.initializer is not None:
            self.resolve(stmt.initializer)
        self.define(stmt.name)

    @visit.register
    def _(self, stmt: st.While) -> None:
        self.resolve(stmt.condition)
        self.resolve(stmt.body)

        if stmt.increment is not None:
            self.resolve(stmt.increment)

    @visit.register
    def _(self, expr: ex.Assign) -> None:
        self.resolve(expr.value)
        self.resolve_local(expr, expr.name)

    @visit.register
    def _(self, expr: ex.Binary) -> None:
        self.resolve(expr.left)
        self.resolve(expr.right)

    @visit.register
    def _(self, expr: ex.Call) -> None:
        self.resolve(expr.callee)

        for argument in expr.arguments:
            self.resolve(argument)

    @visit.register
    def _(self, expr: ex.Ternary) -> None:
        self.resolve(expr.condition)
        self.resolve(expr.then_branch)
        self.resolve(expr.else_branch)

    @visit.register
    def _(self, expr: ex.Get) -> None:
        self.resolve(expr.object)

    @visit.register
    def _(self, expr: ex.Lambda) -> None:
        self.resolve_function(expr, FunctionType.FUNCTION)

    @visit.register
    def _(self, expr: ex.Grouping) -> None:
        self.resolve(expr.expression)

    @visit.register
    def _(self, expr: ex.Literal) -> None:
        pass

    @visit.register
    def _(self, expr: ex.Logical) -> None:
        self.resolve(expr.left)
        self.resolve(expr.right)

    @visit.register
    def _(self, expr: ex.Set) -> None:
        self.resolve(expr.value)
        self.resolve(expr.object)

    @visit.register
    def _(self, expr: ex.Super) -> None:
        if self.current_class is ClassType.NONE:
            self.error(expr.keyword, "Can't use 'super' outside of a class.")
            return
        if self.in_static_method:
            self.error(expr.keyword, "Can't use 'super' in a static method.")
            return
        if self.current_class is not ClassType.SUBCLASS:
            self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
            return

        self.resolve_local(expr, expr.keyword)

    @visit.register
    def _(self, expr: ex.This) -> None:
        if self.current_class is ClassType.NONE:
            self.error(expr.keyword, "Can't use 'this' outside of a class.")
            return
        if self.in_static_method:
            self.error(expr.keyword, "Can't use 'this' in a static method.")
            return

        self.resolve_local(expr, expr.keyword)

    @visit.register
    def _(self, expr: ex.Unary) -> None:
        self.resolve(expr.right)

    @visit.register
    def _(self, expr: ex.Variable) -> None:
        if self.scopes:
            state = self.scopes[-1].get(expr.name.lexeme)
            if state is VariableState.DECLARED:
                self.error(expr.name, "Can't read local variable in its own initializer.")

        self.resolve_local(expr, expr.name)


def resolve(statements: list[st.Stmt]) -> tuple[dict[ex.Expr, int], list[Diagnostic]]:
    resolver = Resolver()
    resolver.resolve(statements)
    logger.debug("Resolved %d local references, %d errors", len(resolver.locals), len(resolver.errors))
    return resolver.locals, resolver.errors
