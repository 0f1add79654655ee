import logging
import sys
from functools import singledispatchmethod
from typing import Any, TextIO, override

from loxwalk.environment import Environment, UNINITIALIZED
import loxwalk.expr as ex
from loxwalk import function as fn
from loxwalk import stmt as st
from loxwalk.errors import LoxRuntimeError
from loxwalk.function import Outcome, ReturnValue, Signal
from loxwalk.loxclass import LoxClass, LoxInstance
from loxwalk.tokens import Token, TokenType as TT, TokenGroup as TG
from loxwalk.visitor import Visitor, Visitable

logger = logging.getLogger(__name__)

# One Lox call costs about ten Python frames.
RECURSION_LIMIT = 20_000


class Interpreter(Visitor[Any]):
    globals: Environment
    environment: Environment
    locals: dict[ex.Expr, int]
    output: TextIO

    def __init__(self, output: TextIO | None = None) -> None:
        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}
        self.output = output if output is not None else sys.stdout

        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)

        for native in fn.NATIVES:
            self.register_native(native)

    def register_native(self, function: fn.NativeFunction, name: str | None = None):
        if name is None:
            name = function.name

        self.globals.define(name, function)

    def interpret(
        self, statements: list[st.Stmt], locals: dict[ex.Expr, int] | None = None
    ) -> LoxRuntimeError | None:
        """Run a resolved program, returning the runtime error that halted it, if any."""
        if locals is not None:
            self.locals.update(locals)

        try:
            for statement in statements:
                self.execute(statement)
        except LoxRuntimeError as error:
            logger.debug("Execution halted at line %s: %s", error.token and error.token.line, error)
            return error

        return None

    def interpret_expression(self, expression: ex.Expr, locals: dict[ex.Expr, int] | None = None) -> Any:
        if locals is not None:
            self.locals.update(locals)

        return self.evaluate(expression)

    @singledispatchmethod
    @override
    def visit(self, obj: Visitable) -> Any:
        raise NotImplementedError(f"'{obj.__class__.__name__}' could not be dispatched by visit()")

    @visit.register
    def _(self, expr: ex.Literal) -> Any:
        return expr.value

    @visit.register
    def _(self, expr: ex.Unary) -> Any:
        right = self.evaluate(expr.right)

        match expr.operator.type:
            case TT.BANG:
                return not self.is_truthy(right)
            case TT.MINUS:
                self.check_number_operands(expr.operator, right)
                return -right

            case _:
                return None

    @visit.register
    def _(self, expr: ex.Binary) -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)

        if expr.operator.type in TG.Factor | TG.Comparison | {TT.MINUS}:
            self.check_number_operands(expr.operator, left, right)

        match expr.operator.type:
            case TT.BANG_EQUAL:
                return not self.is_equal(left, right)
            case TT.EQUAL_EQUAL:
                return self.is_equal(left, right)
            case TT.GREATER:
                return left > right
            case TT.GREATER_EQUAL:
                return left >= right
            case TT.LESS:
                return left < right
            case TT.LESS_EQUAL:
                return left <= right
            case TT.MINUS:
                return left - right
            case TT.SLASH:
                if right == 0:
                    raise LoxRuntimeError(expr.operator, "Division by zero.")
                return left / right
            case TT.STAR:
                return left * right
            case TT.PLUS:
                if self.is_number(left) and self.is_number(right):
                    return left + right
                elif isinstance(left, str) and isinstance(right, str):
                    return left + right
                elif (
                    isinstance(left, str) and self.is_number(right) or
                    self.is_number(left) and isinstance(right, str)
                ):
                    return self.stringify(left) + self.stringify(right)
                else:
                    raise LoxRuntimeError(expr.operator,
                                          "Operands of '+' must be two numbers or two strings.")
            case _:
                return None

    @visit.register
    def _(self, expr: ex.Grouping) -> Any:
        return self.evaluate(expr.expression)

    @visit.register
    def _(self, expr: ex.Ternary) -> Any:
        cond = self.evaluate(expr.condition)

        if self.is_truthy(cond):
            return self.evaluate(expr.then_branch)
        else:
            return self.evaluate(expr.else_branch)

    @visit.register
    def _(self, expr: ex.Variable) -> Any:
        return self.lookup_variable(expr.name, expr)

    @visit.register
    def _(self, expr: ex.Assign) -> Any:
        value = self.evaluate(expr.value)

        distance = self.locals.get(expr)
        if distance is not None:
            self.environment.assign_at(distance, expr.name, value)
        else:
            self.globals.assign(expr.name, value)

        return value

    @visit.register
    def _(self, expr: ex.Logical) -> Any:
        left = self.evaluate(expr.left)

        if expr.operator.type == TT.OR:
            if self.is_truthy(left):
                return left
        else:
            if not self.is_truthy(left):
                return left

        return self.evaluate(expr.right)

    @visit.register
    def _(self, expr: ex.Call) -> Any:
        callee = self.evaluate(expr.callee)

        arguments = []
        for argument in expr.arguments:
            arguments.append(self.evaluate(argument))

        if not isinstance(callee, fn.LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")

        function = callee

        if len(arguments) != function.arity():
            raise LoxRuntimeError(expr.paren,
            f"Expected {function.arity()} arguments but got {len(arguments)}.")

        try:
            return function.call(self, arguments)
        except LoxRuntimeError as error:
            # Native functions raise without a token; blame the call site.
            if error.token is None:
                raise LoxRuntimeError(expr.paren, error.message) from error
            raise

    @visit.register
    def _(self, expr: ex.Lambda) -> Any:
        return fn.LoxFunction(None, expr, self.environment)

    @visit.register
    def _(self, expr: ex.Get) -> Any:
        obj = self.evaluate(expr.object)

        if isinstance(obj, LoxInstance):
            return obj.get(expr.name, self)
        if isinstance(obj, LoxClass):
            return obj.get(expr.name)

        raise LoxRuntimeError(expr.name, "Only instances have properties.")

    @visit.register
    def _(self, expr: ex.Set) -> Any:
        obj = self.evaluate(expr.object)

        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError(expr.name, "Only instances have fields.")

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    @visit.register
    def _(self, expr: ex.This) -> Any:
        return self.lookup_variable(expr.keyword, expr)

    @visit.register
    def _(self, expr: ex.Super) -> Any:
        distance = self.locals[expr]
        superclass: LoxClass = self.environment.get_at(distance, "super")
        # The `this` frame is always bound directly inside the `super` frame.
        instance: LoxInstance = self.environment.get_at(distance - 1, "this")

        member = superclass.find_member(expr.method.lexeme)
        if member is None:
            raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")

        return member.resolve(instance, self)

    @visit.register
    def _(self, _: st.Break) -> Outcome:
        return Signal.BREAK

    @visit.register
    def _(self, _: st.Continue) -> Outcome:
        return Signal.CONTINUE

    @visit.register
    def _(self, stmt: st.Expression) -> Outcome:
        self.evaluate(stmt.expression)
        return None

    @visit.register
    def _(self, stmt: st.Function) -> Outcome:
        function = fn.LoxFunction(stmt.name.lexeme, stmt.function, self.environment)
        logger.debug("Defined function %s", stmt.name.lexeme)
        self.environment.define(stmt.name.lexeme, function)
        return None

    @visit.register
    def _(self, stmt: st.Class) -> Outcome:
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        self.environment.define(stmt.name.lexeme, None)

        environment = self.environment
        if superclass is not None:
            environment = Environment(environment)
            environment.define("super", superclass)

        def functions(kind: st.MethodKind) -> dict[str, fn.LoxFunction]:
            return {
                method.name.lexeme: fn.LoxFunction(
                    method.name.lexeme,
                    method.function,
                    environment,
                    is_initializer=kind is st.MethodKind.INSTANCE and method.name.lexeme == "init",
                )
                for method in stmt.members(kind)
            }

        klass = LoxClass(
            stmt.name.lexeme,
            superclass,
            functions(st.MethodKind.INSTANCE),
            functions(st.MethodKind.STATIC),
            functions(st.MethodKind.GETTER),
        )
        logger.debug("Defined class %s (superclass: %s)", klass, superclass)

        self.environment.assign(stmt.name, klass)
        return None

    @visit.register
    def _(self, stmt: st.If) -> Outcome:
        if self.is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return None

    @visit.register
    def _(self, stmt: st.Print) -> Outcome:
        value = self.evaluate(stmt.expression)
        print(self.stringify(value), file=self.output)
        return None

    @visit.register
    def _(self, stmt: st.Return) -> Outcome:
        value = None
        if stmt.value is not None:
            value = self.evaluate(stmt.value)

        return ReturnValue(value)

    @visit.register
    def _(self, stmt: st.Var) -> Outcome:
        value = UNINITIALIZED
        if stmt.initializer is not None:
            value = self.evaluate(stmt.initializer)

        self.environment.define(stmt.name.lexeme, value)
        return None

    @visit.register
    def _(self, stmt: st.While) -> Outcome:
        while self.is_truthy(self.evaluate(stmt.condition)):
            outcome = self.execute(stmt.body)

            if outcome is Signal.BREAK:
                break
            if isinstance(outcome, ReturnValue):
                return outcome

            if stmt.increment is not None:
                self.evaluate(stmt.increment)

        return None

    @visit.register
    def _(self, stmt: st.Block) -> Outcome:
        return self.execute_block(stmt.statements, Environment(self.environment))

    def lookup_variable(self, name: Token, expr: ex.Expr) -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            value = self.environment.get_at(distance, name.lexeme)
        else:
            value = self.globals.get(name)

        if value is UNINITIALIZED:
            raise LoxRuntimeError(name, f"Uninitialized variable '{name.lexeme}'.")

        return value

    @staticmethod
    def is_truthy(obj: Any) -> bool:
        return obj is not None and obj is not False

    @staticmethod
    def is_equal(left: Any, right: Any) -> bool:
        if left is None or right is None:
            return left is right
        # No coercion: 1 == true must not hold even though Python says so.
        if type(left) is not type(right):
            return False
        return left == right

    def evaluate(self, expr: ex.Expr) -> Any:
        return expr.accept(self)

    def execute(self, stmt: st.Stmt) -> Outcome:
        return stmt.accept(self)

    def execute_block(self, statements: list[st.Stmt], environment: Environment) -> Outcome:
        previous = self.environment

        try:
            self.environment = environment

            for statement in statements:
                outcome = self.execute(statement)
                if outcome is not None:
                    return outcome
        finally:
            self.environment = previous

        return None

    @staticmethod
    def is_number(num: Any) -> bool:
        return isinstance(num, float)

    def check_number_operands(self, operator: Token, *operands: Any) -> None:
        if not all(map(self.is_number, operands)):
            if len(operands) > 1:
                raise LoxRuntimeError(operator, f"Operands of '{operator.lexeme}' must be numbers.")
            raise LoxRuntimeError(operator, f"Operand of '{operator.lexeme}' must be a number.")

    @staticmethod
    def stringify(obj: Any) -> str:
        match obj:
            case None:
                return "nil"
            case bool(b):
                return str(b).lower()
            case float(num) if num.is_integer():
                return f"{num:.0f}"
            case _:
                return str(obj)
