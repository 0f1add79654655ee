from functools import singledispatchmethod
from typing import override

import loxwalk.expr as ex
from loxwalk import stmt as st
from loxwalk.visitor import Visitor, Visitable


class AstPrinter(Visitor[str]):
    """Renders syntax trees as parenthesized prefix expressions."""

    def print(self, node: ex.Expr | st.Stmt) -> str:
        return node.accept(self)

    @singledispatchmethod
    @override
    def visit(self, _: Visitable) -> str:
        raise NotImplementedError()

    @visit.register
    def _(self, expr: ex.Binary) -> str:
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    @visit.register
    def _(self, expr: ex.Logical) -> str:
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    @visit.register
    def _(self, expr: ex.Grouping) -> str:
        return self.parenthesize("group", expr.expression)

    @visit.register
    def _(self, expr: ex.Literal) -> str:
        match expr.value:
            case None:
                return "nil"
            case bool(b):
                return str(b).lower()
            case float(num) if num.is_integer():
                return f"{num:.0f}"
            case str(s):
                return f'"{s}"'
            case value:
                return str(value)

    @visit.register
    def _(self, expr: ex.Unary) -> str:
        return self.parenthesize(expr.operator.lexeme, expr.right)

    @visit.register
    def _(self, expr: ex.Ternary) -> str:
        return self.parenthesize("?:", expr.condition, expr.then_branch, expr.else_branch)

    @visit.register
    def _(self, expr: ex.Variable) -> str:
        return expr.name.lexeme

    @visit.register
    def _(self, expr: ex.Assign) -> str:
        return f"(= {expr.name.lexeme} {expr.value.accept(self)})"

    @visit.register
    def _(self, expr: ex.Call) -> str:
        return self.parenthesize("call", expr.callee, *expr.arguments)

    @visit.register
    def _(self, expr: ex.Get) -> str:
        return f"(. {expr.object.accept(self)} {expr.name.lexeme})"

    @visit.register
    def _(self, expr: ex.Set) -> str:
        return f"(=. {expr.object.accept(self)} {expr.name.lexeme} {expr.value.accept(self)})"

    @visit.register
    def _(self, expr: ex.This) -> str:
        return "this"

    @visit.register
    def _(self, expr: ex.Super) -> str:
        return f"(super {expr.method.lexeme})"

    @visit.register
    def _(self, expr: ex.Lambda) -> str:
        return self.function("fun", expr)

    @visit.register
    def _(self, stmt: st.Expression) -> str:
        return self.parenthesize(";", stmt.expression)

    @visit.register
    def _(self, stmt: st.Print) -> str:
        return self.parenthesize("print", stmt.expression)

    @visit.register
    def _(self, stmt: st.Var) -> str:
        if stmt.initializer is None:
            return f"(var {stmt.name.lexeme})"
        return f"(var {stmt.name.lexeme} = {stmt.initializer.accept(self)})"

    @visit.register
    def _(self, stmt: st.Block) -> str:
        return self.parenthesize("block", *stmt.statements)

    @visit.register
    def _(self, stmt: st.If) -> str:
        if stmt.else_branch is None:
            return self.parenthesize("if", stmt.condition, stmt.then_branch)
        return self.parenthesize("if-else", stmt.condition, stmt.then_branch, stmt.else_branch)

    @visit.register
    def _(self, stmt: st.While) -> str:
        if stmt.increment is None:
            return self.parenthesize("while", stmt.condition, stmt.body)
        return self.parenthesize("while", stmt.condition, stmt.body, stmt.increment)

    @visit.register
    def _(self, stmt: st.Break) -> str:
        return "(break)"

    @visit.register
    def _(self, stmt: st.Continue) -> str:
        return "(continue)"

    @visit.register
    def _(self, stmt: st.Function) -> str:
        return self.function(f"fun {stmt.name.lexeme}", stmt.function)

    @visit.register
    def _(self, stmt: st.Return) -> str:
        if stmt.value is None:
            return "(return)"
        return self.parenthesize("return", stmt.value)

    @visit.register
    def _(self, stmt: st.Class) -> str:
        header = f"class {stmt.name.lexeme}"
        if stmt.superclass is not None:
            header += f" < {stmt.superclass.name.lexeme}"

        members = []
        for method in stmt.methods:
            match method.kind:
                case st.MethodKind.STATIC:
                    members.append(self.function(f"static {method.name.lexeme}", method.function))
                case st.MethodKind.GETTER:
                    body = " ".join(s.accept(self) for s in method.function.body)
                    members.append(f"(get {method.name.lexeme} {body})" if body else f"(get {method.name.lexeme})")
                case _:
                    members.append(self.function(method.name.lexeme, method.function))

        return f"({' '.join([header, *members])})"

    def function(self, name: str, function: ex.Lambda) -> str:
        params = " ".join(param.lexeme for param in function.params)
        body = " ".join(s.accept(self) for s in function.body)
        if body:
            return f"({name} ({params}) {body})"
        return f"({name} ({params}))"

    def parenthesize(self, name: str, *nodes: ex.Expr | st.Stmt) -> str:
        content = " ".join([node.accept(self) for node in nodes])
        if not content:
            return f"({name})"

        return f"({name} {content})"
