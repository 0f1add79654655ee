import pytest

from loxwalk import expr as ex
from loxwalk.errors import Phase
from loxwalk.parser import parse
from loxwalk.resolver import resolve
from loxwalk.scanner import scan


def resolve_source(source: str):
    tokens, _ = scan(source)
    statements, errors = parse(tokens)
    assert errors == [], [str(e) for e in errors]
    locals, errors = resolve(statements)
    return statements, locals, errors


def messages(source: str) -> list[str]:
    _, _, errors = resolve_source(source)
    return [e.message for e in errors]


def test_local_reference_distance():
    statements, locals, errors = resolve_source("{ var a = 1; { print a; } }")
    assert errors == []
    variable = statements[0].statements[1].statements[0].expression
    assert isinstance(variable, ex.Variable)
    assert locals == {variable: 1}


def test_globals_are_not_recorded():
    _, locals, errors = resolve_source("var a = 1; print a; a = 2;")
    assert errors == []
    assert locals == {}


def test_closure_captures_enclosing_function_scope():
    statements, locals, _ = resolve_source(
        "fun outer() { var x = 1; fun inner() { return x; } }"
    )
    inner = statements[0].function.body[1]
    ret = inner.function.body[0]
    assert locals[ret.value] == 1


def test_reference_before_shadowing_declaration_stays_global():
    statements, locals, errors = resolve_source(
        'var a = "global"; { fun show() { print a; } var a = "block"; }'
    )
    assert errors == []
    show = statements[1].statements[0]
    assert show.function.body[0].expression not in locals


def test_this_distance_in_method():
    statements, locals, errors = resolve_source("class A { f() { return this; } }")
    assert errors == []
    this = statements[0].methods[0].function.body[0].value
    assert isinstance(this, ex.This)
    assert locals[this] == 1


def test_super_distance_in_method():
    statements, locals, errors = resolve_source(
        "class A { f() {} } class B < A { f() { return super.f; } }"
    )
    assert errors == []
    sup = statements[1].methods[0].function.body[0].value
    assert isinstance(sup, ex.Super)
    assert locals[sup] == 2


def test_for_increment_is_resolved():
    statements, locals, _ = resolve_source("for (var i = 0; i < 1; i = i + 1) {}")
    loop = statements[0].statements[1]
    assert locals[loop.increment] == 0


@pytest.mark.parametrize("source, message", [
    ("{ var a = a; }", "Can't read local variable in its own initializer."),
    ("{ var a = 1; var a = 2; }", "Already a variable with this name in this scope."),
    ("fun f(a, a) {}", "Already a variable with this name in this scope."),
    ("return 1;", "Can't return from top-level code."),
    ("class A { init() { return 1; } }", "Can't return a value from an initializer."),
    ("print this;", "Can't use 'this' outside of a class."),
    ("fun f() { return this; }", "Can't use 'this' outside of a class."),
    ("class A { static f() { return this; } }", "Can't use 'this' in a static method."),
    ("super.f();", "Can't use 'super' outside of a class."),
    ("class A { f() { super.f(); } }", "Can't use 'super' in a class with no superclass."),
    ("class A {} class B < A { static f() { super.f(); } }", "Can't use 'super' in a static method."),
    ("class A < A {}", "A class can't inherit from itself."),
])
def test_static_errors(source, message):
    assert messages(source) == [message]


def test_allowed_forms():
    assert messages("var a = a;") == []
    assert messages("var a = 1; var a = 2;") == []
    assert messages("class A { init() { return; } }") == []
    assert messages("class A { area { return this; } }") == []


def test_errors_are_collected_exhaustively():
    _, _, errors = resolve_source("return 1;\nprint this;\n{ var b = b; }")
    assert [e.line for e in errors] == [1, 2, 3]
    assert all(e.phase is Phase.RESOLVE for e in errors)
    assert str(errors[0]) == "[line 1] Error at 'return': Can't return from top-level code."
