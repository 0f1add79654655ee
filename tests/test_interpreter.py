import pytest

from conftest import assert_ok, assert_runtime_error


@pytest.mark.parametrize("source, expected", [
    ("print 1 + 2 * 3;", "7"),
    ("print 7 / 2;", "3.5"),
    ("print -3;", "-3"),
    ("print 1.50;", "1.5"),
    ("print 10 - 2.5;", "7.5"),
    ("print (1 + 2) * 3;", "9"),
    ("print 3 >= 3;", "true"),
    ("print 2 < 1;", "false"),
    ("print nil;", "nil"),
    ('print "a" + "b";', "ab"),
])
def test_arithmetic_and_printing(run, source, expected):
    assert_ok(run(source), expected)


def test_mixed_plus_concatenates_strings_and_numbers(run):
    assert_ok(
        run('print "scone" + 4; print 4 + "scone"; print 4 + 4; print "x" + 1.5;'),
        "scone4", "4scone", "8", "x1.5",
    )


@pytest.mark.parametrize("source, message", [
    ('"a" + true;', "Operands of '+' must be two numbers or two strings."),
    ("nil + 1;", "Operands of '+' must be two numbers or two strings."),
    ('"a" < "b";', "Operands of '<' must be numbers."),
    ('2 * "x";', "Operands of '*' must be numbers."),
    ('-"a";', "Operand of '-' must be a number."),
    ("1 / 0;", "Division by zero."),
])
def test_operand_errors(run, source, message):
    assert_runtime_error(run(source), message)


def test_runtime_error_keeps_earlier_output(run):
    program = run('print "before";\nprint 1 / 0;\nprint "after";')
    assert program.lines == ["before"]
    assert program.result.had_runtime_error
    diagnostic = program.result.diagnostics[0]
    assert diagnostic.line == 2
    assert str(diagnostic) == "Division by zero.\n[line 2]"


def test_truthiness(run):
    assert_ok(
        run('print !0; print !""; print !nil; print !false; print !true;'),
        "false", "false", "true", "true", "false",
    )


def test_equality_has_no_coercion(run):
    assert_ok(
        run('print 1 == 1; print 1 == true; print nil == nil; print nil == false;'
            'print "a" == "a"; print 0 == false; print "1" == 1; print 1 != 2;'),
        "true", "false", "true", "false", "true", "false", "false", "true",
    )


def test_uninitialized_variable_differs_from_nil(run):
    assert_ok(run("var a = nil; print a;"), "nil")
    assert_ok(run("var a; a = 2; print a;"), "2")
    assert_runtime_error(run("var a; print a;"), "Uninitialized variable 'a'.")
    assert_runtime_error(run("{ var a; print a; }"), "Uninitialized variable 'a'.")


def test_undefined_variable(run):
    assert_runtime_error(run("print b;"), "Undefined variable 'b'.")
    assert_runtime_error(run("b = 1;"), "Undefined variable 'b'.")


def test_global_self_reference_fails_at_runtime(run):
    assert_runtime_error(run("var a = a;"), "Undefined variable 'a'.")


def test_global_redefinition_is_allowed(run):
    assert_ok(run("var a = 1; var a = 2; print a;"), "2")


def test_ternary_evaluates_only_chosen_branch(run):
    source = """
    var x = 0;
    fun bump() { x = x + 1; return x; }
    print true ? "a" : bump();
    print false ? bump() : "b";
    print x;
    print nil ? 1 : 2 ? "nested" : "no";
    """
    assert_ok(run(source), "a", "b", "0", "nested")


def test_logical_operators_short_circuit(run):
    assert_ok(
        run('print nil or "yes"; print false and 1 / 0; print 1 and 2; print false or nil;'),
        "yes", "false", "2", "nil",
    )


def test_assignment_is_an_expression(run):
    assert_ok(run("var a; var b; a = b = 3; print a + b;"), "6")


def test_block_scoping_and_shadowing(run):
    source = """
    var a = "outer";
    {
      var a = "inner";
      print a;
    }
    print a;
    """
    assert_ok(run(source), "inner", "outer")


def test_call_errors(run):
    assert_runtime_error(run('"x"();'), "Can only call functions and classes.")
    assert_runtime_error(run("fun f(a) {} f(1, 2);"), "Expected 1 arguments but got 2.")


def test_arguments_are_evaluated_before_callee_check(run):
    program = run('fun f() { print "evaluated"; return 1; } nil(f());')
    assert program.lines == ["evaluated"]
    assert_runtime_error(program, "Can only call functions and classes.")


def test_clock_native(run):
    assert_ok(run("print clock() > 0;"), "true")


def test_input_native(run, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: f"typed at {prompt}")
    assert_ok(run('print input("? ");'), "typed at ? ")


def test_input_native_checks_argument(run):
    program = run("\ninput(1);")
    assert_runtime_error(program, "Invalid arguments for input(), expected (string).")
    assert program.result.diagnostics[0].line == 2


def test_callable_rendering(run):
    assert_ok(
        run("fun f() {} print f; print clock; print fun () {};"),
        "<fn f>", "<native fn: clock>", "<fn>",
    )


def test_negative_zero_keeps_sign(run):
    assert_ok(run("print -0; print 0 * -1; print 0;"), "-0", "-0", "0")
