import io

import pytest

from loxwalk.errors import Phase
from loxwalk.interpreter import Interpreter
from loxwalk.lox import Lox, RunResult, compile_source, run_line, run_program


def test_successful_program():
    output = io.StringIO()
    result = run_program('print "hello";', output=output)
    assert result == RunResult()
    assert result.ok
    assert result.exit_code == 0
    assert output.getvalue() == "hello\n"


def test_syntax_error_prevents_all_execution():
    output = io.StringIO()
    result = run_program('print "a";\nprint ;', output=output)
    assert output.getvalue() == ""
    assert result.had_syntax_or_resolution_error
    assert not result.had_runtime_error
    assert result.exit_code == 65
    assert [str(d) for d in result.diagnostics] == ["[line 2] Error at ';': Expected expression"]


def test_resolution_error_prevents_all_execution():
    output = io.StringIO()
    result = run_program('print "a";\nreturn 1;', output=output)
    assert output.getvalue() == ""
    assert result.exit_code == 65
    assert result.diagnostics[0].phase is Phase.RESOLVE


def test_resolution_is_skipped_after_syntax_errors():
    compilation = compile_source("return 1; print ;")
    assert [d.phase for d in compilation.diagnostics] == [Phase.PARSE]
    assert not compilation.ok


def test_scan_and_parse_errors_are_reported_in_line_order():
    compilation = compile_source("print ;\n@\nprint ;")
    assert [(d.line, d.phase) for d in compilation.diagnostics] == [
        (1, Phase.PARSE),
        (2, Phase.SCAN),
        (3, Phase.PARSE),
    ]


def test_runtime_error_exit_code():
    result = run_program("nil();", output=io.StringIO())
    assert result.had_runtime_error
    assert result.exit_code == 70


def test_run_line_keeps_state_between_lines(interpreter):
    assert run_line("var a = 1;", interpreter).ok
    result = run_line("a + 1;", interpreter)
    assert result.has_value
    assert result.value == 2.0


def test_run_line_closures_survive_between_lines():
    interpreter = Interpreter(io.StringIO())
    run_line("fun make() { var n = 0; fun inc() { n = n + 1; return n; } return inc; }", interpreter)
    run_line("var c = make();", interpreter)
    run_line("c();", interpreter)
    assert run_line("c();", interpreter).value == 2.0


def test_run_line_only_echoes_lone_expressions(interpreter, output):
    result = run_line('print "x";', interpreter)
    assert not result.has_value
    assert output.getvalue() == "x\n"

    result = run_line("1; 2;", interpreter)
    assert not result.has_value


def test_run_line_errors_do_not_reset_state():
    interpreter = Interpreter(io.StringIO())
    run_line("var a = 1;", interpreter)
    assert run_line("a / 0;", interpreter).had_runtime_error
    assert run_line("print ;", interpreter).had_syntax_or_resolution_error
    assert run_line("a;", interpreter).value == 1.0


@pytest.fixture
def session():
    output = io.StringIO()
    errors = io.StringIO()
    return Lox(output, errors), output, errors


def test_run_file(tmp_path, session):
    lox, output, errors = session
    script = tmp_path / "ok.lox"
    script.write_text('print "from file";')
    assert lox.run_file(script) == 0
    assert output.getvalue() == "from file\n"
    assert errors.getvalue() == ""


def test_run_file_reports_diagnostics(tmp_path, session):
    lox, _, errors = session
    script = tmp_path / "bad.lox"
    script.write_text("print 1 +;\nvar;")
    assert lox.run_file(script) == 65
    assert errors.getvalue().splitlines() == [
        "[line 1] Error at ';': Expected expression",
        "[line 2] Error at ';': Expected variable name",
    ]


def test_run_file_missing(tmp_path, session):
    lox, _, errors = session
    assert lox.run_file(tmp_path / "missing.lox") == 66
    assert "Could not read" in errors.getvalue()


def test_unbounded_recursion_is_a_runtime_error(session):
    lox, _, errors = session
    result = lox.run("fun f() { return f(); } f();")
    assert result.exit_code == 70
    assert result.diagnostics[0].line is None
    assert errors.getvalue() == "Stack overflow.\n"


def test_show_ast(tmp_path):
    output = io.StringIO()
    script = tmp_path / "ast.lox"
    script.write_text("print 1 + 2;")
    assert Lox(output, io.StringIO(), print_ast=True).run_file(script) == 0
    assert output.getvalue() == "(print (+ 1 2))\n"


def test_prompt_session(monkeypatch, session):
    lox, output, errors = session
    lines = iter(["var a = 20;", "", "a + 22;", "print a;", "a +;", '"text";'])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)
    lox.run_prompt()
    assert output.getvalue().splitlines() == ["42", "20", "text", ""]
    assert errors.getvalue().splitlines() == ["[line 1] Error at ';': Expected expression"]
