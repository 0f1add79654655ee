import pytest

from loxwalk.__main__ import build_parser, main


def run_main(args: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(args)
    return exc_info.value.code


def test_runs_script(tmp_path, capsys):
    script = tmp_path / "hello.lox"
    script.write_text('print "hello, world";')
    assert run_main([str(script)]) == 0
    assert capsys.readouterr().out == "hello, world\n"


def test_syntax_error_exit_code(tmp_path, capsys):
    script = tmp_path / "bad.lox"
    script.write_text("print ;")
    assert run_main([str(script)]) == 65
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[line 1] Error at ';': Expected expression" in captured.err


def test_runtime_error_exit_code(tmp_path, capsys):
    script = tmp_path / "div.lox"
    script.write_text('print "start";\nprint 1 / 0;')
    assert run_main([str(script)]) == 70
    captured = capsys.readouterr()
    assert captured.out == "start\n"
    assert "Division by zero.\n[line 2]" in captured.err


def test_missing_script(tmp_path, capsys):
    assert run_main([str(tmp_path / "nope.lox")]) == 66
    assert "Could not read" in capsys.readouterr().err


def test_print_ast(tmp_path, capsys):
    script = tmp_path / "ast.lox"
    script.write_text("var a = 1;")
    assert run_main(["--print-ast", str(script)]) == 0
    assert capsys.readouterr().out == "(var a = 1)\n"


def test_usage_error():
    assert run_main(["a.lox", "b.lox"]) == 2


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.script is None
    assert args.log_level == "WARNING"
    assert not args.print_ast


def test_prompt_without_script(monkeypatch, capsys):
    lines = iter(["print 1 + 1;"])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)
    main([])
    assert capsys.readouterr().out == "2\n\n"
