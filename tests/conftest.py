import io

import pytest

from loxwalk.interpreter import Interpreter
from loxwalk.lox import RunResult, run_program


class Program:
    """Result of running a snippet: the RunResult plus captured print output."""

    def __init__(self, result: RunResult, output: str) -> None:
        self.result = result
        self.lines = output.splitlines()

    @property
    def messages(self) -> list[str]:
        return [d.message for d in self.result.diagnostics]


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def interpreter(output):
    """A fresh interpreter printing into a StringIO."""
    return Interpreter(output)


@pytest.fixture
def run():
    def run(source: str) -> Program:
        out = io.StringIO()
        result = run_program(source, output=out)
        return Program(result, out.getvalue())

    return run


def assert_ok(program: Program, *lines: str) -> None:
    assert program.result.ok, program.messages
    assert program.lines == list(lines)


def assert_runtime_error(program: Program, contains: str) -> None:
    assert program.result.had_runtime_error, f"expected runtime error, got output {program.lines!r}"
    assert any(contains in m for m in program.messages), program.messages
