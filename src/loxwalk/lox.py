"""Pipeline entry points: source text in, program effects and diagnostics out.

``run_program`` executes a whole script against a fresh interpreter;
``run_line`` executes one chunk of input against an interpreter the caller
keeps alive between calls. The :class:`Lox` session wraps both for the
command line and prints diagnostics.
"""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, TextIO

from loxwalk import expr as ex, stmt as st
from loxwalk.ast_printer import AstPrinter
from loxwalk.errors import Diagnostic, LoxRuntimeError, Phase
from loxwalk.interpreter import Interpreter
from loxwalk.parser import parse
from loxwalk.resolver import resolve
from loxwalk.scanner import scan

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DATA_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_SOFTWARE = 70


@dataclass(frozen=True)
class RunResult:
    had_syntax_or_resolution_error: bool = False
    had_runtime_error: bool = False
    diagnostics: tuple[Diagnostic, ...] = ()
    # Value of a lone expression statement in run_line, for the prompt to echo.
    value: Any = None
    has_value: bool = False

    @property
    def ok(self) -> bool:
        return not (self.had_syntax_or_resolution_error or self.had_runtime_error)

    @property
    def exit_code(self) -> int:
        if self.had_syntax_or_resolution_error:
            return EXIT_DATA_ERROR
        if self.had_runtime_error:
            return EXIT_SOFTWARE
        return EXIT_OK


@dataclass(frozen=True)
class Compilation:
    statements: list[st.Stmt]
    locals: dict[ex.Expr, int]
    diagnostics: tuple[Diagnostic, ...]

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def compile_source(source: str) -> Compilation:
    """Scan, parse and resolve, collecting every static error along the way."""
    tokens, scan_errors = scan(source)
    statements, parse_errors = parse(tokens)

    syntax_errors = sorted(scan_errors + parse_errors, key=lambda d: d.line)
    if syntax_errors:
        return Compilation(statements, {}, tuple(syntax_errors))

    locals, resolve_errors = resolve(statements)
    return Compilation(statements, locals, tuple(resolve_errors))


def runtime_failure(error: LoxRuntimeError) -> RunResult:
    return RunResult(had_runtime_error=True, diagnostics=(error.to_diagnostic(),))


def execute(source: str, interpreter: Interpreter, echo: bool = False) -> RunResult:
    compilation = compile_source(source)
    if not compilation.ok:
        logger.debug("Not executing: %d static errors", len(compilation.diagnostics))
        return RunResult(had_syntax_or_resolution_error=True, diagnostics=compilation.diagnostics)

    statements = compilation.statements
    if echo and len(statements) == 1 and isinstance(statements[0], st.Expression):
        try:
            value = interpreter.interpret_expression(statements[0].expression, compilation.locals)
        except LoxRuntimeError as error:
            return runtime_failure(error)
        return RunResult(value=value, has_value=True)

    error = interpreter.interpret(statements, compilation.locals)
    if error is not None:
        return runtime_failure(error)
    return RunResult()


def run_program(source: str, *, output: TextIO | None = None) -> RunResult:
    return execute(source, Interpreter(output))


def run_line(source: str, interpreter: Interpreter) -> RunResult:
    return execute(source, interpreter, echo=True)


class Lox:
    interpreter: Interpreter

    def __init__(
        self,
        output: TextIO | None = None,
        error_output: TextIO | None = None,
        print_ast: bool = False,
    ) -> None:
        self.output = output if output is not None else sys.stdout
        self.error_output = error_output if error_output is not None else sys.stderr
        self.print_ast = print_ast
        self.interpreter = Interpreter(self.output)

    def run_file(self, path: str | os.PathLike) -> int:
        try:
            with open(path, "r", encoding="utf-8") as file:
                prog = file.read()
        except OSError as error:
            print(f"Could not read '{os.fspath(path)}': {error.strerror}", file=self.error_output)
            return EXIT_NO_INPUT

        if self.print_ast:
            return self.show_ast(prog)

        result = self.run(prog)
        return result.exit_code

    def run_prompt(self) -> None:
        while True:
            try:
                line = input("> ")
            except EOFError:
                print(file=self.output)
                return

            if not line.strip():
                continue

            result = self.run(line, echo=True)
            if result.has_value:
                print(Interpreter.stringify(result.value), file=self.output)

    def run(self, source: str, echo: bool = False) -> RunResult:
        try:
            result = execute(source, self.interpreter, echo=echo)
        except RecursionError:
            # Unbounded user recursion exhausts the host stack; not a Lox error.
            result = RunResult(had_runtime_error=True, diagnostics=(
                Diagnostic(None, "Stack overflow.", phase=Phase.RUNTIME),
            ))

        self.report(result)
        return result

    def show_ast(self, source: str) -> int:
        compilation = compile_source(source)
        printer = AstPrinter()
        for statement in compilation.statements:
            print(printer.print(statement), file=self.output)

        result = RunResult(
            had_syntax_or_resolution_error=not compilation.ok,
            diagnostics=compilation.diagnostics,
        )
        self.report(result)
        return result.exit_code

    def report(self, result: RunResult) -> None:
        for diagnostic in result.diagnostics:
            print(str(diagnostic), file=self.error_output)
