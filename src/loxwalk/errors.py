"""Diagnostics shared by every stage of the pipeline.

Scanning, parsing and resolution collect :class:`Diagnostic` records and keep
going; evaluation stops at the first :class:`LoxRuntimeError`.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Final

from loxwalk.tokens import Token, TokenType as TT


class Phase(Enum):
    SCAN = "scan"
    PARSE = "parse"
    RESOLVE = "resolve"
    RUNTIME = "runtime"


@dataclass(frozen=True)
class Diagnostic:
    line: int | None
    message: str
    where: str = ""
    phase: Phase = Phase.PARSE

    @classmethod
    def at(cls, token: Token, message: str, phase: Phase) -> 'Diagnostic':
        if token.type == TT.EOF:
            where = " at end"
        else:
            where = f" at '{token.lexeme}'"
        return cls(token.line, message, where, phase)

    def __str__(self) -> str:
        if self.phase is Phase.RUNTIME:
            if self.line is None:
                return self.message
            return f"{self.message}\n[line {self.line}]"
        return f"[line {self.line}] Error{self.where}: {self.message}"


class LoxRuntimeError(Exception):
    token: Final[Token | None]

    def __init__(self, token: Token | None, message: str) -> None:
        super().__init__(message)
        self.token = token

    @property
    def message(self) -> str:
        return str(self)

    def to_diagnostic(self) -> Diagnostic:
        line = self.token.line if self.token is not None else None
        return Diagnostic(line, self.message, phase=Phase.RUNTIME)
