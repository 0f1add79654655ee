import pytest

from loxwalk.environment import Environment, UNINITIALIZED
from loxwalk.errors import LoxRuntimeError
from loxwalk.tokens import Token, TokenType as TT


def name(lexeme: str) -> Token:
    return Token(TT.IDENTIFIER, lexeme, 1)


def test_lookup_walks_enclosing_frames():
    outer = Environment()
    outer.define("a", 1.0)
    inner = Environment(outer)
    assert inner.get(name("a")) == 1.0


def test_assignment_updates_defining_frame():
    outer = Environment()
    outer.define("a", 1.0)
    inner = Environment(outer)
    inner.assign(name("a"), 2.0)
    assert outer.values["a"] == 2.0
    assert "a" not in inner.values


def test_undefined_variable():
    env = Environment()
    with pytest.raises(LoxRuntimeError, match="Undefined variable 'x'."):
        env.get(name("x"))
    with pytest.raises(LoxRuntimeError, match="Undefined variable 'x'."):
        env.assign(name("x"), 1.0)


def test_resolved_access_by_distance():
    globals = Environment()
    middle = Environment(globals)
    middle.define("a", "middle")
    inner = Environment(middle)
    inner.define("a", "inner")

    assert inner.get_at(0, "a") == "inner"
    assert inner.get_at(1, "a") == "middle"

    inner.assign_at(1, name("a"), "changed")
    assert middle.values["a"] == "changed"
    assert inner.ancestor(2) is globals


def test_resolved_access_inconsistency_is_internal_error():
    env = Environment(Environment())
    with pytest.raises(ValueError):
        env.get_at(0, "missing")
    with pytest.raises(ValueError):
        env.assign_at(1, name("missing"), 1.0)
    with pytest.raises(ValueError):
        env.ancestor(5)


def test_uninitialized_marker_is_stored_as_is():
    env = Environment()
    env.define("a", UNINITIALIZED)
    assert env.get(name("a")) is UNINITIALIZED
