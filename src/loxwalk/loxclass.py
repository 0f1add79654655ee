from typing import Any, Self, TYPE_CHECKING

from loxwalk import function as fn
from loxwalk.errors import LoxRuntimeError
from loxwalk.tokens import Token

if TYPE_CHECKING:
    from loxwalk import interpreter as interp


class LoxInstance:
    klass: 'LoxClass'
    fields: dict[str, Any]

    def __init__(self, klass: 'LoxClass') -> None:
        self.klass = klass
        self.fields = {}

    def __str__(self) -> str:
        return f"{self.klass.name} instance"

    def get(self, name: Token, interpreter: 'interp.Interpreter') -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        member = self.klass.find_member(name.lexeme)
        if member is not None:
            return member.resolve(self, interpreter)

        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value


class Member:
    """A getter or method found on a class, ready to be read off an instance."""

    def __init__(self, function: fn.LoxFunction, is_getter: bool) -> None:
        self.function = function
        self.is_getter = is_getter

    def resolve(self, instance: LoxInstance, interpreter: 'interp.Interpreter') -> Any:
        bound = self.function.bind(instance)
        if self.is_getter:
            # Getters run on every access; nothing is cached on the instance.
            return bound.call(interpreter, [])
        return bound


class LoxClass:
    name: str
    superclass: Self | None
    methods: dict[str, fn.LoxFunction]
    static_methods: dict[str, fn.LoxFunction]
    getters: dict[str, fn.LoxFunction]

    def __init__(
        self,
        name: str,
        superclass: Self | None,
        methods: dict[str, fn.LoxFunction],
        static_methods: dict[str, fn.LoxFunction] | None = None,
        getters: dict[str, fn.LoxFunction] | None = None,
    ) -> None:
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.static_methods = static_methods if static_methods is not None else {}
        self.getters = getters if getters is not None else {}

    def __str__(self) -> str:
        return self.name

    def call(self, interpreter: 'interp.Interpreter', arguments: list[Any]) -> Any:
        instance = LoxInstance(self)

        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)

        return instance

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is not None:
            return initializer.arity()
        return 0

    def find_method(self, name: str) -> fn.LoxFunction | None:
        method = self.methods.get(name)
        if method is None and self.superclass is not None:
            return self.superclass.find_method(name)
        return method

    def find_member(self, name: str) -> Member | None:
        """Look up a getter or method, nearest class first."""
        klass: LoxClass | None = self
        while klass is not None:
            if name in klass.getters:
                return Member(klass.getters[name], is_getter=True)
            if name in klass.methods:
                return Member(klass.methods[name], is_getter=False)
            klass = klass.superclass
        return None

    def find_static_method(self, name: str) -> fn.LoxFunction | None:
        method = self.static_methods.get(name)
        if method is None and self.superclass is not None:
            return self.superclass.find_static_method(name)
        return method

    def get(self, name: Token) -> fn.LoxFunction:
        method = self.find_static_method(name.lexeme)
        if method is None:
            raise LoxRuntimeError(name, f"Undefined static method '{name.lexeme}' on class {self.name}.")
        return method
