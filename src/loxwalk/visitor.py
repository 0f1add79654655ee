from abc import ABC, abstractmethod


class Visitor[T](ABC):
    """Double-dispatch target for AST nodes.

    Concrete passes implement ``visit`` as a ``singledispatchmethod`` with
    one registration per node class.
    """

    @abstractmethod
    def visit(self, visited: 'Visitable[T]') -> T:
        ...


class Visitable[T]:
    def accept(self, visitor: Visitor[T]) -> T:
        return visitor.visit(self)
