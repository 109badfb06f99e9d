"""
Parse outcomes: Success(value) | Failure(fault).

Both variants are final, truthy/falsy like their meaning, support structural pattern
matching and pretty-print with rich:

    match parser.parse(GameArgs):
        case Success(args):
            run(args)
        case Failure(BuiltinCommandExecuted()):
            pass
        case Failure(fault):
            raise SystemExit(2)
"""
from typing import final

from .faults import ArgumentFault


@final
class Success[_T]:
    __slots__ = ("value",)
    __match_args__ = ("value",)

    def __init__(self, value: _T, /):
        self.value = value

    def __bool__(self):
        return True

    def unwrap(self) -> _T:
        return self.value

    def __repr__(self):
        return "Success(%r)" % (self.value,)

    def __rich_repr__(self):
        yield "value", self.value


@final
class Failure:
    __slots__ = ("fault",)
    __match_args__ = ("fault",)

    def __init__(self, fault: ArgumentFault, /):
        if not isinstance(fault, ArgumentFault):
            raise TypeError("Failure() argument must be an argument fault")
        self.fault = fault

    def __bool__(self):
        return False

    def unwrap(self):
        """raise the carried fault (its original cause chain is kept)."""
        raise self.fault

    def __repr__(self):
        return "Failure(%s(%r))" % (type(self.fault).__name__, str(self.fault))

    def __rich_repr__(self):
        yield "fault", self.fault


__all__ = ("Success", "Failure")
