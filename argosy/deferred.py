"""
Argosy deferred cells (compute-once, thread-safe).

Scope
- Deferred[_T]: a single-assignment memoized computation. Every binding, every
  subcommand and every parse outcome owns one.

Behavior
- The first read of `.value` runs the compute function and publishes its result;
  every later read returns the published object without running anything.
- Publication happens under a lock with a double check, so concurrent first reads
  run the compute function exactly once.
- After publication the compute function is dropped (closures over parsers, raw
  tables and callbacks become collectable).
- A compute function that raises publishes nothing: the exception propagates to
  the reader and the cell stays unevaluated.

Notes
- Compute functions must not read their own cell; the lock is not reentrant.
"""
import threading
from typing import Callable

from rich.text import Text

from .utils import Unset


class Deferred[_T]:
    """
    compute-once cell around a zero-argument callable.

    - value: the memoized result (computed on first access).
    - evaluated: True once a result is published.
    """
    __slots__ = ("_compute", "_value", "_lock")

    def __init__(self, compute: Callable[[], _T], /):
        if not callable(compute):
            raise TypeError("Deferred() argument must be callable")
        self._compute = compute
        self._value = Unset
        self._lock = threading.Lock()

    @property
    def evaluated(self) -> bool:
        return self._value is not Unset

    @property
    def value(self) -> _T:
        if (value := self._value) is not Unset:
            return value
        with self._lock:
            if self._value is Unset:
                value = self._compute()
                self._value = value
                self._compute = None
            return self._value

    def __repr__(self):
        if self._value is Unset:
            return "Deferred(<pending>)"
        return "Deferred(%r)" % (self._value,)

    def __rich__(self):
        if self._value is Unset:
            return Text.assemble("Deferred(", ("<pending>", "dim"), ")")
        return Text.assemble("Deferred(", (repr(self._value), "green"), ")")


__all__ = ("Deferred",)
