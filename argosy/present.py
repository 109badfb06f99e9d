# python
"""
Internal sentinel for flags seen on the command line.

This module exposes a single instance: `present`. The tokenizer stores it in the raw
argument table for every flag key it encounters, so the table can hold both option
values (strings) and flag presence without inventing a placeholder string.

Important
- `present` is INTERNAL. Bindings translate it into booleans; application code never
  sees it unless it inspects the raw table directly.

Notes
- `present` is a cached singleton (per-process) and is truthy.
- Rich rendering uses Text.assemble for a colored "(present)".
"""
from rich.text import Text

present = type("present-type", (), {
    "__module__": None,
    "__slots__": (),
    "__rich__": lambda self: Text.assemble(("(", "yellow"), ("present", "green"), (")", "yellow")),
    "__repr__": lambda self: "(present)",
    "__bool__": lambda self: True,
    "__doc__": "internal singleton marking a flag as present in the raw argument table",
    "__new__": __import__("functools").cache(lambda cls: super(type, cls).__new__(cls)),
})()


__all__ = ("present",)
