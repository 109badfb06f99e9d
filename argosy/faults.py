"""
Argosy faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- ArgumentFault: base type that carries message + options and knows how to render
  itself in a friendly, lowercased, and actionable way.
- InitializationError / MalformedArgsError / ParseError / BuiltinCommandExecuted:
  the four fault families a parser can produce.
- report(): central entry point to print a fault on the error console.
- getdoc(): optional description lookup for a code from the host application.

Propagation
- InitializationError is a programming error in the schema: raised at declaration
  time and never captured.
- MalformedArgsError and ParseError are user errors: captured by the parser,
  reported, then returned inside a Failure.
- BuiltinCommandExecuted signals help/version/quit: returned inside a Failure and
  never reported.

Integration
- Raise sites pass title, code and hint options; the parser adds prog and colorful
  when reporting.
- Palette overrides are read from __styles__ in __main__, code labels from __codes__,
  code documentation from __docs__.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text


console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - initialization (211xx): schema declaration mistakes
      • keys (2110x), mappings (2111x), positionals (2112x), subcommands (2113x)
    - malformed arguments (221xx): the argument vector does not fit the schema
      • keys/values (2210x), positionals (2211x)
    - parse (231xx): a well-formed value could not be resolved
    - builtins (241xx): help/version/quit short-circuits

    rationale
    - spacing leaves room for future additions without reshuffling existing codes.
    - normalize() lets hosts remap codes to custom labels.
    """
    # --- initialization errors (211xx) ---
    INVALID_KEY                 = 21101
    MISSING_KEYS                = 21102
    DUPLICATED_KEY              = 21103
    RESERVED_KEY                = 21104
    EMPTY_MAPPING               = 21111
    MALFORMED_MAPPING           = 21112
    INVALID_POSITIONAL          = 21121
    DUPLICATED_POSITIONAL       = 21122
    INVALID_SUBCOMMAND          = 21131
    DUPLICATED_SUBCOMMAND       = 21132

    # --- malformed arguments (221xx) ---
    UNKNOWN_KEY                 = 22101
    MISSING_VALUE               = 22102
    UNKNOWN_FLAG                = 22103
    FLAG_ASSIGNMENT             = 22104
    MISSING_POSITIONALS         = 22111
    UNEXPECTED_ARGUMENT         = 22112
    BLANK_POSITIONAL            = 22113

    # --- parse errors (231xx) ---
    REQUIRED_VALUE              = 23101
    MAPPING_NOT_FOUND           = 23102
    COERCION_FAILED             = 23103
    UNRESOLVED_POSITIONAL       = 23104

    # --- builtin commands (241xx) ---
    HELP_REQUESTED              = 24101
    VERSION_REQUESTED           = 24102
    QUIT_REQUESTED              = 24103

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ArgumentFault(Exception):
    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"colorful": False, "prog": "argosy"} | options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "#6B6F7A",  # dim footer gray
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if self.options["colorful"] else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not self.options["colorful"]:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options["prog"]), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.options["code"].normalize(), styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options["hint"], styler("hint")))

        if docs := self.options.get("docs"):
            return Group(header, message, hint, text(docs, styler("docs")))

        return Group(header, message, hint)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class InitializationError(ArgumentFault): ...
class MalformedArgsError(ArgumentFault): ...


class ParseError(ArgumentFault):
    """
    a value was present (or required) but could not be resolved.

    the optional `binding` option names the binding that failed; the message is
    then prefixed with its keys (or value label for positionals), e.g.
    "[-l, --num-lives] could not convert 'x' ...".
    """

    @property
    def binding(self):
        return self.options.get("binding")

    def __str__(self):
        if (binding := self.options.get("binding")) is None:
            return self.message
        return "[%s] %s" % (binding.label, self.message)


class BuiltinCommandExecuted(ArgumentFault):
    """
    help, version or quit was requested on the command line.

    `command` is one of "help", "version" or "quit".
    """

    @property
    def command(self):
        return self.options["command"]


def report(fault, /, *, console=console, **options):
    """
    print a fault to the error console with the given runtime options.

    contract
    - fault must provide __replace__ (see ArgumentFault).
    - options are merged into a copy of the fault via copy.replace() before
      printing; the original fault is left untouched.

    typical options
    - prog, colorful, and any other context the renderer may want to show.
    """
    if not hasattr(fault, "__replace__") or not callable(fault.__replace__):
        raise TypeError("report() argument must have a __replace__ method")
    console.print(copy.replace(fault, **options))


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (the renderer treats docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "ArgumentFault",
    "InitializationError",
    "MalformedArgsError",
    "ParseError",
    "BuiltinCommandExecuted",
    "FaultCode",
    "report",
    "getdoc",
)
