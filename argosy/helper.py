"""
Help and version rendering (rich).

render(parser, result)
- Usage block: program name, then one line each for required keys, optional keys,
  flags, and positionals/subcommands.
- Prologue: result.__prologue__ when present.
- Sections (only the non-empty ones, in this order): required, positionals,
  optionals, flags, subcommands. Mapped bindings add a "LABEL={a,b}" line with their
  choices; defaulted bindings append "(Default x)", using the mapping key when the
  default is one of the mapped values.
- Epilogue: result.__epilogue__ when present.

version(parser)
- Prints the parser's version text.

Palette keys
- usage-label, program-name, usage-section, prologue-section, epilogue-section
- section-label, key-name, flag-name, metavar, choice, separator, argument-description,
  default, subcommand-name, program-version
Override any entry with a __styles__ mapping in __main__; styles apply only when the
parser is colorful. Rendering never touches parse state.
"""
from collections import defaultdict

from rich.console import Group
from rich.table import Table
from rich.text import Text

from .bindings import BindingKind
from .utils import Unset


def _palette():
    return defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "prologue-section": "italic #A3A3A3",  # Neutral gray
        "epilogue-section": "#737373",  # Dim footer gray

        # === Sections / arguments ===
        "section-label": "bold #FFFFFF",
        "key-name": "bold #00E6FF",
        "flag-name": "bold #22C55E",
        "metavar": "bold #FFD600",
        "choice": "bold #FF4D94",
        "separator": "#4B5563",
        "argument-description": "#9CA3AF",
        "default": "italic #9CA3AF",
        "subcommand-name": "bold #36C5F0",

        # === Version ===
        "program-version": "bold #00E6FF",
    } | getattr(__import__("__main__"), "__styles__", {}))


def _texter(colorful):
    styles = _palette()

    def text(fragment, style=""):
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        if not fragment:
            return Text("")
        return Text(str(fragment), styles[style] if colorful else "")

    return text


def _mapping_key(binding):
    for key, value in binding.mapping.items():
        if value == binding.default:
            return key
    return binding.default


def render(parser, result=Unset, /):
    """print help for `parser` on its stdout console."""
    text = _texter(parser.colorful)
    registry = parser.registry
    renders = []

    required = registry.required
    optionals = registry.optionals + registry.defaulted
    flags = registry.flags
    positionals = registry.positionals
    subcommands = registry.subcommands

    # Usage block
    usage = Text.assemble(text("Usage:", "usage-label"), " ", text(parser.name, "program-name"))
    lines = [
        [Text.assemble(text(binding.keys[0], "key-name"), "=", text(binding.metavar, "metavar")) for binding in required],
        [Text.assemble("[", text(binding.keys[0], "key-name"), "=", text(binding.metavar, "metavar"), "]") for binding in optionals],
        [Text.assemble("[", text(binding.keys[0], "flag-name"), "]") for binding in flags],
    ]
    tail = []
    if positionals:
        tail.append(Text("[--]"))
        tail.extend(text(binding.metavar, "metavar") for binding in positionals)
    if subcommands:
        tail.append(text("SUBCOMMAND [ARGS]", "usage-section"))
    lines.append(tail)
    for line in filter(None, lines):
        usage.append("\n").append(Text(" ").join(line))
    renders.append(usage.append("\n"))

    if prologue := getattr(result, "__prologue__", None):
        renders.append(text(prologue, "prologue-section").append("\n"))

    def section(title, rows):
        table = Table.grid(padding=(0, 1))
        table.add_column(no_wrap=True)
        table.add_column()
        table.add_column()
        for row in rows:
            table.add_row(*row)
        return Group(text(title, "section-label"), table, Text(""))

    def keyed(binding):
        if binding.kind is BindingKind.FLAG:
            return Text(", ").join(text(key, "flag-name") for key in binding.keys)
        return Text(", ").join(
            Text.assemble(text(key, "key-name"), " ", text(binding.metavar, "metavar")) for key in binding.keys
        )

    def described(binding, default=Unset):
        descr = text(binding.descr, "argument-description")
        if default is not Unset:
            suffix = text("(Default %s)" % (default,), "default")
            return Text(" ").join(part for part in (descr, suffix) if part)
        return descr

    def choices(binding):
        return (
            Text.assemble(
                "    ",
                text(binding.metavar, "metavar"),
                "={",
                Text(",").join(text(choice, "choice") for choice in binding.mapping),
                "}",
            ),
            Text(""),
            Text(""),
        )

    separator = text(":", "separator")

    if required:
        rows = []
        for binding in required:
            rows.append((keyed(binding), separator, described(binding)))
            if binding.mapped:
                rows.append(choices(binding))
        renders.append(section("Required args:", rows))

    if positionals:
        rows = [(text(binding.metavar, "metavar"), separator, described(binding)) for binding in positionals]
        renders.append(section("Positional args:", rows))

    if optionals:
        rows = []
        for binding in optionals:
            if binding.kind is BindingKind.DEFAULTED:
                default = _mapping_key(binding) if binding.mapped else binding.default
                rows.append((keyed(binding), separator, described(binding, default)))
            else:
                rows.append((keyed(binding), separator, described(binding)))
            if binding.mapped:
                rows.append(choices(binding))
        renders.append(section("Optional args:", rows))

    if flags:
        rows = [
            (keyed(binding), separator, described(binding, binding.default) if binding.default else described(binding))
            for binding in flags
        ]
        renders.append(section("Flag args:", rows))

    if subcommands:
        rows = [
            (text(name, "subcommand-name"), separator, text(subcommand.descr, "argument-description"))
            for name, subcommand in subcommands.items()
        ]
        renders.append(section("Subcommands:", rows))

    if epilogue := getattr(result, "__epilogue__", None):
        renders.append(text(epilogue, "epilogue-section"))

    parser.stdout.print(Group(*renders))


def version(parser, /):
    """print the version text of `parser` on its stdout console."""
    text = _texter(parser.colorful)
    parser.stdout.print(text(parser.version, "program-version"))


__all__ = (
    "render",
    "version",
)
