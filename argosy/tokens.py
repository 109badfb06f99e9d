r"""
Tokenizer & classifier: one left-to-right pass over argv.

Token classes (checked in this order)
- "--"            : end of options; every following token is a positional.
- "key=value"     : inline value for a declared option key (flags reject inline values).
- "--long"        : declared flag -> present; declared option -> consumes the next token.
- "-x..."         : short form, decided on its two-character prefix
                    • declared flag: present, then every further letter must be a
                      declared flag too (-wxy stacks -w -x -y).
                    • declared option, token is exactly the key: consumes the next
                      token, which must not start with '-'.
                    • declared option, longer token: the rest is the value (-n24).
- anything else   : start of positionals (a lone '-' included).

A key given more than once keeps its last value. Leftover tokens must match the
declared positionals one to one.
"""
from types import MappingProxyType
from typing import NamedTuple

from .faults import MalformedArgsError, FaultCode
from .present import present
from .utils import ordinal


class Tokens(NamedTuple):
    raw: MappingProxyType
    indexes: MappingProxyType
    argv: tuple


def empty(argv=(), /):
    """tokens with nothing bound (used while a subcommand handles argv)."""
    return Tokens(MappingProxyType({}), MappingProxyType({}), tuple(argv))


def tokenize(argv, registry, /):
    """
    classify argv against a registry.

    returns Tokens(raw, indexes, argv)
    - raw: key -> raw string, or `present` for flags.
    - indexes: positional value label -> index into argv.

    raises MalformedArgsError on the first token that does not fit the schema.
    """
    argv = tuple(argv)
    raw = {}
    index = 0
    start = len(argv)

    def fail(message, **options):
        raise MalformedArgsError(message, prog=registry.prog, **options)

    def consume(key):
        nonlocal index
        if index + 1 >= len(argv):
            fail(
                "option %r at %s position requires a value" % (key, ordinal(index + 1)),
                title="missing option value",
                code=FaultCode.MISSING_VALUE,
                hint="pass a value after %s (for example: %s VALUE)" % (key, key),
            )
        if not key.startswith("--") and argv[index + 1].startswith("-"):
            fail(
                "option %r at %s position requires a value but got %r" % (key, ordinal(index + 1), argv[index + 1]),
                title="missing option value",
                code=FaultCode.MISSING_VALUE,
                hint="values starting with '-' go inline (for example: %s%s)" % (key, argv[index + 1]),
            )
        index += 1
        return argv[index]

    def unknown(key):
        fail(
            "unknown option or flag %r at %s position" % (key, ordinal(index + 1)),
            title="unknown option or flag",
            code=FaultCode.UNKNOWN_KEY,
            hint="try '%s --help' to see the accepted keys" % registry.prog,
        )

    while index < len(argv):
        token = argv[index]

        if token == "--":
            start = index + 1
            break

        if "=" in token:
            key, _, value = token.partition("=")
            if registry.flag(key) is not None:
                fail(
                    "flag %r at %s position cannot have an inline value" % (key, ordinal(index + 1)),
                    title="flag cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    hint="remove everything from '=' (for example: %s)" % key,
                )
            if registry.option(key) is None:
                unknown(key)
            raw[key] = value
        elif token.startswith("--"):
            if registry.flag(token) is not None:
                raw[token] = present
            elif registry.option(token) is not None:
                raw[token] = consume(token)
            else:
                unknown(token)
        elif token.startswith("-") and len(token) >= 2:
            prefix = token[:2]
            if registry.flag(prefix) is not None:
                raw[prefix] = present
                for letter in token[2:]:
                    if registry.flag(key := "-" + letter) is None:
                        fail(
                            "unknown flag %r stacked in %r at %s position" % (key, token, ordinal(index + 1)),
                            title="unknown flag",
                            code=FaultCode.UNKNOWN_FLAG,
                            hint="only declared single-letter flags can be stacked",
                        )
                    raw[key] = present
            elif registry.option(prefix) is not None:
                raw[prefix] = token[2:] if len(token) > 2 else consume(prefix)
            else:
                unknown(token)
        else:
            start = index
            break

        index += 1

    leftovers = argv[start:]
    positionals = registry.positionals

    if len(leftovers) < len(positionals):
        missing = positionals[len(leftovers):]
        fail(
            "positional(s) not provided: %s" % ", ".join(binding.metavar for binding in missing),
            title="missing positionals",
            code=FaultCode.MISSING_POSITIONALS,
            hint="expected %d positional(s) but got %d" % (len(positionals), len(leftovers)),
        )
    if len(leftovers) > len(positionals):
        surplus = start + len(positionals)
        fail(
            "unexpected argument %r at %s position" % (argv[surplus], ordinal(surplus + 1)),
            title="unexpected argument",
            code=FaultCode.UNEXPECTED_ARGUMENT,
            hint="expected %d positional(s) but got %d" % (len(positionals), len(leftovers)),
        )

    indexes = {}
    for offset, binding in enumerate(positionals, start):
        if not argv[offset].strip():
            fail(
                "positional %s at %s position is blank" % (binding.metavar, ordinal(offset + 1)),
                title="blank positional",
                code=FaultCode.BLANK_POSITIONAL,
                hint="give %s a non-empty value" % binding.metavar,
            )
        indexes[binding.metavar] = offset

    return Tokens(MappingProxyType(raw), MappingProxyType(indexes), argv)


__all__ = (
    "Tokens",
    "empty",
    "tokenize",
)
