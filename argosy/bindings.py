r"""
Argosy bindings: declared arguments and their deferred values.

Overview
- BindingKind: the five shapes a binding can take.
  • OPTIONAL: keyed value, None when absent.
  • DEFAULTED: keyed value, its default when absent.
  • REQUIRED: keyed value, a ParseError when absent.
  • FLAG: keyed presence toggle, `not default` when present.
  • POSITIONAL: unkeyed value bound by position.
  The first three may carry a mapping (enumeration over fixed string choices).

- Binding: one declared argument. Holds the shared metadata (keys, metavar, descr,
  default, mapping, coerce) and a Deferred cell that resolves the value from the
  tokenized arguments the first time `.value` is read.

- Subcommand: a named child schema with its own parser and a Deferred cell holding
  the child's result object (None when the subcommand is not the one invoked).

- Arguments: optional base class for result objects. Attributes holding a Binding or
  a Subcommand read as their resolved value:

      class GameArgs(Arguments):
          def __init__(self, parser):
              self.seed = parser.optional("-s", "--seed", metavar="SEED")

      args.seed  # -> "abc" or None

Resolution (per binding, once)
1. the raw value is looked up through the keys in declaration order (first present wins).
2. absent: FLAG/DEFAULTED -> default, OPTIONAL -> None, REQUIRED -> ParseError.
3. present: FLAG -> not default, mapped -> mapping[raw] (ParseError on a miss),
   otherwise coerce(raw) with any exception wrapped into a ParseError.
4. positionals coerce the argv entry they were bound to.
"""
import re
from collections.abc import Mapping
from enum import Enum

from .deferred import Deferred
from .faults import ParseError, FaultCode
from .utils import Unset, mirror, rename

KEY_PATTERN = re.compile(r"-[a-zA-Z]|--[a-zA-Z][a-zA-Z-]*")


class BindingKind(Enum):
    OPTIONAL = "optional"
    DEFAULTED = "defaulted"
    REQUIRED = "required"
    FLAG = "flag"
    POSITIONAL = "positional"


class Binding:
    """
    a declared argument and its compute-once value.

    construction is done by the parser declaration methods; the registry validates
    keys, mapping and labels before the binding is handed back to the schema.

    the `source` callable returns the parser's tokenized arguments; it is called
    only when the value is first read.
    """
    __introspectable__ = ("kind", "keys", "metavar", "descr", "default", "mapping")

    kind = mirror("kind")
    keys = mirror("keys")
    metavar = mirror("metavar")
    descr = mirror("descr")
    default = mirror("default")
    mapping = mirror("mapping")

    def __init__(
            self,
            kind,
            keys=(),
            /,
            *,
            source,
            metavar=Unset,
            descr=Unset,
            default=Unset,
            mapping=Unset,
            coerce=str
    ):
        if not isinstance(kind, BindingKind):
            raise TypeError("Binding() kind must be a binding kind")
        if not callable(coerce):
            raise TypeError("Binding() coerce must be callable")
        if not callable(source):
            raise TypeError("Binding() source must be callable")

        self._kind = kind
        self._keys = tuple(keys)
        self._metavar = metavar if metavar is not Unset else self._derive_metavar()
        self._descr = descr if descr is not Unset else ""
        self._default = None if default is Unset and kind is not BindingKind.FLAG else default
        if mapping is Unset:
            mapping = {}
        self._mapping = dict(mapping) if isinstance(mapping, Mapping) else mapping
        self._coerce = coerce
        self._cell = Deferred(rename(lambda: self.resolve(source()), "resolve"))

    def _derive_metavar(self):
        if not self._keys:
            return ""
        longest = max(map(str, self._keys), key=len)
        return longest.lstrip("-").replace("-", "_").upper()

    @property
    def label(self):
        """keys joined by ", " (the value label for positionals)."""
        if self._kind is BindingKind.POSITIONAL:
            return self._metavar
        return ", ".join(self._keys)

    @property
    def mapped(self):
        return bool(self._mapping)

    @property
    def value(self):
        return self._cell.value

    @property
    def evaluated(self):
        return self._cell.evaluated

    def lookup(self, raw, /):
        for key in self._keys:
            if key in raw:
                return raw[key]
        return Unset

    def resolve(self, tokens, /):
        if self._kind is BindingKind.POSITIONAL:
            try:
                index = tokens.indexes[self._metavar]
            except KeyError:
                raise ParseError(
                    "positional %r was never bound to an argument" % self._metavar,
                    title="unresolved positional",
                    code=FaultCode.UNRESOLVED_POSITIONAL,
                    hint="pass every positional after the options (use '--' before values starting with '-')",
                    binding=self,
                ) from None
            return self._coerced(tokens.argv[index])

        if (raw := self.lookup(tokens.raw)) is Unset:
            match self._kind:
                case BindingKind.FLAG | BindingKind.DEFAULTED:
                    return self._default
                case BindingKind.OPTIONAL:
                    return None
                case BindingKind.REQUIRED:
                    raise ParseError(
                        "required value not found",
                        title="missing required value",
                        code=FaultCode.REQUIRED_VALUE,
                        hint="pass it as %s %s" % (self._keys[0], self._metavar),
                        binding=self,
                    )

        if self._kind is BindingKind.FLAG:
            return not self._default

        if self._mapping:
            try:
                return self._mapping[raw]
            except KeyError:
                raise ParseError(
                    "mapping not found for value %r" % raw,
                    title="invalid choice",
                    code=FaultCode.MAPPING_NOT_FOUND,
                    hint="choose one of {%s}" % ",".join(self._mapping),
                    binding=self,
                ) from None

        return self._coerced(raw)

    def _coerced(self, raw):
        try:
            return self._coerce(raw)
        except Exception as exception:
            raise ParseError(
                "could not convert %r to %s: %s" % (raw, self._metavar or "a value", exception),
                title="conversion failed",
                code=FaultCode.COERCION_FAILED,
                hint="check the value given for %s" % self.label,
                binding=self,
            ) from exception

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)
        yield "value", self._cell

    def __repr__(self):
        return "%s-binding(%s)" % (
            self._kind.value,
            ", ".join("%s=%r" % (name, getattr(self, name)) for name in type(self).__introspectable__[1:])
        )


class Subcommand:
    """
    a named child schema.

    - parser: the child parser (argv[1:] when active, the parent's argv otherwise).
    - active: True when argv[0] named this subcommand.
    - value: the child's result object when active, None otherwise. Reading it when
      active parses the child and raises the child's fault on failure.
    """
    name = mirror("name")
    descr = mirror("descr")

    def __init__(self, name, callback, parser, /, *, descr="", active=False):
        self._name = name
        self._descr = descr
        self._callback = callback
        self.parser = parser
        self.active = active
        if active:
            self._cell = Deferred(rename(lambda: parser.parse(callback).unwrap(), "delegate"))
        else:
            self._cell = Deferred(lambda: None)

    @property
    def value(self):
        return self._cell.value

    @property
    def evaluated(self):
        return self._cell.evaluated

    def __rich_repr__(self):
        yield "name", self._name
        yield "descr", self._descr
        yield "active", self.active

    def __repr__(self):
        return "subcommand(name=%r, descr=%r, active=%r)" % (self._name, self._descr, self.active)


class Arguments:
    """
    base class for result objects built by a schema callback.

    attributes holding a Binding or Subcommand read as their resolved value; the
    declared objects stay reachable through vars(self).

    help customization
    - __prologue__: printed after the usage line.
    - __epilogue__: printed after the argument tables.
    """
    __prologue__ = None
    __epilogue__ = None

    def __getattribute__(self, name):
        object = super().__getattribute__(name)
        if isinstance(object, Binding | Subcommand):
            return object.value
        return object


__all__ = (
    "KEY_PATTERN",
    "BindingKind",
    "Binding",
    "Subcommand",
    "Arguments",
)
