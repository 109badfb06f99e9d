"""
Schema registry: declared bindings of one parser, validated at declaration time.

Rules enforced (InitializationError, raised immediately)
- keyed bindings declare at least one key; every key matches -x or --long-name.
- a key is declared once per parser and never shadows a builtin token.
- mappings are non-empty Mapping objects keyed by strings that do not look like argument keys.
- positional value labels are non-empty and unique.
- subcommand names are alphanumeric and unique.

Lookups
- option(key): required, optional or defaulted bindings.
- flag(key): flag bindings.
"""
import itertools
import re
from collections.abc import Mapping
from types import MappingProxyType

from .bindings import KEY_PATTERN, Binding, BindingKind, Subcommand
from .faults import InitializationError, FaultCode
from .utils import Unset, mirror

BUILTINS = MappingProxyType({
    "help": frozenset({"help", "--help"}),
    "version": frozenset({"version", "--version"}),
    "quit": frozenset({"q", "quit", "exit", "--quit", "--exit"}),
})

RESERVED = frozenset(itertools.chain.from_iterable(BUILTINS.values()))

SUBCOMMAND_PATTERN = re.compile(r"[a-zA-Z0-9]+")


class Registry:
    prog = mirror("prog")

    def __init__(self, prog, /):
        self._prog = prog
        self._bindings = []
        self._keys = {}
        self._labels = set()
        self._subcommands = {}

    @property
    def bindings(self):
        """every binding in declaration order."""
        return tuple(self._bindings)

    @property
    def subcommands(self):
        return MappingProxyType(self._subcommands)

    def select(self, *kinds, mapped=None):
        """bindings of the given kinds (declaration order), optionally filtered on mapped-ness."""
        return tuple(
            binding for binding in self._bindings
            if binding.kind in kinds and (mapped is None or binding.mapped is mapped)
        )

    @property
    def optionals(self):
        return self.select(BindingKind.OPTIONAL)

    @property
    def defaulted(self):
        return self.select(BindingKind.DEFAULTED)

    @property
    def required(self):
        return self.select(BindingKind.REQUIRED)

    @property
    def flags(self):
        return self.select(BindingKind.FLAG)

    @property
    def positionals(self):
        return self.select(BindingKind.POSITIONAL)

    def option(self, key, /):
        # keys are unique per parser, so at most one of required/optional/defaulted matches
        if (binding := self._keys.get(key)) is not None and binding.kind in (
            BindingKind.REQUIRED,
            BindingKind.OPTIONAL,
            BindingKind.DEFAULTED,
        ):
            return binding
        return None

    def flag(self, key, /):
        if (binding := self._keys.get(key)) is not None and binding.kind is BindingKind.FLAG:
            return binding
        return None

    def _fail(self, message, /, **options):
        raise InitializationError(message, prog=self._prog, **options)

    def _check_keys(self, binding):
        keys = binding.keys
        if not keys:
            self._fail(
                "%s binding declared without any key" % binding.kind.value,
                title="missing keys",
                code=FaultCode.MISSING_KEYS,
                hint="declare at least one key such as -k or --key",
            )
        seen = set()
        for key in keys:
            if not isinstance(key, str) or not KEY_PATTERN.fullmatch(key):
                self._fail(
                    "invalid key %r for %s binding" % (key, binding.kind.value),
                    title="invalid key",
                    code=FaultCode.INVALID_KEY,
                    hint="use a single dash with one letter (-k) or two dashes with letters and dashes (--key-name)",
                )
            if key in RESERVED:
                self._fail(
                    "key %r is reserved for a builtin command" % key,
                    title="reserved key",
                    code=FaultCode.RESERVED_KEY,
                    hint="pick another key; %s are builtins" % ", ".join(sorted(RESERVED)),
                )
            if key in self._keys or key in seen:
                self._fail(
                    "key %r is declared more than once" % key,
                    title="duplicated key",
                    code=FaultCode.DUPLICATED_KEY,
                    hint="every key may be used by one binding only",
                )
            seen.add(key)

    def _check_mapping(self, binding, mapping):
        if not isinstance(mapping, Mapping):
            self._fail(
                "mapping of %s must map choices to values, got %s" % (", ".join(binding.keys), type(mapping).__name__),
                title="malformed mapping",
                code=FaultCode.MALFORMED_MAPPING,
                hint="pass a dict such as {'easy': 1, 'hard': 2}",
            )
        if not mapping:
            self._fail(
                "mapping of %s is empty" % ", ".join(binding.keys),
                title="empty mapping",
                code=FaultCode.EMPTY_MAPPING,
                hint="give at least one choice",
            )
        for choice in mapping:
            if not isinstance(choice, str) or KEY_PATTERN.fullmatch(choice):
                self._fail(
                    "mapping of %s has an invalid choice %r" % (", ".join(binding.keys), choice),
                    title="malformed mapping",
                    code=FaultCode.MALFORMED_MAPPING,
                    hint="choices are strings that do not look like argument keys",
                )

    def _check_label(self, binding):
        label = binding.metavar
        if not isinstance(label, str) or not label.strip():
            self._fail(
                "positional declared without a value label",
                title="invalid positional",
                code=FaultCode.INVALID_POSITIONAL,
                hint="give the positional a non-empty label such as FILE",
            )
        if label in self._labels:
            self._fail(
                "positional label %r is declared more than once" % label,
                title="duplicated positional",
                code=FaultCode.DUPLICATED_POSITIONAL,
                hint="every positional needs its own label",
            )

    def declare(self, binding, /, *, mapping=Unset):
        """validate and register a binding; `mapping` is the raw mapping for mapped kinds."""
        if not isinstance(binding, Binding):
            raise TypeError("declare() argument must be a binding")

        if binding.kind is BindingKind.POSITIONAL:
            self._check_label(binding)
            self._labels.add(binding.metavar)
        else:
            self._check_keys(binding)
            if mapping is not Unset:
                self._check_mapping(binding, mapping)
            for key in binding.keys:
                self._keys[key] = binding

        self._bindings.append(binding)
        return binding

    def admit(self, name, /):
        """validate a subcommand name before its child parser is built."""
        if not isinstance(name, str) or not SUBCOMMAND_PATTERN.fullmatch(name):
            self._fail(
                "invalid subcommand name %r" % (name,),
                title="invalid subcommand",
                code=FaultCode.INVALID_SUBCOMMAND,
                hint="subcommand names use letters and digits only",
            )
        if name in self._subcommands:
            self._fail(
                "subcommand %r is declared more than once" % name,
                title="duplicated subcommand",
                code=FaultCode.DUPLICATED_SUBCOMMAND,
                hint="every subcommand needs its own name",
            )

    def attach(self, subcommand, /):
        if not isinstance(subcommand, Subcommand):
            raise TypeError("attach() argument must be a subcommand")
        self._subcommands[subcommand.name] = subcommand
        return subcommand


__all__ = (
    "BUILTINS",
    "RESERVED",
    "Registry",
)
