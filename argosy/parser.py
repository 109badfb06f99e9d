"""
Argosy parser: schema declaration, subcommand dispatch and outcome orchestration.

Overview
- Parser(argv, name, version=Unset, *, colorful=False, stdout=Unset, stderr=Unset)
  • argv: the raw argument vector (program name excluded).
  • name: program name shown in help and faults; children are named "<name> <sub>".
  • version: text printed by the version builtin ("<name> version unknown" by default).
  • colorful/stdout/stderr: rendering settings, inherited by child parsers.

- Declaration (from inside the schema callback)
  • optional(*keys, metavar, descr, default, coerce)
  • required(*keys, metavar, descr, coerce)
  • optional_mapped(*keys, mapping, metavar, descr, default)
  • required_mapped(*keys, mapping, metavar, descr)
  • flag(*keys, descr, default=False)
  • positional(metavar, descr, coerce)
  • subcommand(name, callback, descr)
  Declaration mistakes raise InitializationError immediately.

- parse(callback) -> Success(result) | Failure(fault)
  1. result = callback(self)
  2. builtins on argv[0] (or an empty argv): help/version/quit
  3. an active subcommand takes over the rest of argv
  4. otherwise argv is tokenized (MalformedArgsError) and every binding is
     forced once in declaration order (ParseError)
  The outcome is computed once; later calls return the same object.

Example
    >>> class Game(Arguments):
    ...     def __init__(self, parser):
    ...         self.lives = parser.optional("-l", "--num-lives", metavar="COUNT", default=3, coerce=int)
    ...         self.cheats = parser.flag("-c", "--cheats-enabled")
    ...
    >>> Parser(["-l", "5", "-c"], "game").parse(Game).unwrap().lives
    5
"""
import threading

from rich.console import Console

from . import faults, helper
from .bindings import Binding, BindingKind, Subcommand
from .deferred import Deferred
from .faults import (
    BuiltinCommandExecuted,
    FaultCode,
    MalformedArgsError,
    ParseError,
    getdoc,
    report,
)
from .outcome import Failure, Success
from .registry import BUILTINS, Registry
from .tokens import empty, tokenize
from .utils import Unset, coalesce, mirror


class Parser:
    name = mirror("name")
    argv = mirror("argv")
    version = mirror("version")
    colorful = mirror("colorful")

    def __init__(self, argv, name, version=Unset, /, *, colorful=False, stdout=Unset, stderr=Unset):
        argv = tuple(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("Parser() argv must contain strings only")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Parser() name must be a non-empty string")
        if not isinstance(version, str | Unset):
            raise TypeError("Parser() version must be a string")

        self._argv = argv
        self._name = name
        self._version = coalesce(version, f"{name} version unknown")
        self._colorful = bool(colorful)
        self._stdout = Console() if stdout is Unset else stdout
        self._stderr = faults.console if stderr is Unset else stderr
        self._registry = Registry(name)
        self._tokens = Unset
        self._result = Unset
        self._outcome = Unset
        self._lock = threading.Lock()

    @property
    def registry(self):
        return self._registry

    @property
    def stdout(self):
        return self._stdout

    @property
    def stderr(self):
        return self._stderr

    @property
    def result(self):
        """the object returned by the schema callback (Unset before parse)."""
        return self._result

    @property
    def tokens(self):
        if self._tokens is Unset:
            raise RuntimeError("arguments of %r are not tokenized yet" % self._name)
        return self._tokens

    # --- declaration ---

    def _declare(self, kind, keys, /, *, mapping=Unset, **options):
        if mapping is not Unset:
            options["mapping"] = mapping
        binding = Binding(kind, keys, source=lambda: self.tokens, **options)
        return self._registry.declare(binding, mapping=mapping)

    def optional(self, *keys, metavar=Unset, descr=Unset, default=Unset, coerce=str):
        """an optional value; None (or `default`) when absent."""
        kind = BindingKind.OPTIONAL if default is Unset else BindingKind.DEFAULTED
        return self._declare(kind, keys, metavar=metavar, descr=descr, default=default, coerce=coerce)

    def required(self, *keys, metavar=Unset, descr=Unset, coerce=str):
        """a value that must be given; ParseError when absent."""
        return self._declare(BindingKind.REQUIRED, keys, metavar=metavar, descr=descr, coerce=coerce)

    def optional_mapped(self, *keys, mapping, metavar=Unset, descr=Unset, default=Unset):
        kind = BindingKind.OPTIONAL if default is Unset else BindingKind.DEFAULTED
        return self._declare(kind, keys, mapping=mapping, metavar=metavar, descr=descr, default=default)

    def required_mapped(self, *keys, mapping, metavar=Unset, descr=Unset):
        return self._declare(BindingKind.REQUIRED, keys, mapping=mapping, metavar=metavar, descr=descr)

    def flag(self, *keys, descr=Unset, default=False):
        """a presence toggle; `not default` when given."""
        if not isinstance(default, bool):
            raise TypeError("flag() default must be a boolean")
        return self._declare(BindingKind.FLAG, keys, descr=descr, default=default)

    def positional(self, metavar, /, descr=Unset, *, coerce=str):
        return self._declare(BindingKind.POSITIONAL, (), metavar=metavar, descr=descr, coerce=coerce)

    def subcommand(self, name, callback, /, descr=Unset):
        """
        a named child schema.

        when argv[0] equals `name`, the child parses argv[1:] and the returned
        subcommand resolves to the child's result object. otherwise the child's
        callback still runs (so its declarations are validated) and the
        subcommand resolves to None.
        """
        if not callable(callback):
            raise TypeError("subcommand() callback must be callable")
        self._registry.admit(name)

        active = self._argv[:1] == (name,)
        child = Parser(
            self._argv[1:] if active else self._argv,
            f"{self._name} {name}",
            self._version,
            colorful=self._colorful,
            stdout=self._stdout,
            stderr=self._stderr,
        )
        if not active:
            callback(child)

        return self._registry.attach(Subcommand(name, callback, child, descr=coalesce(descr, ""), active=active))

    # --- orchestration ---

    def parse(self, callback, /):
        if not callable(callback):
            raise TypeError("parse() argument must be callable")
        with self._lock:
            if self._outcome is Unset:
                self._outcome = Deferred(lambda: self._run(callback))
        return self._outcome.value

    def _report(self, fault):
        report(
            fault,
            console=self._stderr,
            prog=self._name,
            colorful=self._colorful,
            docs=getdoc(fault.options["code"]),
        )

    def _builtin(self, command, code, message):
        return Failure(BuiltinCommandExecuted(
            message,
            prog=self._name,
            command=command,
            title="%s requested" % command,
            code=code,
            hint="no arguments were parsed",
        ))

    def _run(self, callback):
        # a retry after a raising callback declares into a clean schema
        self._registry = Registry(self._name)
        self._tokens = Unset
        self._result = result = callback(self)

        if not self._argv:
            command = "help"
        else:
            command = next((command for command, tokens in BUILTINS.items() if self._argv[0] in tokens), None)

        match command:
            case "help":
                helper.render(self, result)
                return self._builtin("help", FaultCode.HELP_REQUESTED, "help printed for %s" % self._name)
            case "version":
                helper.version(self)
                return self._builtin("version", FaultCode.VERSION_REQUESTED, "version printed for %s" % self._name)
            case "quit":
                return self._builtin("quit", FaultCode.QUIT_REQUESTED, "quit requested for %s" % self._name)

        for subcommand in self._registry.subcommands.values():
            if subcommand.active:
                self._tokens = empty(self._argv)
                try:
                    subcommand.value
                except (MalformedArgsError, ParseError, BuiltinCommandExecuted) as fault:
                    # already reported by the child
                    return Failure(fault)
                return Success(result)

        try:
            self._tokens = tokenize(self._argv, self._registry)
        except MalformedArgsError as fault:
            self._report(fault)
            return Failure(fault)

        try:
            for binding in self._registry.bindings:
                binding.value
        except ParseError as fault:
            self._report(fault)
            return Failure(fault)

        return Success(result)

    def __repr__(self):
        return "Parser(name=%r, argv=%r)" % (self._name, self._argv)

    def __rich_repr__(self):
        yield "name", self._name
        yield "argv", self._argv
        yield "bindings", self._registry.bindings
        yield "subcommands", dict(self._registry.subcommands)


__all__ = ("Parser",)
