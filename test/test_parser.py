"""
Parser behavioral tests (binding resolution, validation and outcomes).

Scope
- Validate optional/defaulted/required/mapped/flag/positional resolution end to end.
- Validate coercion failures, mapping misses and missing required values.
- Validate memoization of outcomes and values.
- Validate the stress schema covering every binding kind at once.

Conventions
- Test method names follow CamelCase per project convention.
- Consoles are captured on StringIO without colors.
"""

from __future__ import annotations

import io
import pathlib
import threading
import unittest
from enum import Enum
from unittest import TestCase

from rich.console import Console

from argosy import (
    Arguments,
    Parser,
    Success,
    Failure,
    MalformedArgsError,
    ParseError,
    FaultCode,
)


class Mode(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def lives(text):
    value = int(text)
    if value <= 0:
        raise ValueError("lives must be > 0")
    return value


def speed(text):
    value = float(text)
    if value < 0:
        raise ValueError("speed must be >= 0")
    return value


class GameArgs(Arguments):
    def __init__(self, parser):
        self.seed = parser.optional(
            "-s", "--seed",
            metavar="SEED",
            descr="Seed for the game instance. Uses random seed if not set.",
        )
        self.lives = parser.optional(
            "-l", "--num-lives",
            metavar="COUNT",
            descr="Set count of player lives",
            default=3,
            coerce=lives,
        )
        self.cheats = parser.flag("-c", "--cheats-enabled", descr="Enable use of cheat codes")
        self.mode = parser.required_mapped(
            "-m", "--mode",
            metavar="MODE",
            descr="Set game mode difficulty",
            mapping={"easy": Mode.EASY, "medium": Mode.MEDIUM, "hard": Mode.HARD},
        )
        self.speed = parser.positional("SPEED", "Player speed", coerce=speed)
        self.save = parser.positional("FILE", "Save file location", coerce=pathlib.Path)


class StressArgs(Arguments):
    __prologue__ = "my prologue"
    __epilogue__ = "my epilogue"

    def __init__(self, parser):
        modes = {"e": Mode.EASY, "m": Mode.MEDIUM, "h": Mode.HARD}

        # Optionals
        self.o = parser.optional("-o", "--opt-string", metavar="OPT_O", descr="Optional O hint")
        self.d = parser.optional("-d", metavar="OPT_D", descr="Optional D hint 0", coerce=float)
        self.i = parser.optional("-i", metavar="OPT_I", descr="Optional I hint 0", coerce=int)
        self.l = parser.optional("-l", metavar="OPT_L", descr="Optional L hint 0", coerce=int)
        self.s = parser.optional_mapped("-s", "--mode", mapping=modes, metavar="DIFFICULTY", descr="set difficulty")

        # Optional defaults
        self.o2 = parser.optional("-O", metavar="OPT_O_2", descr="Optional O hint 2", default="0 Default value")
        self.d2 = parser.optional("-D", "--opt-double", metavar="OPT_D_2", default=101.0, coerce=float)
        self.i2 = parser.optional("-I", metavar="OPT_I_2", descr="Optional I hint 2", default=99, coerce=int)
        self.l2 = parser.optional("-L", metavar="OPT_L_2", descr="Optional L hint 2", default=123, coerce=int)
        self.s2 = parser.optional_mapped(
            "-S", mapping=modes, metavar="DIFFICULTY", descr="set difficulty", default=Mode.MEDIUM
        )

        # Required
        self.o3 = parser.required("--required-s", metavar="REQ_O_3", descr="Required O hint 3")
        self.d3 = parser.required("--required-d", metavar="REQ_D_3", descr="Required D hint 3", coerce=float)
        self.i3 = parser.required("--required-i", "--req-i", metavar="REQ_I_3", coerce=int)
        self.l3 = parser.required("--required-l", "-Z", metavar="REQ_L_3", coerce=int)
        self.s3 = parser.required_mapped("--serializable", mapping=modes, metavar="DIFFICULTY")

        # Flags
        self.f = parser.flag("-f", descr="Flag")
        self.f2 = parser.flag("-F", descr="Flag 2")
        self.f3 = parser.flag("--flag", descr="Flag 3")
        self.f4 = parser.flag("--flagg", descr="Flag 4")
        self.f5 = parser.flag("--noflag-five", descr="Flag 5", default=True)
        self.f6 = parser.flag("--noflag-six", descr="Flag 6", default=True)

        # Positionals
        self.src = parser.positional("SRC", "source positional hint")
        self.dest = parser.positional("DEST", "dest positional hint")


STRESS_ARGV = [
    # Optionals
    "-o", "optional string value",
    "-d", "4.5",
    "--mode", "e",
    # Optional defaults
    "-D", "2.3",
    "-L", "144",
    "-S", "h",
    # Required
    "--required-s", "My required string",
    "--required-d", "32",
    "--req-i", "24",
    "-Z", "1983",
    "--serializable", "m",
    # Flags
    "-fF",
    "--flagg",
    "--noflag-six",
    # Positionals
    "--",
    "boga.txt",
    "noga.txt",
]


def _consoles():
    return (
        Console(file=io.StringIO(), color_system=None, width=200),
        Console(file=io.StringIO(), color_system=None, width=200),
    )


def _parser(argv, name="game"):
    stdout, stderr = _consoles()
    return Parser(argv, name, stdout=stdout, stderr=stderr)


class TestGameSchema(TestCase):
    """Behavioral tests for a typical mixed schema."""

    def testDefaultsAndPositionals(self):
        outcome = _parser(["-m", "hard", "1.5", "save.dat"]).parse(GameArgs)
        self.assertIsInstance(outcome, Success)
        args = outcome.unwrap()
        self.assertIsNone(args.seed)
        self.assertEqual(args.lives, 3)
        self.assertFalse(args.cheats)
        self.assertIs(args.mode, Mode.HARD)
        self.assertEqual(args.speed, 1.5)
        self.assertEqual(args.save, pathlib.Path("save.dat"))

    def testEveryKeyForm(self):
        args = _parser(["--seed=abc", "-l5", "-c", "--mode=easy", "2", "out.sav"]).parse(GameArgs).unwrap()
        self.assertEqual(args.seed, "abc")
        self.assertEqual(args.lives, 5)
        self.assertTrue(args.cheats)
        self.assertIs(args.mode, Mode.EASY)

    def testLongKeyForms(self):
        argv = ["--num-lives", "7", "--cheats-enabled", "--mode", "medium", "0", "x"]
        args = _parser(argv).parse(GameArgs).unwrap()
        self.assertEqual(args.lives, 7)
        self.assertTrue(args.cheats)
        self.assertIs(args.mode, Mode.MEDIUM)
        self.assertEqual(args.speed, 0.0)

    def testLongOptionTakesDashValue(self):
        args = _parser(["--seed", "-x", "-m", "easy", "1", "f"]).parse(GameArgs).unwrap()
        self.assertEqual(args.seed, "-x")

    def testShortOptionRejectsDashValue(self):
        outcome = _parser(["-s", "-x", "-m", "easy", "1", "f"]).parse(GameArgs)
        self.assertIsInstance(outcome.fault, MalformedArgsError)
        self.assertEqual(outcome.fault.options["code"], FaultCode.MISSING_VALUE)

    def testRepeatedOptionKeepsLastValue(self):
        args = _parser(["-s", "a", "-s", "b", "-m", "easy", "1", "f"]).parse(GameArgs).unwrap()
        self.assertEqual(args.seed, "b")

    def testSeparatorAllowsDashPositional(self):
        args = _parser(["-m", "easy", "--", "2", "-"]).parse(GameArgs).unwrap()
        self.assertEqual(args.save, pathlib.Path("-"))

    def testMissingRequiredNamesTheBinding(self):
        parser = _parser(["1.5", "save.dat"])
        outcome = parser.parse(GameArgs)
        self.assertIsInstance(outcome, Failure)
        self.assertIsInstance(outcome.fault, ParseError)
        self.assertEqual(outcome.fault.options["code"], FaultCode.REQUIRED_VALUE)
        self.assertEqual(outcome.fault.binding.keys, ("-m", "--mode"))
        self.assertIn("[-m, --mode]", str(outcome.fault))
        self.assertIn("23101", parser.stderr.file.getvalue())

    def testMappingMiss(self):
        outcome = _parser(["-m", "insane", "1", "f"]).parse(GameArgs)
        self.assertEqual(outcome.fault.options["code"], FaultCode.MAPPING_NOT_FOUND)
        self.assertIn("'insane'", str(outcome.fault))

    def testCoercionFailureKeepsCause(self):
        outcome = _parser(["-l", "0", "-m", "easy", "1", "f"]).parse(GameArgs)
        fault = outcome.fault
        self.assertIsInstance(fault, ParseError)
        self.assertEqual(fault.options["code"], FaultCode.COERCION_FAILED)
        self.assertIsInstance(fault.__cause__, ValueError)
        self.assertIn("[-l, --num-lives]", str(fault))
        self.assertIn("lives must be > 0", str(fault))

    def testPositionalCoercionFailureIsValidatedBeforeSuccess(self):
        outcome = _parser(["-m", "easy", "--", "-1", "f"]).parse(GameArgs)
        self.assertIsInstance(outcome, Failure)
        self.assertEqual(outcome.fault.binding.metavar, "SPEED")
        self.assertIn("[SPEED]", str(outcome.fault))

    def testMalformedIsReported(self):
        parser = _parser(["--unknown", "1", "f"])
        outcome = parser.parse(GameArgs)
        self.assertIsInstance(outcome.fault, MalformedArgsError)
        report = parser.stderr.file.getvalue()
        self.assertIn("[ game — 22101 | Unknown Option Or Flag ]", report)
        self.assertIn("'--unknown'", report)
        self.assertIn("→ try", report)

    def testUnwrapRaisesFault(self):
        outcome = _parser(["1", "f"]).parse(GameArgs)
        with self.assertRaises(ParseError):
            outcome.unwrap()


class TestMemoization(TestCase):
    """Outcomes and values are computed once."""

    def testParseReturnsSameOutcome(self):
        parser = _parser(["-m", "easy", "1", "f"])
        first = parser.parse(GameArgs)
        self.assertIs(parser.parse(GameArgs), first)

    def testCallbackRunsOnce(self):
        calls = []

        def schema(parser):
            calls.append(parser)
            return GameArgs(parser)

        parser = _parser(["-m", "easy", "1", "f"])
        parser.parse(schema)
        parser.parse(schema)
        self.assertEqual(len(calls), 1)

    def testCoercionRunsOnce(self):
        calls = []

        def counted(text):
            calls.append(text)
            return int(text)

        class Counted(Arguments):
            def __init__(self, parser):
                self.number = parser.optional("-n", coerce=counted)

        args = _parser(["-n", "4"]).parse(Counted).unwrap()
        self.assertEqual(args.number, 4)
        self.assertEqual(args.number, 4)
        self.assertEqual(calls, ["4"])

    def testConcurrentParseRunsOnce(self):
        lock = threading.Lock()
        calls = []

        def schema(parser):
            with lock:
                calls.append(1)
            return GameArgs(parser)

        parser = _parser(["-m", "easy", "1", "f"])
        outcomes = []

        def run():
            outcome = parser.parse(schema)
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=run) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(calls), 1)
        self.assertTrue(all(outcome is outcomes[0] for outcome in outcomes))

    def testTokensUnavailableBeforeParse(self):
        with self.assertRaises(RuntimeError):
            _parser(["x"]).tokens

    def testPlainCallbackResult(self):
        def schema(parser):
            return {"verbose": parser.flag("-v")}

        result = _parser(["-v"]).parse(schema).unwrap()
        self.assertTrue(result["verbose"].value)


class TestStressSchema(TestCase):
    """Every binding kind declared on a single parser."""

    def testParsesSuccessfully(self):
        outcome = _parser(STRESS_ARGV, "stress").parse(StressArgs)
        self.assertIsInstance(outcome, Success)
        args = outcome.value

        # Optionals
        self.assertEqual(args.o, "optional string value")
        self.assertEqual(args.d, 4.5)
        self.assertIsNone(args.i)
        self.assertIsNone(args.l)
        self.assertIs(args.s, Mode.EASY)

        # Optional defaults
        self.assertEqual(args.o2, "0 Default value")
        self.assertEqual(args.d2, 2.3)
        self.assertEqual(args.i2, 99)
        self.assertEqual(args.l2, 144)
        self.assertIs(args.s2, Mode.HARD)

        # Required
        self.assertEqual(args.o3, "My required string")
        self.assertEqual(args.d3, 32.0)
        self.assertEqual(args.i3, 24)
        self.assertEqual(args.l3, 1983)
        self.assertIs(args.s3, Mode.MEDIUM)

        # Flags
        self.assertTrue(args.f)
        self.assertTrue(args.f2)
        self.assertFalse(args.f3)
        self.assertTrue(args.f4)
        self.assertTrue(args.f5)
        self.assertFalse(args.f6)

        # Positionals
        self.assertEqual(args.src, "boga.txt")
        self.assertEqual(args.dest, "noga.txt")

    def testEveryBindingIsEvaluated(self):
        parser = _parser(STRESS_ARGV, "stress")
        parser.parse(StressArgs)
        self.assertTrue(all(binding.evaluated for binding in parser.registry.bindings))

    def testMissingRequiredFails(self):
        argv = [token for token in STRESS_ARGV if token not in ("-Z", "1983")]
        outcome = _parser(argv, "stress").parse(StressArgs)
        self.assertEqual(outcome.fault.options["code"], FaultCode.REQUIRED_VALUE)
        self.assertIn("--required-l, -Z", str(outcome.fault))


class StackedArgs(Arguments):
    def __init__(self, parser):
        self.w = parser.flag("-w")
        self.x = parser.flag("-x", default=True)
        self.y = parser.flag("-y")


class TestStackedFlags(TestCase):
    """Stacked short flags resolve to `not default` each."""

    def testClusterTogglesEveryFlag(self):
        for argv in (["-wxy"], ["-wxxy"]):
            with self.subTest(argv=argv):
                args = _parser(argv, "stack").parse(StackedArgs).unwrap()
                self.assertEqual((args.w, args.x, args.y), (True, False, True))

    def testAbsentFlagsKeepDefaults(self):
        args = _parser(["-w"], "stack").parse(StackedArgs).unwrap()
        self.assertEqual((args.w, args.x, args.y), (True, True, False))

    def testUnknownFlagInCluster(self):
        outcome = _parser(["-wxzy"], "stack").parse(StackedArgs)
        self.assertIsInstance(outcome.fault, MalformedArgsError)
        self.assertEqual(outcome.fault.options["code"], FaultCode.UNKNOWN_FLAG)


class TestRetry(TestCase):
    """A callback that raises leaves nothing behind for the next parse()."""

    def testParseRetriesAfterCallbackException(self):
        attempts = []

        def schema(parser):
            args = StackedArgs(parser)
            attempts.append(parser)
            if len(attempts) == 1:
                raise OSError("config unavailable")
            return args

        parser = _parser(["-wy"], "stack")
        with self.assertRaises(OSError):
            parser.parse(schema)
        args = parser.parse(schema).unwrap()
        self.assertEqual((args.w, args.x, args.y), (True, True, True))
        self.assertEqual(len(parser.registry.bindings), 3)


if __name__ == "__main__":
    unittest.main()
