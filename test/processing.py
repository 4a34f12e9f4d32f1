"""
Request processing tests (binding, validation, subcommands and the CliRequest API).

Conventions
- Every test builds a fresh config: run() finalizes the config it is given.
- shell=False makes parse errors propagate as exceptions.
"""

import re
import unittest
from unittest import TestCase

from parametizer import (
    ConfigBuilder,
    Filtered,
    Settings,
    Visibility,
    run,
    ConfigError,
    LogicError,
    FaultCode,
    MissingParametersError,
    TooManyArgumentsError,
    InvalidArgumentError,
    MissingOptionsError,
    UnknownOptionError,
    InvalidOptionError,
)
from parametizer.faults import console
from parametizer.help import console as output
from parametizer.parser import Parser
from parametizer.requests import CliRequestProcessor


def builder():
    return ConfigBuilder(Settings(colorful=False))


class TestBinding(TestCase):
    def testOptionsFlagsAndArguments(self):
        request = (
            builder()
            .new_option("--opt", "-o")
            .new_flag("--verbose", "-v")
            .new_argument("name")
            .run("-o x -v bob", shell=False)
        )
        self.assertEqual(request.get("opt"), "x")
        self.assertTrue(request.get_bool("verbose"))
        self.assertEqual(request.get_str("name"), "bob")

    def testLongOptionWithSeparateValue(self):
        request = builder().new_option("--opt").run("--opt value", shell=False)
        self.assertEqual(request.get("opt"), "value")

    def testArrayOptionKeepsEncounterOrder(self):
        for prompt in ("-x 1 -x 2", "--xs=1 --xs=2", "-x1 --xs 2"):
            with self.subTest(prompt=prompt):
                request = builder().new_array_option("--xs", "-x").run(prompt, shell=False)
                self.assertEqual(request.get("xs"), ["1", "2"])
                self.assertEqual(request.get_ints("xs"), [1, 2])

    def testBundledFlags(self):
        def declare():
            return builder().new_flag("--xx", "-x").new_flag("--yy", "-y").new_flag("--zz", "-z")

        bundled = declare().run("-xyz", shell=False)
        separate = declare().run("-x -y -z", shell=False)
        self.assertEqual(dict(bundled.params), dict(separate.params))
        self.assertTrue(all(bundled.get_bool(name) for name in ("xx", "yy", "zz")))

    def testShortValueForms(self):
        glued = builder().new_option("--out", "-o").run("-ofoo", shell=False)
        split = builder().new_option("--out", "-o").run("-o foo", shell=False)
        self.assertEqual(glued.get("out"), "foo")
        self.assertEqual(split.get("out"), "foo")

    def testDoubleDashStopsOptions(self):
        request = builder().new_option("--opt").new_array_argument("rest").run("--opt=1 -- --opt=2", shell=False)
        self.assertEqual(request.get("opt"), "1")
        self.assertEqual(request.get("rest"), ["--opt=2"])

    def testDefaultWithAllowedValues(self):
        request = builder().new_argument("name").allowed_values(["A", "B", "C"]).default("B").run([], shell=False)
        self.assertEqual(request.get("name"), "B")

    def testUnsetOptionalValues(self):
        request = builder().new_option("--opt").new_array_option("--tags").new_flag("--dry").run([], shell=False)
        self.assertIsNone(request.get_str("opt"))
        self.assertEqual(request.get("tags"), [])
        self.assertFalse(request.get_bool("dry"))

    def testFilteredValueReplacesBoundValue(self):
        request = (
            builder()
            .new_option("--num").validator_callback(lambda value: Filtered(int(value)))
            .run("--num=5", shell=False)
        )
        self.assertEqual(request.get("num"), 5)

    def testPredicateResultDoesNotReplaceValue(self):
        request = (
            builder()
            .new_argument("num").validator_callback(lambda value: re.fullmatch(r"\d+", value))
            .run(["42"], shell=False)
        )
        self.assertEqual(request.get("num"), "42")

    def testFalsyPredicateResultRejects(self):
        with self.assertRaisesRegex(InvalidArgumentError, r"^Incorrect value '0' for argument <num>$"):
            builder().new_argument("num").validator_callback(int).run(["0"], shell=False)

    def testHiddenFromRequestStillRunsCallback(self):
        seen = []
        request = (
            builder()
            .new_option("--secret").visibility(Visibility.ALL & ~Visibility.REQUEST).callback(seen.append)
            .run("--secret=x", shell=False)
        )
        self.assertEqual(seen, ["x"])
        self.assertNotIn("secret", request.params)

    def testCallbacksRunInEncounterOrderForSuppliedValues(self):
        seen = []
        (
            builder()
            .new_option("--first").callback(lambda value: seen.append(("first", value)))
            .new_option("--second").callback(lambda value: seen.append(("second", value)))
            .new_option("--unused").default("x").callback(lambda value: seen.append(("unused", value)))
            .new_argument("target").callback(lambda value: seen.append(("target", value)))
            .run("--second=2 wall --first=1", shell=False)
        )
        self.assertEqual(seen, [("second", "2"), ("target", "wall"), ("first", "1")])


class TestParseErrors(TestCase):
    def testUnknownOption(self):
        with self.assertRaisesRegex(UnknownOptionError, r"^Unknown option '--nope'$") as context:
            builder().run("--nope", shell=False)
        self.assertEqual(context.exception.code, FaultCode.WRONG_OPTION)

    def testFlagWithValue(self):
        with self.assertRaisesRegex(InvalidOptionError, r"^The flag --verbose can not have a value$"):
            builder().new_flag("--verbose").run("--verbose=1", shell=False)

    def testOptionWithoutValue(self):
        with self.assertRaisesRegex(InvalidOptionError, r"^No value for option --opt$") as context:
            builder().new_option("--opt").run("--opt", shell=False)
        self.assertEqual([param.name for param in context.exception.params], ["opt"])

    def testDuplicateOption(self):
        with self.assertRaises(InvalidOptionError) as context:
            builder().new_option("--opt").run("--opt=1 --opt=2", shell=False)
        self.assertEqual(
            context.exception.message,
            "Duplicate option --opt (with value '2'); already registered value: '1'",
        )

    def testDuplicateFlag(self):
        with self.assertRaises(InvalidOptionError) as context:
            builder().new_flag("--verbose").run("--verbose --verbose", shell=False)
        self.assertEqual(context.exception.message, "Duplicate option --verbose (as a flag); already registered as a flag")

    def testDuplicateArrayValue(self):
        with self.assertRaises(InvalidOptionError) as context:
            builder().new_array_option("--tag", "-t").run("-t a -t b -t a", shell=False)
        self.assertEqual(
            context.exception.message,
            "Duplicate value 'a' for option --tag (-t); already registered values: 'a', 'b'",
        )

    def testTooManyArguments(self):
        with self.assertRaisesRegex(TooManyArgumentsError, r"^Too many arguments, starting with 'extra'$"):
            builder().new_argument("name").run("bob extra", shell=False)

    def testPatternFailureAppendsMessage(self):
        with self.assertRaises(InvalidArgumentError) as context:
            builder().new_argument("number").validator_pattern(r"^\d+$", "Digits only.").run("abc", shell=False)
        self.assertEqual(context.exception.message, "Incorrect value 'abc' for argument <number>. Digits only.")
        self.assertEqual(context.exception.code, FaultCode.WRONG_ARGUMENT)

    def testAllowedValuesFailure(self):
        with self.assertRaisesRegex(InvalidOptionError, r"^Incorrect value 'green' for option --color \(-c\)$"):
            builder().new_option("--color", "-c").allowed_values(["red"]).run("-c green", shell=False)

    def testValidatorExceptionMessageWins(self):
        def small(value):
            if int(value) > 3:
                raise ValueError("Too big.")
            return True

        with self.assertRaises(InvalidOptionError) as context:
            builder().new_option("--num").validator_callback(small, "Custom.").run("--num=5", shell=False)
        self.assertEqual(context.exception.message, "Incorrect value '5' for option --num. Too big.")

    def testValidatorConfigErrorPropagates(self):
        def broken(value):
            raise ConfigError("broken validator")

        with self.assertRaises(ConfigError):
            builder().new_option("--num").validator_callback(broken).run("--num=5", shell=False)

    def testMissingParametersListsExactlyTheMissingOnes(self):
        with self.assertRaises(MissingParametersError) as context:
            (
                builder()
                .new_option("--optional")
                .new_option("--token").required()
                .new_argument("first")
                .new_argument("second")
                .new_argument("third").required(False)
                .run([], shell=False)
            )
        self.assertEqual(context.exception.message, "Need more parameters")
        self.assertEqual({param.name for param in context.exception.params}, {"token", "first", "second"})

    def testMissingOptions(self):
        with self.assertRaisesRegex(MissingOptionsError, r"^Need a value for --token$"):
            builder().new_option("--token").required().run([], shell=False)
        with self.assertRaisesRegex(MissingOptionsError, r"^Need values for --token, --user$"):
            builder().new_option("--token").required().new_option("--user").required().run([], shell=False)

    def testMissingParentOptionReportedFromBranch(self):
        with self.assertRaisesRegex(MissingOptionsError, r"^Need a value for --token$"):
            (
                builder()
                .new_option("--token").required()
                .new_subcommand_switch("command")
                .new_subcommand("red", builder())
                .run("red", shell=False)
            )

    def testShellModeExitsWithOne(self):
        with console.capture(), self.assertRaises(SystemExit) as context:
            builder().run("--nope", shell=True)
        self.assertEqual(context.exception.code, 1)

    def testHelpExitsWithZero(self):
        with output.capture() as capture, self.assertRaises(SystemExit) as context:
            builder().new_argument("name").run("--help", shell=False)
        self.assertEqual(context.exception.code, 0)
        self.assertIn("USAGE", capture.get())


def colors():
    return (
        builder()
        .new_subcommand_switch("color")
        .new_subcommand("red", builder().new_option("--opt").default("r"))
        .new_subcommand("blue", builder().new_option("--opt").default("b").new_argument("shade"))
    )


class TestSubcommands(TestCase):
    def testBranchIsResolved(self):
        request = colors().run("red", shell=False)
        self.assertEqual(request.subcommand_name(), "red")
        self.assertEqual(request.subcommand().get("opt"), "r")
        self.assertIs(request.subcommand().parent, request)

    def testOptionsAfterSwitchBelongToBranch(self):
        request = colors().run("blue --opt=x dark", shell=False)
        branch = request.subcommand()
        self.assertEqual(branch.get("opt"), "x")
        self.assertEqual(branch.get("shade"), "dark")

    def testFind(self):
        request = colors().run("red", shell=False)
        self.assertIs(request.find("red"), request.subcommand())
        self.assertIs(request.subcommand().find("red"), request.subcommand())
        self.assertIsNone(request.find("blue"))

    def testUnknownCommand(self):
        with self.assertRaisesRegex(InvalidArgumentError, r"^Unknown command 'green'$"):
            colors().run("green", shell=False)

    def testBranchErrorsUseBranchConfig(self):
        with self.assertRaises(MissingParametersError) as context:
            colors().run("blue", shell=False)
        self.assertEqual([param.name for param in context.exception.params], ["shade"])

    def testDefaultBranchIsEntered(self):
        config = colors().get_config().finalize()
        request = CliRequestProcessor(config).load(Parser([]))
        self.assertEqual(request.subcommand_name(), "list")
        self.assertEqual(request.subcommand().config.script_name, "list")

    def testDefaultBranchIsNotEnteredWithoutDescend(self):
        config = colors().get_config().finalize()
        processor = CliRequestProcessor(config)
        request = processor.load(Parser([]), descend=False)
        self.assertIsNone(request.subcommand())
        self.assertEqual([argument.name for argument in processor.allowed_arguments()], ["color"])

    def testBuiltinRunsAndExits(self):
        with output.capture(), self.assertRaises(SystemExit) as context:
            colors().run("list", shell=False)
        self.assertEqual(context.exception.code, 0)


def three_levels():
    return (
        builder()
        .new_option("--top").required()
        .new_subcommand_switch("level1")
        .new_subcommand(
            "a1",
            builder()
            .new_option("--mid")
            .new_subcommand_switch("level2")
            .new_subcommand("b2", builder().new_option("--leaf").new_argument("thing")),
        )
    )


class TestDeepSubcommands(TestCase):
    def testParsingThroughEveryLevel(self):
        request = three_levels().run("--top=t a1 --mid=m b2 --leaf=l x", shell=False)
        middle = request.subcommand()
        leaf = middle.subcommand()
        self.assertEqual(request.get("top"), "t")
        self.assertEqual((request.subcommand_name(), middle.subcommand_name()), ("a1", "b2"))
        self.assertEqual(middle.get("mid"), "m")
        self.assertEqual((leaf.get("leaf"), leaf.get("thing")), ("l", "x"))
        self.assertIs(leaf.parent.parent, request)

    def testFindFromAnyLevel(self):
        request = three_levels().run("--top=t a1 b2 x", shell=False)
        leaf = request.find("b2")
        self.assertIsNotNone(leaf)
        self.assertEqual(leaf.get("thing"), "x")
        self.assertIs(leaf.find("a1"), request.subcommand())
        self.assertIsNone(leaf.get("leaf"))

    def testMissingTopOptionReportedFromLeaf(self):
        with self.assertRaisesRegex(MissingOptionsError, r"^Need a value for --top$") as context:
            three_levels().run("a1 b2 x", shell=False)
        self.assertEqual([param.name for param in context.exception.params], ["top"])

    def testMissingLeafArgument(self):
        with self.assertRaises(MissingParametersError) as context:
            three_levels().run("--top=t a1 b2", shell=False)
        self.assertEqual([param.name for param in context.exception.params], ["thing"])


class TestCliRequestAccessors(TestCase):
    def setUp(self):
        self.request = (
            builder()
            .new_option("--count")
            .new_option("--ratio")
            .new_array_option("--tags")
            .new_argument("name")
            .run("--count=3 --ratio=0.5 --tags=a --tags=b bob", shell=False)
        )

    def testTypedGetters(self):
        self.assertEqual(self.request.get_int("count"), 3)
        self.assertEqual(self.request.get_float("ratio"), 0.5)
        self.assertEqual(self.request.get_strs("tags"), ["a", "b"])

    def testArrayMismatchRaises(self):
        with self.assertRaisesRegex(LogicError, "contains an array"):
            self.request.get_str("tags")
        with self.assertRaisesRegex(LogicError, "contains a single value"):
            self.request.get_strs("name")

    def testUnknownNameRaises(self):
        with self.assertRaisesRegex(LogicError, r"^Parameter 'nope' not found in the request\. The parameters being parsed: "):
            self.request.get("nope")

    def testParamsAreReadOnly(self):
        with self.assertRaises(TypeError):
            self.request.params["name"] = "alice"  # type: ignore[index]

    def testNoSubcommand(self):
        self.assertIsNone(self.request.subcommand_name())
        self.assertIsNone(self.request.subcommand())


if __name__ == "__main__":
    unittest.main()
