"""
Parameter model tests (declaration checks, validation filters, completion).

Scope
- Name and short-name checks raise ConfigError; wrong types raise TypeError.
- validate() returns (valid, value): allowed values, patterns, predicate callables
  (Filtered results replace the value).
- Sealed parameters reject configure().
"""

import re
import unittest
from unittest import TestCase

from parametizer import Argument, Filtered, Option, Parameter, Visibility, ConfigError, LogicError


class TestParameterDeclaration(TestCase):
    def testInvalidNamesRaise(self):
        for name in ("a", "Name", "1st", "with space", "-opt"):
            with self.subTest(name=name), self.assertRaises(ConfigError):
                Argument(name)

    def testNonStringNameRaises(self):
        with self.assertRaises(TypeError):
            Argument(42)  # type: ignore[arg-type]

    def testParameterIsAbstract(self):
        with self.assertRaises(TypeError):
            Parameter("name")

    def testConcreteParametersAreSealedTypes(self):
        with self.assertRaises(TypeError):
            class Custom(Argument):  # NOQA: F-841
                pass

    def testTitles(self):
        self.assertEqual(Argument("file").title, "<file>")
        self.assertEqual(Option("output").title, "--output")
        self.assertEqual(Option("output", short_name="o").title, "--output (-o)")

    def testOptionAliases(self):
        self.assertEqual(Option("output", short_name="o").aliases, ("--output", "-o"))
        self.assertEqual(Option("output").aliases, ("--output",))

    def testInvalidShortNameRaises(self):
        for short_name in ("ab", "1", "-"):
            with self.subTest(short_name=short_name), self.assertRaises(ConfigError):
                Option("output", short_name=short_name)

    def testFlagDoesNotRequireValue(self):
        self.assertTrue(Option("output").value_required)
        self.assertFalse(Option("verbose", flag_value=True).value_required)

    def testDescriptionMustBeString(self):
        with self.assertRaises(TypeError):
            Argument("file", description=1)

    def testUnknownFieldRaises(self):
        with self.assertRaises(TypeError):
            Argument("file", color="red")

    def testUnknownVisibilityBitsRaise(self):
        with self.assertRaises(ConfigError):
            Argument("file", visibility=16)

    def testVisibility(self):
        argument = Argument("file", visibility=Visibility.HELP | Visibility.REQUEST)
        self.assertTrue(argument.visible(Visibility.HELP))
        self.assertFalse(argument.visible(Visibility.USAGE))

    def testInvalidPatternRaises(self):
        with self.assertRaises(ConfigError):
            Argument("file", validator="(unclosed")

    def testInvalidValidatorRaises(self):
        with self.assertRaises(ConfigError):
            Argument("file", validator=42)

    def testDuplicateAllowedValuesRaise(self):
        with self.assertRaises(ConfigError):
            Argument("color", allowed_values=["red", "red"])

    def testSealedParameterRejectsConfigure(self):
        argument = Argument("file").seal()
        with self.assertRaises(LogicError):
            argument.configure(description="late")

    def testContainersAreCopied(self):
        argument = Argument("color", allowed_values=["red"])
        argument.allowed_values["blue"] = None
        self.assertEqual(list(argument.allowed_values), ["red"])

    def testRepr(self):
        self.assertTrue(repr(Argument("file")).startswith("argument(name='file'"))


class TestParameterValidation(TestCase):
    def testNoValidatorAcceptsAnything(self):
        self.assertEqual(Argument("file").validate("x"), (True, "x"))

    def testNoneValidatorTwiceIsNoValidation(self):
        argument = Argument("file", validator=None)
        argument.configure(validator=None)
        self.assertEqual(argument.validate("x"), (True, "x"))

    def testAllowedValues(self):
        argument = Argument("color", allowed_values=["red", "blue"])
        self.assertEqual(argument.validate("red"), (True, "red"))
        self.assertEqual(argument.validate("green"), (False, "green"))

    def testAllowedValuesMatchStringForms(self):
        argument = Argument("level", allowed_values=[1, 2])
        self.assertTrue(argument.validate("2")[0])

    def testPatternSearches(self):
        argument = Argument("number", validator=r"^\d+$")
        self.assertEqual(argument.validate("123"), (True, "123"))
        self.assertEqual(argument.validate("12a"), (False, "12a"))

    def testCallableIsPredicate(self):
        self.assertEqual(Argument("number", validator=lambda value: True).validate("1"), (True, "1"))
        self.assertEqual(Argument("number", validator=lambda value: False).validate("1"), (False, "1"))
        self.assertEqual(Argument("number", validator=lambda value: None).validate("1"), (False, "1"))

    def testFalsyResultsReject(self):
        self.assertEqual(Argument("number", validator=int).validate("0"), (False, "0"))
        self.assertEqual(Argument("number", validator=str.strip).validate("  "), (False, "  "))
        self.assertEqual(Argument("number", validator=lambda value: []).validate("1"), (False, "1"))

    def testTruthyResultsKeepTheValue(self):
        argument = Argument("number", validator=lambda value: re.fullmatch(r"\d+", value))
        self.assertEqual(argument.validate("42"), (True, "42"))
        self.assertEqual(argument.validate("4x"), (False, "4x"))
        self.assertEqual(Argument("number", validator=int).validate("7"), (True, "7"))

    def testFilteredReplacesTheValue(self):
        argument = Argument("number", validator=lambda value: Filtered(int(value)))
        self.assertEqual(argument.validate("7"), (True, 7))
        self.assertEqual(argument.validate("0"), (True, 0))

    def testCallableExceptionPropagates(self):
        def positive(value):
            if int(value) <= 0:
                raise ValueError("must be positive")
            return True

        with self.assertRaisesRegex(ValueError, "must be positive"):
            Argument("number", validator=positive).validate("-1")

    def testClearingAllowedValuesKeepsCustomValidator(self):
        argument = Argument("number", validator=r"^\d+$", allowed_values=["1", "2"])
        self.assertFalse(argument.validate("3")[0])
        argument.configure(allowed_values=[])
        self.assertTrue(argument.validate("3")[0])
        self.assertFalse(argument.validate("x")[0])
        self.assertEqual(argument.complete(""), [])


class TestParameterCompletion(TestCase):
    def testStaticList(self):
        self.assertEqual(Argument("file", completion=("a", "b")).complete(""), ["a", "b"])

    def testCallable(self):
        argument = Argument("file", completion=lambda entered: [entered + "1", entered + "2"])
        self.assertEqual(argument.complete("x"), ["x1", "x2"])

    def testAllowedValuesComplete(self):
        argument = Argument("level", allowed_values={1: "low", 2: "high"})
        self.assertEqual(argument.complete(""), ["1", "2"])

    def testStringCompletionRaises(self):
        with self.assertRaises(TypeError):
            Argument("file", completion="abc")


if __name__ == "__main__":
    unittest.main()
