"""
Types module behavioral tests (parsing, statuses, predictions, nudging).

Scope
- Validate each concrete type's parse() statuses, messages and fault codes.
- Validate predictions for selections and commands.
- Validate increment()/decrement() bounds and the named type table.

Conventions
- Test method names follow CamelCase per project convention.
- parse() never raises for user input; problems are statuses.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from requisite import (
    Token,
    ArrayToken,
    NamedToken,
    BooleanNamedToken,
    tokenize,
    Status,
    Capability,
    Conversion,
    StringType,
    NumberType,
    SelectionType,
    BooleanType,
    ArrayType,
    CommandType,
    Canon,
    Command,
    FaultCode,
    register,
    lookup,
)
from requisite.utils import Unset


def noop(env, args, request):
    pass


class TestStatusAndConversion(TestCase):
    """Behavioral tests for Status ordering and Conversion helpers."""

    def testStatusOrder(self):
        self.assertLess(Status.VALID, Status.INCOMPLETE)
        self.assertLess(Status.INCOMPLETE, Status.ERROR)

    def testCombinePicksMostSevere(self):
        self.assertIs(Status.combine(), Status.VALID)
        self.assertIs(Status.combine(Status.VALID, Status.ERROR, Status.INCOMPLETE), Status.ERROR)

    def testProvidedDistinguishesNoneFromUnset(self):
        self.assertFalse(Conversion().provided)
        self.assertTrue(Conversion(None).provided)

    def testValueEquals(self):
        self.assertTrue(Conversion(1).value_equals(Conversion(1, Token("1"))))
        self.assertFalse(Conversion(1).value_equals(Conversion(2)))
        self.assertFalse(Conversion(None).value_equals(Conversion()))
        self.assertFalse(Conversion(1).value_equals(None))

    def testTokenEquals(self):
        self.assertTrue(Conversion(1, Token("1", " ")).token_equals(Conversion(2, Token("1", " "))))
        self.assertFalse(Conversion(1, Token("1", " ")).token_equals(Conversion(1, Token("1"))))


class TestStringType(TestCase):
    """Behavioral tests for StringType."""

    def testTextCapability(self):
        self.assertTrue(StringType().has(Capability.TEXT))
        self.assertFalse(StringType().has(Capability.ARRAY))

    def testBlankIsNoValue(self):
        conversion = StringType().parse(Token())
        self.assertIs(conversion.value, Unset)
        self.assertIs(conversion.status, Status.VALID)

    def testTextIsValue(self):
        self.assertEqual(StringType().parse(Token("hi", " ")).value, "hi")


class TestNumberType(TestCase):
    """Behavioral tests for NumberType."""

    def testParsesIntegers(self):
        conversion = NumberType().parse(Token("-12"))
        self.assertEqual(conversion.value, -12)
        self.assertIs(conversion.status, Status.VALID)

    def testMalformedIsError(self):
        conversion = NumberType().parse(Token("twelve"))
        self.assertIs(conversion.status, Status.ERROR)
        self.assertIs(conversion.code, FaultCode.INVALID_VALUE)
        self.assertIn("twelve", conversion.message)

    def testLoneSignIsIncomplete(self):
        conversion = NumberType().parse(Token("-"))
        self.assertIs(conversion.status, Status.INCOMPLETE)
        self.assertIs(conversion.code, FaultCode.INCOMPLETE_VALUE)

    def testOutOfRangeIsError(self):
        conversion = NumberType(0, 10).parse(Token("11"))
        self.assertIs(conversion.status, Status.ERROR)
        self.assertIs(conversion.code, FaultCode.OUT_OF_RANGE)
        self.assertEqual(conversion.value, 11)

    def testIncrementAndDecrementClamp(self):
        type = NumberType(0, 10, step=4)
        self.assertEqual(type.increment(Unset), 0)
        self.assertEqual(type.increment(8), 10)
        self.assertIsNone(type.increment(10))
        self.assertEqual(type.decrement(2), 0)
        self.assertIsNone(type.decrement(0))

    def testUnboundedIncrement(self):
        self.assertEqual(NumberType().increment(41), 42)
        self.assertEqual(NumberType().decrement(Unset), 0)

    def testInvalidConstruction(self):
        with self.assertRaises(ValueError):
            NumberType(step=0)
        with self.assertRaises(ValueError):
            NumberType(10, 0)


class TestSelectionType(TestCase):
    """Behavioral tests for SelectionType and BooleanType."""

    def setUp(self):
        self.type = SelectionType(["read", "rewind", "write"])

    def testExactMatchIsValid(self):
        conversion = self.type.parse(Token("write"))
        self.assertEqual(conversion.value, "write")
        self.assertIs(conversion.status, Status.VALID)

    def testPrefixIsIncompleteWithPredictions(self):
        conversion = self.type.parse(Token("re"))
        self.assertIs(conversion.status, Status.INCOMPLETE)
        self.assertEqual(conversion.predictions, ("read", "rewind"))

    def testUnknownIsInvalidChoice(self):
        conversion = self.type.parse(Token("x"))
        self.assertIs(conversion.status, Status.ERROR)
        self.assertIs(conversion.code, FaultCode.INVALID_CHOICE)

    def testBlankPredictsEverything(self):
        conversion = self.type.parse(Token())
        self.assertIs(conversion.value, Unset)
        self.assertEqual(conversion.predictions, ("read", "rewind", "write"))

    def testMappingChoices(self):
        type = SelectionType({"low": 1, "high": 9})
        self.assertEqual(type.parse(Token("high")).value, 9)
        self.assertEqual(type.stringify(1), "low")

    def testWalksDeclaredOrderWithoutWrapping(self):
        self.assertEqual(self.type.increment(Unset), "read")
        self.assertEqual(self.type.increment("read"), "rewind")
        self.assertIsNone(self.type.increment("write"))
        self.assertEqual(self.type.decrement("rewind"), "read")
        self.assertIsNone(self.type.decrement("read"))

    def testInvalidChoices(self):
        with self.assertRaises(TypeError):
            SelectionType("abc")
        with self.assertRaises(ValueError):
            SelectionType([])
        with self.assertRaises(ValueError):
            SelectionType(["a", "a"])

    def testBooleanFlagReadsTrue(self):
        name, = tokenize("--verbose")
        conversion = BooleanType().parse(BooleanNamedToken(name))
        self.assertIs(conversion.value, True)
        self.assertTrue(BooleanType().has(Capability.BOOLEAN))

    def testBooleanTextAndDefault(self):
        self.assertIs(BooleanType().parse(Token("false")).value, False)
        self.assertIs(BooleanType().default().value, False)


class TestArrayType(TestCase):
    """Behavioral tests for ArrayType."""

    def testParsesEveryMember(self):
        conversion = ArrayType(NumberType()).parse(ArrayToken(tokenize("1 2 3")))
        self.assertEqual(conversion.value, [1, 2, 3])
        self.assertIs(conversion.status, Status.VALID)

    def testWorstMemberStatusWins(self):
        conversion = ArrayType("number").parse(ArrayToken(tokenize("1 x")))
        self.assertIs(conversion.status, Status.ERROR)
        self.assertIs(conversion.code, FaultCode.INVALID_VALUE)

    def testEmptyArrayIsNoValue(self):
        self.assertIs(ArrayType().parse(ArrayToken()).value, Unset)

    def testFlagWithoutValueIsIncomplete(self):
        first, value, last = tokenize("--tag a --tag")
        conversion = ArrayType().parse(ArrayToken([NamedToken(first, value), NamedToken(last)]))
        self.assertEqual(conversion.value, ["a"])
        self.assertIs(conversion.status, Status.INCOMPLETE)
        self.assertIs(conversion.code, FaultCode.INCOMPLETE_VALUE)
        self.assertIn("--tag", conversion.message)

        conversion = ArrayType().parse(ArrayToken([NamedToken(last)]))
        self.assertIs(conversion.value, Unset)
        self.assertIs(conversion.status, Status.INCOMPLETE)

    def testStringifyJoinsMembers(self):
        self.assertEqual(ArrayType("number").stringify([1, 2]), "1 2")

    def testNestedArrayRejected(self):
        with self.assertRaises(TypeError):
            ArrayType(ArrayType())


class TestCommandType(TestCase):
    """Behavioral tests for CommandType resolution."""

    def setUp(self):
        self.canon = Canon()
        self.canon.add(Command("git commit", handler=noop))
        self.canon.add(Command("git push", handler=noop))
        self.type = CommandType(self.canon)

    def testLeafIsValid(self):
        conversion = self.type.parse(Token("git  commit"))
        self.assertEqual(conversion.value.name, "git commit")
        self.assertIs(conversion.status, Status.VALID)

    def testNamespacePredictsChildren(self):
        conversion = self.type.parse(Token("git"))
        self.assertFalse(conversion.value.executable)
        self.assertEqual([command.name for command in conversion.predictions], ["git commit", "git push"])

    def testPrefixIsIncomplete(self):
        conversion = self.type.parse(Token("git c"))
        self.assertIs(conversion.status, Status.INCOMPLETE)
        self.assertIs(conversion.code, FaultCode.INCOMPLETE_COMMAND)

    def testUnknownIsError(self):
        conversion = self.type.parse(Token("svn"))
        self.assertIs(conversion.status, Status.ERROR)
        self.assertIs(conversion.code, FaultCode.UNKNOWN_COMMAND)

    def testBlankIsIncomplete(self):
        conversion = self.type.parse(Token())
        self.assertIs(conversion.status, Status.INCOMPLETE)
        self.assertEqual(len(conversion.predictions), 3)


class TestRegistry(TestCase):
    """Behavioral tests for the named type table."""

    def testBuiltinNames(self):
        self.assertIsInstance(lookup("string"), StringType)
        self.assertIsInstance(lookup("number"), NumberType)
        self.assertIsInstance(lookup("boolean"), BooleanType)

    def testInstancesPassThrough(self):
        type = NumberType(1, 2)
        self.assertIs(lookup(type), type)

    def testRegisterCustomName(self):
        type = register("level", SelectionType(["low", "high"]))
        self.assertIs(lookup("level"), type)

    def testUnknownName(self):
        with self.assertRaises(ValueError):
            lookup("nope")
        with self.assertRaises(TypeError):
            lookup(3)


if __name__ == "__main__":
    unittest.main()
