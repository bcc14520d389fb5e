"""
Tests for the Unset sentinel and the small helpers next to it.

This module verifies semantic guarantees of the `Unset` sentinel:
- Singleton identity (single instance per interpreter process).
- Falsy semantics, distinct from None, and a stable representation.
- Copying, deep copying and pickling preserve identity.
- Finality (type cannot be subclassed).
It also covers coalesce(), mirror(), ordinal() and how Unset marks required
parameters and empty conversions.
"""
import copy
import pickle
import unittest
from unittest import TestCase

from requisite import Conversion, Parameter
from requisite.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `UnsetType` singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(UnsetType(), UnsetType())
        self.assertIs(Unset, UnsetType())

    def testFalsely(self) -> None:
        self.assertFalse(bool(Unset))

    def testNotEqualToNone(self) -> None:
        """
        Falsy does not imply equality with other falsy values.
        """
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testCopyAndPickleKeepIdentity(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinal(self) -> None:
        """
        Subclassing the sentinel type raises TypeError.
        """
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnion(self) -> None:
        self.assertIsInstance(Unset, str | UnsetType)


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), mirror() and ordinal().
    """

    def testCoalesceReplacesUnsetOnly(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(Unset))

    def testMirrorReturnsReadOnlyViews(self) -> None:
        class Holder:
            items = mirror("items")
            table = mirror("table")
            plain = mirror("plain")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}
                self._plain = "text"

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertEqual(holder.plain, "text")
        with self.assertRaises(TypeError):
            holder.table["b"] = 2
        with self.assertRaises(AttributeError):
            holder.items = ()

    def testUnsetMeansNothingTypedNoneIsAValue(self) -> None:
        self.assertTrue(Parameter("width").required)
        self.assertFalse(Parameter("slot", default=None).required)
        self.assertFalse(Conversion(Unset).provided)
        self.assertTrue(Conversion(None).provided)

    def testOrdinal(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(113), "113th")

    def testRenameSetsNames(self) -> None:
        @rename("renamed")
        def original():
            pass

        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")


if __name__ == "__main__":
    unittest.main()
