"""
Tests for the internal helpers.

This module verifies the semantic guarantees of commandeer.utils:
- The Unset sentinel (singleton identity, falsiness, unions, finality).
- coalesce() only replaces Unset.
- rename() in both call forms.
- mirror() exposes copies of container state.
- ordinal() labels.
"""
import unittest
from unittest import TestCase

from commandeer.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(UnsetType(), Unset)

    def testFalsyButDistinct(self) -> None:
        """
        Unset is falsy but not equal to other falsy values.
        """
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)
        self.assertEqual(repr(Unset), "Unset")

    def testUnions(self) -> None:
        """
        `type | Unset` and `Unset | type` work in isinstance checks.
        """
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertIsInstance(Unset, Unset | int)
        self.assertNotIsInstance(None, str | Unset)

    def testFinal(self) -> None:
        """
        The sentinel type cannot be subclassed.
        """
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})


class CoalesceTest(TestCase):

    def testReplacesOnlyUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "x"), "")


class RenameTest(TestCase):

    def testDirectForm(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testInvalidArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename("not callable", "name")
        with self.assertRaises(TypeError):
            rename(len, 1)
        with self.assertRaises(TypeError):
            rename()


class MirrorTest(TestCase):

    def setUp(self) -> None:
        class Holder:
            items = mirror("items")
            mapping = mirror("mapping")
            label = mirror("label")

            def __init__(self):
                self._items = [1, [2]]
                self._mapping = {"a": [1]}
                self._label = "fixed"

        self.holder = Holder()

    def testContainersAreCopies(self) -> None:
        """
        Mutating a mirrored container leaves the backing field untouched.
        """
        self.holder.items.append(3)
        self.holder.items[1].append(3)
        self.holder.mapping["a"].append(2)
        self.assertEqual(self.holder._items, [1, [2]])
        self.assertEqual(self.holder._mapping, {"a": [1]})

    def testReadOnly(self) -> None:
        self.assertEqual(self.holder.label, "fixed")
        with self.assertRaises(AttributeError):
            self.holder.label = "other"


class OrdinalTest(TestCase):

    def testWords(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixes(self) -> None:
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(13), "13th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(112), "112th")


if __name__ == "__main__":
    unittest.main()
