"""
Resolvers module behavioral tests.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from commandeer import DependencyResolver, ResolutionError


class Service:
    pass


class Other:
    pass


class TestDependencyResolver(TestCase):
    """Behavioral tests for DependencyResolver."""

    def setUp(self):
        self.service = Service()
        self.resolver = DependencyResolver(self.service)

    def testResolvesByType(self):
        self.assertIs(self.resolver.resolve(Service), self.service)
        self.assertIn(Service, self.resolver)
        self.assertEqual(len(self.resolver), 1)
        self.assertEqual(list(self.resolver), [self.service])

    def testUnregisteredTypeRaises(self):
        with self.assertRaises(ResolutionError) as context:
            self.resolver.resolve(Other)
        self.assertIsInstance(context.exception, LookupError)
        self.assertIn("Other", str(context.exception))

    def testTryResolve(self):
        self.assertIsNone(self.resolver.try_resolve(Other))
        self.assertEqual(self.resolver.try_resolve(Other, "default"), "default")
        self.assertIs(self.resolver.try_resolve(Service), self.service)

    def testRegisterUnderAnotherType(self):
        self.resolver.add(self.service, Other)
        self.assertIs(self.resolver.resolve(Other), self.service)

    def testDuplicateRegistrationRaises(self):
        with self.assertRaises(ValueError):
            self.resolver.add(Service())


if __name__ == "__main__":
    unittest.main()
