"""Tests for the strategy catalog."""

import unittest

from lambda_pack.errors import UnknownStrategyError
from lambda_pack.strategies import DEFAULT_STRATEGIES, StrategyCatalog, build_default_catalog


class TestStrategyCatalog(unittest.TestCase):
    def setUp(self):
        self.catalog = build_default_catalog()

    def test_list_is_fixed_order(self):
        self.assertEqual([strategy.identifier for strategy in self.catalog.list()], ["raw", "pruned", "bundled"])

    def test_get_matches_identifiers_exactly(self):
        self.assertEqual(self.catalog.get("bundled").identifier, "bundled")
        for variant in (" Bundled ", "RAW"):
            with self.assertRaises(UnknownStrategyError):
                self.catalog.get(variant)

    def test_unknown_identifier_raises(self):
        with self.assertRaises(UnknownStrategyError) as ctx:
            self.catalog.get("webpack-legacy")
        self.assertEqual(ctx.exception.identifier, "webpack-legacy")
        self.assertEqual(ctx.exception.known, ("raw", "pruned", "bundled"))

    def test_resolve_validates_whole_selection_before_returning(self):
        with self.assertRaises(UnknownStrategyError):
            self.catalog.resolve(["raw", "webpack-legacy", "bundled"])

    def test_resolve_keeps_caller_order_and_drops_repeats(self):
        resolved = self.catalog.resolve(["bundled", "raw", "bundled"])
        self.assertEqual([strategy.identifier for strategy in resolved], ["bundled", "raw"])

    def test_only_raw_includes_dev_dependencies(self):
        flags = {strategy.identifier: strategy.include_dev_dependencies for strategy in self.catalog}
        self.assertEqual(flags, {"raw": True, "pruned": False, "bundled": False})

    def test_expected_size_bands_shrink_from_raw_to_bundled(self):
        raw, pruned, bundled = (self.catalog.get(name) for name in ("raw", "pruned", "bundled"))
        self.assertLess(bundled.expected_size_range_bytes[1], pruned.expected_size_range_bytes[1])
        self.assertLess(pruned.expected_size_range_bytes[1], raw.expected_size_range_bytes[1])
        for strategy in self.catalog:
            low, high = strategy.expected_size_range_bytes
            self.assertLess(low, high)

    def test_build_command_is_final_step(self):
        bundled = self.catalog.get("bundled")
        self.assertEqual(bundled.build_command[0], "{esbuild}")
        self.assertIn("--bundle", bundled.build_command)
        self.assertEqual(self.catalog.get("pruned").build_steps[-1].label, "prune")

    def test_catalog_rejects_duplicate_identifiers(self):
        with self.assertRaises(ValueError):
            StrategyCatalog([DEFAULT_STRATEGIES[0], DEFAULT_STRATEGIES[0]])

    def test_catalog_cannot_be_mutated(self):
        with self.assertRaises(AttributeError):
            self.catalog.extra = 1  # type: ignore[attr-defined]
        with self.assertRaises(AttributeError):
            self.catalog.get("raw").identifier = "pruned"  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
