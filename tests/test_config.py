import math
import os
import unittest
from unittest import mock

from squatcount import config
from squatcount.guards import COMBINATORS


class EnvOverrideTests(unittest.TestCase):
    def test_float_accepts_finite_values_only(self) -> None:
        for raw, expected in (("7.5", 7.5), ("nan", 5.0), ("inf", 5.0), ("-inf", 5.0),
                              ("fast", 5.0), ("", 5.0)):
            with self.subTest(raw=raw), mock.patch.dict(os.environ, {"SQUATCOUNT_SENSITIVITY": raw}):
                self.assertEqual(config._env_float("SQUATCOUNT_SENSITIVITY", 5.0), expected)

    def test_int_falls_back_on_garbage(self) -> None:
        with mock.patch.dict(os.environ, {"SQUATCOUNT_PORT": "eighty"}):
            self.assertEqual(config._env_int("SQUATCOUNT_PORT", 8765), 8765)
        with mock.patch.dict(os.environ, {"SQUATCOUNT_PORT": "9000"}):
            self.assertEqual(config._env_int("SQUATCOUNT_PORT", 8765), 9000)

    def test_unknown_combinator_falls_back_to_all(self) -> None:
        choices = tuple(COMBINATORS)
        with mock.patch.dict(os.environ, {"SQUATCOUNT_COMBINATOR": "xor"}):
            self.assertEqual(config._env_choice("SQUATCOUNT_COMBINATOR", "all", choices), "all")
        with mock.patch.dict(os.environ, {"SQUATCOUNT_COMBINATOR": " ANY "}):
            self.assertEqual(config._env_choice("SQUATCOUNT_COMBINATOR", "all", choices), "any")

    def test_module_defaults_are_usable(self) -> None:
        self.assertIn(config.COMBINATOR, COMBINATORS)
        self.assertTrue(math.isfinite(config.DEFAULT_SENSITIVITY))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
