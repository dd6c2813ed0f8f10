"""test_objfunc.py: Unit tests for objfunc.py."""

import unittest

from gridops.optim_model import objfunc


class TestObjFunc(unittest.TestCase):
    def setUp(self):
        self.timesteps = range(1, 4)
        self.units = ["g1", "g2"]

    def test_get_linear_cost_coeff(self):
        coeffs = objfunc.get_linear_cost_coeff(
            self.timesteps, self.units, {"g1": 10.0, "g2": 20.0}
        )
        self.assertEqual(len(coeffs), 6)
        self.assertEqual(coeffs["g1", 1], 10.0)
        self.assertEqual(coeffs["g2", 3], 20.0)

    def test_get_linear_cost_coeff_negative_sign(self):
        coeffs = objfunc.get_linear_cost_coeff(
            self.timesteps, ["pv"], {"pv": 5.0}, sign=-1.0
        )
        self.assertEqual(set(coeffs.values()), {-5.0})

    def test_get_penalty_coeff(self):
        coeffs = objfunc.get_penalty_coeff(self.timesteps, [1, 2], 1000.0)
        self.assertEqual(
            coeffs,
            {(bus, t): 1000.0 for bus in [1, 2] for t in self.timesteps},
        )


if __name__ == "__main__":
    unittest.main()
