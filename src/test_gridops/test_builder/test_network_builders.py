"""test_network_builders.py: Unit tests for network and branch builders."""

import math
import unittest

from gridops.builder.branches import StaticLineBuilder, StaticLineUnboundedBuilder
from gridops.builder.network import (
    CopperPlateBuilder,
    DCPBuilder,
    LinearACBuilder,
    NFABuilder,
)
from gridops.builder.nondispatch import StaticPowerLoadBuilder
from gridops.data_model import Line, PowerLoad
from gridops.errors import BuildOrderError
from gridops.formulations import DeviceFormulation, DeviceModel, NetworkModel
from gridops.optim_model.expressions import (
    NODAL_BALANCE_ACTIVE,
    NODAL_BALANCE_REACTIVE,
)
from sample_systems import (
    get_coeffs,
    make_container,
    make_three_bus_system,
    make_three_bus_template,
)


class NetworkTestCase(unittest.TestCase):
    def setUp(self):
        self.system = make_three_bus_system()
        self.lines = self.system.get_available_components(Line)
        self.containers = []

    def tearDown(self):
        for container in self.containers:
            container.model.dispose()

    def construct_network(self, builder_class, network, **settings):
        container = make_container(self.system, network, use_parameters=False, **settings)
        self.containers.append(container)
        StaticPowerLoadBuilder(
            container,
            DeviceModel(PowerLoad, DeviceFormulation.STATIC_POWER_LOAD),
            network,
        ).construct(self.system.get_components(PowerLoad))
        builder_class(container, make_three_bus_template(network), network).construct(
            self.lines
        )
        container.model.update()
        return container


class TestCopperPlateBuilder(NetworkTestCase):
    def test_system_balance(self):
        container = self.construct_network(
            CopperPlateBuilder, NetworkModel.COPPER_PLATE, use_slacks=False
        )
        balance = container.get_constraint("CopperPlateBalance")
        self.assertEqual(list(balance.keys()), [1, 2])
        self.assertEqual(balance[1].RHS, 40.0)
        self.assertEqual(balance[2].RHS, 20.0)
        self.assertNotIn("Flow_Line", container.variables)
        self.assertNotIn("NodalBalanceActive", container.constraints)

    def test_system_wide_slacks(self):
        container = self.construct_network(
            CopperPlateBuilder, NetworkModel.COPPER_PLATE, use_slacks=True
        )
        pos = container.get_variable("pos_pmismatch")
        self.assertEqual(list(pos.keys()), [1, 2])
        self.assertEqual(
            get_coeffs(container.model.getRow(container.get_constraint("CopperPlateBalance")[1])),
            {"pos_pmismatch[1]": 1.0, "neg_pmismatch[1]": -1.0},
        )
        self.assertEqual(set(get_coeffs(container.cost_function).values()), {1000.0})


class TestNFABuilder(NetworkTestCase):
    def test_flows_enter_nodal_balance(self):
        container = self.construct_network(
            NFABuilder, NetworkModel.NFA, use_slacks=False
        )
        flow = container.get_variable("Flow_Line")
        self.assertEqual(len(flow), 4)
        active = container.expressions[NODAL_BALANCE_ACTIVE]
        self.assertEqual(get_coeffs(active[1, 1]), {"Flow_Line[l12,1]": -1.0})
        self.assertEqual(
            get_coeffs(active[2, 1]),
            {"Flow_Line[l12,1]": 1.0, "Flow_Line[l23,1]": -1.0},
        )
        self.assertEqual(get_coeffs(active[3, 1]), {"Flow_Line[l23,1]": 1.0})

        balance = container.get_constraint("NodalBalanceActive")
        self.assertEqual(len(balance), 4 * 2)
        self.assertEqual(balance[3, 1].RHS, 40.0)
        self.assertNotIn("theta", container.variables)

    def test_nodal_slacks(self):
        container = self.construct_network(
            NFABuilder, NetworkModel.NFA, use_slacks=True
        )
        self.assertEqual(len(container.get_variable("pos_pmismatch")), 4 * 2)
        coeffs = get_coeffs(container.expressions[NODAL_BALANCE_ACTIVE][4, 2])
        self.assertEqual(coeffs, {"pos_pmismatch[4,2]": 1.0, "neg_pmismatch[4,2]": -1.0})
        self.assertEqual(len(get_coeffs(container.cost_function)), 16)


class TestDCPBuilder(NetworkTestCase):
    def test_angles(self):
        container = self.construct_network(DCPBuilder, NetworkModel.DCP)
        theta = container.get_variable("theta")
        self.assertEqual(theta[2, 1].LB, -math.pi)
        self.assertEqual(theta[2, 1].UB, math.pi)

    def test_one_reference_bus_per_island(self):
        container = self.construct_network(DCPBuilder, NetworkModel.DCP)
        ref_node = container.get_constraint("refNode")
        self.assertEqual(sorted(ref_node.keys()), [(1, 1), (1, 2), (4, 1), (4, 2)])

    def test_ref_bus_type_is_preferred(self):
        self.system.buses[3].bustype = "REF"
        container = self.construct_network(DCPBuilder, NetworkModel.DCP)
        ref_buses = {bus for bus, _ in container.get_constraint("refNode").keys()}
        self.assertEqual(ref_buses, {3, 4})

    def test_angle_difference(self):
        container = self.construct_network(DCPBuilder, NetworkModel.DCP)
        row = container.model.getRow(container.get_constraint("angleDiff")["l23", 2])
        coeffs = get_coeffs(row)
        self.assertAlmostEqual(coeffs["Flow_Line[l23,2]"], 1.0)
        self.assertAlmostEqual(coeffs["theta[2,2]"], -500.0)
        self.assertAlmostEqual(coeffs["theta[3,2]"], 500.0)

    def test_network_is_built_without_lines(self):
        for line in self.lines:
            line.available = False
        self.lines = []
        container = self.construct_network(DCPBuilder, NetworkModel.DCP)
        self.assertEqual(len(container.get_constraint("NodalBalanceActive")), 8)
        self.assertEqual(len(container.get_constraint("refNode")), 8)


class TestLinearACBuilder(NetworkTestCase):
    def test_reactive_balance(self):
        container = self.construct_network(
            LinearACBuilder, NetworkModel.LINEAR_AC, use_slacks=False
        )
        self.assertIn("FlowReactive_Line", container.variables)
        reactive = container.expressions[NODAL_BALANCE_REACTIVE]
        self.assertEqual(get_coeffs(reactive[3, 1]), {"FlowReactive_Line[l23,1]": 1.0})
        balance = container.get_constraint("NodalBalanceReactive")
        self.assertEqual(balance[3, 1].RHS, 10.0)
        self.assertIn("NodalBalanceActive", container.constraints)

    def test_reactive_slacks(self):
        container = self.construct_network(
            LinearACBuilder, NetworkModel.LINEAR_AC, use_slacks=True
        )
        self.assertEqual(len(container.get_variable("pos_qmismatch")), 8)
        coeffs = get_coeffs(container.cost_function)
        self.assertEqual(coeffs["neg_qmismatch[2,1]"], 1000.0)
        self.assertEqual(coeffs["pos_pmismatch[2,1]"], 1000.0)


class TestStaticLineBuilder(NetworkTestCase):
    def construct_branches(self, builder_class, container, network):
        builder_class(
            container, DeviceModel(Line, DeviceFormulation.STATIC_LINE), network
        ).construct(self.lines)
        container.model.update()

    def test_rate_limits(self):
        container = self.construct_network(DCPBuilder, NetworkModel.DCP)
        self.construct_branches(StaticLineBuilder, container, NetworkModel.DCP)
        self.assertEqual(container.get_constraint("RateLimitUB_Line")["l12", 1].RHS, 50.0)
        self.assertEqual(container.get_constraint("RateLimitLB_Line")["l12", 1].RHS, -50.0)
        self.assertNotIn("ReactiveRateLimitUB_Line", container.constraints)

    def test_reactive_rate_limits(self):
        container = self.construct_network(LinearACBuilder, NetworkModel.LINEAR_AC)
        self.construct_branches(StaticLineBuilder, container, NetworkModel.LINEAR_AC)
        constr = container.get_constraint("ReactiveRateLimitUB_Line")["l23", 2]
        self.assertEqual(
            get_coeffs(container.model.getRow(constr)), {"FlowReactive_Line[l23,2]": 1.0}
        )

    def test_unbounded_lines(self):
        container = self.construct_network(NFABuilder, NetworkModel.NFA)
        self.construct_branches(StaticLineUnboundedBuilder, container, NetworkModel.NFA)
        self.assertNotIn("RateLimitUB_Line", container.constraints)

    def test_branches_before_network_raise(self):
        container = make_container(self.system, NetworkModel.DCP)
        self.containers.append(container)
        with self.assertRaises(BuildOrderError):
            self.construct_branches(StaticLineBuilder, container, NetworkModel.DCP)


if __name__ == "__main__":
    unittest.main()
