"""test_operations_problem.py: Tests of the OperationsProblem life cycle
from building through solving and result extraction."""

import os
import tempfile
import unittest

from gridops.core.operations_problem import OperationsProblem, ProblemState
from gridops.data_model import (
    Bus,
    InterruptibleLoad,
    Line,
    PowerLoad,
    RenewableDispatch,
    ThermalStandard,
    VariableReserve,
)
from gridops.errors import (
    ConflictingInputsError,
    InfeasibleSolveError,
    InvalidProblemStateError,
    SolverNotAttachedError,
    UnimplementedFormulationError,
)
from gridops.formulations import (
    DeviceFormulation,
    DeviceModel,
    NetworkModel,
    ServiceFormulation,
    ServiceModel,
)
from gridops.optim_model.parameters import UpdateRef
from gridops.system import PowerSystem
from sample_systems import (
    make_reserve_system,
    make_reserve_template,
    make_three_bus_system,
    make_three_bus_template,
)

LOAD_REF = UpdateRef("PowerLoad", "max_active_power", "max_active_power")
REQUIREMENT_REF = UpdateRef("VariableReserve", "requirement", "requirement")


class ProblemTestCase(unittest.TestCase):
    def make_problem(self, system=None, template=None, **kwargs) -> OperationsProblem:
        kwargs.setdefault("use_parameters", False)
        kwargs.setdefault("use_slacks", False)
        problem = OperationsProblem(
            template or make_reserve_template(),
            system or make_reserve_system(),
            optimizer="gurobi",
            **kwargs,
        )
        # Reset replaces the container, so dispose whichever is current
        self.addCleanup(lambda: problem.container.model.dispose())
        return problem

    def solve(self, problem, **kwargs):
        kwargs.setdefault("log_to_console", False)
        return problem.solve(**kwargs)


class TestProblemState(ProblemTestCase):
    def test_unbuilt_problem(self):
        problem = self.make_problem(build=False)
        self.assertIs(problem.state, ProblemState.UNBUILT)
        with self.assertRaises(InvalidProblemStateError):
            problem.solve()
        with self.assertRaises(InvalidProblemStateError):
            problem.get_variable_values()
        with self.assertRaises(InvalidProblemStateError):
            problem.export_model("model.lp")

    def test_build_only_once(self):
        problem = self.make_problem()
        self.assertIs(problem.state, ProblemState.BUILT)
        with self.assertRaises(InvalidProblemStateError):
            problem.build()

    def test_results_require_solved_state(self):
        problem = self.make_problem()
        with self.assertRaises(InvalidProblemStateError):
            problem.get_dual_values()
        with self.assertRaises(InvalidProblemStateError):
            problem.write_results("results")
        self.solve(problem)
        self.assertIs(problem.state, ProblemState.SOLVED)
        # A solved problem can be solved again
        self.solve(problem)
        self.assertIs(problem.state, ProblemState.SOLVED)

    def test_reset(self):
        problem = self.make_problem()
        summary = problem.container.summary()
        with self.assertLogs("gridops.core.operations_problem", level="WARNING"):
            problem.reset()

        self.assertIs(problem.state, ProblemState.UNBUILT)
        self.assertEqual(problem.container.variables, {})
        self.assertEqual(problem.container.completed_stages, [])
        self.assertEqual(problem.template.devices["Generators"].services, [])
        self.assertIsNone(problem.power_system_model)

        # Resetting twice is the same as resetting once
        problem.reset()
        problem.build()
        self.assertEqual(problem.container.summary(), summary)

    def test_failed_build_leaves_unbuilt_problem(self):
        template = make_reserve_template()
        template.devices["Loads"] = DeviceModel(
            PowerLoad, DeviceFormulation.THERMAL_DISPATCH
        )
        with self.assertRaises(UnimplementedFormulationError):
            OperationsProblem(template, make_reserve_system(), use_parameters=False)

        problem = self.make_problem(template=template, build=False)
        with self.assertRaises(UnimplementedFormulationError):
            problem.build()
        self.assertIs(problem.state, ProblemState.UNBUILT)
        self.assertEqual(problem.container.completed_stages, [])
        self.assertEqual(problem.container.variables, {})

    def test_horizon_override(self):
        problem = self.make_problem(horizon=2)
        self.assertEqual(len(problem.get_time_stamps()), 2)
        self.assertEqual(len(problem.container.get_variable("P_ThermalStandard")), 4)


class TestTemplateMutation(ProblemTestCase):
    def test_replace_requires_existing_model(self):
        problem = self.make_problem()
        with self.assertRaises(ConflictingInputsError):
            problem.set_device_model(
                "Renewables",
                DeviceModel(PowerLoad, DeviceFormulation.STATIC_POWER_LOAD),
            )
        with self.assertRaises(ConflictingInputsError):
            problem.set_service_model(
                "Others", ServiceModel(VariableReserve, ServiceFormulation.RANGE_RESERVE)
            )
        with self.assertRaises(ConflictingInputsError):
            problem.set_branch_model(
                "Lines", DeviceModel(Line, DeviceFormulation.STATIC_LINE)
            )

    def test_construct_requires_new_name(self):
        problem = self.make_problem()
        with self.assertRaises(ConflictingInputsError):
            problem.construct_device(
                "Loads", DeviceModel(PowerLoad, DeviceFormulation.STATIC_POWER_LOAD)
            )
        with self.assertRaises(ConflictingInputsError):
            problem.construct_service(
                "Reserves",
                ServiceModel(VariableReserve, ServiceFormulation.RANGE_RESERVE),
            )

    def test_set_device_model_rebuilds(self):
        problem = self.make_problem()
        problem.set_device_model(
            "Generators",
            DeviceModel(
                ThermalStandard, DeviceFormulation.THERMAL_BASIC_UNIT_COMMITMENT
            ),
        )
        self.assertIs(problem.state, ProblemState.BUILT)
        self.assertIn("ON_ThermalStandard", problem.container.variables)
        self.assertIn("reg_up_VariableReserve", problem.container.variables)

    def test_set_transmission_model_rebuilds(self):
        problem = self.make_problem()
        self.solve(problem)
        problem.set_transmission_model(NetworkModel.DCP)
        self.assertIs(problem.state, ProblemState.BUILT)
        self.assertIn("refNode", problem.container.constraints)
        self.assertNotIn("CopperPlateBalance", problem.container.constraints)

    def test_construct_and_remove_models(self):
        system = make_three_bus_system()
        template = make_three_bus_template()
        del template.devices["InterruptibleLoads"]
        branches = template.branches
        template.branches = {}
        problem = self.make_problem(system=system, template=template)
        self.assertNotIn("RateLimitUB_Line", problem.container.constraints)

        problem.construct_branch("Lines", branches["Lines"])
        self.assertIn("RateLimitUB_Line", problem.container.constraints)

        problem.construct_device(
            "InterruptibleLoads",
            DeviceModel(InterruptibleLoad, DeviceFormulation.INTERRUPTIBLE_POWER_LOAD),
        )
        self.assertIn("P_InterruptibleLoad", problem.container.variables)

        problem.set_branches_template({})
        self.assertNotIn("RateLimitUB_Line", problem.container.constraints)
        problem.set_services_template({})
        self.assertIs(problem.state, ProblemState.BUILT)
        problem.set_devices_template({})
        self.assertEqual(problem.container.cost_function.size(), 0)

    def test_failed_rebuild_keeps_previous_problem(self):
        problem = self.make_problem()
        results = self.solve(problem)
        container = problem.container
        loads = problem.template.devices["Loads"]

        with self.assertRaises(UnimplementedFormulationError):
            with self.assertLogs("gridops.core.operations_problem", level="WARNING"):
                problem.set_device_model(
                    "Loads", DeviceModel(PowerLoad, DeviceFormulation.THERMAL_DISPATCH)
                )

        self.assertIs(problem.state, ProblemState.SOLVED)
        self.assertIs(problem.template.devices["Loads"], loads)
        self.assertIs(problem.container, container)
        self.assertIs(problem.results, results)
        self.assertIn("P_ThermalStandard", problem.get_variable_values())

        # The model still solves after the failed change
        self.assertAlmostEqual(self.solve(problem).objective_value, 36.0)

    def test_failed_construct_removes_new_entry(self):
        problem = self.make_problem()
        devices = problem.template.devices

        with self.assertRaises(UnimplementedFormulationError):
            with self.assertLogs("gridops.core.operations_problem", level="WARNING"):
                problem.construct_device(
                    "MoreLoads", DeviceModel(PowerLoad, DeviceFormulation.THERMAL_DISPATCH)
                )
        self.assertNotIn("MoreLoads", problem.template.devices)

        with self.assertRaises(UnimplementedFormulationError):
            with self.assertLogs("gridops.core.operations_problem", level="WARNING"):
                problem.set_devices_template(
                    {
                        "Loads": DeviceModel(
                            PowerLoad, DeviceFormulation.THERMAL_DISPATCH
                        )
                    }
                )
        self.assertIs(problem.template.devices, devices)
        self.assertIs(problem.state, ProblemState.BUILT)


class TestSolve(ProblemTestCase):
    def test_reserve_dispatch(self):
        problem = self.make_problem()
        results = self.solve(problem)

        # The cheap unit serves the load and the reserve is split so that
        # the requirement is met exactly
        self.assertAlmostEqual(results.objective_value, 36.0)
        dispatch = results.get_variable("P_ThermalStandard")
        self.assertEqual(list(dispatch.index), [1, 2, 3])
        for t in [1, 2, 3]:
            self.assertAlmostEqual(dispatch.loc[t, "g1"], 2.0)
            self.assertAlmostEqual(dispatch.loc[t, "g2"], 0.0)
        reserve = results.get_variable("reg_up_VariableReserve")
        for t in [1, 2, 3]:
            self.assertAlmostEqual(reserve.loc[t, "g1"] + reserve.loc[t, "g2"], 10.0)
            self.assertLessEqual(reserve.loc[t, "g1"], 6.0 + 1e-6)

        duals = results.dual_values["reg_up_requirement_VariableReserve"]
        self.assertAlmostEqual(duals.loc[1, "value"], 1.0)
        self.assertEqual(len(results.time_stamp), 3)
        self.assertEqual(results.base_power, 100.0)

    def test_optimizer_log(self):
        problem = self.make_problem()
        log = self.solve(problem).optimizer_log
        self.assertEqual(log["solver"], "gurobi")
        self.assertEqual(log["termination_status"], "OPTIMAL")
        self.assertEqual(log["primal_status"], "FEASIBLE_POINT")
        self.assertGreaterEqual(log["timed_solve_time"], 0.0)
        self.assertGreaterEqual(log["solve_bytes_alloc"], 0)
        self.assertIsInstance(log["solve_time"], float)

    def test_requirement_constraint(self):
        problem = self.make_problem()
        model = problem.container.model
        constr = problem.container.get_constraint("reg_up_requirement_VariableReserve")[2]
        row = model.getRow(constr)
        self.assertEqual(constr.RHS, 10.0)
        self.assertEqual(constr.Sense, ">")
        self.assertEqual(
            {row.getVar(i).VarName: row.getCoeff(i) for i in range(row.size())},
            {"reg_up_VariableReserve[g1,2]": 1.0, "reg_up_VariableReserve[g2,2]": 1.0},
        )

    def test_no_solver_attached(self):
        problem = self.make_problem()
        problem.settings.optimizer = None
        with self.assertRaises(SolverNotAttachedError):
            problem.solve()
        self.assertIs(problem.state, ProblemState.BUILT)

    def test_infeasible(self):
        problem = self.make_problem(system=make_reserve_system(load=20.0))
        with self.assertRaises(InfeasibleSolveError):
            self.solve(problem)
        self.assertIs(problem.state, ProblemState.BUILT)
        self.assertIsNone(problem.results)

    def test_unavailable_unit_holds_no_reserve(self):
        system = make_reserve_system(requirement=5.0)
        system.get_component(ThermalStandard, "g2").available = False
        results = self.solve(self.make_problem(system=system))
        reserve = results.get_variable("reg_up_VariableReserve")
        self.assertEqual(list(reserve.columns), ["g1"])
        self.assertAlmostEqual(reserve.loc[1, "g1"], 5.0)

        # g1 alone cannot hold 10 MW above its 2 MW of dispatch
        system = make_reserve_system()
        system.get_component(ThermalStandard, "g2").available = False
        problem = self.make_problem(system=system)
        with self.assertRaises(InfeasibleSolveError):
            self.solve(problem)

    def test_renewable_reserve_within_forecast(self):
        system = PowerSystem(forecast_horizon=2)
        system.add_bus(Bus(1, bustype="REF"))
        system.add_component(
            ThermalStandard("g1", bus=1, max_active_power=10.0, variable_cost=1.0)
        )
        system.add_component(RenewableDispatch("pv1", bus=1, max_active_power=10.0))
        system.add_component(PowerLoad("load1", bus=1, max_active_power=2.0))
        system.add_component(
            VariableReserve(
                "pv_up",
                direction="up",
                requirement=4.0,
                contributing_devices=["pv1"],
                cost=1.0,
            )
        )
        system.add_time_series("load1", "max_active_power", [1.0, 1.0])
        system.add_time_series("pv1", "max_active_power", [0.0, 0.5])
        system.add_time_series("pv_up", "requirement", [1.0, 1.0])
        template = make_reserve_template()
        template.devices["Renewables"] = DeviceModel(
            RenewableDispatch, DeviceFormulation.RENEWABLE_FULL_DISPATCH
        )

        # No sun in the first step leaves nothing to hold reserve
        with self.assertRaises(InfeasibleSolveError):
            self.solve(self.make_problem(system=system, template=template))

        system.add_time_series("pv1", "max_active_power", [0.5, 0.5])
        results = self.solve(self.make_problem(system=system, template=template))
        dispatch = results.get_variable("P_RenewableDispatch")
        reserve = results.get_variable("pv_up_VariableReserve")
        for t in [1, 2]:
            self.assertAlmostEqual(reserve.loc[t, "pv1"], 4.0)
            self.assertLessEqual(dispatch.loc[t, "pv1"], 1.0 + 1e-6)

    def test_slacks_absorb_shortfall(self):
        problem = self.make_problem(
            system=make_reserve_system(load=20.0, requirement=0.0), use_slacks=True
        )
        results = self.solve(problem)
        mismatch = results.get_variable("pos_pmismatch")
        self.assertEqual(list(mismatch.columns), ["value"])
        for t in [1, 2, 3]:
            self.assertAlmostEqual(mismatch.loc[t, "value"], 4.0)

    def test_highs(self):
        problem = self.make_problem()
        with self.assertLogs("gridops.core.operations_problem", level="WARNING") as logs:
            results = self.solve(problem, solver="highs")
        self.assertTrue(any("Duals" in line for line in logs.output))
        self.assertAlmostEqual(results.objective_value, 36.0)
        self.assertEqual(results.dual_values, {})
        self.assertEqual(results.optimizer_log["solver"], "highs")
        self.assertAlmostEqual(
            results.get_variable("P_ThermalStandard").loc[2, "g1"], 2.0
        )

    def test_dcp_three_bus(self):
        problem = self.make_problem(
            system=make_three_bus_system(), template=make_three_bus_template()
        )
        results = self.solve(problem)
        flow = results.get_variable("Flow_Line")
        # Load at bus 3 net of the renewable infeed at bus 2 flows over l12
        served = results.get_variable("P_InterruptibleLoad")
        for t in [1, 2]:
            self.assertAlmostEqual(served.loc[t, "iload3"], 5.0)
            self.assertAlmostEqual(
                flow.loc[t, "l23"], [40.0, 20.0][t - 1] + 5.0
            )
        self.assertLessEqual(flow["l12"].max(), 50.0 + 1e-6)


class TestParameters(ProblemTestCase):
    def test_parameters_match_literal_values(self):
        literal = self.make_problem()
        parametric = self.make_problem(use_parameters=True)
        self.assertAlmostEqual(
            self.solve(literal).objective_value, self.solve(parametric).objective_value
        )
        self.assertIn(str(LOAD_REF), parametric.results.parameter_values)

    def test_update_parameter(self):
        problem = self.make_problem(use_parameters=True)
        container = problem.container
        summary = container.summary()
        num_vars = container.model.NumVars
        num_constrs = container.model.NumConstrs
        requirement = container.get_parameter_record(REQUIREMENT_REF)
        requirement_series = list(requirement.series["reg_up"])

        problem.update_parameter(LOAD_REF, {"load1": [1.5, 1.5, 1.5]})

        self.assertIs(problem.container, container)
        self.assertEqual(container.summary(), summary)
        self.assertEqual(container.model.NumVars, num_vars)
        self.assertEqual(container.model.NumConstrs, num_constrs)
        load = container.get_parameter_record(LOAD_REF)
        for t in [1, 2, 3]:
            self.assertEqual(load.parameter_array["load1", t].LB, 1.5)
            self.assertEqual(load.parameter_array["load1", t].UB, 1.5)
            self.assertEqual(requirement.parameter_array["reg_up", t].LB, 1.0)
            self.assertEqual(requirement.parameter_array["reg_up", t].UB, 1.0)
        self.assertEqual(list(requirement.series["reg_up"]), requirement_series)
        self.assertEqual(
            list(problem.get_parameter_values()[str(LOAD_REF)]["load1"]),
            [1.5, 1.5, 1.5],
        )
        results = self.solve(problem)
        # 3 MW of load and 10 MW of reserve at unit cost over three steps
        self.assertAlmostEqual(results.objective_value, 39.0)

        problem.update_parameter(REQUIREMENT_REF, {"reg_up": [0.5, 0.5, 0.5]})
        self.assertIs(problem.state, ProblemState.BUILT)
        self.assertEqual(list(load.series["load1"]), [1.5, 1.5, 1.5])
        self.assertAlmostEqual(self.solve(problem).objective_value, 24.0)

    def test_update_drops_previous_solution(self):
        problem = self.make_problem(use_parameters=True)
        self.solve(problem)
        problem.update_parameter(LOAD_REF, {"load1": [1.5, 1.5, 1.5]})

        self.assertIs(problem.state, ProblemState.BUILT)
        self.assertIsNone(problem.results)
        with self.assertRaises(InvalidProblemStateError):
            problem.get_variable_values()
        with self.assertRaises(InvalidProblemStateError):
            problem.get_dual_values()
        self.solve(problem)
        self.assertIs(problem.state, ProblemState.SOLVED)

    def test_rejected_update_changes_nothing(self):
        problem = self.make_problem(use_parameters=True)
        self.solve(problem)
        load = problem.container.get_parameter_record(LOAD_REF)

        with self.assertRaises(KeyError):
            problem.update_parameter(
                LOAD_REF, {"load1": [1.5, 1.5, 1.5], "load9": [1.0, 1.0, 1.0]}
            )
        with self.assertRaises(ValueError):
            problem.update_parameter(LOAD_REF, {"load1": [1.5]})

        self.assertIs(problem.state, ProblemState.SOLVED)
        self.assertEqual(list(load.series["load1"]), [1.0, 1.0, 1.0])
        problem.container.model.update()
        self.assertEqual(load.parameter_array["load1", 1].UB, 1.0)

    def test_update_requires_parameters(self):
        problem = self.make_problem(use_parameters=False)
        with self.assertRaises(InvalidProblemStateError):
            problem.update_parameter(LOAD_REF, {"load1": [1.0, 1.0, 1.0]})

        unbuilt = self.make_problem(use_parameters=True, build=False)
        with self.assertRaises(InvalidProblemStateError):
            unbuilt.update_parameter(LOAD_REF, {"load1": [1.0, 1.0, 1.0]})

    def test_update_unknown_ref(self):
        problem = self.make_problem(use_parameters=True)
        with self.assertRaises(KeyError):
            problem.update_parameter(
                UpdateRef("PowerLoad", "max_active_power", ""), {"load1": [1.0] * 3}
            )


class TestOutputs(ProblemTestCase):
    def test_save_path_writes_results(self):
        problem = self.make_problem()
        with tempfile.TemporaryDirectory() as tmp_dir:
            self.solve(problem, save_path=tmp_dir)
            files = os.listdir(tmp_dir)
            self.assertIn("variables_P_ThermalStandard.csv", files)
            self.assertIn("duals_CopperPlateBalance.csv", files)
            self.assertIn("optimizer_log.json", files)

            other = os.path.join(tmp_dir, "again")
            problem.write_results(other)
            self.assertIn("time_stamp.csv", os.listdir(other))

    def test_export_model(self):
        problem = self.make_problem()
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = os.path.join(tmp_dir, "reserve.lp")
            problem.export_model(path)
            self.assertTrue(os.path.exists(path))

    def test_indices(self):
        problem = self.make_problem()
        constraints = problem.get_all_constraint_index()
        self.assertIn(
            (
                "reg_up_requirement_VariableReserve",
                1,
                "reg_up_requirement_VariableReserve[1]",
            ),
            constraints,
        )
        variables = problem.get_all_var_index()
        self.assertIn(
            ("P_ThermalStandard", ("g2", 3), "P_ThermalStandard[g2,3]"), variables
        )


if __name__ == "__main__":
    unittest.main()
