"""operations_problem.py: OperationsProblem owns a template, a power system, and the
container built from them, and exposes building, solving, and result extraction.
"""

import enum
import logging
import time
import tracemalloc

import gurobipy as gp
import pandas as pd

from .. import config
from ..data_utils import tupledict_to_dataframe
from ..errors import (
    ConflictingInputsError,
    InfeasibleSolveError,
    InvalidProblemStateError,
    SolverNotAttachedError,
)
from ..formulations.kinds import NetworkModel
from ..formulations.template import (
    DeviceModel,
    OperationsProblemTemplate,
    ServiceModel,
)
from ..optim_model import (
    ParameterRecord,
    PowerSystemModel,
    ProblemContainer,
    Settings,
    UpdateRef,
)
from ..system import PowerSystem
from .model_builder import ModelBuilder
from .results import OperationsProblemResults

logger = logging.getLogger(__name__)


class ProblemState(enum.Enum):
    UNBUILT = "unbuilt"
    BUILT = "built"
    SOLVED = "solved"


class OperationsProblem:
    def __init__(
        self,
        template: OperationsProblemTemplate,
        system: PowerSystem,
        horizon: int = None,
        initial_time: pd.Timestamp = None,
        use_forecast_data: bool = None,
        use_parameters: bool = None,
        use_warm_start: bool = None,
        use_slacks: bool = None,
        optimizer: str = None,
        build: bool = True,
        name: str = "OperationsProblem",
    ) -> None:
        """An operations problem of a power system over a horizon.

        Unset options fall back to the user configuration.

        Args:
            template (OperationsProblemTemplate): The network, device, branch, and service formulations.
            system (PowerSystem): The data source.
            horizon (int): Number of time steps. Default is the forecast horizon of the system.
            initial_time (pd.Timestamp): Time stamp of the first step. Default is the
                forecast initial time of the system.
            use_forecast_data (bool): Use the forecasts instead of the current operating point.
            use_parameters (bool): Build time-varying data as updatable parameters.
            use_warm_start (bool): Start variables at the current operating point.
            use_slacks (bool): Add penalized mismatch variables to the balance constraints.
            optimizer (str): "gurobi" or "highs". Used when `solve` is called without a solver.
            build (bool): Build the problem right away. Default is True.
            name (str): Name used in messages.
        """
        self.template = template
        self.system = system
        self.name = name
        self.settings = Settings.from_system(
            system,
            horizon=horizon,
            initial_time=initial_time,
            use_forecast_data=use_forecast_data,
            use_parameters=use_parameters,
            use_warm_start=use_warm_start,
            use_slacks=use_slacks,
            optimizer=optimizer,
        )

        self.state = ProblemState.UNBUILT
        self.container: ProblemContainer = None
        self.power_system_model: PowerSystemModel = None
        self.results: OperationsProblemResults = None
        self._new_container()

        if build:
            self.build()

    ###########################################
    # State machine
    ###########################################
    def _require_state(self, operation: str, *states: ProblemState) -> None:
        if self.state not in states:
            raise InvalidProblemStateError(
                f"gridops: Cannot {operation} {self.name} in state {self.state.value}. "
                f"Allowed states: {[s.value for s in states]}."
            )

    def _new_container(self) -> None:
        self.container = ProblemContainer(
            self.template.transmission, self.system, self.settings
        )
        self.template.clear_service_links()
        self.power_system_model = None
        self.results = None
        self.state = ProblemState.UNBUILT

    def reset(self) -> None:
        """Discard the container. The template and the system are kept."""
        if self.state is not ProblemState.UNBUILT:
            logger.warning(f"gridops: Resetting {self.name}. The built model is discarded.")
        self.container.model.dispose()
        self._new_container()

    def build(self) -> None:
        self._require_state("build", ProblemState.UNBUILT)
        try:
            self.power_system_model = ModelBuilder(self.container, self.template).build()
        except Exception:
            # A partially built container is never exposed
            self.reset()
            raise
        self.state = ProblemState.BUILT
        logger.info(f"Built {self.name}: {self.container.summary()}")

    def _rebuild(self) -> None:
        """Build a fresh container from the current template. The current
        container, state, and results are kept until the new build succeeds."""
        container = ProblemContainer(
            self.template.transmission, self.system, self.settings
        )
        self.template.clear_service_links()
        try:
            power_system_model = ModelBuilder(container, self.template).build()
        except Exception:
            container.model.dispose()
            raise

        previous = self.container
        self.container = container
        self.power_system_model = power_system_model
        self.results = None
        self.state = ProblemState.BUILT
        previous.model.dispose()
        logger.info(f"Rebuilt {self.name}: {self.container.summary()}")

    def _mutate(self, apply, restore) -> None:
        """Apply a template change and rebuild. If the rebuild fails, the
        change is undone and the problem is left as it was."""
        apply()
        try:
            self._rebuild()
        except Exception:
            restore()
            logger.warning(
                f"gridops: Rebuilding {self.name} failed. The template change was undone."
            )
            raise

    ###########################################
    # Template mutation
    ###########################################
    def _set_attribute(self, attribute: str, value) -> None:
        previous = getattr(self.template, attribute)
        self._mutate(
            lambda: setattr(self.template, attribute, value),
            lambda: setattr(self.template, attribute, previous),
        )

    def _set_entry(self, entries: dict, name: str, model) -> None:
        had_entry = name in entries
        previous = entries.get(name)

        def apply():
            entries[name] = model

        def restore():
            if had_entry:
                entries[name] = previous
            else:
                del entries[name]

        self._mutate(apply, restore)

    def set_transmission_model(self, network: NetworkModel) -> None:
        self._set_attribute("transmission", network)

    def set_devices_template(self, devices: dict[str, DeviceModel]) -> None:
        self._set_attribute("devices", dict(devices))

    def set_branches_template(self, branches: dict[str, DeviceModel]) -> None:
        self._set_attribute("branches", dict(branches))

    def set_services_template(self, services: dict[str, ServiceModel]) -> None:
        self._set_attribute("services", dict(services))

    @staticmethod
    def _check_existing(entries: dict, name: str, kind: str) -> None:
        if name not in entries:
            raise ConflictingInputsError(
                f"gridops: {kind} model {name} does not exist and cannot be replaced."
            )

    @staticmethod
    def _check_new(entries: dict, name: str, kind: str) -> None:
        if name in entries:
            raise ConflictingInputsError(
                f"gridops: {kind} model {name} already exists."
            )

    def set_device_model(self, name: str, device_model: DeviceModel) -> None:
        self._check_existing(self.template.devices, name, "Device")
        self._set_entry(self.template.devices, name, device_model)

    def set_branch_model(self, name: str, branch_model: DeviceModel) -> None:
        self._check_existing(self.template.branches, name, "Branch")
        self._set_entry(self.template.branches, name, branch_model)

    def set_service_model(self, name: str, service_model: ServiceModel) -> None:
        self._check_existing(self.template.services, name, "Service")
        self._set_entry(self.template.services, name, service_model)

    def construct_device(self, name: str, device_model: DeviceModel) -> None:
        self._check_new(self.template.devices, name, "Device")
        self._set_entry(self.template.devices, name, device_model)

    def construct_branch(self, name: str, branch_model: DeviceModel) -> None:
        self._check_new(self.template.branches, name, "Branch")
        self._set_entry(self.template.branches, name, branch_model)

    def construct_service(self, name: str, service_model: ServiceModel) -> None:
        self._check_new(self.template.services, name, "Service")
        self._set_entry(self.template.services, name, service_model)

    ###########################################
    # Solve
    ###########################################
    def solve(
        self, solver: str = None, save_path: str = None, **solver_options
    ) -> OperationsProblemResults:
        """Solve the built problem.

        Args:
            solver (str): "gurobi" or "highs". Default is the optimizer of the problem.
            save_path (str): Folder to write the results to. Default is None.
            **solver_options: `log_to_console`, `mipgap`, `timelimit`, and `num_threads`.
                Unset options fall back to the user configuration.

        Returns:
            OperationsProblemResults: The results.

        Raises:
            SolverNotAttachedError: Neither the problem nor the call names a solver.
            InfeasibleSolveError: The solver found no primal feasible point.
        """
        self._require_state("solve", ProblemState.BUILT, ProblemState.SOLVED)
        solver = solver or self.settings.optimizer
        if solver is None:
            raise SolverNotAttachedError(
                f"gridops: No solver is attached to {self.name}. "
                "Pass a solver to solve or set one in the configuration."
            )

        options = {
            "log_to_console": config.get_to_log(),
            "mipgap": config.get_mip_gap(),
            "timelimit": config.get_timelimit(),
            "num_threads": config.get_num_threads(),
        }
        options.update(solver_options)

        tracemalloc.start()
        try:
            timed_start = time.perf_counter()
            self.power_system_model.optimize(solver=solver, **options)
            timed_solve_time = time.perf_counter() - timed_start
            _, peak_bytes = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()

        if not self.power_system_model.check_feasible():
            self.state = ProblemState.BUILT
            self.results = None
            raise InfeasibleSolveError(
                f"gridops: Solving {type(self).__name__} {self.name} returned status "
                f"{self.power_system_model.get_termination_status()}."
            )

        self.state = ProblemState.SOLVED
        self.results = OperationsProblemResults(
            base_power=self.system.base_power,
            variable_values=self.get_variable_values(),
            objective_value=self.power_system_model.get_objval(),
            optimizer_log=self._get_optimizer_log(timed_solve_time, peak_bytes),
            time_stamp=self.get_time_stamps(),
            dual_values=self.get_dual_values(),
            parameter_values=self.get_parameter_values(),
        )
        if save_path is not None:
            self.results.write_results(save_path)
        return self.results

    def _get_optimizer_log(self, timed_solve_time: float, peak_bytes: int) -> dict:
        solver = self.power_system_model.get_solver_name()
        optimizer_log = {
            "solver": solver,
            "termination_status": self.power_system_model.get_termination_status(),
            "primal_status": "FEASIBLE_POINT",
            "timed_solve_time": timed_solve_time,
            "solve_bytes_alloc": peak_bytes,
        }
        try:
            optimizer_log["solve_time"] = self.power_system_model.get_runtime()
        except (AttributeError, NotImplementedError, gp.GurobiError):
            logger.warning(f"gridops: Solve time is not supported by {solver}.")
            optimizer_log["solve_time"] = f"Not supported by {solver}"
        return optimizer_log

    ###########################################
    # Parameters
    ###########################################
    def update_parameter(self, update_ref: UpdateRef, values: dict) -> None:
        """Pin the parameters of `update_ref` to new series.

        Only the bounds of the parameters are changed and the constraints are
        left as they are, so `solve` can be called again. The solver drops its
        solution when bounds change, so a solved problem goes back to BUILT.

        Args:
            update_ref (UpdateRef): The parameters to update.
            values (dict): New series for each entity name, one value per time step.
        """
        self._require_state(
            "update parameters of", ProblemState.BUILT, ProblemState.SOLVED
        )
        if not self.settings.use_parameters:
            raise InvalidProblemStateError(
                f"gridops: {self.name} was built without parameters."
            )
        record: ParameterRecord = self.container.get_parameter_record(update_ref)
        # Every series is checked before any bound changes
        checked = {name: record.validate(name, series) for name, series in values.items()}
        for name, series in checked.items():
            record.update(name, series)
        self.container.model.update()
        if self.state is ProblemState.SOLVED:
            self.state = ProblemState.BUILT
            self.results = None

    def get_parameter_values(self) -> dict[str, pd.DataFrame]:
        self._require_state(
            "get parameter values of", ProblemState.BUILT, ProblemState.SOLVED
        )
        return {
            str(update_ref): record.to_dataframe()
            for update_ref, record in self.container.parameters.items()
        }

    ###########################################
    # Results
    ###########################################
    def get_variable_values(self) -> dict[str, pd.DataFrame]:
        self._require_state("get variable values of", ProblemState.SOLVED)
        solution = self.power_system_model.get_solution()
        values = dict(zip(solution["varname"], solution["value"]))
        return {
            name: tupledict_to_dataframe(variables, lambda v: values[v.VarName])
            for name, variables in self.container.variables.items()
        }

    def get_dual_values(self) -> dict[str, pd.DataFrame]:
        self._require_state("get dual values of", ProblemState.SOLVED)
        try:
            duals = self.power_system_model.get_duals()
        except NotImplementedError:
            logger.warning(
                f"gridops: Duals are not supported by "
                f"{self.power_system_model.get_solver_name()}."
            )
            return {}
        return {
            name: tupledict_to_dataframe(constraints, lambda c: duals[c.ConstrName])
            for name, constraints in self.container.constraints.items()
        }

    def write_results(self, output_folder: str) -> None:
        self._require_state("write results of", ProblemState.SOLVED)
        self.results.write_results(output_folder)

    def export_model(self, path: str) -> None:
        """Write the model to a file. The format follows the suffix, e.g. .mps or .lp"""
        self._require_state("export", ProblemState.BUILT, ProblemState.SOLVED)
        self.power_system_model.write(path)

    def get_time_stamps(self) -> pd.DatetimeIndex:
        return self.system.get_time_stamps(
            self.settings.initial_time, self.settings.horizon
        )

    ###########################################
    # Debugging
    ###########################################
    def get_all_constraint_index(self) -> list[tuple[str, object, str]]:
        """(container name, index, solver name) of every constraint."""
        self.container.model.update()
        return [
            (name, key, constr.ConstrName)
            for name, constraints in self.container.constraints.items()
            for key, constr in constraints.items()
        ]

    def get_all_var_index(self) -> list[tuple[str, object, str]]:
        """(container name, index, solver name) of every variable."""
        self.container.model.update()
        return [
            (name, key, var.VarName)
            for name, variables in self.container.variables.items()
            for key, var in variables.items()
        ]
