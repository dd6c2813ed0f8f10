"""container.py: ProblemContainer owns every solver-facing object of one problem instance."""

import dataclasses
import logging

import gurobipy as gp
import numpy as np
import pandas as pd

from .. import config
from ..errors import ConflictingInputsError
from ..formulations.kinds import NetworkModel
from .expressions import (
    NODAL_BALANCE_ACTIVE,
    NODAL_BALANCE_REACTIVE,
    create_expression_array,
    resolve_expression,
)
from .parameters import ParameterRecord, UpdateRef

logger = logging.getLogger(__name__)


@dataclasses.dataclass()
class Settings:
    """
    Time and modeling options of a problem.

    Attributes:
        horizon (int): Number of time steps. Time steps are 1..horizon.
        initial_time (pd.Timestamp): Time stamp of the first time step.
        resolution (pd.Timedelta): Time between two steps.
        use_forecast_data (bool): Use forecasts instead of the current operating point.
        use_parameters (bool): Build time-varying data as updatable parameters.
        use_warm_start (bool): Start variables at the current operating point.
        use_slacks (bool): Add penalized mismatch variables to the balance constraints.
        slack_penalty (float): Penalty of one MW of mismatch.
        optimizer (str): Solver used when `solve` is called without one.
    """

    horizon: int
    initial_time: pd.Timestamp
    resolution: pd.Timedelta
    use_forecast_data: bool = True
    use_parameters: bool = False
    use_warm_start: bool = False
    use_slacks: bool = False
    slack_penalty: float = 1000.0
    optimizer: str = None

    def __post_init__(self):
        if self.horizon < 1:
            raise ValueError("gridops: Horizon must be at least 1.")

    @classmethod
    def from_system(
        cls,
        system,
        horizon: int = None,
        initial_time: pd.Timestamp = None,
        use_forecast_data: bool = None,
        use_parameters: bool = None,
        use_warm_start: bool = None,
        use_slacks: bool = None,
        slack_penalty: float = None,
        optimizer: str = None,
    ) -> "Settings":
        """Settings for a system. Unset options fall back to the configuration file."""

        def _or_default(value, getter):
            return getter() if value is None else value

        return cls(
            horizon=horizon or system.forecast_horizon,
            initial_time=pd.Timestamp(initial_time or system.forecast_initial_time),
            resolution=system.forecast_resolution,
            use_forecast_data=_or_default(use_forecast_data, config.get_use_forecast_data),
            use_parameters=_or_default(use_parameters, config.get_use_parameters),
            use_warm_start=_or_default(use_warm_start, config.get_use_warm_start),
            use_slacks=_or_default(use_slacks, config.get_use_slacks),
            slack_penalty=_or_default(slack_penalty, config.get_slack_penalty),
            optimizer=_or_default(optimizer, config.get_solver),
        )

    @property
    def time_steps(self) -> range:
        return range(1, self.horizon + 1)


class ProblemContainer:
    def __init__(
        self,
        network: NetworkModel,
        system,
        settings: Settings,
        model: gp.Model = None,
    ) -> None:
        """Holds the model, its named variable/constraint/expression arrays,
        the parameter registry, and the objective accumulator.

        Args:
            network (NetworkModel): The network formulation.
            system (PowerSystem): The data source.
            settings (Settings): Time and modeling options.
            model (gp.Model): A custom model to build into. Use with care.
        """
        self.network = network
        self.system = system
        self.settings = settings
        self.model: gp.Model = model if model is not None else gp.Model("gridops")

        self.variables: dict[str, gp.tupledict] = {}
        self.constraints: dict[str, gp.tupledict] = {}
        self.expressions: dict[str, gp.tupledict] = {}
        self.parameters: dict[UpdateRef, ParameterRecord] = {}
        self.cost_function: gp.LinExpr = gp.LinExpr()

        # Names of the construction stages that have finished, in order
        self.completed_stages: list[str] = []

        self._instantiate_network_expressions()

    def _instantiate_network_expressions(self) -> None:
        bus_numbers = self.system.get_bus_numbers()
        self.expressions[NODAL_BALANCE_ACTIVE] = create_expression_array(
            bus_numbers, self.time_steps
        )
        if self.network.is_reactive_capable:
            self.expressions[NODAL_BALANCE_REACTIVE] = create_expression_array(
                bus_numbers, self.time_steps
            )

    @property
    def time_steps(self) -> range:
        return self.settings.time_steps

    ###########################################
    # Registries
    ###########################################
    def add_variable_container(self, name: str, variables: gp.tupledict) -> gp.tupledict:
        if name in self.variables:
            raise ConflictingInputsError(f"gridops: Variable {name} already exists.")
        self.variables[name] = variables
        return variables

    def get_variable(self, name: str) -> gp.tupledict:
        try:
            return self.variables[name]
        except KeyError:
            raise KeyError(f"gridops: Variable {name} does not exist.") from None

    def add_constraint_container(
        self, name: str, constraints: gp.tupledict
    ) -> gp.tupledict:
        if name in self.constraints:
            raise ConflictingInputsError(f"gridops: Constraint {name} already exists.")
        self.constraints[name] = constraints
        return constraints

    def get_constraint(self, name: str) -> gp.tupledict:
        try:
            return self.constraints[name]
        except KeyError:
            raise KeyError(f"gridops: Constraint {name} does not exist.") from None

    def add_expression_container(self, name: str, expressions: gp.tupledict) -> None:
        if name in self.expressions:
            raise ConflictingInputsError(f"gridops: Expression {name} already exists.")
        self.expressions[name] = expressions

    def add_parameter_record(self, update_ref: UpdateRef) -> ParameterRecord:
        """Return the record of `update_ref`, creating it on first use."""
        if update_ref not in self.parameters:
            self.parameters[update_ref] = ParameterRecord(
                self.model, update_ref, self.time_steps
            )
        return self.parameters[update_ref]

    def get_parameter_record(self, update_ref: UpdateRef) -> ParameterRecord:
        try:
            return self.parameters[update_ref]
        except KeyError:
            raise KeyError(f"gridops: No parameters for {update_ref}.") from None

    def add_to_objective(self, expr: gp.LinExpr) -> None:
        self.cost_function.add(expr)

    ###########################################
    # Data access
    ###########################################
    def get_time_series(self, component, label: str) -> np.ndarray:
        """Series of `label` for the problem horizon. An empty label gives
        ones, which holds the component at its current operating point."""
        if not label:
            return np.ones(self.settings.horizon)
        return self.system.get_time_series(
            component.name,
            label,
            initial_time=self.settings.initial_time,
            horizon=self.settings.horizon,
        )

    def get_parameter_values_by_varname(self) -> dict[str, float]:
        self.model.update()
        values = {}
        for record in self.parameters.values():
            values.update(record.get_values_by_varname())
        return values

    def resolve_expression(self, expr: gp.LinExpr) -> tuple[dict[str, float], float]:
        """Coefficients and constant of `expr` with parameters substituted."""
        return resolve_expression(expr, self.get_parameter_values_by_varname())

    def summary(self) -> dict[str, dict[str, int]]:
        """Number of entries of each named array."""
        return {
            "variables": {k: len(v) for k, v in self.variables.items()},
            "constraints": {k: len(v) for k, v in self.constraints.items()},
            "expressions": {k: len(v) for k, v in self.expressions.items()},
            "parameters": {
                str(k): len(v.parameter_array) for k, v in self.parameters.items()
            },
        }
