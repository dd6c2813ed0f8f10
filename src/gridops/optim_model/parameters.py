"""parameters.py: Solver-level parameters for time-varying data.

A parameter is a gurobi variable whose lower and upper bounds are pinned to the
same value. Constraints and expressions reference the variable, so new data only
changes the bounds and the constraint structure is left untouched.
"""

import dataclasses

import gurobipy as gp
import numpy as np
import pandas as pd


@dataclasses.dataclass(frozen=True)
class UpdateRef:
    """Identifies what varies over time: the owning entity type, the
    attribute, and the forecast label the values come from."""

    entity_type: str
    attribute: str
    forecast_label: str = ""

    def __str__(self) -> str:
        if self.forecast_label:
            return f"{self.entity_type}__{self.attribute}__{self.forecast_label}"
        return f"{self.entity_type}__{self.attribute}"

    def get_varname(self) -> str:
        """Solver name prefix of the parameters. Refs that differ in any field
        get different prefixes."""
        parts = [self.entity_type, self.attribute, self.forecast_label]
        return "param_" + "_".join(part for part in parts if part)


class ParameterRecord:
    """The parameters of one UpdateRef, indexed by (entity name, t), and the
    series last used to set them."""

    def __init__(self, model: gp.Model, update_ref: UpdateRef, time_steps: range):
        self.model = model
        self.update_ref = update_ref
        self.time_steps = time_steps
        self.parameter_array = gp.tupledict()
        self.series: dict[str, np.ndarray] = {}

    def _check_values(self, name: str, values) -> np.ndarray:
        values = np.asarray(values, dtype=float)
        if len(values) != len(self.time_steps):
            raise ValueError(
                f"gridops: {len(values)} values given for parameter {self.update_ref} "
                f"of {name}, expected {len(self.time_steps)}."
            )
        return values

    def add(self, name: str, values) -> None:
        if name in self.series:
            raise ValueError(
                f"gridops: Parameter {self.update_ref} of {name} already exists."
            )
        values = self._check_values(name, values)
        for t in self.time_steps:
            self.parameter_array[name, t] = self.model.addVar(
                lb=values[t - 1],
                ub=values[t - 1],
                vtype=gp.GRB.CONTINUOUS,
                name=f"{self.update_ref.get_varname()}[{name},{t}]",
            )
        self.series[name] = values

    def validate(self, name: str, values) -> np.ndarray:
        """Check that `name` has parameters and that `values` covers the horizon."""
        if name not in self.series:
            raise KeyError(f"gridops: Parameter {self.update_ref} has no entry {name}.")
        return self._check_values(name, values)

    def update(self, name: str, values) -> None:
        """Pin the parameters of `name` to new values."""
        values = self.validate(name, values)
        for t in self.time_steps:
            parameter = self.parameter_array[name, t]
            parameter.LB = values[t - 1]
            parameter.UB = values[t - 1]
        self.series[name] = values

    def get_value(self, name: str, t: int) -> float:
        return float(self.series[name][t - 1])

    def get_values_by_varname(self) -> dict[str, float]:
        """Map the solver name of each parameter to its pinned value.
        The model must be updated before names can be read."""
        return {
            parameter.VarName: self.get_value(name, t)
            for (name, t), parameter in self.parameter_array.items()
        }

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.series, index=pd.Index(self.time_steps, name="t"))


def include_parameters(
    container,
    constraint_infos: list,
    update_ref: UpdateRef,
    expression_name: str,
    multiplier: float = 1.0,
) -> ParameterRecord:
    """Bind each device's series to the parameters of `update_ref` and add
    `parameter * multiplier * info.multiplier` to the device's bus cells of
    the named expression."""
    record = container.add_parameter_record(update_ref)
    expression_array = container.expressions[expression_name]
    for info in constraint_infos:
        record.add(info.name, info.timeseries)
        for t in container.time_steps:
            expression_array[info.bus_number, t].addTerms(
                multiplier * info.multiplier, record.parameter_array[info.name, t]
            )
    return record
