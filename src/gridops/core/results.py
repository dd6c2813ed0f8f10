"""results.py: The results of a solved operations problem."""

import dataclasses
import json
import logging
import os

import pandas as pd

from ..data_utils import write_df

logger = logging.getLogger(__name__)


@dataclasses.dataclass()
class OperationsProblemResults:
    """
    Attributes:
        base_power (float): System base power in MVA.
        variable_values (dict[str, pd.DataFrame]): Values of each variable, indexed by t
            with one column per entity.
        objective_value (float): The optimal objective value.
        optimizer_log (dict): Solver diagnostics such as status and timing.
        time_stamp (pd.DatetimeIndex): Time stamp of each time step.
        dual_values (dict[str, pd.DataFrame]): Duals of each constraint, indexed like the variables.
        parameter_values (dict[str, pd.DataFrame]): Values the parameters were pinned to.
    """

    base_power: float
    variable_values: dict[str, pd.DataFrame]
    objective_value: float
    optimizer_log: dict
    time_stamp: pd.DatetimeIndex
    dual_values: dict[str, pd.DataFrame] = dataclasses.field(default_factory=dict)
    parameter_values: dict[str, pd.DataFrame] = dataclasses.field(
        default_factory=dict
    )

    def get_variable(self, name: str) -> pd.DataFrame:
        try:
            return self.variable_values[name]
        except KeyError:
            raise KeyError(f"gridops: No results for variable {name}.") from None

    def _with_time_stamp(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()
        df.insert(0, "time_stamp", [self.time_stamp[t - 1] for t in df.index])
        return df

    def write_results(self, output_folder: str) -> None:
        """Write one CSV per variable, dual, and parameter table and the
        optimizer log as JSON."""
        tables = [
            ("variables", self.variable_values),
            ("duals", self.dual_values),
            ("parameters", self.parameter_values),
        ]
        for prefix, values in tables:
            for name, df in values.items():
                write_df(
                    self._with_time_stamp(df),
                    output_folder=output_folder,
                    output_name=f"{prefix}_{name}",
                )

        write_df(
            pd.DataFrame({"time_stamp": self.time_stamp}),
            output_folder=output_folder,
            output_name="time_stamp",
            index=False,
        )

        log = dict(self.optimizer_log)
        log["objective_value"] = self.objective_value
        log["base_power"] = self.base_power
        with open(os.path.join(output_folder, "optimizer_log.json"), "w") as f:
            json.dump(log, f, indent=2, default=str)
        logger.info(f"Results written to {output_folder}")
