"""variable_func.py: Contains functions for adding variables to the optimization model."""

import gurobipy as gp
from gurobipy import GRB


def add_var_with_fixed_bounds(
    model: gp.Model,
    varname: str,
    timesteps: range,
    units: list,
    lb: dict[str, float],
    ub: dict[str, float],
    vtype: str = GRB.CONTINUOUS,
) -> gp.tupledict:
    """Add a variable indexed by (unit, t) whose bounds are constant over time.

    Args:
        model (gp.Model): The optimization model.
        varname (str): The name of the variable.
        timesteps (range): The range of timesteps.
        units (list): The list of units.
        lb (dict[str, float]): Lower bound of each unit.
        ub (dict[str, float]): Upper bound of each unit.
        vtype (str): The gurobi variable type.

    Returns:
        gp.tupledict: The variables.
    """
    return model.addVars(
        units,
        timesteps,
        lb={(unit, t): lb[unit] for t in timesteps for unit in units},
        ub={(unit, t): ub[unit] for t in timesteps for unit in units},
        vtype=vtype,
        name=varname,
    )


def add_free_var(
    model: gp.Model,
    varname: str,
    timesteps: range,
    units: list,
) -> gp.tupledict:
    """Add an unbounded continuous variable indexed by (unit, t)."""
    return model.addVars(
        units,
        timesteps,
        lb=-GRB.INFINITY,
        ub=GRB.INFINITY,
        vtype=GRB.CONTINUOUS,
        name=varname,
    )


def add_binary_var(
    model: gp.Model,
    varname: str,
    timesteps: range,
    units: list,
) -> gp.tupledict:
    return model.addVars(units, timesteps, vtype=GRB.BINARY, name=varname)


def set_warm_start(variables: gp.tupledict, start_values: dict[str, float]) -> None:
    """Start each (unit, t) variable at the unit's current value."""
    for (unit, _), v in variables.items():
        v.Start = start_values[unit]
