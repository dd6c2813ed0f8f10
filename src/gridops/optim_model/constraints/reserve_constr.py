"""reserve_constr.py: Requirement constraints of reserve services."""

import gurobipy as gp


def add_c_reserve_requirement(
    model: gp.Model,
    reserve: gp.tupledict,
    timesteps: range,
    units: list[str],
    requirement: float,
    timeseries,
    name: str,
) -> gp.tupledict:
    """The reserve held by the contributing units covers the requirement:

        sum_u reserve[u, t] >= ts[t] * requirement

    Args:
        model (gp.Model): The optimization model
        reserve (gp.tupledict): The reserve variable of the service
        timesteps (range): The range of timesteps
        units (list[str]): The contributing units
        requirement (float): The requirement of the service in MW
        timeseries: Scaling of the requirement at each timestep (indexed from 0)
        name (str): The name of the constraints

    Returns:
        gp.tupledict: The constraints indexed by t
    """
    return model.addConstrs(
        (
            gp.quicksum(reserve[unit, t] for unit in units)
            >= timeseries[t - 1] * requirement
            for t in timesteps
        ),
        name=name,
    )


def add_c_reserve_requirement_param(
    model: gp.Model,
    reserve: gp.tupledict,
    timesteps: range,
    units: list[str],
    requirement: float,
    parameters: gp.tupledict,
    service_name: str,
    name: str,
) -> gp.tupledict:
    """Same as add_c_reserve_requirement with the scaling held in the
    parameters of the service, indexed by (service_name, t)."""
    return model.addConstrs(
        (
            gp.quicksum(reserve[unit, t] for unit in units)
            >= requirement * parameters[service_name, t]
            for t in timesteps
        ),
        name=name,
    )
