"""objfunc.py: Functions for constructing the objective function."""


def get_linear_cost_coeff(
    timesteps: range,
    units: list,
    unit_cost: dict[str, float],
    sign: float = 1.0,
) -> dict:
    """Cost of one unit of the variable, identical for every timestep.
    A negative sign turns a value (e.g. of served load) into a cost reduction."""
    return {(unit, t): sign * unit_cost[unit] for t in timesteps for unit in units}


def get_penalty_coeff(timesteps: range, keys: list, penalty: float) -> dict:
    """Uniform penalty, e.g. on power mismatch variables."""
    return {(key, t): penalty for t in timesteps for key in keys}
