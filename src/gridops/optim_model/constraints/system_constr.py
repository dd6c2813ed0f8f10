"""system_constr.py: Constraints for the power system"""

import gurobipy as gp

from ...data_model import Line


def add_c_copper_plate_balance(
    model: gp.Model,
    nodal_balance: gp.tupledict,
    timesteps: range,
    bus_numbers: list[int],
    name: str,
    pos_pmismatch: gp.tupledict = None,
    neg_pmismatch: gp.tupledict = None,
) -> gp.tupledict:
    """System-wide balance without a network: the injections of all buses
    sum to zero at every timestep.

    Args:
        model (gp.Model): The optimization model
        nodal_balance (gp.tupledict): Net injection expression of each (bus, t)
        timesteps (range): The range of timesteps
        bus_numbers (list[int]): The buses
        name (str): The name of the constraints
        pos_pmismatch (gp.tupledict): System-wide positive mismatch indexed by t. Default is None.
        neg_pmismatch (gp.tupledict): System-wide negative mismatch indexed by t. Default is None.

    Returns:
        gp.tupledict: The constraints indexed by t
    """

    def _mismatch(t):
        if pos_pmismatch is None:
            return 0
        return pos_pmismatch[t] - neg_pmismatch[t]

    return model.addConstrs(
        (
            gp.quicksum(nodal_balance[bus, t] for bus in bus_numbers) + _mismatch(t)
            == 0
            for t in timesteps
        ),
        name=name,
    )


def add_c_nodal_balance(
    model: gp.Model,
    nodal_balance: gp.tupledict,
    timesteps: range,
    bus_numbers: list[int],
    name: str,
) -> gp.tupledict:
    """Kirchhoff's current law at each bus: generation, withdrawals, and
    line flows injected at the bus sum to zero.

    Returns:
        gp.tupledict: The constraints indexed by (bus, t)
    """
    return model.addConstrs(
        (nodal_balance[bus, t] == 0 for bus in bus_numbers for t in timesteps),
        name=name,
    )


def add_c_ref_node(
    model: gp.Model,
    theta: gp.tupledict,
    timesteps: range,
    ref_buses: list[int],
) -> gp.tupledict:
    """Set the voltage angle at the reference bus of each island to zero.

    Args:
        model (gp.Model): The optimization model
        theta (gp.tupledict): The voltage angle
        timesteps (range): The range of timesteps
        ref_buses (list[int]): One reference bus per island

    Returns:
        gp.tupledict: The constraints for the reference buses
    """
    return model.addConstrs(
        (theta[bus, t] == 0 for bus in ref_buses for t in timesteps),
        name="refNode",
    )


def add_c_angle_diff(
    model: gp.Model,
    flow: gp.tupledict,
    theta: gp.tupledict,
    timesteps: range,
    lines: list[Line],
    base_power: float,
) -> gp.tupledict:
    """In DC-OPF, the real power flow on a line is proportional to the
    voltage angle difference between its buses:

        flow[l, t] = base_power * (theta[from, t] - theta[to, t]) / x_l

    Args:
        model (gp.Model): The optimization model
        flow (gp.tupledict): The line flow from `from_bus` to `to_bus` in MW
        theta (gp.tupledict): The voltage angle
        timesteps (range): The range of timesteps
        lines (list[Line]): The lines
        base_power (float): The system base power to convert per unit flows to MW

    Returns:
        gp.tupledict: The constraints for the angle difference
    """
    lines_by_name = {line.name: line for line in lines}
    return model.addConstrs(
        (
            flow[name, t]
            == base_power
            / lines_by_name[name].reactance
            * (
                theta[lines_by_name[name].from_bus, t]
                - theta[lines_by_name[name].to_bus, t]
            )
            for name in lines_by_name
            for t in timesteps
        ),
        name="angleDiff",
    )


def add_c_rate_limit_ub(
    model: gp.Model,
    flow: gp.tupledict,
    timesteps: range,
    lines: list[Line],
    name: str,
) -> gp.tupledict:
    rates = {line.name: line.rate for line in lines}
    return model.addConstrs(
        (flow[line, t] <= rates[line] for line in rates for t in timesteps),
        name=name,
    )


def add_c_rate_limit_lb(
    model: gp.Model,
    flow: gp.tupledict,
    timesteps: range,
    lines: list[Line],
    name: str,
) -> gp.tupledict:
    rates = {line.name: line.rate for line in lines}
    return model.addConstrs(
        (flow[line, t] >= -rates[line] for line in rates for t in timesteps),
        name=name,
    )
