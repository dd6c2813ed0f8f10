"""device_constr.py: Range and availability constraints of injection devices."""

import gurobipy as gp

from ..timeseries_info import DeviceRange, DeviceTimeSeriesConstraintInfo


def _scaled_limit(limit: float, status: gp.tupledict, unit: str, t: int):
    if status is None:
        return limit
    return limit * status[unit, t]


def _get_terms_ub(device_ranges: list[DeviceRange]) -> dict[str, list[str]]:
    return {r.name: r.additional_terms_ub for r in device_ranges or []}


def add_c_active_range_ub(
    model: gp.Model,
    pdispatch: gp.tupledict,
    timesteps: range,
    device_ranges: list[DeviceRange],
    variables: dict[str, gp.tupledict],
    name: str,
    status: gp.tupledict = None,
) -> gp.tupledict:
    """
    Upper limit of the dispatch, widened by the up-reserve variables registered
    as additional terms of each device:

        pdispatch[d, t] + sum(reserve[d, t]) <= max_d (* status[d, t])

    Args:
        model (gp.Model): The optimization model.
        pdispatch (gp.tupledict): The dispatch variable.
        timesteps (range): The range of timesteps.
        device_ranges (list[DeviceRange]): Limits and additional terms of each device.
        variables (dict[str, gp.tupledict]): Variable arrays by name, to look up the additional terms.
        name (str): The name of the constraints.
        status (gp.tupledict): The commitment status. Default is None (always on).

    Returns:
        gp.tupledict: The constraints.
    """
    ranges = {r.name: r for r in device_ranges}
    return model.addConstrs(
        (
            pdispatch[unit, t]
            + gp.quicksum(
                variables[term][unit, t] for term in ranges[unit].additional_terms_ub
            )
            <= _scaled_limit(ranges[unit].limits[1], status, unit, t)
            for unit in ranges
            for t in timesteps
        ),
        name=name,
    )


def add_c_active_range_lb(
    model: gp.Model,
    pdispatch: gp.tupledict,
    timesteps: range,
    device_ranges: list[DeviceRange],
    variables: dict[str, gp.tupledict],
    name: str,
    status: gp.tupledict = None,
) -> gp.tupledict:
    """
    Lower limit of the dispatch, widened by the down-reserve variables:

        pdispatch[d, t] - sum(reserve[d, t]) >= min_d (* status[d, t])
    """
    ranges = {r.name: r for r in device_ranges}
    return model.addConstrs(
        (
            pdispatch[unit, t]
            - gp.quicksum(
                variables[term][unit, t] for term in ranges[unit].additional_terms_lb
            )
            >= _scaled_limit(ranges[unit].limits[0], status, unit, t)
            for unit in ranges
            for t in timesteps
        ),
        name=name,
    )


def add_c_timeseries_ub(
    model: gp.Model,
    pdispatch: gp.tupledict,
    timesteps: range,
    constraint_infos: list[DeviceTimeSeriesConstraintInfo],
    name: str,
    device_ranges: list[DeviceRange] = None,
    variables: dict[str, gp.tupledict] = None,
) -> gp.tupledict:
    """
    The dispatch plus the up-reserve terms cannot exceed the forecast:

        pdispatch[d, t] + sum(reserve[d, t]) <= multiplier_d * ts_d[t]

    Args:
        model (gp.Model): The optimization model.
        pdispatch (gp.tupledict): The dispatch variable.
        timesteps (range): The range of timesteps.
        constraint_infos (list[DeviceTimeSeriesConstraintInfo]): Forecast of each device.
        name (str): The name of the constraints.
        device_ranges (list[DeviceRange]): Additional terms of each device. Default is None.
        variables (dict[str, gp.tupledict]): Variable arrays of the additional terms.

    Returns:
        gp.tupledict: The constraints.
    """
    infos = {info.name: info for info in constraint_infos}
    terms = _get_terms_ub(device_ranges)
    return model.addConstrs(
        (
            pdispatch[unit, t]
            + gp.quicksum(variables[term][unit, t] for term in terms.get(unit, []))
            <= infos[unit].multiplier * infos[unit].get_value(t)
            for unit in infos
            for t in timesteps
        ),
        name=name,
    )


def add_c_timeseries_param_ub(
    model: gp.Model,
    pdispatch: gp.tupledict,
    timesteps: range,
    constraint_infos: list[DeviceTimeSeriesConstraintInfo],
    parameters: gp.tupledict,
    name: str,
    device_ranges: list[DeviceRange] = None,
    variables: dict[str, gp.tupledict] = None,
) -> gp.tupledict:
    """Same as add_c_timeseries_ub with the forecast held in parameters:
    pdispatch[d, t] + sum(reserve[d, t]) <= multiplier_d * param[d, t]."""
    multipliers = {info.name: info.multiplier for info in constraint_infos}
    terms = _get_terms_ub(device_ranges)
    return model.addConstrs(
        (
            pdispatch[unit, t]
            + gp.quicksum(variables[term][unit, t] for term in terms.get(unit, []))
            <= multipliers[unit] * parameters[unit, t]
            for unit in multipliers
            for t in timesteps
        ),
        name=name,
    )


def add_c_power_factor(
    model: gp.Model,
    pdispatch: gp.tupledict,
    qdispatch: gp.tupledict,
    timesteps: range,
    power_factors: dict[str, float],
    name: str,
) -> gp.tupledict:
    """Reactive power follows active power at a constant ratio:
    qdispatch[d, t] == ratio_d * pdispatch[d, t]."""
    return model.addConstrs(
        (
            qdispatch[unit, t] == power_factors[unit] * pdispatch[unit, t]
            for unit in power_factors
            for t in timesteps
        ),
        name=name,
    )
