"""expressions.py: Per (bus, time step) linear expressions that device builders
add their injections to."""

import gurobipy as gp

NODAL_BALANCE_ACTIVE = "nodal_balance_active"
NODAL_BALANCE_REACTIVE = "nodal_balance_reactive"


def create_expression_array(bus_numbers: list[int], time_steps: range) -> gp.tupledict:
    return gp.tupledict(
        {(bus, t): gp.LinExpr() for bus in bus_numbers for t in time_steps}
    )


def add_to_expression(
    expression_array: gp.tupledict,
    bus: int,
    t: int,
    value: float,
    variable: gp.Var = None,
) -> None:
    """Accumulate a constant, or `value * variable` when a variable is given,
    into one cell. Cells are never overwritten since many devices share a bus."""
    if variable is None:
        expression_array[bus, t].addConstant(value)
    else:
        expression_array[bus, t].addTerms(value, variable)


def resolve_expression(
    expr: gp.LinExpr, parameter_values: dict[str, float]
) -> tuple[dict[str, float], float]:
    """Return the coefficients by variable name and the constant of `expr`,
    with parameters replaced by their pinned values.

    Args:
        expr (gp.LinExpr): The expression. The model must be updated so names can be read.
        parameter_values (dict[str, float]): Parameter values by variable name.

    Returns:
        tuple[dict[str, float], float]: The coefficients and the constant.
    """
    coefficients = {}
    constant = expr.getConstant()
    for i in range(expr.size()):
        varname = expr.getVar(i).VarName
        coeff = expr.getCoeff(i)
        if varname in parameter_values:
            constant += coeff * parameter_values[varname]
        else:
            coefficients[varname] = coefficients.get(varname, 0.0) + coeff
    return coefficients, constant
