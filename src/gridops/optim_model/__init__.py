"""The optim_model module holds the problem container and the gurobipy building blocks
that builders use to assemble an operations problem."""

from .model import PowerSystemModel
from .container import ProblemContainer, Settings
from .parameters import UpdateRef, ParameterRecord, include_parameters
from .expressions import (
    NODAL_BALANCE_ACTIVE,
    NODAL_BALANCE_REACTIVE,
    add_to_expression,
    resolve_expression,
)
from .timeseries_info import (
    DeviceRange,
    DeviceTimeSeriesConstraintInfo,
    PeakValue,
    get_peak_value,
)
from .variable_func import (
    add_var_with_fixed_bounds,
    add_free_var,
    add_binary_var,
    set_warm_start,
)
from .objfunc import get_linear_cost_coeff, get_penalty_coeff
