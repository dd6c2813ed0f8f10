"""thermal.py: Thermal unit builders."""

import gurobipy as gp

from .basebuilder import ComponentBuilder
from .reserves import include_service
from ..optim_model import (
    NODAL_BALANCE_ACTIVE,
    NODAL_BALANCE_REACTIVE,
    DeviceRange,
    add_to_expression,
    add_var_with_fixed_bounds,
    add_binary_var,
    set_warm_start,
    get_linear_cost_coeff,
)
from ..optim_model.timeseries_info import get_active_power_limits
from ..optim_model.constraints import device_constr


class ThermalDispatchBuilder(ComponentBuilder):
    """Builder class for thermal units that are always online.

    Variables
    ===========================
    - `P_{type}`: Power output by a thermal unit (also called dispatch). Unit: MW.
    - `Q_{type}`: Reactive power output. Only for networks that balance reactive power. Unit: MVar.

    Objective terms
    ===========================
    - Variable cost of the dispatch

    Constraints
    ===========================
    - `{type}_range_ub`: Dispatch plus up reserves cannot exceed the maximum output.
    - `{type}_range_lb`: Dispatch minus down reserves cannot fall below the minimum output.
    """

    def __init__(self, container, device_model, network) -> None:
        super().__init__(container, device_model, network)
        self.type_name = device_model.device_type.__name__

        # Variables
        self.pdispatch = gp.tupledict()
        self.qdispatch = gp.tupledict()

        # Constraints
        self.c_range_ub = gp.tupledict()
        self.c_range_lb = gp.tupledict()

    def get_limits(self, device) -> tuple[float, float]:
        return get_active_power_limits(device)

    def get_device_ranges(self, devices: list) -> list[DeviceRange]:
        device_ranges = []
        for device in devices:
            device_range = DeviceRange(name=device.name, limits=self.get_limits(device))
            include_service(
                device_range, device, self.system, self.component_model.services
            )
            device_ranges.append(device_range)
        return device_ranges

    def add_variables(self, devices: list) -> None:
        units = [d.name for d in devices]
        varname = f"P_{self.type_name}"
        self.pdispatch = self.container.add_variable_container(
            varname,
            add_var_with_fixed_bounds(
                model=self.model,
                varname=varname,
                timesteps=self.timesteps,
                units=units,
                lb={d.name: 0.0 for d in devices},
                ub={d.name: d.max_active_power for d in devices},
            ),
        )
        if self.settings.use_warm_start:
            set_warm_start(self.pdispatch, {d.name: d.active_power for d in devices})

        if self.network.is_reactive_capable:
            varname = f"Q_{self.type_name}"
            self.qdispatch = self.container.add_variable_container(
                varname,
                add_var_with_fixed_bounds(
                    model=self.model,
                    varname=varname,
                    timesteps=self.timesteps,
                    units=units,
                    lb={d.name: d.min_reactive_power for d in devices},
                    ub={d.name: d.max_reactive_power for d in devices},
                ),
            )

    def add_expressions(self, devices: list) -> None:
        for device in devices:
            for t in self.timesteps:
                add_to_expression(
                    self.container.expressions[NODAL_BALANCE_ACTIVE],
                    device.bus,
                    t,
                    1.0,
                    self.pdispatch[device.name, t],
                )
                if self.network.is_reactive_capable:
                    add_to_expression(
                        self.container.expressions[NODAL_BALANCE_REACTIVE],
                        device.bus,
                        t,
                        1.0,
                        self.qdispatch[device.name, t],
                    )

    def add_range_constraints(self, devices: list, status: gp.tupledict = None) -> None:
        device_ranges = self.get_device_ranges(devices)
        variables = self.get_additional_term_variables(device_ranges)

        name = f"{self.type_name}_range_ub"
        self.c_range_ub = self.container.add_constraint_container(
            name,
            device_constr.add_c_active_range_ub(
                model=self.model,
                pdispatch=self.pdispatch,
                timesteps=self.timesteps,
                device_ranges=device_ranges,
                variables=variables,
                name=name,
                status=status,
            ),
        )
        name = f"{self.type_name}_range_lb"
        self.c_range_lb = self.container.add_constraint_container(
            name,
            device_constr.add_c_active_range_lb(
                model=self.model,
                pdispatch=self.pdispatch,
                timesteps=self.timesteps,
                device_ranges=device_ranges,
                variables=variables,
                name=name,
                status=status,
            ),
        )

    def add_constraints(self, devices: list) -> None:
        self.add_range_constraints(devices)

    def get_objective_terms(self, devices: list) -> gp.LinExpr:
        return self.pdispatch.prod(
            get_linear_cost_coeff(
                self.timesteps,
                [d.name for d in devices],
                {d.name: d.variable_cost for d in devices},
            )
        )


class ThermalDispatchNoMinBuilder(ThermalDispatchBuilder):
    """Same as ThermalDispatchBuilder but the units can be dispatched down to zero."""

    def get_limits(self, device) -> tuple[float, float]:
        return (0.0, device.max_active_power)


class ThermalBasicUnitCommitmentBuilder(ThermalDispatchBuilder):
    """Adds an online status to each thermal unit.

    Variables
    ===========================
    - `ON_{type}`: Indicator of online status. On = 1 and off = 0. Unitless.

    Objective terms
    ===========================
    - Fixed cost while the unit is online

    The range constraints are multiplied by the status so that an
    offline unit produces nothing and holds no reserve.
    """

    def __init__(self, container, device_model, network) -> None:
        super().__init__(container, device_model, network)
        self.status = gp.tupledict()

    def add_variables(self, devices: list) -> None:
        super().add_variables(devices)
        varname = f"ON_{self.type_name}"
        self.status = self.container.add_variable_container(
            varname,
            add_binary_var(
                model=self.model,
                varname=varname,
                timesteps=self.timesteps,
                units=[d.name for d in devices],
            ),
        )
        if self.settings.use_warm_start:
            set_warm_start(
                self.status,
                {d.name: 1.0 if d.active_power > 0 else 0.0 for d in devices},
            )

    def add_constraints(self, devices: list) -> None:
        self.add_range_constraints(devices, status=self.status)

    def get_objective_terms(self, devices: list) -> gp.LinExpr:
        expr = super().get_objective_terms(devices)
        expr.add(
            self.status.prod(
                get_linear_cost_coeff(
                    self.timesteps,
                    [d.name for d in devices],
                    {d.name: d.fixed_cost for d in devices},
                )
            )
        )
        return expr
