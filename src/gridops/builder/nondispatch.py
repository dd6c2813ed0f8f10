"""nondispatch.py: Renewable unit and load builders."""

from .basebuilder import ComponentBuilder
from .reserves import include_service

import gurobipy as gp

from ..errors import UnimplementedFormulationError
from ..formulations.nodal_expression import nodal_expression
from ..optim_model import (
    NODAL_BALANCE_ACTIVE,
    NODAL_BALANCE_REACTIVE,
    DeviceRange,
    DeviceTimeSeriesConstraintInfo,
    PeakValue,
    UpdateRef,
    add_to_expression,
    add_var_with_fixed_bounds,
    set_warm_start,
    get_linear_cost_coeff,
)
from ..optim_model.constraints import device_constr

MAX_ACTIVE_POWER_LABEL = "max_active_power"


class CurtailableUnitBuilder(ComponentBuilder):
    """Base builder for devices whose active power is a decision bounded by
    a time series of availability (with respect to `max_active_power`).

    Variables
    ===========================
    - `P_{type}`: Active power of the device. Unit: MW.
    - `Q_{type}`: Reactive power. Only for networks that balance reactive power. Unit: MVar.

    Objective terms
    ===========================
    - `-cost * P`, so that a positive cost rewards the dispatch

    Constraints
    ===========================
    - `{type}_active_ub`: Active power plus the reserve that raises the injection cannot
      exceed the available power. The availability is held in parameters when the
      problem uses parameters.
    - `{type}_active_lb`: Active power covers the reserve that lowers the injection.
      Only added when such a reserve is linked to the devices.
    """

    # +1 for injections, -1 for withdrawals
    injection_sign: float = 1.0

    def __init__(self, container, device_model, network) -> None:
        super().__init__(container, device_model, network)
        self.type_name = device_model.device_type.__name__

        # Variables
        self.pdispatch = gp.tupledict()
        self.qdispatch = gp.tupledict()

        # Constraints
        self.c_active_ub = gp.tupledict()
        self.c_active_lb = gp.tupledict()

    def get_cost(self, device) -> float:
        raise NotImplementedError

    def get_reactive_bounds(self, device) -> tuple[float, float]:
        return (device.min_reactive_power, device.max_reactive_power)

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
            set_warm_start(
                self.pdispatch,
                {d.name: getattr(d, "active_power", d.max_active_power) for d in devices},
            )

        if self.network.is_reactive_capable:
            varname = f"Q_{self.type_name}"
            bounds = {d.name: self.get_reactive_bounds(d) for d in devices}
            self.qdispatch = self.container.add_variable_container(
                varname,
                add_var_with_fixed_bounds(
                    model=self.model,
                    varname=varname,
                    timesteps=self.timesteps,
                    units=units,
                    lb={unit: b[0] for unit, b in bounds.items()},
                    ub={unit: b[1] for unit, b in bounds.items()},
                ),
            )

    def add_expressions(self, devices: list) -> None:
        for device in devices:
            for t in self.timesteps:
                add_to_expression(
                    self.container.expressions[NODAL_BALANCE_ACTIVE],
                    device.bus,
                    t,
                    self.injection_sign,
                    self.pdispatch[device.name, t],
                )
                if self.network.is_reactive_capable:
                    add_to_expression(
                        self.container.expressions[NODAL_BALANCE_REACTIVE],
                        device.bus,
                        t,
                        self.injection_sign,
                        self.qdispatch[device.name, t],
                    )

    def get_constraint_infos(
        self, devices: list, forecast_label: str
    ) -> list[DeviceTimeSeriesConstraintInfo]:
        return [
            DeviceTimeSeriesConstraintInfo.from_device(
                device,
                PeakValue.MAX_ACTIVE_POWER,
                self.container.get_time_series(device, forecast_label),
            )
            for device in devices
        ]

    def get_device_ranges(self, devices: list) -> list[DeviceRange]:
        """Reserve terms of each device. A withdrawal raises the net injection
        by serving less, so for loads up reserves bound the dispatch from below
        and down reserves from above."""
        device_ranges = []
        for device in devices:
            device_range = DeviceRange(
                name=device.name, limits=(0.0, device.max_active_power)
            )
            include_service(
                device_range, device, self.system, self.component_model.services
            )
            if self.injection_sign < 0:
                device_range.additional_terms_ub, device_range.additional_terms_lb = (
                    device_range.additional_terms_lb,
                    device_range.additional_terms_ub,
                )
            device_ranges.append(device_range)
        return device_ranges

    def add_constraints(self, devices: list) -> None:
        forecast_label = (
            MAX_ACTIVE_POWER_LABEL if self.settings.use_forecast_data else ""
        )
        constraint_infos = self.get_constraint_infos(devices, forecast_label)
        name = f"{self.type_name}_active_ub"
        device_ranges = self.get_device_ranges(devices)
        variables = self.get_additional_term_variables(device_ranges)

        if self.settings.use_parameters:
            record = self.container.add_parameter_record(
                UpdateRef(self.type_name, MAX_ACTIVE_POWER_LABEL, forecast_label)
            )
            for info in constraint_infos:
                record.add(info.name, info.timeseries)
            constraints = device_constr.add_c_timeseries_param_ub(
                model=self.model,
                pdispatch=self.pdispatch,
                timesteps=self.timesteps,
                constraint_infos=constraint_infos,
                parameters=record.parameter_array,
                name=name,
                device_ranges=device_ranges,
                variables=variables,
            )
        else:
            constraints = device_constr.add_c_timeseries_ub(
                model=self.model,
                pdispatch=self.pdispatch,
                timesteps=self.timesteps,
                constraint_infos=constraint_infos,
                name=name,
                device_ranges=device_ranges,
                variables=variables,
            )
        self.c_active_ub = self.container.add_constraint_container(name, constraints)

        lb_ranges = [r for r in device_ranges if r.additional_terms_lb]
        if lb_ranges:
            name = f"{self.type_name}_active_lb"
            self.c_active_lb = self.container.add_constraint_container(
                name,
                device_constr.add_c_active_range_lb(
                    model=self.model,
                    pdispatch=self.pdispatch,
                    timesteps=self.timesteps,
                    device_ranges=lb_ranges,
                    variables=variables,
                    name=name,
                ),
            )

    def get_objective_terms(self, devices: list) -> gp.LinExpr:
        return self.pdispatch.prod(
            get_linear_cost_coeff(
                self.timesteps,
                [d.name for d in devices],
                {d.name: self.get_cost(d) for d in devices},
                sign=-1.0,
            )
        )


class RenewableFullDispatchBuilder(CurtailableUnitBuilder):
    """Renewable units that can be curtailed below their forecast."""

    def get_cost(self, device) -> float:
        return device.variable_cost


class InterruptiblePowerLoadBuilder(CurtailableUnitBuilder):
    """Loads that can be partially served. Serving one MWh is worth `cost`.
    Reactive power follows the active power at the load's power factor."""

    injection_sign = -1.0

    def __init__(self, container, device_model, network) -> None:
        super().__init__(container, device_model, network)
        self.c_power_factor = gp.tupledict()

    def get_cost(self, device) -> float:
        return device.cost

    def get_reactive_bounds(self, device) -> tuple[float, float]:
        return (0.0, device.max_reactive_power)

    def add_constraints(self, devices: list) -> None:
        super().add_constraints(devices)
        if self.network.is_reactive_capable:
            name = f"{self.type_name}_power_factor"
            self.c_power_factor = self.container.add_constraint_container(
                name,
                device_constr.add_c_power_factor(
                    model=self.model,
                    pdispatch=self.pdispatch,
                    qdispatch=self.qdispatch,
                    timesteps=self.timesteps,
                    power_factors={
                        d.name: (
                            d.max_reactive_power / d.max_active_power
                            if d.max_active_power > 0
                            else 0.0
                        )
                        for d in devices
                    },
                    name=name,
                ),
            )


class FixedInjectionBuilder(ComponentBuilder):
    """Devices that follow their forecast exactly. They only add constants
    (or parameters) to the nodal balance, so they cannot hold reserve."""

    def add_variables(self, devices: list) -> None:
        for service_model in self.component_model.services:
            for service in self.system.get_available_components(
                service_model.service_type
            ):
                contributing = [
                    d.name for d in devices if d.name in service.contributing_devices
                ]
                if contributing:
                    raise UnimplementedFormulationError(
                        f"gridops: {self.component_model.formulation.name} cannot provide "
                        f"reserve {service.name} from {contributing}."
                    )

    def add_expressions(self, devices: list) -> None:
        nodal_expression(
            self.container, devices, self.component_model.device_type, self.network
        )

    def add_constraints(self, devices: list) -> None:
        pass

    def get_objective_terms(self, devices: list) -> gp.LinExpr:
        return gp.LinExpr()


class RenewableFixedBuilder(FixedInjectionBuilder):
    pass


class StaticPowerLoadBuilder(FixedInjectionBuilder):
    pass
