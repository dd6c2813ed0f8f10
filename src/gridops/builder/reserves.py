"""reserves.py: Reserve services and their links to contributing devices."""

import logging

import gurobipy as gp

from .basebuilder import ComponentBuilder
from ..data_model import ReserveDirection, VariableReserve
from ..formulations.template import DeviceModel, ServiceModel
from ..optim_model.container import ProblemContainer
from ..optim_model.objfunc import get_linear_cost_coeff
from ..optim_model.parameters import UpdateRef
from ..optim_model.timeseries_info import DeviceRange
from ..optim_model.variable_func import add_var_with_fixed_bounds
from ..optim_model.constraints import reserve_constr

logger = logging.getLogger(__name__)

REQUIREMENT_LABEL = "requirement"


def get_reserve_variable_name(service: VariableReserve) -> str:
    return f"{service.name}_{type(service).__name__}"


def get_requirement_constraint_name(service: VariableReserve) -> str:
    return f"{service.name}_requirement_{type(service).__name__}"


def device_model_modify(
    devices_template: dict[str, DeviceModel],
    service_model: ServiceModel,
    contributing_devices: list,
) -> None:
    """Link the service model to every device model whose device type
    contributes to the service. A service model is linked at most once."""
    contributing_types = {type(device) for device in contributing_devices}
    for device_model in devices_template.values():
        if device_model.device_type not in contributing_types:
            continue
        if service_model not in device_model.services:
            device_model.services.append(service_model)


def include_service(
    device_range: DeviceRange,
    device,
    system,
    service_models: list[ServiceModel],
) -> None:
    """Register the reserve variables of the services a device contributes
    to as additional terms of its range constraint. Up reserves widen the upper
    limit and down reserves the lower limit."""
    for service_model in service_models:
        for service in system.get_available_components(service_model.service_type):
            if device.name not in service.contributing_devices:
                continue
            varname = get_reserve_variable_name(service)
            if service.direction is ReserveDirection.UP:
                device_range.additional_terms_ub.append(varname)
            else:
                device_range.additional_terms_lb.append(varname)


class RangeReserveBuilder(ComponentBuilder):
    """Builder class for reserve products held within the range of the contributing devices.

    Variables
    ===========================
    - `{service}_VariableReserve`: Reserve held by each contributing device. Unit: MW.

    Objective terms
    ===========================
    - Cost of holding reserve

    Constraints
    ===========================
    - `{service}_requirement_VariableReserve`: The contributing devices cover the
      requirement at every timestep.
    """

    def __init__(
        self,
        container: ProblemContainer,
        service_model: ServiceModel,
        network,
    ) -> None:
        super().__init__(container, service_model, network)
        self.reserves: dict[str, gp.tupledict] = {}
        self.contributing: dict[str, list] = {}

    def add_variables(self, services: list[VariableReserve]) -> None:
        for service in services:
            devices = self.system.get_contributing_devices(service)
            self.contributing[service.name] = devices
            varname = get_reserve_variable_name(service)
            self.reserves[service.name] = self.container.add_variable_container(
                varname,
                add_var_with_fixed_bounds(
                    model=self.model,
                    varname=varname,
                    timesteps=self.timesteps,
                    units=[d.name for d in devices],
                    lb={d.name: 0.0 for d in devices},
                    ub={d.name: d.max_active_power for d in devices},
                ),
            )

    def add_expressions(self, services: list[VariableReserve]) -> None:
        pass

    def add_constraints(self, services: list[VariableReserve]) -> None:
        forecast_label = REQUIREMENT_LABEL if self.settings.use_forecast_data else ""
        for service in services:
            timeseries = self.container.get_time_series(service, forecast_label)
            units = [d.name for d in self.contributing[service.name]]
            constr_name = get_requirement_constraint_name(service)
            if self.settings.use_parameters:
                record = self.container.add_parameter_record(
                    UpdateRef(type(service).__name__, REQUIREMENT_LABEL, forecast_label)
                )
                record.add(service.name, timeseries)
                constraints = reserve_constr.add_c_reserve_requirement_param(
                    model=self.model,
                    reserve=self.reserves[service.name],
                    timesteps=self.timesteps,
                    units=units,
                    requirement=service.requirement,
                    parameters=record.parameter_array,
                    service_name=service.name,
                    name=constr_name,
                )
            else:
                constraints = reserve_constr.add_c_reserve_requirement(
                    model=self.model,
                    reserve=self.reserves[service.name],
                    timesteps=self.timesteps,
                    units=units,
                    requirement=service.requirement,
                    timeseries=timeseries,
                    name=constr_name,
                )
            self.container.add_constraint_container(constr_name, constraints)

    def get_objective_terms(self, services: list[VariableReserve]) -> gp.LinExpr:
        expr = gp.LinExpr()
        for service in services:
            units = [d.name for d in self.contributing[service.name]]
            expr.add(
                self.reserves[service.name].prod(
                    get_linear_cost_coeff(
                        self.timesteps, units, {unit: service.cost for unit in units}
                    )
                )
            )
        return expr
