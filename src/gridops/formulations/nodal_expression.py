"""nodal_expression.py: Fixed injections and withdrawals of devices into the nodal balance."""

import dataclasses
import logging

from ..data_model import PowerLoad, RenewableDispatch
from ..errors import UnimplementedFormulationError
from ..optim_model.expressions import (
    NODAL_BALANCE_ACTIVE,
    NODAL_BALANCE_REACTIVE,
    add_to_expression,
)
from ..optim_model.parameters import UpdateRef, include_parameters
from ..optim_model.timeseries_info import DeviceTimeSeriesConstraintInfo, PeakValue
from .kinds import NetworkFamily, NetworkModel

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class NodalExpressionInputs:
    """
    How a device type enters one nodal balance.

    Attributes:
        forecast_label (str): Label of the normalized time series.
        parameter_name (str): Attribute name used in the UpdateRef of the parameters.
        peak_value (PeakValue): Attribute that scales the normalized series.
        multiplier (float): +1 for injections, -1 for withdrawals.
        update_ref (str): Entity type name used in the UpdateRef of the parameters.
    """

    forecast_label: str
    parameter_name: str
    peak_value: PeakValue
    multiplier: float
    update_ref: str


# (device type, network family) -> inputs. The active family entry drives the
# active balance of every network, the full power entry the reactive balance.
NODAL_EXPRESSION_INPUTS = {
    (PowerLoad, NetworkFamily.ACTIVE_POWER): NodalExpressionInputs(
        forecast_label="max_active_power",
        parameter_name="max_active_power",
        peak_value=PeakValue.MAX_ACTIVE_POWER,
        multiplier=-1.0,
        update_ref="PowerLoad",
    ),
    (PowerLoad, NetworkFamily.FULL_POWER): NodalExpressionInputs(
        forecast_label="max_active_power",
        parameter_name="max_reactive_power",
        peak_value=PeakValue.MAX_REACTIVE_POWER,
        multiplier=-1.0,
        update_ref="PowerLoad",
    ),
    (RenewableDispatch, NetworkFamily.ACTIVE_POWER): NodalExpressionInputs(
        forecast_label="max_active_power",
        parameter_name="max_active_power",
        peak_value=PeakValue.MAX_ACTIVE_POWER,
        multiplier=1.0,
        update_ref="RenewableDispatch",
    ),
    (RenewableDispatch, NetworkFamily.FULL_POWER): NodalExpressionInputs(
        forecast_label="max_active_power",
        parameter_name="max_reactive_power",
        peak_value=PeakValue.MAX_REACTIVE_POWER,
        multiplier=1.0,
        update_ref="RenewableDispatch",
    ),
}


def get_nodal_expression_inputs(
    device_type: type, family: NetworkFamily
) -> NodalExpressionInputs:
    """Resolve the inputs of the most specific registered base class of `device_type`."""
    for cls in device_type.__mro__:
        if (cls, family) in NODAL_EXPRESSION_INPUTS:
            return NODAL_EXPRESSION_INPUTS[cls, family]
    raise UnimplementedFormulationError(
        f"gridops: NodalExpressionInputs is not implemented for "
        f"{device_type.__name__}/{family.value}."
    )


def nodal_expression(
    container,
    devices: list,
    device_type: type,
    network: NetworkModel,
) -> None:
    """Add the devices to the active balance and, for networks that also
    balance reactive power, to the reactive balance."""
    _nodal_expression(
        container, devices, device_type, NetworkFamily.ACTIVE_POWER, NODAL_BALANCE_ACTIVE
    )
    if network.is_reactive_capable:
        _nodal_expression(
            container,
            devices,
            device_type,
            NetworkFamily.FULL_POWER,
            NODAL_BALANCE_REACTIVE,
        )


def _nodal_expression(
    container,
    devices: list,
    device_type: type,
    family: NetworkFamily,
    expression_name: str,
) -> None:
    inputs = get_nodal_expression_inputs(device_type, family)
    forecast_label = (
        inputs.forecast_label if container.settings.use_forecast_data else ""
    )
    constraint_infos = [
        DeviceTimeSeriesConstraintInfo.from_device(
            device,
            inputs.peak_value,
            container.get_time_series(device, forecast_label),
        )
        for device in devices
    ]
    logger.debug(
        f"Adding {len(constraint_infos)} {device_type.__name__} to {expression_name}"
    )

    if container.settings.use_parameters:
        include_parameters(
            container,
            constraint_infos,
            UpdateRef(inputs.update_ref, inputs.parameter_name, forecast_label),
            expression_name,
            inputs.multiplier,
        )
        return

    expression_array = container.expressions[expression_name]
    for info in constraint_infos:
        for t in container.time_steps:
            add_to_expression(
                expression_array,
                info.bus_number,
                t,
                inputs.multiplier * info.multiplier * info.get_value(t),
            )
