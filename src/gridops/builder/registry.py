"""registry.py: Tables that map component types and formulations to builders."""

from .basebuilder import ComponentBuilder
from .branches import StaticLineBuilder, StaticLineUnboundedBuilder
from .network import (
    CopperPlateBuilder,
    NFABuilder,
    DCPBuilder,
    LinearACBuilder,
)
from .nondispatch import (
    RenewableFullDispatchBuilder,
    RenewableFixedBuilder,
    StaticPowerLoadBuilder,
    InterruptiblePowerLoadBuilder,
)
from .reserves import RangeReserveBuilder
from .thermal import (
    ThermalDispatchBuilder,
    ThermalDispatchNoMinBuilder,
    ThermalBasicUnitCommitmentBuilder,
)
from ..data_model import (
    ThermalStandard,
    RenewableDispatch,
    PowerLoad,
    InterruptibleLoad,
    Line,
    VariableReserve,
)
from ..errors import UnimplementedFormulationError
from ..formulations.kinds import DeviceFormulation, NetworkModel, ServiceFormulation

# A network of None matches every network model
ANY_NETWORK = None

DeviceKey = tuple[type, DeviceFormulation, NetworkModel]

DEVICE_BUILDERS: dict[DeviceKey, type[ComponentBuilder]] = {
    (ThermalStandard, DeviceFormulation.THERMAL_DISPATCH, ANY_NETWORK): ThermalDispatchBuilder,
    (ThermalStandard, DeviceFormulation.THERMAL_DISPATCH_NO_MIN, ANY_NETWORK): ThermalDispatchNoMinBuilder,
    (ThermalStandard, DeviceFormulation.THERMAL_BASIC_UNIT_COMMITMENT, ANY_NETWORK): ThermalBasicUnitCommitmentBuilder,
    (RenewableDispatch, DeviceFormulation.RENEWABLE_FULL_DISPATCH, ANY_NETWORK): RenewableFullDispatchBuilder,
    (RenewableDispatch, DeviceFormulation.RENEWABLE_FIXED, ANY_NETWORK): RenewableFixedBuilder,
    (PowerLoad, DeviceFormulation.STATIC_POWER_LOAD, ANY_NETWORK): StaticPowerLoadBuilder,
    (InterruptibleLoad, DeviceFormulation.INTERRUPTIBLE_POWER_LOAD, ANY_NETWORK): InterruptiblePowerLoadBuilder,
    (Line, DeviceFormulation.STATIC_LINE, ANY_NETWORK): StaticLineBuilder,
    (Line, DeviceFormulation.STATIC_LINE_UNBOUNDED, ANY_NETWORK): StaticLineUnboundedBuilder,
}

SERVICE_BUILDERS: dict[tuple[type, ServiceFormulation], type[ComponentBuilder]] = {
    (VariableReserve, ServiceFormulation.RANGE_RESERVE): RangeReserveBuilder,
}

NETWORK_BUILDERS: dict[NetworkModel, type[ComponentBuilder]] = {
    NetworkModel.COPPER_PLATE: CopperPlateBuilder,
    NetworkModel.NFA: NFABuilder,
    NetworkModel.DCP: DCPBuilder,
    NetworkModel.LINEAR_AC: LinearACBuilder,
}


def register_device_builder(
    device_type: type,
    formulation: DeviceFormulation,
    builder: type[ComponentBuilder],
    network: NetworkModel = ANY_NETWORK,
) -> None:
    """Add a builder to the device table. An entry for a specific network
    takes precedence over the entry for any network."""
    DEVICE_BUILDERS[device_type, formulation, network] = builder


def get_device_builder(
    device_type: type,
    formulation: DeviceFormulation,
    network: NetworkModel,
) -> type[ComponentBuilder]:
    """Resolve the builder of the most specific registered base class of
    `device_type`, preferring an entry for `network` over one for any network.

    Raises:
        UnimplementedFormulationError: No builder is registered for the triple.
    """
    for cls in device_type.__mro__:
        for key in [(cls, formulation, network), (cls, formulation, ANY_NETWORK)]:
            if key in DEVICE_BUILDERS:
                return DEVICE_BUILDERS[key]
    raise UnimplementedFormulationError(
        f"gridops: No builder for {device_type.__name__} with "
        f"{formulation.value} under {network.value}."
    )


def get_service_builder(
    service_type: type, formulation: ServiceFormulation
) -> type[ComponentBuilder]:
    for cls in service_type.__mro__:
        if (cls, formulation) in SERVICE_BUILDERS:
            return SERVICE_BUILDERS[cls, formulation]
    raise UnimplementedFormulationError(
        f"gridops: No builder for {service_type.__name__} with {formulation.value}."
    )


def get_network_builder(network: NetworkModel) -> type[ComponentBuilder]:
    try:
        return NETWORK_BUILDERS[network]
    except KeyError:
        raise UnimplementedFormulationError(
            f"gridops: No builder for network model {network}."
        ) from None
