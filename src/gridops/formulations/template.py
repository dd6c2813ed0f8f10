"""template.py: Declarative records that pair component types with formulations."""

import dataclasses

from .kinds import DeviceFormulation, NetworkModel, ServiceFormulation


@dataclasses.dataclass()
class ServiceModel:
    service_type: type
    formulation: ServiceFormulation


@dataclasses.dataclass()
class DeviceModel:
    """
    Pairs a device (or branch) type with its formulation.

    Attributes:
        device_type (type): Concrete component class, e.g. ThermalStandard.
        formulation (DeviceFormulation): How the devices are modeled.
        services (list[ServiceModel]): Service models the devices contribute to.
            Filled while services are constructed and cleared on reset.
    """

    device_type: type
    formulation: DeviceFormulation
    services: list[ServiceModel] = dataclasses.field(default_factory=list)


@dataclasses.dataclass()
class OperationsProblemTemplate:
    """The network formulation plus named device, branch, and service models.
    Devices are built in the order they were added."""

    transmission: NetworkModel
    devices: dict[str, DeviceModel] = dataclasses.field(default_factory=dict)
    branches: dict[str, DeviceModel] = dataclasses.field(default_factory=dict)
    services: dict[str, ServiceModel] = dataclasses.field(default_factory=dict)

    def clear_service_links(self) -> None:
        for device_model in self.devices.values():
            device_model.services.clear()
