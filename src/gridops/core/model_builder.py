"""model_builder.py: This module contains the ModelBuilder class, which runs the
construction stages of an operations problem against a problem container.
"""

import logging

from gurobipy import GRB

from ..builder.registry import (
    get_device_builder,
    get_network_builder,
    get_service_builder,
)
from ..builder.reserves import device_model_modify
from ..data_model import Line
from ..errors import BuildOrderError
from ..formulations.kinds import NetworkModel
from ..formulations.template import OperationsProblemTemplate
from ..optim_model import PowerSystemModel, ProblemContainer

logger = logging.getLogger(__name__)

# Later stages read what earlier stages added to the container
STAGES = ["services", "devices", "network", "branches", "objective"]


class ModelBuilder:
    def __init__(
        self, container: ProblemContainer, template: OperationsProblemTemplate
    ) -> None:
        self.container = container
        self.template = template
        self.system = container.system
        self.network: NetworkModel = template.transmission

    def _start_stage(self, stage: str) -> None:
        expected = STAGES[: STAGES.index(stage)]
        completed = self.container.completed_stages
        if completed != expected:
            raise BuildOrderError(
                f"gridops: Cannot construct {stage} after {completed or 'nothing'}. "
                f"The stages must run in the order {STAGES}."
            )
        logger.debug(f"Constructing {stage}")

    def _finish_stage(self, stage: str) -> None:
        self.container.completed_stages.append(stage)

    def construct_services(self) -> None:
        """Build every service model and link it to the device models of its
        contributing devices, so that their range constraints carry the reserve terms."""
        self._start_stage("services")
        for service_model in self.template.services.values():
            services = self.system.get_available_components(service_model.service_type)
            for service in services:
                device_model_modify(
                    self.template.devices,
                    service_model,
                    self.system.get_contributing_devices(service),
                )
            builder_class = get_service_builder(
                service_model.service_type, service_model.formulation
            )
            builder_class(self.container, service_model, self.network).construct(
                services
            )
        self._finish_stage("services")

    def construct_devices(self) -> None:
        self._start_stage("devices")
        for name, device_model in self.template.devices.items():
            builder_class = get_device_builder(
                device_model.device_type, device_model.formulation, self.network
            )
            logger.debug(f"Device model {name}: {builder_class.__name__}")
            builder_class(self.container, device_model, self.network).construct(
                self.system.get_available_components(device_model.device_type)
            )
        self._finish_stage("devices")

    def construct_network(self) -> None:
        self._start_stage("network")
        builder_class = get_network_builder(self.network)
        builder_class(self.container, self.template, self.network).construct(
            self.system.get_available_components(Line)
        )
        self._finish_stage("network")

    def construct_branches(self) -> None:
        self._start_stage("branches")
        if self.network is NetworkModel.COPPER_PLATE:
            if self.template.branches:
                logger.warning(
                    f"gridops: {self.network.value} has no flows. "
                    f"Branch models {list(self.template.branches)} are skipped."
                )
        else:
            for name, branch_model in self.template.branches.items():
                builder_class = get_device_builder(
                    branch_model.device_type, branch_model.formulation, self.network
                )
                logger.debug(f"Branch model {name}: {builder_class.__name__}")
                builder_class(self.container, branch_model, self.network).construct(
                    self.system.get_available_components(branch_model.device_type)
                )
        self._finish_stage("branches")

    def construct_objective(self) -> None:
        self._start_stage("objective")
        model = self.container.model
        model.setObjective(self.container.cost_function, sense=GRB.MINIMIZE)
        model.update()
        self._finish_stage("objective")

    def build(self) -> PowerSystemModel:
        """Run all construction stages in order."""
        self.construct_services()
        self.construct_devices()
        self.construct_network()
        self.construct_branches()
        self.construct_objective()
        return PowerSystemModel(self.container.model)
