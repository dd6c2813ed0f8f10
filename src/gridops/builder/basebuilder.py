"""basebuilder.py: This module defines the abstract base class for component builders in gridops."""

from abc import ABC, abstractmethod
import logging

import gurobipy as gp

from ..errors import BuildOrderError
from ..formulations.kinds import NetworkModel
from ..optim_model.container import ProblemContainer
from ..optim_model.timeseries_info import DeviceRange

logger = logging.getLogger(__name__)


class ComponentBuilder(ABC):
    """
    Abstract base class for component builders in gridops.

    A builder adds the variables, nodal expression terms, constraints, and
    objective terms of one group of components with one formulation to the
    problem container. `construct` runs these steps in order. Device and
    branch builders receive a DeviceModel, service builders a ServiceModel.
    """

    def __init__(
        self,
        container: ProblemContainer,
        component_model,
        network: NetworkModel,
    ):
        self.container = container
        self.model: gp.Model = container.model
        self.system = container.system
        self.settings = container.settings
        self.component_model = component_model
        self.network = network
        self.timesteps = container.time_steps

    @abstractmethod
    def add_variables(self, devices: list) -> None:
        pass

    @abstractmethod
    def add_expressions(self, devices: list) -> None:
        pass

    @abstractmethod
    def add_constraints(self, devices: list) -> None:
        pass

    @abstractmethod
    def get_objective_terms(self, devices: list) -> gp.LinExpr:
        pass

    def construct(self, devices: list) -> None:
        if not devices:
            logger.debug(f"{type(self).__name__}: no devices to construct")
            return
        logger.debug(f"{type(self).__name__}: constructing {len(devices)} devices")
        self.add_variables(devices)
        self.add_expressions(devices)
        self.add_constraints(devices)
        self.container.add_to_objective(self.get_objective_terms(devices))

    def get_additional_term_variables(
        self, device_ranges: list[DeviceRange]
    ) -> dict[str, gp.tupledict]:
        """Variables referenced as additional terms of the range constraints.
        The services that own them must have been constructed first."""
        variables = {}
        for device_range in device_ranges:
            for name in device_range.additional_terms_ub + device_range.additional_terms_lb:
                if name not in self.container.variables:
                    raise BuildOrderError(
                        f"gridops: Variable {name} used by the range of {device_range.name} "
                        "does not exist. Services must be constructed before devices."
                    )
                variables[name] = self.container.variables[name]
        return variables
