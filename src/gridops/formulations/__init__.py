"""Formulation kinds and the template that pairs component types with them."""

from .kinds import (
    NetworkFamily,
    NetworkModel,
    DeviceFormulation,
    ServiceFormulation,
)
from .template import DeviceModel, ServiceModel, OperationsProblemTemplate

__all__ = [
    "NetworkFamily",
    "NetworkModel",
    "DeviceFormulation",
    "ServiceFormulation",
    "DeviceModel",
    "ServiceModel",
    "OperationsProblemTemplate",
]
