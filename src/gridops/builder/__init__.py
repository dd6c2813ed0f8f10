"""Builders add the variables, expressions, constraints, and objective terms
of each component group to a problem container."""

from .basebuilder import ComponentBuilder
from .registry import (
    get_device_builder,
    get_network_builder,
    get_service_builder,
    register_device_builder,
)
from .reserves import device_model_modify, include_service

__all__ = [
    "ComponentBuilder",
    "get_device_builder",
    "get_network_builder",
    "get_service_builder",
    "register_device_builder",
    "device_model_modify",
    "include_service",
]
