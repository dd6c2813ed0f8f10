"""This is the core module."""

from .model_builder import ModelBuilder
from .operations_problem import OperationsProblem, ProblemState
from .results import OperationsProblemResults

__all__ = [
    "ModelBuilder",
    "OperationsProblem",
    "ProblemState",
    "OperationsProblemResults",
]
