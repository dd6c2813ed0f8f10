from .core import (
    ModelBuilder,
    OperationsProblem,
    ProblemState,
    OperationsProblemResults,
)
from .formulations import (
    NetworkModel,
    DeviceFormulation,
    ServiceFormulation,
    DeviceModel,
    ServiceModel,
    OperationsProblemTemplate,
)
from .optim_model import UpdateRef
from .system import PowerSystem
