"""errors.py: Exceptions raised while assembling and solving operations problems."""


class UnimplementedFormulationError(NotImplementedError):
    """No builder or nodal-expression inputs are registered for a
    (device type, formulation, network) combination."""


class ConflictingInputsError(ValueError):
    """A model name already exists (or does not exist when replacing one)."""


class BuildOrderError(RuntimeError):
    """A construction stage ran before the stages it depends on."""


class SolverNotAttachedError(RuntimeError):
    """Solve was requested but no solver was given to the problem or the call."""


class InfeasibleSolveError(RuntimeError):
    """The solver did not return a primal feasible point."""


class InvalidProblemStateError(RuntimeError):
    """The operation is not allowed in the current state of the problem."""
