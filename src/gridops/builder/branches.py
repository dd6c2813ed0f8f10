"""branches.py: Branch builders that limit the flows created by the network stage."""

import gurobipy as gp

from .basebuilder import ComponentBuilder
from ..data_model import Line
from ..errors import BuildOrderError
from ..optim_model.constraints import system_constr


class StaticLineBuilder(ComponentBuilder):
    """Thermal limits of lines.

    Constraints
    ===========================
    - `RateLimitUB_{type}`, `RateLimitLB_{type}`: -rate <= flow <= rate
    - `ReactiveRateLimitUB_{type}`, `ReactiveRateLimitLB_{type}`: Same box on the reactive
      flow. Only for networks that balance reactive power.
    """

    def __init__(self, container, device_model, network) -> None:
        super().__init__(container, device_model, network)
        self.type_name = device_model.device_type.__name__

    def _get_flow(self, varname: str) -> gp.tupledict:
        if varname not in self.container.variables:
            raise BuildOrderError(
                f"gridops: Flow variable {varname} does not exist. "
                "The network must be constructed before branches."
            )
        return self.container.variables[varname]

    def add_variables(self, lines: list[Line]) -> None:
        pass

    def add_expressions(self, lines: list[Line]) -> None:
        pass

    def _add_rate_limits(self, lines: list[Line], flow: gp.tupledict, prefix: str) -> None:
        for name, func in [
            (f"{prefix}UB_{self.type_name}", system_constr.add_c_rate_limit_ub),
            (f"{prefix}LB_{self.type_name}", system_constr.add_c_rate_limit_lb),
        ]:
            self.container.add_constraint_container(
                name,
                func(
                    model=self.model,
                    flow=flow,
                    timesteps=self.timesteps,
                    lines=lines,
                    name=name,
                ),
            )

    def add_constraints(self, lines: list[Line]) -> None:
        self._add_rate_limits(
            lines, self._get_flow(f"Flow_{self.type_name}"), "RateLimit"
        )
        if self.network.is_reactive_capable:
            self._add_rate_limits(
                lines,
                self._get_flow(f"FlowReactive_{self.type_name}"),
                "ReactiveRateLimit",
            )

    def get_objective_terms(self, lines: list[Line]) -> gp.LinExpr:
        return gp.LinExpr()


class StaticLineUnboundedBuilder(StaticLineBuilder):
    """Lines without thermal limits."""

    def add_constraints(self, lines: list[Line]) -> None:
        pass
