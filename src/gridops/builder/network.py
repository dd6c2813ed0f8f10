"""network.py: Network builders that balance the nodal expressions."""

import logging
import math

import gurobipy as gp

from .basebuilder import ComponentBuilder
from ..data_model import Line
from ..optim_model import (
    NODAL_BALANCE_ACTIVE,
    NODAL_BALANCE_REACTIVE,
    add_to_expression,
    add_free_var,
    get_penalty_coeff,
)
from ..optim_model.constraints import system_constr

logger = logging.getLogger(__name__)


class NetworkBuilder(ComponentBuilder):
    """Base builder of the network stage. The devices it constructs are the
    available lines of the system. Device builders must have filled the nodal
    expressions before the balance constraints are added.

    Variables
    ===========================
    - `pos_pmismatch`: Positive power mismatch at a bus. Only with slacks. Unit: MW.
    - `neg_pmismatch`: Negative power mismatch at a bus. Only with slacks. Unit: MW.

    Objective terms
    ===========================
    - Mismatch penalty
    """

    def __init__(self, container, template, network) -> None:
        super().__init__(container, template, network)
        self.bus_numbers = self.system.get_bus_numbers()
        self.pos_pmismatch = gp.tupledict()
        self.neg_pmismatch = gp.tupledict()

    def add_slack_variables(self) -> None:
        for varname in ["pos_pmismatch", "neg_pmismatch"]:
            setattr(
                self,
                varname,
                self.container.add_variable_container(
                    varname,
                    self.model.addVars(
                        self.bus_numbers,
                        self.timesteps,
                        lb=0,
                        vtype=gp.GRB.CONTINUOUS,
                        name=varname,
                    ),
                ),
            )

    def add_variables(self, lines: list[Line]) -> None:
        if self.settings.use_slacks:
            self.add_slack_variables()

    def add_expressions(self, lines: list[Line]) -> None:
        if not self.settings.use_slacks:
            return
        expression_array = self.container.expressions[NODAL_BALANCE_ACTIVE]
        for bus in self.bus_numbers:
            for t in self.timesteps:
                add_to_expression(
                    expression_array, bus, t, 1.0, self.pos_pmismatch[bus, t]
                )
                add_to_expression(
                    expression_array, bus, t, -1.0, self.neg_pmismatch[bus, t]
                )

    def add_constraints(self, lines: list[Line]) -> None:
        name = "NodalBalanceActive"
        self.container.add_constraint_container(
            name,
            system_constr.add_c_nodal_balance(
                model=self.model,
                nodal_balance=self.container.expressions[NODAL_BALANCE_ACTIVE],
                timesteps=self.timesteps,
                bus_numbers=self.bus_numbers,
                name=name,
            ),
        )

    def get_objective_terms(self, lines: list[Line]) -> gp.LinExpr:
        if not self.settings.use_slacks:
            return gp.LinExpr()
        expr = gp.LinExpr()
        for mismatch in [self.pos_pmismatch, self.neg_pmismatch]:
            expr.add(
                mismatch.prod(
                    get_penalty_coeff(
                        self.timesteps, self.bus_numbers, self.settings.slack_penalty
                    )
                )
            )
        return expr

    def construct(self, lines: list[Line]) -> None:
        # Buses must be balanced even without lines
        logger.debug(f"{type(self).__name__}: constructing {len(lines)} lines")
        self.add_variables(lines)
        self.add_expressions(lines)
        self.add_constraints(lines)
        self.container.add_to_objective(self.get_objective_terms(lines))


class CopperPlateBuilder(NetworkBuilder):
    """All buses are lumped into one. The injections of the system sum to zero
    at every timestep and lines are ignored. Slacks are system-wide."""

    def add_slack_variables(self) -> None:
        for varname in ["pos_pmismatch", "neg_pmismatch"]:
            setattr(
                self,
                varname,
                self.container.add_variable_container(
                    varname,
                    self.model.addVars(
                        self.timesteps, lb=0, vtype=gp.GRB.CONTINUOUS, name=varname
                    ),
                ),
            )

    def add_expressions(self, lines: list[Line]) -> None:
        pass

    def add_constraints(self, lines: list[Line]) -> None:
        name = "CopperPlateBalance"
        self.container.add_constraint_container(
            name,
            system_constr.add_c_copper_plate_balance(
                model=self.model,
                nodal_balance=self.container.expressions[NODAL_BALANCE_ACTIVE],
                timesteps=self.timesteps,
                bus_numbers=self.bus_numbers,
                name=name,
                pos_pmismatch=self.pos_pmismatch if self.settings.use_slacks else None,
                neg_pmismatch=self.neg_pmismatch if self.settings.use_slacks else None,
            ),
        )

    def get_objective_terms(self, lines: list[Line]) -> gp.LinExpr:
        if not self.settings.use_slacks:
            return gp.LinExpr()
        penalty = self.settings.slack_penalty
        return penalty * gp.quicksum(self.pos_pmismatch.values()) + penalty * gp.quicksum(
            self.neg_pmismatch.values()
        )


class NFABuilder(NetworkBuilder):
    """Network flow approximation: each line carries a free flow that leaves
    its from bus and enters its to bus. Only the nodal balance limits the flows.

    Variables
    ===========================
    - `Flow_Line`: Active power flow from `from_bus` to `to_bus`. Unit: MW.
    """

    def __init__(self, container, template, network) -> None:
        super().__init__(container, template, network)
        self.flow = gp.tupledict()

    def add_variables(self, lines: list[Line]) -> None:
        super().add_variables(lines)
        self.flow = self.container.add_variable_container(
            "Flow_Line",
            add_free_var(
                model=self.model,
                varname="Flow_Line",
                timesteps=self.timesteps,
                units=[line.name for line in lines],
            ),
        )

    def _add_flows_to_expression(
        self, lines: list[Line], flow: gp.tupledict, expression_name: str
    ) -> None:
        expression_array = self.container.expressions[expression_name]
        for line in lines:
            for t in self.timesteps:
                add_to_expression(
                    expression_array, line.from_bus, t, -1.0, flow[line.name, t]
                )
                add_to_expression(
                    expression_array, line.to_bus, t, 1.0, flow[line.name, t]
                )

    def add_expressions(self, lines: list[Line]) -> None:
        super().add_expressions(lines)
        self._add_flows_to_expression(lines, self.flow, NODAL_BALANCE_ACTIVE)


class DCPBuilder(NFABuilder):
    """DC power flow. The flows follow the voltage angle differences.

    Variables
    ===========================
    - `theta`: Voltage angle at a bus. Unit: Radians.

    Constraints
    ===========================
    - `refNode`: The angle of one reference bus per island is zero.
    - `angleDiff`: Flow is proportional to the angle difference over the reactance.
    """

    def __init__(self, container, template, network) -> None:
        super().__init__(container, template, network)
        self.theta = gp.tupledict()

    def add_variables(self, lines: list[Line]) -> None:
        super().add_variables(lines)
        # Angle differences are assumed small in DC power flow
        self.theta = self.container.add_variable_container(
            "theta",
            self.model.addVars(
                self.bus_numbers,
                self.timesteps,
                lb=-math.pi,
                ub=math.pi,
                vtype=gp.GRB.CONTINUOUS,
                name="theta",
            ),
        )

    def add_constraints(self, lines: list[Line]) -> None:
        super().add_constraints(lines)
        self.container.add_constraint_container(
            "refNode",
            system_constr.add_c_ref_node(
                model=self.model,
                theta=self.theta,
                timesteps=self.timesteps,
                ref_buses=self.system.get_reference_buses(),
            ),
        )
        self.container.add_constraint_container(
            "angleDiff",
            system_constr.add_c_angle_diff(
                model=self.model,
                flow=self.flow,
                theta=self.theta,
                timesteps=self.timesteps,
                lines=lines,
                base_power=self.system.base_power,
            ),
        )


class LinearACBuilder(NFABuilder):
    """Linear approximation of AC power flow that balances active and
    reactive power at each bus with independent active and reactive line flows.

    Variables
    ===========================
    - `FlowReactive_Line`: Reactive power flow from `from_bus` to `to_bus`. Unit: MVar.
    - `pos_qmismatch`, `neg_qmismatch`: Reactive power mismatch. Only with slacks. Unit: MVar.
    """

    def __init__(self, container, template, network) -> None:
        super().__init__(container, template, network)
        self.flow_reactive = gp.tupledict()
        self.pos_qmismatch = gp.tupledict()
        self.neg_qmismatch = gp.tupledict()

    def add_variables(self, lines: list[Line]) -> None:
        super().add_variables(lines)
        self.flow_reactive = self.container.add_variable_container(
            "FlowReactive_Line",
            add_free_var(
                model=self.model,
                varname="FlowReactive_Line",
                timesteps=self.timesteps,
                units=[line.name for line in lines],
            ),
        )
        if self.settings.use_slacks:
            for varname in ["pos_qmismatch", "neg_qmismatch"]:
                setattr(
                    self,
                    varname,
                    self.container.add_variable_container(
                        varname,
                        self.model.addVars(
                            self.bus_numbers,
                            self.timesteps,
                            lb=0,
                            vtype=gp.GRB.CONTINUOUS,
                            name=varname,
                        ),
                    ),
                )

    def add_expressions(self, lines: list[Line]) -> None:
        super().add_expressions(lines)
        self._add_flows_to_expression(lines, self.flow_reactive, NODAL_BALANCE_REACTIVE)
        if self.settings.use_slacks:
            expression_array = self.container.expressions[NODAL_BALANCE_REACTIVE]
            for bus in self.bus_numbers:
                for t in self.timesteps:
                    add_to_expression(
                        expression_array, bus, t, 1.0, self.pos_qmismatch[bus, t]
                    )
                    add_to_expression(
                        expression_array, bus, t, -1.0, self.neg_qmismatch[bus, t]
                    )

    def add_constraints(self, lines: list[Line]) -> None:
        super().add_constraints(lines)
        name = "NodalBalanceReactive"
        self.container.add_constraint_container(
            name,
            system_constr.add_c_nodal_balance(
                model=self.model,
                nodal_balance=self.container.expressions[NODAL_BALANCE_REACTIVE],
                timesteps=self.timesteps,
                bus_numbers=self.bus_numbers,
                name=name,
            ),
        )

    def get_objective_terms(self, lines: list[Line]) -> gp.LinExpr:
        expr = super().get_objective_terms(lines)
        if self.settings.use_slacks:
            for mismatch in [self.pos_qmismatch, self.neg_qmismatch]:
                expr.add(
                    mismatch.prod(
                        get_penalty_coeff(
                            self.timesteps, self.bus_numbers, self.settings.slack_penalty
                        )
                    )
                )
        return expr
