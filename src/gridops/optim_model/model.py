"""
model.py: PowerSystemModel wraps a built gurobipy.Model and solves it with
either Gurobi or HiGHS. Queries after a solve are answered by whichever
solver ran last.
"""

import logging
import os
import tempfile

import gurobipy as gp
from gurobipy import GRB
import highspy
import pandas as pd

logger = logging.getLogger(__name__)

SOLVERS = ("gurobi", "highs")

GUROBI_STATUS_NAMES = {
    GRB.LOADED: "LOADED",
    GRB.OPTIMAL: "OPTIMAL",
    GRB.INFEASIBLE: "INFEASIBLE",
    GRB.INF_OR_UNBD: "INFEASIBLE_OR_UNBOUNDED",
    GRB.UNBOUNDED: "UNBOUNDED",
    GRB.CUTOFF: "CUTOFF",
    GRB.ITERATION_LIMIT: "ITERATION_LIMIT",
    GRB.NODE_LIMIT: "NODE_LIMIT",
    GRB.TIME_LIMIT: "TIME_LIMIT",
    GRB.SOLUTION_LIMIT: "SOLUTION_LIMIT",
    GRB.INTERRUPTED: "INTERRUPTED",
    GRB.NUMERIC: "NUMERIC",
    GRB.SUBOPTIMAL: "SUBOPTIMAL",
}


class PowerSystemModel:
    def __init__(self, model: gp.Model):
        # HiGHS solves a copy read from MPS, so the gurobi model stays the
        # source for re-solves and exports.
        self.model = model
        self.highs: highspy.Highs = None
        self.solver: str = "gurobi"

    def _call(self, query: str):
        """Run `_<query>_<solver>` for the solver used last."""
        return getattr(self, f"_{query}_{self.solver}")()

    def write(self, path: str) -> None:
        """Write the model. The format follows the suffix, e.g. .mps or .lp"""
        folder = os.path.dirname(path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        self.model.update()
        self.model.write(path)

    def _solve_with_gurobi(self, options: dict) -> None:
        params = self.model.Params
        params.LogToConsole = options["log_to_console"]
        params.MIPGap = options["mipgap"]
        params.TimeLimit = options["timelimit"]
        params.Threads = options["num_threads"]
        self.model.optimize()

    def _solve_with_highs(self, options: dict) -> None:
        self.highs = highspy.Highs()
        with tempfile.TemporaryDirectory() as tmp_dir:
            instance = os.path.join(tmp_dir, "gridops_instance.mps")
            self.model.update()
            self.model.write(instance)
            self.highs.readModel(instance)

        self.highs.setOptionValue("log_to_console", bool(options["log_to_console"]))
        self.highs.setOptionValue("mip_rel_gap", float(options["mipgap"]))
        self.highs.setOptionValue("time_limit", float(options["timelimit"]))
        self.highs.setOptionValue("threads", int(options["num_threads"]))
        self.highs.run()

    def optimize(
        self,
        solver: str = "gurobi",
        log_to_console: bool = True,
        mipgap: float = 1e-3,
        timelimit: float = 600,
        num_threads: int = 0,
    ) -> None:
        if solver not in SOLVERS:
            raise ValueError(f"gridops: Unknown solver {solver}. Choose from {SOLVERS}.")
        self.solver = solver
        options = {
            "log_to_console": log_to_console,
            "mipgap": mipgap,
            "timelimit": timelimit,
            "num_threads": num_threads,
        }
        logger.debug(f"Solving {self.model.ModelName} with {solver}: {options}")
        getattr(self, f"_solve_with_{solver}")(options)

    def _feasible_gurobi(self) -> bool:
        # A limit can stop the solve after a primal feasible point is found
        return self.model.SolCount > 0

    def _feasible_highs(self) -> bool:
        return self._termination_status_highs() == "Optimal"

    def check_feasible(self) -> bool:
        return self._call("feasible")

    def _objval_gurobi(self) -> float:
        return self.model.ObjVal

    def _objval_highs(self) -> float:
        return self.highs.getInfo().objective_function_value

    def get_objval(self) -> float:
        return self._call("objval")

    def _status_gurobi(self) -> int:
        return self.model.Status

    def _status_highs(self):
        return self.highs.getModelStatus()

    def get_status(self):
        """Raw status code of the solver."""
        return self._call("status")

    def _termination_status_gurobi(self) -> str:
        status = self.model.Status
        return GUROBI_STATUS_NAMES.get(status, str(status))

    def _termination_status_highs(self) -> str:
        return self.highs.modelStatusToString(self.highs.getModelStatus())

    def get_termination_status(self) -> str:
        """Readable name of the solver status."""
        return self._call("termination_status")

    def get_solver_name(self) -> str:
        return self.solver

    def get_model(self) -> gp.Model:
        return self.model

    def _solution_gurobi(self) -> dict:
        variables = self.model.getVars()
        return {
            "varname": [var.VarName for var in variables],
            "value": self.model.getAttr(GRB.Attr.X, variables),
        }

    def _solution_highs(self) -> dict:
        num_cols = self.highs.getNumCol()
        # getColName gives (status, name)
        names = [self.highs.getColName(col)[1] for col in range(num_cols)]
        return {"varname": names, "value": list(self.highs.getSolution().col_value)}

    def get_solution(self) -> pd.DataFrame:
        """Value of every variable, with columns varname and value."""
        return pd.DataFrame(self._call("solution"))

    def _runtime_gurobi(self) -> float:
        return self.model.Runtime

    def _runtime_highs(self) -> float:
        return self.highs.getRunTime()

    def get_runtime(self) -> float:
        return self._call("runtime")

    def _duals_gurobi(self) -> dict[str, float]:
        """Dual value of every constraint by name.

        A MIP has no duals of its own. Its integer variables are fixed at the
        incumbent and the duals of the resulting LP are returned instead.
        """
        lp = self.model
        if self.model.IsMIP:
            lp = self.model.fixed()
            lp.Params.OutputFlag = 0
            lp.optimize()
        constrs = lp.getConstrs()
        return dict(zip(lp.getAttr("ConstrName", constrs), lp.getAttr("Pi", constrs)))

    def _duals_highs(self) -> dict[str, float]:
        raise NotImplementedError("gridops: Duals are not available from HiGHS.")

    def get_duals(self) -> dict[str, float]:
        return self._call("duals")
