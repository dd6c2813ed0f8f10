"""system.py: PowerSystem holds the buses, components, and time series of a network
snapshot. Optimization builders only read from it.
"""

import logging
import os

import networkx as nx
import numpy as np
import pandas as pd

from .data_model import (
    Bus,
    ThermalStandard,
    RenewableDispatch,
    PowerLoad,
    InterruptibleLoad,
    Line,
    VariableReserve,
)
from .errors import ConflictingInputsError

logger = logging.getLogger(__name__)


class PowerSystem:
    def __init__(
        self,
        base_power: float = 100.0,
        forecast_initial_time: pd.Timestamp = None,
        forecast_resolution: pd.Timedelta = pd.Timedelta(hours=1),
        forecast_horizon: int = 24,
    ) -> None:
        """A network snapshot with forecasts.

        Args:
            base_power (float): System base power in MVA. Default is 100.
            forecast_initial_time (pd.Timestamp): First time stamp of the forecasts.
                Default is midnight of 2024-01-01.
            forecast_resolution (pd.Timedelta): Time between two forecast values. Default is 1 hour.
            forecast_horizon (int): Number of forecast values used by a problem. Default is 24.
        """
        if forecast_horizon < 1:
            raise ValueError("gridops: Forecast horizon must be at least 1.")
        self.base_power: float = base_power
        self.forecast_initial_time: pd.Timestamp = pd.Timestamp(
            forecast_initial_time or "2024-01-01"
        )
        self.forecast_resolution: pd.Timedelta = pd.Timedelta(forecast_resolution)
        self.forecast_horizon: int = forecast_horizon

        self.buses: dict[int, Bus] = {}
        # Components are grouped by their concrete type, in insertion order
        self._components: dict[type, dict[str, object]] = {}
        # Component names are unique across all types
        self._component_types: dict[str, type] = {}
        # (component name, label) -> series indexed by time stamps
        self._time_series: dict[tuple[str, str], pd.Series] = {}

    def add_bus(self, bus: Bus) -> None:
        if bus.number in self.buses:
            raise ConflictingInputsError(f"gridops: Bus {bus.number} already exists.")
        self.buses[bus.number] = bus

    def add_component(self, component) -> None:
        if component.name in self._component_types:
            raise ConflictingInputsError(
                f"gridops: Component {component.name} already exists."
            )
        for bus in self._get_component_buses(component):
            if bus not in self.buses:
                raise ValueError(
                    f"gridops: Component {component.name} is connected to unknown bus {bus}."
                )
        self._components.setdefault(type(component), {})[component.name] = component
        self._component_types[component.name] = type(component)

    def add_time_series(self, component_name: str, label: str, data) -> None:
        """Attach a time series to a component. A list or array is indexed
        starting at the forecast initial time with the forecast resolution."""
        if component_name not in self._component_types:
            raise ValueError(f"gridops: Unknown component {component_name}.")
        if not isinstance(data, pd.Series):
            data = pd.Series(
                np.asarray(data, dtype=float),
                index=pd.date_range(
                    start=self.forecast_initial_time,
                    periods=len(data),
                    freq=self.forecast_resolution,
                ),
            )
        self._time_series[(component_name, label)] = data.astype(float)

    def _get_component_buses(self, component) -> list[int]:
        if isinstance(component, Line):
            return [component.from_bus, component.to_bus]
        if hasattr(component, "bus"):
            return [component.bus]
        return []

    def get_components(self, component_type: type) -> list:
        """Return components of exactly this type, in insertion order."""
        return list(self._components.get(component_type, {}).values())

    def get_available_components(self, component_type: type) -> list:
        return [c for c in self.get_components(component_type) if c.available]

    def get_component(self, component_type: type, name: str):
        try:
            return self._components[component_type][name]
        except KeyError:
            raise KeyError(
                f"gridops: No {component_type.__name__} named {name}."
            ) from None

    def get_component_by_name(self, name: str):
        return self.get_component(self._component_types[name], name)

    def get_contributing_devices(self, service: VariableReserve) -> list:
        """Return the available devices listed by the reserve. Unavailable
        devices are not built, so they cannot hold reserve."""
        devices = []
        for name in service.contributing_devices:
            if name not in self._component_types:
                raise ValueError(
                    f"gridops: Reserve {service.name} lists unknown device {name}."
                )
            device = self.get_component_by_name(name)
            if device.available:
                devices.append(device)
        return devices

    def has_time_series(self, component_name: str, label: str) -> bool:
        return (component_name, label) in self._time_series

    def get_time_series(
        self,
        component_name: str,
        label: str,
        initial_time: pd.Timestamp = None,
        horizon: int = None,
    ) -> np.ndarray:
        """Return `horizon` values of a time series starting at `initial_time`."""
        if not self.has_time_series(component_name, label):
            raise KeyError(
                f"gridops: No time series '{label}' for component {component_name}."
            )
        initial_time = pd.Timestamp(initial_time or self.forecast_initial_time)
        horizon = horizon or self.forecast_horizon
        series = self._time_series[(component_name, label)]
        values = series.loc[series.index >= initial_time].to_numpy()[:horizon]
        if len(values) < horizon:
            raise ValueError(
                f"gridops: Time series '{label}' of {component_name} has {len(values)} "
                f"values from {initial_time}, but the horizon is {horizon}."
            )
        return values

    def get_bus_count(self) -> int:
        return len(self.buses)

    def get_bus_numbers(self) -> list[int]:
        return sorted(self.buses)

    def get_time_stamps(self, initial_time: pd.Timestamp = None, horizon: int = None):
        return pd.date_range(
            start=pd.Timestamp(initial_time or self.forecast_initial_time),
            periods=horizon or self.forecast_horizon,
            freq=self.forecast_resolution,
        )

    def to_graph(self) -> nx.Graph:
        """Return the network graph over bus numbers with available lines as edges."""
        graph = nx.Graph()
        graph.add_nodes_from(self.buses)
        graph.add_edges_from(
            (line.from_bus, line.to_bus)
            for line in self.get_available_components(Line)
        )
        return graph

    def get_reference_buses(self) -> list[int]:
        """One angle reference per island: its REF bus if it has one,
        otherwise its lowest-numbered bus."""
        reference_buses = []
        for island in nx.connected_components(self.to_graph()):
            ref_buses = [b for b in island if self.buses[b].bustype == "REF"]
            reference_buses.append(min(ref_buses) if ref_buses else min(island))
        return sorted(reference_buses)

    def print_summary(self) -> None:
        summary = [f"\nSystem with base power {self.base_power} MVA"]
        summary.append(f"Buses: {self.get_bus_count()}")
        for component_type, components in self._components.items():
            summary.append(f"{component_type.__name__}: {len(components)}")
        summary.append(f"Time series: {len(self._time_series)}")
        logger.warning("\n".join(summary))

    ###########################################
    # Loading from a folder of CSV files
    ###########################################
    @staticmethod
    def _check_and_load_csv(folder: str, filename: str) -> pd.DataFrame:
        """Check if the CSV file exists and load it."""
        if os.path.exists(os.path.join(folder, filename)):
            return pd.read_csv(os.path.join(folder, filename), header=0)
        return pd.DataFrame()

    @classmethod
    def from_folder(
        cls,
        folder: str,
        base_power: float = 100.0,
        forecast_horizon: int = 24,
        forecast_resolution: pd.Timedelta = pd.Timedelta(hours=1),
    ) -> "PowerSystem":
        """Load a system from CSV files.

        Expected files (all but buses.csv are optional):
            buses.csv: number, name, bustype
            thermal.csv: columns of ThermalStandard
            renewable.csv: columns of RenewableDispatch
            loads.csv: columns of PowerLoad, plus an optional `cost` column.
                Rows with a cost are interruptible loads.
            lines.csv: columns of Line
            reserves.csv: name, direction, requirement, contributing_devices, cost.
                Contributing devices are separated by ';'.
            timeseries.csv: timestamp, component, label, value (long format)
        """
        buses_df = cls._check_and_load_csv(folder, "buses.csv")
        if buses_df.empty:
            raise ValueError(f"gridops: {folder} has no buses.csv.")

        timeseries_df = cls._check_and_load_csv(folder, "timeseries.csv")
        initial_time = None
        if not timeseries_df.empty:
            timeseries_df["timestamp"] = pd.to_datetime(timeseries_df["timestamp"])
            initial_time = timeseries_df["timestamp"].min()

        system = cls(
            base_power=base_power,
            forecast_initial_time=initial_time,
            forecast_resolution=forecast_resolution,
            forecast_horizon=forecast_horizon,
        )
        for row in buses_df.to_dict("records"):
            system.add_bus(
                Bus(
                    number=int(row["number"]),
                    name=str(row.get("name", "") or ""),
                    bustype=str(row.get("bustype", "PQ")),
                )
            )

        simple_components = [
            ("thermal.csv", ThermalStandard),
            ("renewable.csv", RenewableDispatch),
            ("lines.csv", Line),
        ]
        for filename, component_type in simple_components:
            for row in cls._check_and_load_csv(folder, filename).to_dict("records"):
                system.add_component(component_type(**row))

        for row in cls._check_and_load_csv(folder, "loads.csv").to_dict("records"):
            cost = row.pop("cost", None)
            if cost is None or pd.isna(cost):
                system.add_component(PowerLoad(**row))
            else:
                system.add_component(InterruptibleLoad(cost=cost, **row))

        for row in cls._check_and_load_csv(folder, "reserves.csv").to_dict("records"):
            row["contributing_devices"] = [
                name.strip()
                for name in str(row.get("contributing_devices", "")).split(";")
                if name.strip()
            ]
            system.add_component(VariableReserve(**row))

        if not timeseries_df.empty:
            for (component, label), group in timeseries_df.groupby(
                ["component", "label"], sort=False
            ):
                system.add_time_series(
                    component,
                    label,
                    group.set_index("timestamp")["value"].sort_index(),
                )
        return system
