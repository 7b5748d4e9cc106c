"""Host-failure placement and migration model for a multi-tier cluster."""

from .config import SimulationConfig, default_config, load_config
from .driver import Simulation, run_simulation
from .errors import InfeasiblePlacement, InvariantViolation, UnknownEntity
from .injector import FailureInjector, MigrationEvent
from .topology import Registry, build_registry

__version__ = "0.1.0"

__all__ = [
    "SimulationConfig",
    "default_config",
    "load_config",
    "Simulation",
    "run_simulation",
    "InfeasiblePlacement",
    "InvariantViolation",
    "UnknownEntity",
    "FailureInjector",
    "MigrationEvent",
    "Registry",
    "build_registry",
]
