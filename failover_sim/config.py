# config.py
# Topology, workload and failure-schedule configuration.
#
# A configuration is either the built-in default (the two-tier experiment:
# a frontend and a backend datacenter, five VMs, five cloudlets and one
# backend host failure) or a JSON document with the same shape as
# SimulationConfig.to_dict().

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


def _require(cond: bool, message: str) -> None:
    if not cond:
        raise ValueError(message)


@dataclass
class TierSpec:
    tier_name: str
    host_count: int
    mips_per_pe: int
    pes_per_host: int = 2
    ram_per_host: int = 4096
    bw_per_host: int = 10000
    storage_per_host: int = 1000000
    first_host_id: int = 0

    def __post_init__(self):
        _require(bool(self.tier_name), "tier_name must be non-empty")
        _require(self.host_count > 0, "host_count must be positive")
        _require(self.mips_per_pe > 0, "mips_per_pe must be positive")
        _require(self.pes_per_host >= 1, "pes_per_host must be at least 1")
        _require(self.ram_per_host > 0, "ram_per_host must be positive")
        _require(self.bw_per_host > 0, "bw_per_host must be positive")
        _require(self.storage_per_host > 0, "storage_per_host must be positive")
        _require(self.first_host_id >= 0, "first_host_id must be non-negative")

    def host_ids(self) -> List[int]:
        return list(range(self.first_host_id, self.first_host_id + self.host_count))


@dataclass
class DatacenterSpec:
    name: str
    tiers: List[TierSpec]

    def __post_init__(self):
        _require(bool(self.name), "datacenter name must be non-empty")
        _require(bool(self.tiers), f"datacenter {self.name!r} has no tiers")
        seen = set()
        for tier in self.tiers:
            for host_id in tier.host_ids():
                _require(
                    host_id not in seen,
                    f"duplicate host id {host_id} in datacenter {self.name!r}",
                )
                seen.add(host_id)


@dataclass
class VmTemplate:
    mips: int
    pes: int
    ram: int
    bw: int
    storage: int
    count: int = 1

    def __post_init__(self):
        _require(self.count >= 1, "VM template count must be at least 1")
        _require(self.mips > 0, "VM mips must be positive")
        _require(self.pes >= 1, "VM pes must be at least 1")
        for name in ("ram", "bw", "storage"):
            _require(getattr(self, name) >= 0, f"VM {name} must be non-negative")


@dataclass
class CloudletSpec:
    count: int = 5
    pes: int = 1
    # the first short_count cloudlets draw from short_range, the rest from
    # long_range (lengths in million instructions)
    short_count: int = 2
    short_range: Tuple[float, float] = (20000.0, 60000.0)
    long_range: Tuple[float, float] = (60000.0, 140000.0)

    def __post_init__(self):
        self.short_range = tuple(self.short_range)
        self.long_range = tuple(self.long_range)
        _require(self.count >= 0, "cloudlet count must be non-negative")
        _require(self.pes >= 1, "cloudlet pes must be at least 1")
        _require(self.short_count >= 0, "short_count must be non-negative")
        for name in ("short_range", "long_range"):
            lo, hi = getattr(self, name)
            _require(0 < lo <= hi, f"{name} must satisfy 0 < low <= high")


@dataclass
class FailureSchedule:
    datacenter: str
    host_id: int
    at_time: float = 50.0

    def __post_init__(self):
        _require(self.at_time >= 0, "at_time must be non-negative")


@dataclass
class SimulationConfig:
    datacenters: List[DatacenterSpec]
    vms: List[VmTemplate]
    cloudlets: CloudletSpec = field(default_factory=CloudletSpec)
    failure: Optional[FailureSchedule] = None
    seed: Optional[int] = None

    def __post_init__(self):
        names = [dc.name for dc in self.datacenters]
        _require(bool(names), "at least one datacenter is required")
        _require(len(set(names)) == len(names), "datacenter names must be unique")
        if self.failure is not None:
            _require(
                self.failure.datacenter in names,
                f"failure datacenter {self.failure.datacenter!r} is not configured",
            )
            dc = self.datacenters[names.index(self.failure.datacenter)]
            host_ids = {h for tier in dc.tiers for h in tier.host_ids()}
            _require(
                self.failure.host_id in host_ids,
                f"failure host #{self.failure.host_id} is not configured in "
                f"{dc.name!r}",
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        datacenters = [
            DatacenterSpec(dc["name"], [TierSpec(**t) for t in dc["tiers"]])
            for dc in data["datacenters"]
        ]
        failure = data.get("failure")
        return cls(
            datacenters=datacenters,
            vms=[VmTemplate(**v) for v in data["vms"]],
            cloudlets=CloudletSpec(**data.get("cloudlets", {})),
            failure=FailureSchedule(**failure) if failure else None,
            seed=data.get("seed"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path) -> SimulationConfig:
    return SimulationConfig.from_dict(json.loads(Path(path).read_text()))


def default_config(seed: Optional[int] = None) -> SimulationConfig:
    """The two-tier experiment: backend host 1 fails at t=50."""
    return SimulationConfig(
        datacenters=[
            DatacenterSpec("Frontend-DC", [TierSpec("frontend", 2, 1000)]),
            DatacenterSpec("Backend-DC", [TierSpec("backend", 2, 2000)]),
        ],
        vms=[
            VmTemplate(mips=1000, pes=1, ram=1024, bw=1000, storage=10000, count=3),
            VmTemplate(mips=2000, pes=2, ram=2048, bw=2000, storage=20000, count=2),
        ],
        cloudlets=CloudletSpec(),
        failure=FailureSchedule("Backend-DC", 1, 50.0),
        seed=seed,
    )
