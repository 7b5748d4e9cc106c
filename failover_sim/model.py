# model.py
# Entities of the cluster model: capacity/demand records, hosts, VMs and
# datacenters. Hosts and VMs refer to each other by id only; the
# Registry in topology.py resolves ids.

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


class HostStatus(enum.Enum):
    HEALTHY = "Healthy"
    FAILED = "Failed"


@dataclass(frozen=True)
class Demand:
    """Resources a VM reserves on its host."""

    mips: int
    pes: int
    ram: int
    bw: int
    storage: int

    @property
    def total_mips(self) -> int:
        return self.mips * self.pes


@dataclass(frozen=True)
class Capacity:
    pes: int
    mips_per_pe: int
    ram: int
    bw: int
    storage: int

    @property
    def total_mips(self) -> int:
        return self.pes * self.mips_per_pe


@dataclass
class Host:
    id: int
    capacity: Capacity
    tier: str = ""
    status: HostStatus = HostStatus.HEALTHY
    allocations: Dict[int, Demand] = field(default_factory=dict)
    vm_ids: List[int] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status is HostStatus.FAILED


@dataclass
class Vm:
    id: int
    demand: Demand
    # (datacenter name, host id); None only inside a migration step.
    host: Optional[Tuple[str, int]] = None


@dataclass
class Datacenter:
    name: str
    host_ids: List[int] = field(default_factory=list)
