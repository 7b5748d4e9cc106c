# workload.py
# Cloudlets: units of simulated computation bound to VMs. Lengths are
# drawn from a seeded numpy Generator so a run is reproducible.

import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .config import CloudletSpec


class CloudletStatus(enum.Enum):
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass
class Cloudlet:
    id: int
    length: float  # million instructions
    pes: int
    vm_id: int
    status: CloudletStatus = CloudletStatus.CREATED
    datacenter: Optional[str] = None
    start_time: Optional[float] = None
    finish_time: Optional[float] = None

    @property
    def actual_cpu_time(self) -> float:
        if self.start_time is None or self.finish_time is None:
            return 0.0
        return self.finish_time - self.start_time


def sample_lengths(spec: CloudletSpec, rng: np.random.Generator) -> List[float]:
    lengths = []
    for i in range(spec.count):
        lo, hi = spec.short_range if i < spec.short_count else spec.long_range
        lengths.append(float(np.floor(rng.uniform(lo, hi))))
    return lengths


def generate_cloudlets(
    spec: CloudletSpec, vm_ids: Sequence[int], rng: np.random.Generator
) -> List[Cloudlet]:
    """Cloudlet i is bound to vm_ids[i % len(vm_ids)]."""
    if spec.count and not vm_ids:
        raise ValueError("cloudlets need at least one placed VM")
    return [
        Cloudlet(i, length, spec.pes, vm_ids[i % len(vm_ids)])
        for i, length in enumerate(sample_lengths(spec, rng))
    ]
