# ledger.py
# Per-host resource accounting: free capacity, the fits predicate and
# reservations. Every function mutates at most the host it is given.

from typing import Dict, Optional

from .errors import InvariantViolation
from .model import Demand, Host


def _reserved(host: Host, attr: str) -> int:
    return sum(getattr(d, attr) for d in host.allocations.values())


def free_mips(host: Host) -> int:
    used = sum(d.total_mips for d in host.allocations.values())
    return host.capacity.total_mips - used


def free_pes(host: Host) -> int:
    return host.capacity.pes - _reserved(host, "pes")


def free_ram(host: Host) -> int:
    return host.capacity.ram - _reserved(host, "ram")


def free_bw(host: Host) -> int:
    return host.capacity.bw - _reserved(host, "bw")


def free_storage(host: Host) -> int:
    return host.capacity.storage - _reserved(host, "storage")


def fits(host: Host, demand: Demand) -> bool:
    """
    True iff a healthy host has room for the demand in every dimension:
    free PEs, per-PE rate, compute (rate x PE count), RAM, bandwidth and
    storage.
    """
    if host.failed:
        return False
    return (
        free_pes(host) >= demand.pes
        and host.capacity.mips_per_pe >= demand.mips
        and free_mips(host) >= demand.total_mips
        and free_ram(host) >= demand.ram
        and free_bw(host) >= demand.bw
        and free_storage(host) >= demand.storage
    )


def reserve(host: Host, vm_id: int, demand: Demand) -> None:
    if vm_id in host.allocations:
        raise InvariantViolation(
            f"VM #{vm_id} already has a reservation on host #{host.id}"
        )
    if not fits(host, demand):
        raise InvariantViolation(
            f"reserve of VM #{vm_id} on host #{host.id} without a successful fits"
        )
    host.allocations[vm_id] = demand


def release(host: Host, vm_id: int) -> Optional[Demand]:
    return host.allocations.pop(vm_id, None)


def utilization(host: Host) -> Dict[str, float]:
    """Fraction of each dimension currently reserved."""
    cap = host.capacity
    return {
        "mips": 1.0 - free_mips(host) / cap.total_mips,
        "ram": 1.0 - free_ram(host) / cap.ram,
        "bw": 1.0 - free_bw(host) / cap.bw,
        "storage": 1.0 - free_storage(host) / cap.storage,
    }
