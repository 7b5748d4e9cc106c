# topology.py
# The datacenter / host / VM graph. Hosts are keyed by (datacenter, host
# id) since the same host id may appear in two datacenters; VM ids are
# unique cluster-wide.

import logging
import threading
from typing import Any, Dict, List, Tuple

from . import ledger
from .config import SimulationConfig
from .errors import InvariantViolation, UnknownEntity
from .model import Capacity, Datacenter, Demand, Host, Vm

logger = logging.getLogger(__name__)


class Registry:
    def __init__(self):
        self.datacenters: Dict[str, Datacenter] = {}
        self.hosts: Dict[Tuple[str, int], Host] = {}
        self.vms: Dict[int, Vm] = {}
        # held for a whole unit of mutation (e.g. an eviction pass)
        self.lock = threading.RLock()

    # ---------- Construction ----------

    def add_datacenter(self, name: str) -> Datacenter:
        if name in self.datacenters:
            raise ValueError(f"datacenter {name!r} already registered")
        dc = Datacenter(name)
        self.datacenters[name] = dc
        return dc

    def add_host(self, datacenter: str, host: Host) -> Host:
        dc = self.datacenter(datacenter)
        key = (datacenter, host.id)
        if key in self.hosts:
            raise ValueError(f"host #{host.id} already registered in {datacenter!r}")
        self.hosts[key] = host
        dc.host_ids.append(host.id)
        return host

    def add_vm(self, vm: Vm) -> Vm:
        if vm.id in self.vms:
            raise ValueError(f"VM #{vm.id} already registered")
        self.vms[vm.id] = vm
        return vm

    # ---------- Lookups ----------

    def datacenter(self, name: str) -> Datacenter:
        try:
            return self.datacenters[name]
        except KeyError:
            raise UnknownEntity(f"unknown datacenter {name!r}") from None

    def host(self, datacenter: str, host_id: int) -> Host:
        self.datacenter(datacenter)
        try:
            return self.hosts[(datacenter, host_id)]
        except KeyError:
            raise UnknownEntity(
                f"unknown host #{host_id} in datacenter {datacenter!r}"
            ) from None

    def vm(self, vm_id: int) -> Vm:
        try:
            return self.vms[vm_id]
        except KeyError:
            raise UnknownEntity(f"unknown VM #{vm_id}") from None

    def hosts_of(self, datacenter: str) -> List[Host]:
        """Hosts of a datacenter in registration order."""
        dc = self.datacenter(datacenter)
        return [self.hosts[(dc.name, host_id)] for host_id in dc.host_ids]

    def vms_resident_on(self, datacenter: str, host_id: int) -> Tuple[int, ...]:
        return tuple(self.host(datacenter, host_id).vm_ids)

    # ---------- Mutation ----------

    def place_vm(self, vm_id: int, datacenter: str, host_id: int) -> None:
        """Initial placement of a host-less VM."""
        vm = self.vm(vm_id)
        host = self.host(datacenter, host_id)
        with self.lock:
            if vm.host is not None:
                raise InvariantViolation(f"VM #{vm_id} is already placed on {vm.host}")
            ledger.reserve(host, vm.id, vm.demand)
            host.vm_ids.append(vm.id)
            vm.host = (datacenter, host_id)
        logger.debug("placed VM #%d on %s host #%d", vm_id, datacenter, host_id)

    def move_vm(self, vm_id: int, from_host: Host, to_host: Host) -> None:
        """
        Move a VM's membership and back-reference between two hosts of the
        same datacenter. Reservations are handled by the caller.
        """
        vm = self.vm(vm_id)
        with self.lock:
            if vm.host is None or self.hosts.get(vm.host) is not from_host:
                raise InvariantViolation(
                    f"VM #{vm_id} is not resident on host #{from_host.id}"
                )
            datacenter = vm.host[0]
            if self.hosts.get((datacenter, to_host.id)) is not to_host:
                raise InvariantViolation(
                    f"host #{to_host.id} is not a host of datacenter {datacenter!r}"
                )
            if vm_id in to_host.vm_ids:
                raise InvariantViolation(
                    f"VM #{vm_id} already resident on host #{to_host.id}"
                )
            from_host.vm_ids.remove(vm_id)
            vm.host = None
            to_host.vm_ids.append(vm_id)
            vm.host = (datacenter, to_host.id)

    # ---------- Inspection ----------

    def vm_placements(self) -> Dict[int, Tuple[str, int, str]]:
        """VM id -> (datacenter, host id, host status)."""
        out = {}
        for vm_id in sorted(self.vms):
            vm = self.vms[vm_id]
            if vm.host is None:
                continue
            host = self.hosts[vm.host]
            out[vm_id] = (vm.host[0], vm.host[1], host.status.value)
        return out

    def check_invariants(self) -> None:
        """
        Raise InvariantViolation unless every VM's demand sits in exactly one
        host's allocation map and resident set, that host matches the VM's
        back-reference, and no host is over capacity in any dimension.
        """
        holders: Dict[int, List[Tuple[str, int]]] = {}
        for key, host in self.hosts.items():
            if set(host.allocations) != set(host.vm_ids):
                raise InvariantViolation(
                    f"host #{host.id} in {key[0]!r}: allocations "
                    f"{sorted(host.allocations)} != residents {sorted(host.vm_ids)}"
                )
            for vm_id in host.vm_ids:
                holders.setdefault(vm_id, []).append(key)
            for dim, free in (
                ("pes", ledger.free_pes(host)),
                ("mips", ledger.free_mips(host)),
                ("ram", ledger.free_ram(host)),
                ("bw", ledger.free_bw(host)),
                ("storage", ledger.free_storage(host)),
            ):
                if free < 0:
                    raise InvariantViolation(
                        f"host #{host.id} in {key[0]!r} over capacity in {dim}"
                    )
        for vm_id, vm in self.vms.items():
            where = holders.get(vm_id, [])
            if vm.host is None:
                if where:
                    raise InvariantViolation(f"unplaced VM #{vm_id} held by {where}")
                continue
            if where != [vm.host]:
                raise InvariantViolation(
                    f"VM #{vm_id} points at {vm.host} but is held by {where}"
                )
            if self.hosts[vm.host].allocations[vm_id] != vm.demand:
                raise InvariantViolation(f"VM #{vm_id} reservation differs from demand")

    def dump(self) -> Dict[str, Any]:
        return {
            "datacenters": {
                name: [
                    {
                        "id": host.id,
                        "tier": host.tier,
                        "status": host.status.value,
                        "vm_ids": list(host.vm_ids),
                        "allocations": {
                            str(vm_id): vars(d) for vm_id, d in host.allocations.items()
                        },
                    }
                    for host in self.hosts_of(name)
                ]
                for name in self.datacenters
            },
            "vms": {str(vm_id): vm.host for vm_id, vm in self.vms.items()},
        }


def build_registry(config: SimulationConfig) -> Registry:
    """Datacenters and hosts from the tier descriptors, VMs from templates.

    VMs are registered but not placed; see allocate_vms in placement.py.
    """
    registry = Registry()
    for dc_spec in config.datacenters:
        registry.add_datacenter(dc_spec.name)
        for tier in dc_spec.tiers:
            capacity = Capacity(
                pes=tier.pes_per_host,
                mips_per_pe=tier.mips_per_pe,
                ram=tier.ram_per_host,
                bw=tier.bw_per_host,
                storage=tier.storage_per_host,
            )
            for host_id in tier.host_ids():
                registry.add_host(dc_spec.name, Host(host_id, capacity, tier.tier_name))

    vm_id = 0
    for template in config.vms:
        demand = Demand(
            template.mips, template.pes, template.ram, template.bw, template.storage
        )
        for _ in range(template.count):
            registry.add_vm(Vm(vm_id, demand))
            vm_id += 1

    logger.info(
        "built registry: %d datacenters, %d hosts, %d VMs",
        len(registry.datacenters),
        len(registry.hosts),
        len(registry.vms),
    )
    return registry
