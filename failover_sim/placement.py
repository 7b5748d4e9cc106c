# placement.py
# Destination selection. find_alternative_host is the failover policy:
# first fit by ascending host id among the healthy hosts of the failed
# host's datacenter. It is greedy on purpose; it does not look for a
# globally better assignment of the displaced VMs.

import logging
from typing import Iterable, List, Optional

from . import ledger
from .errors import INSUFFICIENT_CAPACITY, NO_HEALTHY_HOST, InfeasiblePlacement
from .model import Demand, Host
from .topology import Registry

logger = logging.getLogger(__name__)


def find_alternative_host(
    hosts: Iterable[Host], failed_host_id: int, demand: Demand, vm_id: int = -1
) -> Host:
    """
    Return the lowest-id host other than failed_host_id that is healthy and
    fits the demand. The tier label is not consulted, so a VM may land on
    a host of a different capacity profile.

    Raises:
        InfeasiblePlacement: reason NO_HEALTHY_HOST when no candidate is
            healthy, INSUFFICIENT_CAPACITY when none of the healthy ones fits.
    """
    healthy = False
    for host in sorted(hosts, key=lambda h: h.id):
        if host.id == failed_host_id or host.failed:
            continue
        healthy = True
        if ledger.fits(host, demand):
            return host
    raise InfeasiblePlacement(
        vm_id, INSUFFICIENT_CAPACITY if healthy else NO_HEALTHY_HOST
    )


def initial_host(hosts: Iterable[Host], demand: Demand) -> Optional[Host]:
    """Fitting host with the most free PEs; ties go to the lower id."""
    best = None
    for host in sorted(hosts, key=lambda h: h.id):
        if not ledger.fits(host, demand):
            continue
        if best is None or ledger.free_pes(host) > ledger.free_pes(best):
            best = host
    return best


def allocate_vms(registry: Registry) -> List[int]:
    """
    Place every host-less VM, in id order, trying datacenters in
    registration order. Returns the ids of VMs no datacenter could take.
    """
    unplaced = []
    for vm_id in sorted(registry.vms):
        vm = registry.vms[vm_id]
        if vm.host is not None:
            continue
        for name in registry.datacenters:
            host = initial_host(registry.hosts_of(name), vm.demand)
            if host is not None:
                registry.place_vm(vm_id, name, host.id)
                logger.info("VM #%d created in %s on host #%d", vm_id, name, host.id)
                break
        else:
            logger.warning("VM #%d could not be placed in any datacenter", vm_id)
            unplaced.append(vm_id)
    return unplaced
