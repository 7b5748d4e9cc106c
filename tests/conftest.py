import pytest

from failover_sim.model import Capacity, Demand, Host, Vm
from failover_sim.topology import Registry


def capacity(pes=2, mips=2000, ram=4096, bw=10000, storage=1000000):
    return Capacity(pes=pes, mips_per_pe=mips, ram=ram, bw=bw, storage=storage)


def demand(mips=2000, pes=1, ram=2048, bw=1000, storage=10000):
    return Demand(mips=mips, pes=pes, ram=ram, bw=bw, storage=storage)


def make_registry(layout, vms=None):
    """
    layout: {datacenter: [(host_id, Capacity, tier), ...]}
    vms: {vm_id: (Demand, datacenter, host_id)}, placed in id order.
    """
    registry = Registry()
    for name, hosts in layout.items():
        registry.add_datacenter(name)
        for host_id, cap, tier in hosts:
            registry.add_host(name, Host(host_id, cap, tier))
    for vm_id in sorted(vms or {}):
        d, dc, host_id = vms[vm_id]
        registry.add_vm(Vm(vm_id, d))
        registry.place_vm(vm_id, dc, host_id)
    return registry


@pytest.fixture
def backend_dc():
    """
    Backend-DC, hosts 100 and 101 (2000 MIPS per PE, 4096 RAM). Host 100
    carries a third PE so VM #3 (1 PE) and VM #4 (2 PEs) both fit on it.
    """
    return make_registry(
        {
            "Backend-DC": [
                (100, capacity(pes=3), "backend-large"),
                (101, capacity(pes=2), "backend"),
            ]
        },
        {
            3: (demand(pes=1, ram=2048), "Backend-DC", 100),
            4: (demand(pes=2, ram=2048, bw=2000, storage=20000), "Backend-DC", 100),
        },
    )
