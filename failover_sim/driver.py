# driver.py
# SimPy driver: runs cloudlets on their VMs and fires the failure
# injector at the scheduled simulated time.
#
# A cloudlet executes at its VM's per-PE rate times the PEs it uses; each
# VM runs as many cloudlets at once as it has PEs for, the rest queue.
# Migration carries no cost. A cloudlet whose VM is stranded on a failed
# host is interrupted and ends FAILED.

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
import simpy

from .config import FailureSchedule, SimulationConfig
from .injector import STRANDED, FailureInjector, MigrationEvent
from .placement import allocate_vms
from .topology import Registry, build_registry
from .workload import Cloudlet, CloudletStatus, generate_cloudlets

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    cloudlets: List[Cloudlet]
    events: List[MigrationEvent]
    placements: Dict[int, Tuple[str, int, str]]
    unplaced_vms: List[int]
    end_time: float


class Simulation:
    def __init__(self, config: SimulationConfig):
        self.config = config
        self.env = simpy.Environment()
        self.rng = np.random.default_rng(config.seed)
        self.registry: Registry = build_registry(config)
        self.unplaced_vms = allocate_vms(self.registry)

        placed = [vm_id for vm_id in sorted(self.registry.vms) if vm_id not in self.unplaced_vms]
        self.cloudlets = generate_cloudlets(config.cloudlets, placed, self.rng)

        self.injector = FailureInjector(self.registry, clock=lambda: self.env.now)
        self.injector.subscribe(self.on_migration_event)

        self.vm_slots: Dict[int, simpy.Resource] = {}
        for vm_id in placed:
            demand = self.registry.vm(vm_id).demand
            slots = max(1, demand.pes // config.cloudlets.pes)
            self.vm_slots[vm_id] = simpy.Resource(self.env, capacity=slots)

        self.processes: Dict[int, simpy.Process] = {
            c.id: self.env.process(self.execute(c)) for c in self.cloudlets
        }
        if config.failure is not None:
            self.env.process(self.failure_process(config.failure))

    def execute(self, cloudlet: Cloudlet):
        demand = self.registry.vm(cloudlet.vm_id).demand
        rate = demand.mips * min(cloudlet.pes, demand.pes)
        try:
            with self.vm_slots[cloudlet.vm_id].request() as req:
                yield req
                cloudlet.status = CloudletStatus.RUNNING
                cloudlet.start_time = self.env.now
                cloudlet.datacenter = self.registry.vm(cloudlet.vm_id).host[0]
                yield self.env.timeout(cloudlet.length / rate)
        except simpy.Interrupt as intr:
            cloudlet.status = CloudletStatus.FAILED
            cloudlet.finish_time = self.env.now
            logger.info("cloudlet #%d failed at %.2f: %s", cloudlet.id, self.env.now, intr.cause)
            return
        cloudlet.status = CloudletStatus.SUCCESS
        cloudlet.finish_time = self.env.now

    def failure_process(self, schedule: FailureSchedule):
        yield self.env.timeout(schedule.at_time)
        self.injector.trigger(schedule.datacenter, schedule.host_id, self.env.now)

    def on_migration_event(self, event: MigrationEvent) -> None:
        if event.kind != STRANDED:
            return
        for cloudlet in self.cloudlets:
            if cloudlet.vm_id != event.vm_id:
                continue
            proc = self.processes[cloudlet.id]
            if proc.is_alive:
                proc.interrupt(f"VM #{event.vm_id} stranded on failed host #{event.source}")

    def run(self) -> SimulationResult:
        self.env.run()
        return SimulationResult(
            cloudlets=self.cloudlets,
            events=list(self.injector.events),
            placements=self.registry.vm_placements(),
            unplaced_vms=list(self.unplaced_vms),
            end_time=self.env.now,
        )


def run_simulation(config: SimulationConfig) -> SimulationResult:
    return Simulation(config).run()
