# injector.py
# Host failure and eviction. trigger() runs one eviction pass as a single
# unit of work under the registry lock: every VM resident on the failing
# host is either migrated to a healthy host of the same datacenter or
# left in place as stranded, and only then is the host marked failed.

import json
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from . import ledger
from .errors import INSUFFICIENT_CAPACITY, InfeasiblePlacement, InvariantViolation
from .model import HostStatus
from .placement import find_alternative_host
from .topology import Registry

logger = logging.getLogger(__name__)

MIGRATED = "migrated"
STRANDED = "stranded"


@dataclass(frozen=True)
class MigrationEvent:
    kind: str
    vm_id: int
    time: float
    datacenter: str
    source: int
    destination: Optional[int] = None
    reason: Optional[str] = None


Listener = Callable[[MigrationEvent], None]


class FailureInjector:
    def __init__(self, registry: Registry, clock: Optional[Callable[[], float]] = None):
        self.registry = registry
        self.clock = clock
        self.events: List[MigrationEvent] = []
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _now(self, at_time: Optional[float]) -> float:
        if at_time is not None:
            return at_time
        return self.clock() if self.clock is not None else 0.0

    def _record(self, event: MigrationEvent) -> None:
        self.events.append(event)
        for listener in self._listeners:
            listener(event)

    def trigger(
        self, datacenter: str, host_id: int, at_time: Optional[float] = None
    ) -> List[MigrationEvent]:
        """
        Fail a host and evict its VMs. Returns the events of this pass; a
        host that has already failed yields no events.
        """
        registry = self.registry
        host = registry.host(datacenter, host_id)
        now = self._now(at_time)

        with registry.lock:
            if host.status is HostStatus.FAILED:
                logger.debug("host #%d in %s already failed; ignoring", host_id, datacenter)
                return []

            logger.warning(
                "SIMULATING FAILURE: host #%d in %s at time %.2f", host_id, datacenter, now
            )
            start = len(self.events)
            try:
                for vm_id in registry.vms_resident_on(datacenter, host_id):
                    self._evict(datacenter, host_id, vm_id, now)
                host.status = HostStatus.FAILED
                registry.check_invariants()
            except InvariantViolation:
                logger.critical(
                    "invariant violated while failing host #%d in %s; state: %s",
                    host_id,
                    datacenter,
                    json.dumps(registry.dump(), sort_keys=True),
                )
                raise
            return self.events[start:]

    def _evict(self, datacenter: str, host_id: int, vm_id: int, now: float) -> None:
        registry = self.registry
        source = registry.host(datacenter, host_id)
        vm = registry.vm(vm_id)
        try:
            target = find_alternative_host(
                registry.hosts_of(datacenter), host_id, vm.demand, vm_id
            )
        except InfeasiblePlacement as e:
            logger.warning("No alternative host for VM #%d: %s", vm_id, e.reason)
            self._record(
                MigrationEvent(STRANDED, vm_id, now, datacenter, host_id, reason=e.reason)
            )
            return

        # earlier moves in this pass may have used the candidate's room
        if not ledger.fits(target, vm.demand):
            logger.warning(
                "Alternative host #%d lacks resources for VM #%d", target.id, vm_id
            )
            self._record(
                MigrationEvent(
                    STRANDED, vm_id, now, datacenter, host_id,
                    reason=INSUFFICIENT_CAPACITY,
                )
            )
            return

        ledger.release(source, vm_id)
        ledger.reserve(target, vm_id, vm.demand)
        registry.move_vm(vm_id, source, target)
        logger.info("Migrated VM #%d from host #%d to host #%d", vm_id, host_id, target.id)
        self._record(
            MigrationEvent(MIGRATED, vm_id, now, datacenter, host_id, destination=target.id)
        )
