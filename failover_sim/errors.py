# errors.py
# Exception taxonomy for the placement/migration core.


class ClusterError(Exception):
    """Base class for every error raised by the cluster model."""


class UnknownEntity(ClusterError, KeyError):
    """Lookup of a datacenter, host or VM that is not registered."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class InvariantViolation(ClusterError):
    """The resource ledger or topology can no longer be trusted."""


NO_HEALTHY_HOST = "NoHealthyHost"
INSUFFICIENT_CAPACITY = "InsufficientCapacity"


class InfeasiblePlacement(ClusterError):
    """No destination satisfies a VM's demand."""

    def __init__(self, vm_id: int, reason: str):
        super().__init__(f"no destination for VM #{vm_id}: {reason}")
        self.vm_id = vm_id
        self.reason = reason
