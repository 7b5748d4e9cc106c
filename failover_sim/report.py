# report.py
# Result output: printed cloudlet table, CSV files and an optional chart.

import csv
from typing import Dict, Iterable, List, Optional, TextIO, Tuple

from .injector import MigrationEvent
from .workload import Cloudlet, CloudletStatus

EVENT_FIELDS = ["kind", "vm_id", "time", "datacenter", "source", "destination", "reason"]
PLACEMENT_FIELDS = ["vm_id", "datacenter", "host_id", "host_status"]


def _fmt(x) -> str:
    return "-" if x is None else f"{x:.2f}"


def cloudlet_table(cloudlets: Iterable[Cloudlet]) -> List[str]:
    lines = ["ID\tStatus\tDC\tVM\tTime\tStart\tFinish"]
    for c in sorted(cloudlets, key=lambda c: c.id):
        status = "SUCCESS" if c.status is CloudletStatus.SUCCESS else "FAILED"
        lines.append(
            f"{c.id}\t{status}\t{c.datacenter or '-'}\t{c.vm_id}\t"
            f"{c.actual_cpu_time:.2f}\t{_fmt(c.start_time)}\t{_fmt(c.finish_time)}"
        )
    return lines


def print_results(cloudlets: Iterable[Cloudlet], out: Optional[TextIO] = None) -> None:
    print("\nCloudlet Execution Results:", file=out)
    for line in cloudlet_table(cloudlets):
        print(line, file=out)


def event_rows(events: Iterable[MigrationEvent]) -> List[Dict]:
    return [{k: getattr(e, k) for k in EVENT_FIELDS} for e in events]


def write_events_csv(path, events: Iterable[MigrationEvent]) -> None:
    with open(path, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=EVENT_FIELDS)
        w.writeheader()
        for row in event_rows(events):
            w.writerow(row)


def write_placements_csv(path, placements: Dict[int, Tuple[str, int, str]]) -> None:
    with open(path, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=PLACEMENT_FIELDS)
        w.writeheader()
        for vm_id, (datacenter, host_id, status) in sorted(placements.items()):
            w.writerow(
                {
                    "vm_id": vm_id,
                    "datacenter": datacenter,
                    "host_id": host_id,
                    "host_status": status,
                }
            )


def plot_execution_times(cloudlets: Iterable[Cloudlet], path) -> None:
    """Save a line chart of per-cloudlet execution time."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    finished = sorted(cloudlets, key=lambda c: c.id)
    labels = [f"Cloudlet #{c.id}" for c in finished]
    times = [c.actual_cpu_time for c in finished]

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(labels, times, marker="o", label="Execution Time")
    ax.set_title("Cloudlet Execution Results", color="blue")
    ax.set_xlabel("Cloudlets")
    ax.set_ylabel("Execution Time (seconds)")
    ax.legend()
    fig.savefig(path)
    plt.close(fig)
