import csv
import json

from failover_sim.cli import build_parser, config_from_args, main


def test_main_writes_outputs(tmp_path, capsys):
    events = tmp_path / "events.csv"
    vms = tmp_path / "vms.csv"
    rc = main(
        ["--seed", "4", "--fail-at", "10", "--events-csv", str(events),
         "--placements-csv", str(vms), "--log-level", "WARNING"]
    )
    assert rc == 0
    out = capsys.readouterr().out
    assert "Cloudlet Execution Results:" in out
    assert "stranded on host #1 (InsufficientCapacity)" in out
    with open(events, newline="") as f:
        assert [r["vm_id"] for r in csv.DictReader(f)] == ["4"]
    with open(vms, newline="") as f:
        assert len(list(csv.DictReader(f))) == 5


def test_failure_overrides():
    args = build_parser().parse_args(["--fail-datacenter", "Frontend-DC", "--fail-host", "0"])
    config = config_from_args(args)
    assert (config.failure.datacenter, config.failure.host_id, config.failure.at_time) == (
        "Frontend-DC", 0, 50.0,
    )
    assert config_from_args(build_parser().parse_args(["--no-failure"])).failure is None


def test_bad_config_exits_with_2(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"datacenters": [], "vms": []}))
    assert main(["--config", str(path)]) == 2
    assert "invalid configuration" in capsys.readouterr().err
    assert main(["--fail-datacenter", "Nowhere"]) == 2
    assert main(["--fail-host", "7"]) == 2
    assert "failure host #7" in capsys.readouterr().err
