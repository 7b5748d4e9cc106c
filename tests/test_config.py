import json

import pytest

from failover_sim.config import (
    CloudletSpec,
    DatacenterSpec,
    FailureSchedule,
    SimulationConfig,
    TierSpec,
    VmTemplate,
    default_config,
    load_config,
)


def test_default_config_shape():
    config = default_config(seed=3)
    assert [dc.name for dc in config.datacenters] == ["Frontend-DC", "Backend-DC"]
    assert sum(t.count for t in config.vms) == 5
    assert config.failure == FailureSchedule("Backend-DC", 1, 50.0)
    assert config.seed == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"host_count": 0},
        {"mips_per_pe": 0},
        {"pes_per_host": 0},
        {"ram_per_host": -1},
        {"bw_per_host": 0},
        {"storage_per_host": 0},
    ],
)
def test_tier_validation(kwargs):
    base = {"tier_name": "t", "host_count": 1, "mips_per_pe": 1000}
    base.update(kwargs)
    with pytest.raises(ValueError):
        TierSpec(**base)


def test_overlapping_tier_host_ids_rejected():
    with pytest.raises(ValueError, match="duplicate host id 1"):
        DatacenterSpec("dc", [TierSpec("a", 2, 1000), TierSpec("b", 2, 2000, first_host_id=1)])


def test_failure_must_name_configured_datacenter():
    with pytest.raises(ValueError, match="Nowhere"):
        SimulationConfig(
            datacenters=[DatacenterSpec("dc", [TierSpec("a", 1, 1000)])],
            vms=[VmTemplate(1000, 1, 512, 100, 1000)],
            failure=FailureSchedule("Nowhere", 0),
        )


def test_other_validation():
    with pytest.raises(ValueError):
        VmTemplate(1000, 0, 512, 100, 1000)
    with pytest.raises(ValueError):
        CloudletSpec(short_range=(10, 5))
    with pytest.raises(ValueError):
        FailureSchedule("dc", 0, at_time=-1)


def test_load_config(tmp_path):
    path = tmp_path / "cluster.json"
    path.write_text(
        json.dumps(
            {
                "datacenters": [
                    {
                        "name": "Backend-DC",
                        "tiers": [
                            {"tier_name": "large", "host_count": 1, "mips_per_pe": 2000,
                             "pes_per_host": 3, "first_host_id": 100},
                            {"tier_name": "small", "host_count": 1, "mips_per_pe": 2000,
                             "first_host_id": 101},
                        ],
                    }
                ],
                "vms": [{"mips": 2000, "pes": 1, "ram": 2048, "bw": 1000, "storage": 10000}],
                "cloudlets": {"count": 1, "short_range": [100, 200]},
                "failure": {"datacenter": "Backend-DC", "host_id": 100, "at_time": 5},
                "seed": 11,
            }
        )
    )
    config = load_config(path)
    tiers = config.datacenters[0].tiers
    assert tiers[0].host_ids() == [100]
    assert tiers[1].pes_per_host == 2
    assert config.cloudlets.short_range == (100, 200)
    assert config.failure.host_id == 100
    assert config.seed == 11
    assert SimulationConfig.from_dict(json.loads(json.dumps(config.to_dict()))) == config
