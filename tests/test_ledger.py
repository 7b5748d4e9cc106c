import pytest

from failover_sim import ledger
from failover_sim.errors import InvariantViolation
from failover_sim.model import Host, HostStatus

from conftest import capacity, demand


def test_fits_empty_host():
    host = Host(0, capacity())
    assert ledger.fits(host, demand(pes=2))


@pytest.mark.parametrize(
    "d",
    [
        demand(pes=3),
        demand(mips=4000),
        demand(ram=5000),
        demand(bw=20000),
        demand(storage=2000000),
    ],
    ids=["pes", "pe-rate", "ram", "bw", "storage"],
)
def test_fits_rejects_any_short_dimension(d):
    assert not ledger.fits(Host(0, capacity()), d)


def test_fits_needs_fast_enough_pes():
    host = Host(0, capacity(pes=4, mips=1000))
    # 4000 MIPS in total, but no single PE runs at 2000
    assert not ledger.fits(host, demand(mips=2000, pes=1, ram=0))
    assert ledger.fits(host, demand(mips=1000, pes=4, ram=0))


def test_fits_needs_free_pes():
    host = Host(0, capacity(pes=1, mips=4000))
    # 4000 MIPS free, but only one PE
    assert not ledger.fits(host, demand(mips=2000, pes=2, ram=0))
    assert ledger.fits(host, demand(mips=4000, pes=1, ram=0))


def test_failed_host_never_fits():
    host = Host(0, capacity(), status=HostStatus.FAILED)
    assert not ledger.fits(host, demand(mips=1, ram=1, bw=1, storage=1))


def test_reserve_consumes_capacity():
    host = Host(0, capacity())
    ledger.reserve(host, 1, demand(pes=1, ram=2048))
    assert ledger.free_mips(host) == 2000
    assert ledger.free_pes(host) == 1
    assert ledger.free_ram(host) == 2048
    assert not ledger.fits(host, demand(pes=2))
    assert ledger.utilization(host)["mips"] == pytest.approx(0.5)


def test_reserve_without_fit_is_fatal():
    host = Host(0, capacity())
    with pytest.raises(InvariantViolation):
        ledger.reserve(host, 1, demand(pes=3))
    assert host.allocations == {}


def test_reserve_twice_is_fatal():
    host = Host(0, capacity())
    ledger.reserve(host, 1, demand())
    with pytest.raises(InvariantViolation):
        ledger.reserve(host, 1, demand())


def test_release():
    host = Host(0, capacity())
    d = demand()
    ledger.reserve(host, 1, d)
    assert ledger.release(host, 1) == d
    assert ledger.release(host, 1) is None
    assert ledger.free_mips(host) == 4000
