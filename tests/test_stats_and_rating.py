from __future__ import annotations

import pytest

from conftest import approved_request, assigned_request, new_request
from homely.domain.errors import Forbidden, InvalidArgument, InvalidState
from homely.services import maintenance_service, stats_service, work_order_service


def _populate(db, world):
    new_request(db, world, priority="high")
    approved_request(db, world, priority="urgent")
    r = new_request(db, world, priority="low")
    maintenance_service.update_status(db, world.landlord, r.id, "rejected")
    assigned_request(db, world)
    _, wo = assigned_request(db, world)
    work_order_service.update_work_order_status(db, world.workman, wo.id, "in_progress")
    _, done = assigned_request(db, world)
    work_order_service.update_work_order_status(db, world.workman, done.id, "in_progress")
    work_order_service.update_work_order_status(db, world.workman, done.id, "completed")

    new_request(db, world, tenant=world.tenant2, unit_id=world.unit2_id)


def test_stats_total_matches_list_for_every_actor(db, world):
    _populate(db, world)

    actors = [
        world.tenant,
        world.tenant2,
        world.landlord,
        world.landlord2,
        world.workman,
        world.workman2,
        world.admin,
    ]
    for actor in actors:
        s = stats_service.compute_stats(db, actor)
        assert s.total == len(maintenance_service.list_requests(db, actor))
        assert s.pending + s.approved + s.in_progress + s.completed <= s.total
        assert sum(s.by_status.values()) == s.total
        assert sum(s.by_priority.values()) == s.total


def test_stats_buckets_for_landlord(db, world):
    _populate(db, world)
    s = stats_service.compute_stats(db, world.landlord)

    assert s.total == 6
    assert s.pending == 1
    assert s.approved == 1
    assert s.in_progress == 1
    assert s.completed == 1
    assert s.by_status["rejected"] == 1
    assert s.by_status["assigned"] == 1
    assert s.by_priority["urgent"] == 1
    assert s.by_priority["medium"] == 3

    admin = stats_service.compute_stats(db, world.admin)
    assert admin.total == 7
    assert stats_service.compute_stats(db, world.workman2).as_dict()["total"] == 0


def _completed(db, world):
    r, wo = assigned_request(db, world)
    work_order_service.update_work_order_status(db, world.workman, wo.id, "in_progress")
    work_order_service.update_work_order_status(db, world.workman, wo.id, "completed")
    return r


def test_rate_once(db, world):
    r = _completed(db, world)
    out = maintenance_service.rate(db, world.tenant, r.id, 4, feedback="quick")
    assert out.tenant_rating == 4
    assert out.rated_at is not None

    with pytest.raises(InvalidState):
        maintenance_service.rate(db, world.tenant, r.id, 5)


def test_rate_before_completion(db, world):
    r, _ = assigned_request(db, world)
    with pytest.raises(InvalidState):
        maintenance_service.rate(db, world.tenant, r.id, 3)


@pytest.mark.parametrize("rating", [0, 6, "5", True])
def test_rate_range(db, world, rating):
    r = _completed(db, world)
    with pytest.raises(InvalidArgument):
        maintenance_service.rate(db, world.tenant, r.id, rating)


def test_only_the_requesting_tenant_rates(db, world):
    r = _completed(db, world)
    for actor in (world.tenant2, world.landlord, world.admin, world.workman):
        with pytest.raises(Forbidden):
            maintenance_service.rate(db, actor, r.id, 5)
