from cityprogress.models import Region, RegionSnapshot
from cityprogress.services import RegionGate

HH = Region.HEALTH_HARBOR
MP = Region.MIND_PALACE
CC = Region.CREATIVE_COMMONS
SS = Region.SOCIAL_SQUARE

ORDER = (MP, CC, HH, SS)


def make_gate(**kwargs):
    return RegionGate(ORDER, MP, **kwargs)


def test_only_starting_region_is_unlocked():
    gate = make_gate()
    assert gate.get_unlocked_regions() == [MP]
    assert gate.get_locked_regions() == [HH, CC, SS]
    assert gate.current_unlock_index == 0
    assert gate.next_region_to_unlock() == CC


def test_threshold_opens_next_region_in_order():
    gate = make_gate()
    assert gate.add_building(MP) == (1, None)
    assert gate.add_building(MP) == (2, None)
    assert gate.add_building(MP) == (3, CC)

    assert gate.is_unlocked(CC)
    assert not gate.is_unlocked(HH)
    assert gate.current_unlock_index == 2


def test_placements_in_a_locked_region_open_the_next_region_not_itself():
    gate = make_gate()
    for _ in range(3):
        gate.add_building(HH)
    assert gate.is_unlocked(CC)
    assert not gate.is_unlocked(HH)


def test_each_placement_past_threshold_opens_another_region():
    gate = make_gate()
    for _ in range(3):
        gate.add_building(MP)
    assert gate.add_building(MP) == (4, HH)
    assert gate.add_building(MP) == (5, SS)
    assert gate.all_unlocked()
    assert gate.next_region_to_unlock() is None
    assert gate.add_building(MP) == (6, None)


def test_removal_floors_at_zero_and_never_relocks():
    gate = make_gate()
    for _ in range(3):
        gate.add_building(MP)
    assert gate.remove_building(MP) == 2
    assert gate.is_unlocked(CC)

    assert gate.remove_building(SS) == 0
    assert gate.get_building_count(SS) == 0


def test_force_unlock_skips_over_cursor():
    gate = make_gate()
    assert gate.force_unlock(SS) is True
    assert gate.force_unlock(SS) is False
    assert gate.next_region_to_unlock() == CC

    for _ in range(3):
        gate.add_building(MP)
    assert gate.add_building(MP) == (4, HH)
    assert gate.all_unlocked()


def test_unlock_progress():
    gate = make_gate()
    gate.add_building(CC)
    assert gate.get_unlock_progress(CC) == 1 / 3
    assert gate.get_unlock_progress(SS) == 0.0
    for _ in range(5):
        gate.add_building(CC)
    assert gate.get_unlock_progress(CC) == 1.0


def test_custom_thresholds():
    gate = make_gate(thresholds={MP: 1}, default_threshold=5)
    assert gate.get_buildings_required(MP) == 1
    assert gate.get_buildings_required(SS) == 5
    assert gate.add_building(MP) == (1, CC)


def test_reset():
    gate = make_gate()
    for _ in range(4):
        gate.add_building(MP)
    gate.reset()
    assert gate.get_unlocked_regions() == [MP]
    assert gate.get_building_count(MP) == 0
    assert gate.current_unlock_index == 0


def test_snapshot_and_restore():
    gate = make_gate()
    for _ in range(3):
        gate.add_building(MP)
    gate.add_building(SS)

    restored = make_gate()
    restored.restore(gate.snapshot(), gate.current_unlock_index)
    assert restored.snapshot() == gate.snapshot()
    assert restored.current_unlock_index == 2
    assert restored.snapshot()[SS] == RegionSnapshot(is_unlocked=False, building_count=1)
