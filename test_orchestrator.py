#!/usr/bin/env python3
"""
Tests for the World: title card, gap input, regeneration and resize.

Run with: python -m pytest test_orchestrator.py
"""

import pytest

from crown_shyness.orchestrator import (
    FADING_IN, FADING_OUT, IDLE, RUNNING, TITLE_CARD, World,
)
from crown_shyness.presets import DEFAULTS, build_config


def make_world(width=160, height=120, seed=3, **overrides):
    params = {"num_trees": 3, "leaves_per_tree": (10, 20),
              "pollen_count": 10, "firefly_count": 10}
    params.update(overrides)
    return World(width, height, config=build_config(**params), seed=seed)


def test_title_card_dismissed_by_press():
    world = make_world()
    assert world.state == TITLE_CARD
    world.tick(1 / 60)
    assert world.title_alpha == 255.0, "Title stays up until the first interaction"

    world.pointer_pressed((80, 60))
    assert world.state == RUNNING
    world.tick(0.5)
    assert world.title_alpha == pytest.approx(255.0 - 180.0)
    world.tick(1.0)
    assert world.title_alpha == 0.0


def test_drag_opens_gap_and_disturbs():
    world = make_world()
    gap = world.pointer_dragged((50, 40))
    assert world.state == RUNNING, "Dragging also dismisses the title"
    assert len(world.gaps) == 1
    assert gap.x == 50 and gap.y == 40
    assert 45 - 1e-9 <= gap.radius <= 55 + 1e-9
    assert world.clock.disturbance == pytest.approx(0.08)

    touch = world.pointer_dragged((60, 40), touch=True)
    assert 42.5 - 1e-9 <= touch.radius <= 57.5 + 1e-9


def test_touch_release_recenters_camera():
    world = make_world()
    world.pointer_pressed((160, 120))
    for _ in range(20):
        world.tick(0.25)
    ix, iy = world.forest.influence
    assert ix > 4.0 and iy > 2.5, "Pointer in the corner pulls the view"

    world.pointer_released()
    assert world.pointer is None
    for _ in range(40):
        world.tick(0.25)
    ix, iy = world.forest.influence
    assert abs(ix) < 0.01 and abs(iy) < 0.01, "Pull eases back once the finger lifts"


def test_gaps_heal_over_ticks():
    world = make_world()
    world.pointer_dragged((50, 40))
    for _ in range(120):
        world.tick(0.1)
    assert len(world.gaps) == 0, "A single gap heals within a few seconds"
    assert world.clock.disturbance == 0.0


def test_regeneration_state_machine():
    world = make_world()
    trees_before = [t.base_x for t in world.forest.trees]
    world.pointer_dragged((50, 40))

    assert world.request_regenerate() is True
    assert world.regen_state == FADING_OUT
    assert world.request_regenerate() is False, "Ignored while fading out"

    world.tick(0.5)
    assert world.regen_state == FADING_OUT
    assert world.regen_count == 0

    world.tick(0.5)
    assert world.regen_state == FADING_IN
    assert world.regen_count == 1
    assert len(world.gaps) == 0, "Gaps are cleared when the forest regrows"
    assert [t.base_x for t in world.forest.trees] != trees_before
    assert world.fade.value > 150, "The overlay is still dark right after the swap"

    world.tick(20.0)
    world.tick(20.0)
    assert world.regen_state == IDLE
    assert not world.fade.visible


def test_regenerate_accepted_while_fading_in():
    world = make_world()
    world.request_regenerate()
    world.tick(1.0)
    assert world.regen_state == FADING_IN
    assert world.request_regenerate() is True
    assert world.regen_state == FADING_OUT


def test_resize_rebuilds_buffers():
    world = make_world()
    world.pointer_dragged((50, 40))
    world.resize(200, 90)
    assert world.size == (200, 90)
    assert world.forest.width == 200 and world.forest.height == 90
    assert world.atmospherics.pollen.width == 200
    assert len(world.gaps) == 0
    frame = world.tick(1 / 60)
    assert frame.get_size() == (200, 90)


def test_pixel_density_scales_frame_and_input():
    world = make_world(100, 80)
    world.resize(100, 80, pixel_density=2.0)
    assert world.size == (200, 160)
    gap = world.pointer_dragged((10, 20))
    assert (gap.x, gap.y) == (20, 40)


def test_zero_viewport_is_clamped():
    world = make_world(0, 0)
    assert world.size == (1, 1)
    world.tick(1 / 60)


def test_half_cycle_reaches_night():
    world = make_world()
    world.tick(DEFAULTS["cycle_period"] / 2)
    assert world.clock.cycle_phase == pytest.approx(0.5)
    assert world.clock.is_night()
    world.tick(1 / 60)


def test_set_phase_starts_at_night():
    world = make_world()
    world.clock.set_phase(0.55)
    world.tick(1 / 60)
    assert world.clock.is_night()
    assert world.atmospherics.active_kind(world.clock) == "fireflies"


def test_negative_dt_is_ignored():
    world = make_world()
    world.tick(1.0)
    t = world.clock.elapsed_time
    world.tick(-5.0)
    assert world.clock.elapsed_time == t


def test_invalid_config_rejected():
    config = build_config()
    config["num_trees"] = 0
    with pytest.raises(ValueError):
        World(100, 100, config=config)


def test_same_seed_same_forest():
    a = make_world(seed=11)
    b = make_world(seed=11)
    assert [t.base_x for t in a.forest.trees] == [t.base_x for t in b.forest.trees]
    assert a.forest.leaf_count == b.forest.leaf_count


def test_snapshot_is_a_copy():
    world = make_world()
    world.tick(1 / 60)
    snap = world.snapshot()
    assert snap.get_size() == world.size
    assert snap is not world.frame


def test_toggle_help():
    world = make_world()
    assert world.show_help is True
    assert world.toggle_help() is False
    assert world.toggle_help() is True


if __name__ == "__main__":
    test_title_card_dismissed_by_press()
    test_drag_opens_gap_and_disturbs()
    test_touch_release_recenters_camera()
    test_gaps_heal_over_ticks()
    test_regeneration_state_machine()
    test_regenerate_accepted_while_fading_in()
    test_resize_rebuilds_buffers()
    test_pixel_density_scales_frame_and_input()
    test_zero_viewport_is_clamped()
    test_half_cycle_reaches_night()
    test_set_phase_starts_at_night()
    test_negative_dt_is_ignored()
    test_invalid_config_rejected()
    test_same_seed_same_forest()
    test_snapshot_is_a_copy()
    test_toggle_help()
    print("\n✓ All orchestrator tests passed!\n")
