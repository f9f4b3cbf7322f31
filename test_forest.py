#!/usr/bin/env python3
"""
Tests for trees, leaves and the forest compositor.
"""

import numpy as np
import pygame

from crown_shyness.environment import EnvironmentClock
from crown_shyness.forest import Forest
from crown_shyness.gaps import GapRegistry
from crown_shyness.leaf import (
    Leaf, glint_mask, layer_visibility, leaf_sprite, wind_strength,
)
from crown_shyness.noise import PerlinNoise
from crown_shyness.presets import build_config
from crown_shyness.tree import Tree


def small_config(**overrides):
    params = {"num_trees": 4, "leaves_per_tree": (20, 30)}
    params.update(overrides)
    return build_config(**params)


def make_forest(width=320, height=240, config=None, seed=0):
    config = config or small_config()
    rng = np.random.default_rng(seed)
    return Forest(width, height, config, rng, PerlinNoise(seed)), config, rng


def test_regenerate_counts_for_any_viewport():
    config = build_config()
    lo, hi = config["leaves_per_tree"]
    forest, _, _ = make_forest(1280, 800, config=config)
    assert len(forest.trees) == config["num_trees"]
    for tree in forest.trees:
        assert lo <= len(tree.leaves) <= hi, f"Leaf count {len(tree.leaves)} out of bounds"

    small = small_config()
    for size in [(1, 1), (0, 0), (640, 480), (200, 900)]:
        forest, _, _ = make_forest(*size, config=small)
        assert len(forest.trees) == small["num_trees"], size
        for tree in forest.trees:
            assert 20 <= len(tree.leaves) <= 30, size
        forest.regenerate()
        assert len(forest.trees) == small["num_trees"], "Regenerate keeps the configured count"


def test_regenerate_is_a_full_reseed():
    forest, _, _ = make_forest()
    before = [(t.base_x, t.crown_radius) for t in forest.trees]
    forest.regenerate()
    after = [(t.base_x, t.crown_radius) for t in forest.trees]
    assert before != after, "Regeneration should grow a different forest"


def test_same_seed_same_forest():
    a, _, _ = make_forest(seed=5)
    b, _, _ = make_forest(seed=5)
    assert [t.base_x for t in a.trees] == [t.base_x for t in b.trees]
    assert [lf.seed for lf in a.leaves] == [lf.seed for lf in b.leaves]


def test_tree_geometry():
    config = small_config()
    rng = np.random.default_rng(1)
    tree = Tree(100.0, 0.6, 0, (400, 300), config, rng)
    assert abs(tree.trunk_height - 180.0) < 1e-9
    pts = tree.trunk_points(20)
    assert pts.shape == (21, 2)
    assert np.allclose(pts[0], tree.control_points[0])
    assert np.allclose(pts[-1], tree.control_points[-1])
    assert tree.control_points[0][1] == 300, "Trunk starts on the ground"

    for lf in tree.leaves:
        assert lf.tree_index == 0
        assert 0 <= lf.layer < config["layers"]
        dx, dy = lf.offset
        a = tree.crown_radius
        b = a * tree.crown_eccentricity
        assert (dx / a) ** 2 + (dy / b) ** 2 <= 1.0 + 1e-9, "Leaf outside its crown ellipse"

    clamped = Tree(0.0, 5.0, 1, (400, 300), config, rng)
    assert abs(clamped.trunk_height - 270.0) < 1e-9, "Height fraction clamps to 0.9"


def test_leaf_creation_ranges():
    config = small_config()
    rng = np.random.default_rng(2)
    for layer in range(config["layers"]):
        lf = Leaf.create(0, (0.0, 0.0), layer, config, rng)
        assert 13 * 0.75 <= lf.size <= 26 * 1.25
        assert 0.65 <= lf.aspect <= 0.95
        r, g, b, a = lf.color
        assert all(0 <= c <= 255 for c in (r, g, b))
        assert 180 <= a <= 235
        assert 0 <= lf.seed < 1000

    empty = small_config(leaf_palette=[])
    lf = Leaf.create(0, (0.0, 0.0), 0, empty, rng)
    assert len(lf.color) == 4, "Empty palette falls back to a default green"


def test_leaf_shading_helpers():
    assert wind_strength(1.0, 1.8) > wind_strength(0.0, 1.8), "Disturbed canopy sways harder"
    assert abs(wind_strength(0.0, 1.8) - 1.8) < 1e-12

    far = layer_visibility(0, 3, False, 0.0)
    near = layer_visibility(2, 3, False, 0.0)
    assert abs(far - 0.35) < 1e-12 and abs(near - 1.0) < 1e-12
    assert layer_visibility(2, 3, True, 0.0) < near, "Night dims leaves"
    assert layer_visibility(2, 3, False, 1.0) < near, "Disturbance dims leaves slightly"
    assert layer_visibility(0, 1, False, 0.0) == 1.0, "Single layer never divides by zero"

    noise = PerlinNoise(3)
    seeds = np.random.default_rng(0).uniform(0, 1000, 5000)
    day = glint_mask(noise, seeds, 12.0, night=False)
    night = glint_mask(noise, seeds, 12.0, night=True)
    assert night.sum() <= day.sum(), "Higher glint bar at night"
    assert not np.any(night & ~day), "Every night glint also clears the day bar"


def test_leaf_sprite():
    lf = Leaf(0, (0.0, 0.0), 1, 20.0, 0.8, (40.0, 120.0, 60.0, 200.0), 1.0)
    sprite = leaf_sprite(lf)
    w, h = sprite.get_size()
    assert w >= 20 and h >= 16
    assert sprite.get_at((w // 2, h // 2)).a > 0, "Center is opaque"
    assert sprite.get_at((0, 0)).a == 0, "Corner is outside the ellipse"
    big = leaf_sprite(lf, scale=1.35, gain=1.35)
    assert big.get_width() > w


def test_leaf_positions_are_pure():
    forest, _, _ = make_forest()
    layout = [(lf.offset, lf.layer, lf.size) for lf in forest.leaves]
    x1, y1 = forest.leaf_positions(3.0, 0.2)
    x2, y2 = forest.leaf_positions(3.0, 0.2)
    assert np.array_equal(x1, x2) and np.array_equal(y1, y2)
    assert layout == [(lf.offset, lf.layer, lf.size) for lf in forest.leaves], \
        "Leaves are never mutated"
    x3, _ = forest.leaf_positions(7.5, 0.2)
    assert not np.array_equal(x1, x3), "Leaves sway over time"


def test_gap_hides_leaf_until_it_heals():
    forest, config, rng = make_forest()
    gaps = GapRegistry(config, rng)
    t, d = 4.0, 0.0
    px, py = forest.leaf_positions(t, d)
    target = 0
    gaps.open_gap((px[target] + 10.0, py[target]), base_radius=20, jitter=(1.0, 1.0))

    _, _, visible = forest.visible_leaves(t, d, gaps)
    assert not visible[target], "Leaf inside a live gap is hidden"

    gaps.gaps[0].radius = 5.0
    _, _, visible = forest.visible_leaves(t, d, gaps)
    assert visible[target], "Leaf reappears once the gap shrinks below its distance"

    gaps.clear()
    assert forest.visible_leaves(t, d, gaps)[2].all()


def test_draw_skips_leaf_inside_gap():
    sky = ((0, 0, 80), (0, 0, 80))
    config = small_config(
        num_trees=1, layers=1, leaves_per_tree=(1, 1), crown_radius=(10, 10),
        crown_jitter_y=0, leaf_size=(14, 14), leaf_alpha=(255, 255),
        leaf_palette=[(255, 40, 40)],
        sky_day=sky, sky_dusk=sky, sky_night=sky, sky_dawn=sky,
    )
    forest, config, rng = make_forest(400, 300, config=config)
    assert forest.leaf_count == 1
    clock = EnvironmentClock.from_config(config)
    clock.advance(4.0)
    gaps = GapRegistry(config, rng)
    frame = pygame.Surface((400, 300), 0, 32)

    px, py = forest.leaf_positions(clock.elapsed_time, clock.disturbance)
    spot = (int(px[0]), int(py[0]))
    assert 0 <= spot[0] < 400 and 0 <= spot[1] < 300

    forest.draw(frame, clock, gaps)
    assert frame.get_at(spot).r > 200, "Red leaf is drawn without a gap"

    gaps.open_gap((px[0] + 10.0, py[0]), base_radius=20, jitter=(1.0, 1.0))
    forest.draw(frame, clock, gaps)
    assert frame.get_at(spot).r < 150, "Only sky or trunk shows through the gap"

    gaps.gaps[0].radius = 5.0
    forest.draw(frame, clock, gaps)
    assert frame.get_at(spot).r > 200, "Leaf is drawn again once the gap shrinks past it"


def test_light_mask_day_and_night():
    forest, _, _ = make_forest(200, 120)
    day = forest.light_mask(2.0, night=False)
    assert day.shape == (200, 120)
    assert day.min() >= 0.0 and day.max() <= 1.0
    night = forest.light_mask(2.0, night=True).copy()
    assert night.max() < day.max(), "Light shimmer is subtler at night"


def test_camera_drift_follows_pointer():
    forest, _, _ = make_forest(400, 300)
    for _ in range(600):
        forest.update_camera(1 / 60, pointer=(400, 300))
    ix, iy = forest.influence
    assert abs(ix - 200 * 0.06) < 0.01 and abs(iy - 150 * 0.05) < 0.01
    assert 0.98 - 1e-9 <= forest.scale <= 1.02 + 1e-9, "Breathing stays within 2%"

    centered, _, _ = make_forest(400, 300)
    for _ in range(60):
        centered.update_camera(1 / 60, pointer=None)
    assert centered.influence == (0.0, 0.0), "No pointer means no pull"


def test_draw_composites_a_frame():
    forest, config, rng = make_forest(160, 120, config=small_config(num_trees=2))
    clock = EnvironmentClock.from_config(config)
    gaps = GapRegistry(config, rng)
    gaps.open_gap((80, 60))
    frame = pygame.Surface((160, 120), 0, 32)
    for _ in range(3):
        clock.advance(1 / 60)
        forest.update_camera(1 / 60)
        forest.draw(frame, clock, gaps)
    assert frame.get_size() == (160, 120)

    clock.set_phase(0.55)
    forest.draw(frame, clock, gaps)

    forest.resize(80, 60)
    small = pygame.Surface((80, 60), 0, 32)
    forest.draw(small, clock, None)
    assert forest.light_mask(0.0, False).shape == (80, 60), "Buffers follow the new size"


def test_single_tree_single_layer():
    forest, _, _ = make_forest(300, 200, config=small_config(num_trees=1, layers=1))
    assert len(forest.trees) == 1
    assert all(lf.layer == 0 for lf in forest.leaves)


if __name__ == "__main__":
    test_regenerate_counts_for_any_viewport()
    test_regenerate_is_a_full_reseed()
    test_same_seed_same_forest()
    test_tree_geometry()
    test_leaf_creation_ranges()
    test_leaf_shading_helpers()
    test_leaf_sprite()
    test_leaf_positions_are_pure()
    test_gap_hides_leaf_until_it_heals()
    test_draw_skips_leaf_inside_gap()
    test_light_mask_day_and_night()
    test_camera_drift_follows_pointer()
    test_draw_composites_a_frame()
    test_single_tree_single_layer()
    print("\n✓ All forest tests passed!\n")
