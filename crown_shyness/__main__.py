"""
Crown Shyness - Entry Point

Usage:
    python -m crown_shyness [preset] [--window WxH] [--seed N] [--snap N] [--phase F] [--list]

Examples:
    python -m crown_shyness
    python -m crown_shyness old_growth
    python -m crown_shyness storm --window 1920x1080
    python -m crown_shyness quick_cycle --snap 600 --seed 7
    python -m crown_shyness --snap 60 --phase 0.55

Options:
    --window WxH   Window size (default 1280x800)
    --seed N       Fixed seed for layout and noise
    --snap N       Headless: run N frames at 60 fps, save a PNG, exit
    --phase F      Start at this point of the day cycle (0 = day, 0.55 = night)
    --list         List available presets

Use --list to see all available presets.
"""

import os
import sys

import numpy as np

from .presets import PRESET_ORDER, build_config, list_presets


def snap(preset, width, height, frames, seed=None, phase=None):
    """Headless mode: tick N frames with a few scripted drags, save PNG."""
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    import pygame
    from PIL import Image
    from .orchestrator import World

    pygame.init()
    world = World(width, height, config=build_config(preset), seed=seed)
    if phase is not None:
        world.clock.set_phase(phase)
    world.pointer_pressed((width / 2, height / 2))

    dt = 1.0 / 60.0
    print(f"  {preset}: rendering {frames} frames...", end="", flush=True)
    for i in range(frames):
        # sweep a short drag across the upper canopy a third of the way in
        if frames // 3 <= i < frames // 3 + 20:
            k = i - frames // 3
            world.pointer_dragged((width * (0.3 + 0.02 * k), height * 0.35))
        world.tick(dt)

    rgb = pygame.surfarray.array3d(world.frame).swapaxes(0, 1)
    screenshots_dir = os.path.join(os.getcwd(), "screenshots")
    os.makedirs(screenshots_dir, exist_ok=True)
    img = Image.fromarray(np.ascontiguousarray(rgb))
    path = os.path.join(screenshots_dir, f"crown-shyness_{preset}.png")
    img.save(path)
    img.save(os.path.join(screenshots_dir, "latest.png"))
    forest = world.forest
    print(f" saved: {path} ({len(forest.trees)} trees, {forest.leaf_count} leaves)")
    pygame.quit()


def main():
    preset = "crown_shyness"
    win_w, win_h = 1280, 800
    seed = None
    snap_frames = 0
    phase = None

    args = sys.argv[1:]
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--window" and i + 1 < len(args):
            parts = args[i + 1].split("x")
            win_w, win_h = int(parts[0]), int(parts[1])
            i += 2
        elif arg == "--seed" and i + 1 < len(args):
            seed = int(args[i + 1])
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_frames = int(args[i + 1])
            i += 2
        elif arg == "--phase" and i + 1 < len(args):
            phase = float(args[i + 1])
            i += 2
        elif arg == "--list":
            print("\nAvailable presets:")
            for key, name, desc in list_presets():
                print(f"    {key:16s} {name:16s} {desc}")
            print()
            return
        elif arg in ("--help", "-h"):
            print(__doc__)
            return
        elif arg in PRESET_ORDER:
            preset = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available presets")
            return

    try:
        config = build_config(preset)
    except ValueError as e:
        print(e)
        sys.exit(1)

    if snap_frames > 0:
        print(f"Headless snap mode: {preset} @ {win_w}x{win_h}, {snap_frames} frames")
        snap(preset, win_w, win_h, snap_frames, seed=seed, phase=phase)
        return

    from .viewer import Viewer

    print("Starting Crown Shyness")
    print(f"  Preset: {preset}")
    print(f"  Window: {win_w}x{win_h}")
    if seed is not None:
        print(f"  Seed: {seed}")
    if phase is not None:
        print(f"  Phase: {phase}")
    print()

    viewer = Viewer(width=win_w, height=win_h, config=config, seed=seed, preset_key=preset,
                    start_phase=phase)
    viewer.run()


if __name__ == "__main__":
    main()
