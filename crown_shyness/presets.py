"""
Canopy Configuration Presets

DEFAULTS holds every tunable the canopy reads: counts, size ranges,
speeds, cycle timing and palettes. Each preset is a small dict of
overrides on top of DEFAULTS. Configuration is static for a run; the
only way to apply a change is a full regeneration.
"""

DEFAULTS = {
    # Forest layout
    "num_trees": 9,
    "layers": 3,
    "leaves_per_tree": (220, 280),
    "trunk_weight": (7, 11),
    "trunk_height": (0.46, 0.74),
    "crown_radius": (80, 185),
    "crown_eccentricity": (0.45, 0.65),
    "crown_jitter_y": 48,

    # Leaves
    "leaf_size": (13, 26),
    "leaf_aspect": (0.65, 0.95),
    "leaf_alpha": (180, 235),
    "leaf_palette": [
        (34, 102, 52), (42, 122, 64), (50, 140, 72), (62, 150, 82), (28, 90, 46),
    ],

    # Wind
    "wind_speed": 0.15,
    "wind_strength": 1.8,

    # Gaps and ecological feedback
    "gap_radius": 50,
    "gap_jitter": (0.9, 1.1),
    "touch_gap_jitter": (0.85, 1.15),
    "base_heal_rate": 18.0,   # px per second when calm (scaled 0.75..1.5)
    "disturb_per_gap": 0.08,
    "disturb_decay": 0.25,    # per second

    # Day / night cycle
    "cycle_period": 180.0,    # seconds, day -> dusk -> night -> dawn
    "night_window": (0.45, 0.70),
    "sky_day": ((168, 205, 245), (120, 175, 225)),
    "sky_dusk": ((230, 170, 120), (160, 110, 80)),
    "sky_night": ((24, 34, 68), (10, 18, 36)),
    "sky_dawn": ((200, 180, 150), (120, 120, 140)),
    "light_cell": 8,

    # Atmospherics
    "pollen_count": 80,
    "firefly_count": 60,
    "pollen_drift": 0.06,

    # Transitions
    "fade_speed": 0.6,
    "regen_delay": 0.9,
}

# Used when a palette is configured empty
FALLBACK_LEAF_COLOR = (42, 122, 64)

PRESETS = {
    "crown_shyness": {
        "name": "Crown Shyness",
        "description": "Nine trees, three-minute day/night loop",
    },
    "old_growth": {
        "name": "Old Growth",
        "description": "Dense, tall canopy with wide crowns",
        "num_trees": 12,
        "leaves_per_tree": (300, 380),
        "trunk_height": (0.60, 0.85),
        "crown_radius": (120, 220),
        "base_heal_rate": 12.0,
    },
    "sparse_grove": {
        "name": "Sparse Grove",
        "description": "A few small trees, lots of sky",
        "num_trees": 5,
        "leaves_per_tree": (120, 160),
        "crown_radius": (60, 120),
        "pollen_count": 120,
    },
    "quick_cycle": {
        "name": "Quick Cycle",
        "description": "Forty-second day/night loop",
        "cycle_period": 40.0,
        "firefly_count": 90,
    },
    "storm": {
        "name": "Storm",
        "description": "Gusty wind, slow healing",
        "wind_strength": 3.2,
        "wind_speed": 0.35,
        "base_heal_rate": 8.0,
        "disturb_per_gap": 0.15,
        "disturb_decay": 0.1,
    },
}

PRESET_ORDER = ["crown_shyness", "old_growth", "sparse_grove", "quick_cycle", "storm"]

_META_KEYS = ("name", "description")
_RANGE_KEYS = (
    "leaves_per_tree", "trunk_weight", "trunk_height", "crown_radius",
    "crown_eccentricity", "leaf_size", "leaf_aspect", "leaf_alpha",
    "gap_jitter", "touch_gap_jitter", "night_window",
)
_SKY_KEYS = ("sky_day", "sky_dusk", "sky_night", "sky_dawn")


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def list_presets():
    """Return list of (key, name, description) for presets."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"])
            for k in PRESET_ORDER if k in PRESETS]


def build_config(name=None, **overrides):
    """Merge DEFAULTS, a named preset and keyword overrides into one config.

    Raises:
        KeyError: unknown preset name
        ValueError: the merged configuration is invalid
    """
    config = dict(DEFAULTS)
    if name is not None:
        preset = get_preset(name)
        if preset is None:
            raise KeyError(f"Unknown preset: {name}")
        config.update({k: v for k, v in preset.items() if k not in _META_KEYS})
    config.update(overrides)
    if not config["leaf_palette"]:
        config["leaf_palette"] = [FALLBACK_LEAF_COLOR]
    validate_config(config)
    return config


def _is_color(c):
    return (
        isinstance(c, (tuple, list)) and len(c) == 3
        and all(isinstance(v, (int, float)) and 0 <= v <= 255 for v in c)
    )


def validate_config(config):
    """Reject configurations the canopy cannot render.

    Collects every problem and raises one ValueError listing them all.
    Degenerate-but-usable values (empty palette, tiny viewports) are not
    errors; they are clamped where they are used.
    """
    problems = []
    missing = [k for k in DEFAULTS if k not in config]
    if missing:
        raise ValueError(f"Missing config keys: {', '.join(sorted(missing))}")

    for key in ("num_trees", "layers"):
        if int(config[key]) < 1:
            problems.append(f"{key} must be >= 1 (got {config[key]})")
    for key in ("pollen_count", "firefly_count"):
        if int(config[key]) < 0:
            problems.append(f"{key} must be >= 0 (got {config[key]})")
    for key in ("cycle_period", "base_heal_rate", "fade_speed", "light_cell"):
        if config[key] <= 0:
            problems.append(f"{key} must be > 0 (got {config[key]})")
    for key in ("gap_radius", "disturb_per_gap", "disturb_decay", "regen_delay",
                "wind_speed", "wind_strength", "crown_jitter_y", "pollen_drift"):
        if config[key] < 0:
            problems.append(f"{key} must be >= 0 (got {config[key]})")

    for key in _RANGE_KEYS:
        span = config[key]
        if len(span) != 2 or span[0] > span[1]:
            problems.append(f"{key} must be a (lo, hi) pair with lo <= hi (got {span})")
    if config["leaves_per_tree"][0] < 0:
        problems.append("leaves_per_tree must be non-negative")
    lo, hi = config["night_window"]
    if not (0.0 <= lo <= 1.0 and 0.0 <= hi <= 1.0):
        problems.append(f"night_window must lie inside [0, 1] (got {config['night_window']})")

    for key in _SKY_KEYS:
        pair = config[key]
        if len(pair) != 2 or not all(_is_color(c) for c in pair):
            problems.append(f"{key} must be a (top, bottom) pair of RGB colors")
    for c in config["leaf_palette"]:
        if not _is_color(c):
            problems.append(f"leaf_palette entry {c} is not an RGB color")

    if problems:
        raise ValueError("Invalid canopy config:\n  " + "\n  ".join(problems))
