"""
On-screen text for the viewer: title card and help box.

Drawn directly with pygame on top of the composited frame; the world
itself knows nothing about fonts.
"""

import pygame


THEME = {
    "text": (255, 255, 255),
    "help_bg": (0, 0, 0, 60),
    "title_bg": (0, 0, 0),
}

HELP_LINES = [
    "CROWN SHYNESS - Deep Night Cycle",
    "Drag: open gaps (heals over time; forest responds)",
    "R: regenerate   S: save PNG   H: toggle help   F: fullscreen   Q: quit",
]


class Fonts:
    """Lazily created system fonts (pygame.font must be initialised)."""

    def __init__(self, family="helvetica"):
        self.family = family
        self._cache = {}

    def get(self, size, bold=False):
        key = (size, bold)
        font = self._cache.get(key)
        if font is None:
            font = pygame.font.SysFont(self.family, size, bold=bold)
            self._cache[key] = font
        return font


def _blit_centered(screen, font, text, color, alpha, center):
    surf = font.render(text, True, color)
    surf.set_alpha(int(alpha))
    rect = surf.get_rect(center=center)
    screen.blit(surf, rect)


def draw_title_card(screen, fonts, alpha):
    """Dark veil with title text, fading with `alpha` (0..255)."""
    if alpha <= 0:
        return
    w, h = screen.get_size()
    veil = pygame.Surface((w, h))
    veil.fill(THEME["title_bg"])
    veil.set_alpha(int(180 * alpha / 255.0))
    screen.blit(veil, (0, 0))

    color = THEME["text"]
    _blit_centered(screen, fonts.get(54, bold=True), "CROWN SHYNESS", color, alpha,
                   (w // 2, h // 2 - 40))
    _blit_centered(screen, fonts.get(26), "Deep Night Generative Canopy", color, alpha,
                   (w // 2, h // 2 + 10))
    _blit_centered(screen, fonts.get(16), "Move, click, or drag to begin", color, alpha,
                   (w // 2, h // 2 + 60))


def draw_help(screen, fonts):
    pad = 14
    line_h = 22
    bold = fonts.get(16, bold=True)
    regular = fonts.get(16)
    rendered = [bold.render(HELP_LINES[0], True, THEME["text"])]
    rendered += [regular.render(line, True, THEME["text"]) for line in HELP_LINES[1:]]

    box_w = max(440, max(s.get_width() for s in rendered) + pad * 2)
    box_h = line_h * len(rendered) + pad * 2
    box = pygame.Surface((box_w, box_h), pygame.SRCALPHA)
    pygame.draw.rect(box, THEME["help_bg"], box.get_rect(), border_radius=12)
    screen.blit(box, (18, 18))

    y = 18 + pad
    for surf in rendered:
        screen.blit(surf, (18 + pad, y))
        y += line_h
