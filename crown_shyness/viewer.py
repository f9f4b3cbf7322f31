"""
Interactive Pygame Viewer for the Crown Shyness canopy

Controls:
  Drag        Open gaps in the canopy (they heal over time)
  R           Regenerate the forest (fade out, regrow, fade in)
  S           Save the current frame as PNG
  H           Toggle help
  F           Toggle fullscreen
  Q / ESC     Quit
"""

import os
import time
import pygame

from .orchestrator import World
from .overlay import Fonts, draw_help, draw_title_card


class Viewer:
    def __init__(self, width=1280, height=800, config=None, seed=None, preset_key="crown_shyness",
                 start_phase=None):
        self.window_w = width
        self.window_h = height
        self.config = config
        self.seed = seed
        self.preset_key = preset_key
        self.start_phase = start_phase
        self.running = True
        self.fullscreen = False
        self.world = None
        self.fonts = None

    def _set_mode(self):
        if self.fullscreen:
            screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            screen = pygame.display.set_mode((self.window_w, self.window_h), pygame.RESIZABLE)
        return screen

    def _save_screenshot(self):
        screenshots_dir = os.path.join(os.getcwd(), "screenshots")
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir, f"crown-shyness_{self.preset_key}_{timestamp}.png")
        latest_path = os.path.join(screenshots_dir, "latest.png")
        snap = self.world.snapshot()
        pygame.image.save(snap, path)
        pygame.image.save(snap, latest_path)
        print(f"Screenshot saved: {path}")

    def _toggle_fullscreen(self):
        self.fullscreen = not self.fullscreen
        screen = self._set_mode()
        w, h = screen.get_size()
        self.world.resize(w, h)
        return screen

    def run(self):
        """Main viewer loop."""
        pygame.init()
        screen = self._set_mode()
        pygame.display.set_caption("Crown Shyness")
        clock = pygame.time.Clock()
        self.fonts = Fonts()

        w, h = screen.get_size()
        self.world = World(w, h, config=self.config, seed=self.seed)
        if self.start_phase is not None:
            self.world.clock.set_phase(self.start_phase)

        last_time = time.time()
        while self.running:
            now = time.time()
            dt = min(now - last_time, 0.1)  # cap dt to avoid jumps
            last_time = now

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.KEYDOWN:
                    screen = self._handle_keydown(event, screen)
                elif event.type == pygame.VIDEORESIZE and not self.fullscreen:
                    self.window_w, self.window_h = event.w, event.h
                    screen = self._set_mode()
                    self.world.resize(event.w, event.h)
                else:
                    self._handle_pointer(event, screen)

            frame = self.world.tick(dt)
            if frame.get_size() != screen.get_size():
                frame = pygame.transform.smoothscale(frame, screen.get_size())
            screen.blit(frame, (0, 0))

            if self.world.show_help and self.world.title_alpha <= 0:
                draw_help(screen, self.fonts)
            draw_title_card(screen, self.fonts, self.world.title_alpha)

            pygame.display.flip()
            clock.tick(60)

        pygame.quit()

    def _handle_pointer(self, event, screen):
        world = self.world
        if event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEMOTION):
            if getattr(event, "touch", False):
                return  # handled through the FINGER events
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                world.pointer_pressed(event.pos)
            elif event.type == pygame.MOUSEMOTION:
                if event.buttons[0]:
                    world.pointer_dragged(event.pos)
                else:
                    world.pointer_moved(event.pos)
        elif event.type in (pygame.FINGERDOWN, pygame.FINGERMOTION, pygame.FINGERUP):
            sw, sh = screen.get_size()
            pos = (event.x * sw, event.y * sh)
            if event.type == pygame.FINGERDOWN:
                world.pointer_pressed(pos)
            elif event.type == pygame.FINGERMOTION:
                world.pointer_dragged(pos, touch=True)
            else:
                world.pointer_released()

    def _handle_keydown(self, event, screen):
        key = event.key

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False

        elif key == pygame.K_r:
            self.world.request_regenerate()

        elif key == pygame.K_h:
            self.world.toggle_help()

        elif key == pygame.K_s:
            self._save_screenshot()

        elif key == pygame.K_f:
            screen = self._toggle_fullscreen()

        return screen
