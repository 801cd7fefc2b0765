"""Small pygame-backed display primitives used by the subscribers.

Every widget keeps its state in plain attributes (texture, text, fill,
enabled, alpha) so it can be driven and inspected without a display;
drawing happens only when `render` is given a surface.
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pygame

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]


def _alpha_byte(alpha: float) -> int:
    return int(max(0.0, min(1.0, alpha)) * 255)


class SceneObject:
    """A toggleable object, optionally wrapping a widget that it draws.

    `alpha` is shared with the child when the child has one, so fading the
    object fades what it draws.
    """

    def __init__(self, name: str = "", child: Any = None, enabled: bool = True) -> None:
        self.name = name
        self.child = child
        self.enabled = enabled
        self._alpha = 1.0

    @property
    def alpha(self) -> float:
        if self.child is not None and hasattr(self.child, "alpha"):
            return self.child.alpha
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alpha = float(value)
        if self.child is not None and hasattr(self.child, "alpha"):
            self.child.alpha = self._alpha

    def render(self, surface: Optional[pygame.Surface]) -> None:
        if surface is None or not self.enabled or self.child is None:
            return
        self.child.render(surface)

    def __repr__(self) -> str:
        return f"SceneObject({self.name!r}, enabled={self.enabled})"


class ImageWidget:
    """Shows one texture at a fixed position.

    `texture` may be a pygame.Surface or a path; paths are loaded on first
    render, once a display exists.
    """

    def __init__(
        self,
        texture: Any = None,
        position: Tuple[int, int] = (0, 0),
        enabled: bool = True,
        centered: bool = True,
    ) -> None:
        self.texture = texture
        self.position = position
        self.enabled = enabled
        self.centered = centered
        self.alpha = 1.0
        self._cache: dict = {}

    def _surface_for(self, texture: Any) -> Optional[pygame.Surface]:
        if texture is None:
            return None
        if isinstance(texture, pygame.Surface):
            return texture
        if isinstance(texture, (str, os.PathLike)):
            key = os.fspath(texture)
            if key not in self._cache:
                image = pygame.image.load(key)
                try:
                    image = image.convert_alpha()
                except pygame.error:
                    pass
                self._cache[key] = image
            return self._cache[key]
        return None

    def render(self, surface: Optional[pygame.Surface]) -> None:
        if surface is None or not self.enabled:
            return
        try:
            image = self._surface_for(self.texture)
        except (pygame.error, FileNotFoundError) as e:
            logger.error("ImageWidget: could not load %s: %s", self.texture, e)
            self.texture = None
            return
        if image is None:
            return

        if self.alpha < 1.0:
            image = image.copy()
            image.set_alpha(_alpha_byte(self.alpha))
        rect = image.get_rect()
        if self.centered:
            rect.center = self.position
        else:
            rect.topleft = self.position
        surface.blit(image, rect)


class TextWidget:
    def __init__(
        self,
        text: str = "",
        position: Tuple[int, int] = (0, 0),
        color: Color = (255, 255, 255, 255),
        font_size: int = 48,
        enabled: bool = True,
    ) -> None:
        self.text = text
        self.position = position
        self.color = color
        self.font_size = font_size
        self.enabled = enabled
        self.alpha = 1.0
        self._font = None

    def render(self, surface: Optional[pygame.Surface]) -> None:
        if surface is None or not self.enabled or not self.text:
            return
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.SysFont(None, self.font_size)
        rendered = self._font.render(self.text, True, self.color[:3])
        if self.alpha < 1.0:
            rendered.set_alpha(_alpha_byte(self.alpha))
        rect = rendered.get_rect()
        rect.center = self.position
        surface.blit(rendered, rect)


class ProgressBar:
    """Horizontal bar whose fill fraction is clamped to [0, 1]."""

    def __init__(
        self,
        rect: Tuple[int, int, int, int] = (0, 0, 200, 16),
        color: Color = (255, 255, 0, 255),
        background: Color = (40, 40, 40, 160),
        enabled: bool = True,
    ) -> None:
        self.rect = rect
        self.color = color
        self.background = background
        self.enabled = enabled
        self._fill = 0.0

    @property
    def fill(self) -> float:
        return self._fill

    @fill.setter
    def fill(self, value: float) -> None:
        self._fill = max(0.0, min(1.0, float(value)))

    def render(self, surface: Optional[pygame.Surface]) -> None:
        if surface is None or not self.enabled:
            return
        x, y, w, h = self.rect
        pygame.draw.rect(surface, self.background[:3], pygame.Rect(x, y, w, h))
        filled = int(w * self._fill)
        if filled > 0:
            pygame.draw.rect(surface, self.color[:3], pygame.Rect(x, y, filled, h))


class AnimatedTexture:
    """Flip-book animation over a list of textures."""

    def __init__(
        self,
        frames: Sequence[Any],
        fps: float = 12.0,
        position: Tuple[int, int] = (0, 0),
    ) -> None:
        self.frames = list(frames)
        self.fps = fps
        self.playing = False
        self.loops = 0
        self.current_frame = 0
        self.alpha = 1.0
        self._elapsed = 0.0
        self._image = ImageWidget(position=position)

    def play(self, loops: int = -1, offset: int = 0) -> None:
        """Start playing; loops < 0 repeats forever."""
        self.playing = bool(self.frames)
        self.loops = loops
        self.current_frame = offset % len(self.frames) if self.frames else 0
        self._elapsed = 0.0

    def stop(self) -> None:
        self.playing = False

    def update(self, dt: float) -> None:
        if not self.playing or self.fps <= 0:
            return
        self._elapsed += dt
        frame_time = 1.0 / self.fps
        while self._elapsed >= frame_time and self.playing:
            self._elapsed -= frame_time
            self.current_frame += 1
            if self.current_frame >= len(self.frames):
                if self.loops == 0:
                    self.current_frame = len(self.frames) - 1
                    self.playing = False
                else:
                    if self.loops > 0:
                        self.loops -= 1
                    self.current_frame = 0

    def render(self, surface: Optional[pygame.Surface]) -> None:
        if surface is None or not self.playing or not self.frames:
            return
        self._image.texture = self.frames[self.current_frame]
        self._image.alpha = self.alpha
        self._image.render(surface)


class ParticleBurst:
    """Emits a one-off spray of particles that fall and fade out."""

    def __init__(
        self,
        position: Tuple[float, float] = (0.0, 0.0),
        count: int = 40,
        speed: float = 220.0,
        lifetime: float = 1.2,
        gravity: float = 300.0,
        color: Color = (255, 220, 80, 255),
        seed: Optional[int] = None,
    ) -> None:
        self.position = np.asarray(position, dtype=float)
        self.count = count
        self.speed = speed
        self.lifetime = lifetime
        self.gravity = gravity
        self.color = color
        self.running = False
        self._rng = np.random.default_rng(seed)
        self._pos = np.zeros((0, 2))
        self._vel = np.zeros((0, 2))
        self._age = np.zeros((0,))

    @property
    def alive(self) -> int:
        return int(self._age.shape[0])

    def start_particles(self) -> None:
        angles = self._rng.uniform(0.0, 2.0 * np.pi, self.count)
        speeds = self._rng.uniform(0.3, 1.0, self.count) * self.speed
        self._pos = np.tile(self.position, (self.count, 1))
        self._vel = np.stack([np.cos(angles), np.sin(angles)], axis=1) * speeds[:, None]
        self._age = np.zeros((self.count,))
        self.running = True

    def stop_particles(self) -> None:
        self.running = False
        self._pos = np.zeros((0, 2))
        self._vel = np.zeros((0, 2))
        self._age = np.zeros((0,))

    def update(self, dt: float) -> None:
        if not self.running:
            return
        self._vel[:, 1] += self.gravity * dt
        self._pos += self._vel * dt
        self._age += dt
        keep = self._age < self.lifetime
        self._pos, self._vel, self._age = self._pos[keep], self._vel[keep], self._age[keep]
        if self.alive == 0:
            self.running = False

    def render(self, surface: Optional[pygame.Surface]) -> None:
        if surface is None or not self.running:
            return
        for (x, y), age in zip(self._pos, self._age):
            fade = 1.0 - age / self.lifetime
            color = tuple(int(c * fade) for c in self.color[:3])
            pygame.draw.circle(surface, color, (int(x), int(y)), 3)


def set_enabled(objects: Optional[List[Any]], enabled: bool) -> None:
    for obj in objects or ():
        if obj is not None:
            obj.enabled = enabled
