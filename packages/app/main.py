"""App entrypoint: runs the pose sequence lens against a webcam.

The camera frame is mirrored for display, MediaPipe estimates the body
pose, and the pose sequence controller walks the user through the
configured poses. Keys: S start, R reset, ESC quit.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

import cv2
import numpy as np
import pygame
from lib_pose import PoseLibrary, PoseMatcher
from lib_pose.detect import PoseEstimator
from lib_pose.util_2d import draw_keypoints_on_frame, draw_status_on_frame
from lib_sequence import (
    BodyTrackingWatcher,
    Component,
    ConfigError,
    EffectGroup,
    FinalPoseReveal,
    LensSession,
    PoseProgressImage,
    PoseSequenceController,
    PoseSequenceUI,
    RiddleProgressImage,
    Scheduler,
    SequenceConfig,
    SequenceEffectsController,
    TweenManager,
    build_trigger_bus,
    load_config,
)
from lib_sequence.widgets import (
    ImageWidget,
    ParticleBurst,
    ProgressBar,
    SceneObject,
    TextWidget,
)

logger = logging.getLogger(__name__)

SCREEN_SIZE = (1024, 576)


class CameraView(Component):
    """Reads the camera, estimates the pose and feeds the matcher.

    Register before every other component so the matcher holds this
    frame's pose when the controller evaluates it.
    """

    def __init__(self, cap, estimator: PoseEstimator, matcher: PoseMatcher, controller=None):
        super().__init__()
        self.cap = cap
        self.estimator = estimator
        self.matcher = matcher
        self.controller = controller
        self.last_frame = None

    def update(self, dt: float) -> None:
        ret, frame = self.cap.read()
        if not ret:
            logger.warning("CameraView: failed to read frame from camera")
            self.matcher.update_pose(None)
            return

        # mirror before estimation so on-screen left/right match the user
        frame = np.ascontiguousarray(frame[:, ::-1, :])
        pose = self.estimator.process_frame(frame)
        self.matcher.update_pose(pose)

        draw_keypoints_on_frame(frame, pose)
        if self.controller is not None:
            draw_status_on_frame(
                frame,
                self.controller.get_current_pose(),
                self.matcher.last_score,
                self.controller.config.match_threshold,
            )
        self.last_frame = frame

    def render(self, surface) -> None:
        if surface is None or self.last_frame is None:
            return
        surf_w, surf_h = surface.get_size()
        frame_resized = cv2.resize(self.last_frame, (surf_w, surf_h))
        frame_rgb = np.ascontiguousarray(cv2.cvtColor(frame_resized, cv2.COLOR_BGR2RGB))
        pg_surf = pygame.image.frombuffer(frame_rgb.tobytes(), (surf_w, surf_h), "RGB")
        surface.blit(pg_surf, (0, 0))

    def exit(self) -> None:
        self.estimator.close()
        self.cap.release()


class KeyboardControls(Component):
    def __init__(self, controller: PoseSequenceController):
        super().__init__()
        self.controller = controller

    def handle_event(self, event) -> None:
        if event is None or event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_s:
            self.controller.start_sequence()
        elif event.key == pygame.K_r:
            self.controller.reset_sequence()
        elif event.key == pygame.K_ESCAPE and self.session is not None:
            self.session.running = False


def _placeholder(text: str, color, size=(360, 90)) -> pygame.Surface:
    """Solid panel with a caption, used when no image assets are provided."""
    surface = pygame.Surface(size, pygame.SRCALPHA)
    surface.fill((*color, 200))
    font = pygame.font.SysFont(None, 36)
    caption = font.render(text, True, (255, 255, 255))
    surface.blit(caption, caption.get_rect(center=(size[0] // 2, size[1] // 2)))
    return surface


def _texture(assets_dir: Optional[str], name: str, fallback_text: str, color):
    if assets_dir:
        path = os.path.join(assets_dir, f"{name}.png")
        if os.path.exists(path):
            return path
    return _placeholder(fallback_text, color)


def build_session(
    config: SequenceConfig,
    matcher: PoseMatcher,
    camera: Optional[CameraView] = None,
    assets_dir: Optional[str] = None,
    loss_grace_time: float = 1.0,
) -> LensSession:
    """Wire the bus, controller and subscribers into a session."""
    bus = build_trigger_bus(config)
    session = LensSession(bus)

    scheduler = Scheduler()
    tweens = TweenManager()
    controller = PoseSequenceController(config, bus, matcher)
    width, height = SCREEN_SIZE

    if camera is not None:
        camera.controller = controller
        session.register("camera", camera)
    session.register(
        "tracking", BodyTrackingWatcher(bus, matcher, loss_grace_time=loss_grace_time)
    )
    session.register("controller", controller)
    session.register("scheduler", scheduler)
    session.register("tweens", tweens)

    progress_textures = [
        _texture(assets_dir, f"progress_{n}", f"{n} / {len(config.steps)}", (60, 60, 160))
        for n in range(len(config.steps) + 1)
    ]
    session.register(
        "progress_image",
        PoseProgressImage(
            bus, controller, ImageWidget(position=(width - 200, 60)), progress_textures
        ),
    )

    riddle_textures = {}
    for n in range(1, 4):
        riddle_textures[f"riddle{n}"] = _texture(
            assets_dir, f"riddle{n}", f"Riddle {n}", (120, 60, 140)
        )
        riddle_textures[f"riddle{n}f"] = _texture(
            assets_dir, f"riddle{n}f", f"Riddle {n} solved!", (40, 140, 60)
        )
    session.register(
        "riddle_image",
        RiddleProgressImage(
            bus,
            controller,
            ImageWidget(position=(width // 2, height - 60)),
            riddle_textures,
            scheduler,
        ),
    )

    effects = {}
    for pose_id in dict.fromkeys(config.poses):
        glow = TextWidget(pose_id, position=(width // 2, height // 2), color=(255, 255, 0, 255))
        effects[pose_id] = EffectGroup(
            objects=[SceneObject(pose_id, child=glow)],
            tweens=[glow],
            particles=[ParticleBurst(position=(width // 2, height // 2))],
        )
    finale = TextWidget("Well done!", position=(width // 2, height // 3), font_size=96)
    session.register(
        "effects",
        SequenceEffectsController(
            bus,
            config,
            scheduler,
            tweens,
            effects,
            sequence_complete=EffectGroup(
                objects=[SceneObject("finale", child=finale)],
                tweens=[finale],
                particles=[
                    ParticleBurst(position=(width // 3, height // 3), count=80),
                    ParticleBurst(position=(2 * width // 3, height // 3), count=80),
                ],
            ),
        ),
    )

    session.register(
        "final_pose",
        FinalPoseReveal(
            controller,
            TextWidget(position=(width // 2, height // 2), font_size=160, color=(255, 80, 80, 255)),
        ),
    )
    session.register(
        "ui",
        PoseSequenceUI(
            bus,
            controller,
            instruction_text=TextWidget(position=(width // 2, 40)),
            progress_text=TextWidget(position=(width // 2, 90), font_size=36),
            progress_bar=ProgressBar(rect=(width // 2 - 150, 110, 300, 14)),
        ),
    )
    session.register("keyboard", KeyboardControls(controller))
    return session


def run(
    camera_index: int = 0,
    config_path: Optional[str] = None,
    library_path: Optional[str] = None,
    model_path: str = "pose_landmarker_full.task",
    assets_dir: Optional[str] = None,
    loss_grace_time: float = 1.0,
) -> int:
    try:
        config = load_config(config_path) if config_path else SequenceConfig.default()
    except ConfigError as e:
        logger.error("invalid sequence config: %s", e)
        return 2

    try:
        library = PoseLibrary.load(library_path) if library_path else PoseLibrary.default()
    except (OSError, ValueError) as e:
        logger.error("could not load pose library: %s", e)
        return 2

    cap = cv2.VideoCapture(camera_index)
    if not cap.isOpened():
        logger.error("could not open camera (index=%d)", camera_index)
        return 3

    os.environ["SDL_VIDEO_WINDOW_POS"] = "%d,%d" % (500, 500)
    pygame.init()
    screen = pygame.display.set_mode(SCREEN_SIZE)
    pygame.display.set_caption("Pose Sequence")
    clock = pygame.time.Clock()

    matcher = PoseMatcher(library)
    camera = CameraView(cap, PoseEstimator(model_asset_path=model_path, video=True), matcher)
    session = build_session(
        config, matcher, camera=camera, assets_dir=assets_dir, loss_grace_time=loss_grace_time
    )
    session.initialize()

    try:
        while session.running:
            dt = clock.tick(60) / 1000.0
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    session.running = False
                session.handle_event(event)

            session.update(dt)
            screen.fill((0, 0, 0))
            session.render(screen)
            pygame.display.flip()
    finally:
        session.shutdown()
        pygame.quit()

    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Pose sequence lens")
    parser.add_argument("--camera", type=int, default=0, help="camera index")
    parser.add_argument("--config", help="sequence config JSON file")
    parser.add_argument("--library", help="pose library JSON file")
    parser.add_argument("--model", default="pose_landmarker_full.task", help="MediaPipe model")
    parser.add_argument("--assets", help="directory with progress_N.png / riddleN[f].png")
    parser.add_argument(
        "--loss-grace",
        type=float,
        default=1.0,
        help="seconds without a tracked body before the sequence resets",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    return run(
        args.camera, args.config, args.library, args.model, args.assets, args.loss_grace
    )


if __name__ == "__main__":
    sys.exit(main())
