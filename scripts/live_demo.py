#!/usr/bin/env python3
"""
Webcam gesture mixer.

Right hand drives the backing track (thumb up: play/pause, victory twice: mark
a loop, fist: clear it, pointing up: speed, I-love-you: volume, open palm:
leave speed/volume). Folding a left-hand finger plays a drum pad.

Keys: r start/stop recording a custom gesture, t train the classifier, q quit.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from functools import partial

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from handjam.audio import AudioEngine  # noqa: E402
from handjam.classifier import ClassifierTrainer, GesturePredictor  # noqa: E402
from handjam.config import AppConfig, RecognizerConfig, RecordingConfig  # noqa: E402
from handjam.dispatcher import ActionDispatcher  # noqa: E402
from handjam.drawing import draw_detections, draw_hud  # noqa: E402
from handjam.frame_loop import FrameLoop  # noqa: E402
from handjam.gesture_model import GestureModel  # noqa: E402
from handjam.mediapipe_backend import MediaPipeGestureRecognizer  # noqa: E402
from handjam.recognizer import RecognizerSession  # noqa: E402
from handjam.recorder import ExampleSet, GestureRecorder  # noqa: E402
from handjam.samples import load_wav, resample_linear  # noqa: E402
from handjam.status import StatusText, VolumeIndicator  # noqa: E402
from handjam.timers import AsyncioScheduler  # noqa: E402
from handjam.video import CameraSource  # noqa: E402

logger = logging.getLogger("handjam.live_demo")

WINDOW = "handjam - gesture mixer"


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Webcam gesture mixer with custom gesture training.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument(
        "--no-mirror",
        action="store_true",
        help="Disable horizontal mirroring (default is mirrored/selfie mode)",
    )
    ap.add_argument("--track", type=str, default=None, help="16-bit PCM WAV backing track")
    ap.add_argument("--volume", type=float, default=0.5, help="Initial track volume (0.0 to 1.0)")
    ap.add_argument("--label", type=str, default=None, help="Label for recorded gestures")
    ap.add_argument(
        "--model-path",
        type=str,
        default=RecognizerConfig.model_path,
        help="Location of gesture_recognizer.task (downloaded if missing)",
    )
    ap.add_argument("--refresh-hz", type=float, default=60.0, help="Frame loop refresh rate (default: 60)")
    ap.add_argument("--log-level", type=str, default="INFO", help="Logging level (default: INFO)")
    return ap.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        recognizer=RecognizerConfig(model_path=args.model_path),
        recording=RecordingConfig(),
        refresh_hz=args.refresh_hz,
    )


async def run(args: argparse.Namespace) -> int:
    config = build_config(args)
    scheduler = AsyncioScheduler()

    audio = AudioEngine(volume=args.volume)
    if args.track:
        samples, rate = load_wav(args.track)
        audio.load_track(resample_linear(samples, rate, audio.sample_rate))
    audio.load_all_samples()

    fsm = GestureModel()
    status = StatusText(config.ui.idle_status)
    volume = VolumeIndicator(scheduler, hide_after_s=config.ui.volume_hide_s)
    dispatcher = ActionDispatcher(fsm, audio, status, volume, ui=config.ui)

    examples = ExampleSet()
    recorder = GestureRecorder(
        examples, scheduler, config.recording, keypoint_index=config.features.keypoint_index
    )
    if args.label:
        recorder.label = args.label
    trainer = ClassifierTrainer(config.training, config.features)
    predictor = GesturePredictor(trainer, config.features)

    session = RecognizerSession(
        partial(MediaPipeGestureRecognizer, config.recognizer),
        max_attempts=config.recognizer.max_attempts,
        fsm=fsm,
        audio=audio,
    )

    camera = CameraSource(args.camera, args.width, args.height, mirror=not args.no_mirror)
    loop_ref = {}

    def render(image, detections) -> None:
        draw_detections(image, detections)
        prediction = predictor.last_prediction.label if predictor.last_prediction else None
        draw_hud(
            image,
            status.text,
            recorder.label,
            recorder.is_recording,
            len(examples),
            volume=volume,
            prediction=prediction,
        )
        cv2.imshow(WINDOW, image)
        key = cv2.waitKey(1) & 0xFF
        if key in (ord("q"), 27):
            loop_ref["loop"].stop()
        elif key == ord("r"):
            recorder.toggle()
        elif key == ord("t"):
            trainer.train(examples.snapshot())

    frame_loop = FrameLoop(
        session,
        camera,
        dispatcher,
        recorder=recorder,
        predictor=predictor,
        renderer=render,
        refresh_interval_s=config.refresh_interval_s,
    )
    loop_ref["loop"] = frame_loop

    with camera, audio:
        await session.initialize()
        if not session.ready:
            logger.error("Gesture recognizer unavailable; exiting.")
            return 1
        try:
            await frame_loop.run()
        finally:
            session.close()
            cv2.destroyAllWindows()
    return 0


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
