from __future__ import annotations

import logging
import os
import ssl
import subprocess
import urllib.request

from .config import GESTURE_RECOGNIZER_TASK_URL

logger = logging.getLogger(__name__)


def _remove_partial(model_path: str) -> None:
    try:
        if os.path.exists(model_path):
            os.remove(model_path)
    except OSError:
        logger.warning("Could not remove partial download at %s", model_path)


def ensure_gesture_recognizer_task(
    model_path: str, *, url: str = GESTURE_RECOGNIZER_TASK_URL, timeout_s: int = 30
) -> str:
    """
    Ensure `gesture_recognizer.task` exists at `model_path`.

    If missing, attempts to download from the official MediaPipe model bucket.
    """

    if os.path.exists(model_path):
        return model_path

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info("Downloading gesture recognizer model to %s", model_path)

    # 1) Python download. certifi covers interpreters without a usable root store.
    try:
        import certifi

        ctx = ssl.create_default_context(cafile=certifi.where())
        with urllib.request.urlopen(url, context=ctx, timeout=timeout_s) as r, open(model_path, "wb") as f:
            f.write(r.read())
        return model_path
    except (OSError, ssl.SSLError) as e:
        logger.warning("Python download failed (%s); falling back to curl", e)
        _remove_partial(model_path)
        first_error = e

    # 2) curl often succeeds when the Python certificate store is misconfigured.
    proc = None
    try:
        proc = subprocess.run(
            ["curl", "-fL", "-o", model_path, url],
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        if proc.returncode == 0 and os.path.exists(model_path) and os.path.getsize(model_path) > 0:
            return model_path
    except OSError:
        proc = None

    _remove_partial(model_path)

    curl_err = ""
    if proc is not None:
        curl_err = f"\n\ncurl stderr:\n{proc.stderr.strip()}\n"
    raise FileNotFoundError(
        "Missing MediaPipe gesture recognizer model and auto-download failed.\n\n"
        f"Expected model at: {model_path}\n"
        f"URL: {url}\n\n"
        "Download it manually:\n"
        f'  mkdir -p "{os.path.dirname(model_path) or "."}"\n'
        f'  curl -L -o "{model_path}" "{url}"\n'
        f"{curl_err}"
    ) from first_error
