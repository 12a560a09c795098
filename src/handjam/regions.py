from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

REGION_CREATED = "region-created"
REGION_REMOVED = "region-removed"
REGION_OUT = "region-out"

RegionListener = Callable[["Region"], None]


@dataclass(frozen=True)
class Region:
    id: int
    start: float  # seconds
    end: float
    loop: bool = True

    def contains(self, t: float) -> bool:
        return self.start <= t < self.end


class LoopRegions:
    """
    Set of time regions over the playing track.

    Listeners subscribe to `region-created`, `region-removed` and `region-out`.
    Safe to query from the audio callback thread.
    """

    def __init__(self) -> None:
        self._regions: Dict[int, Region] = {}
        self._listeners: Dict[str, List[RegionListener]] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def on(self, event: str, listener: RegionListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def _emit(self, event: str, region: Region) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(region)

    def add(self, start: float, end: float, loop: bool = True) -> Region:
        if end <= start:
            raise ValueError(f"region end ({end}) must be after start ({start})")
        with self._lock:
            region = Region(id=self._next_id, start=float(start), end=float(end), loop=loop)
            self._next_id += 1
            self._regions[region.id] = region
        logger.info("Loop region created: %.2fs - %.2fs", region.start, region.end)
        self._emit(REGION_CREATED, region)
        return region

    def remove(self, region_id: int) -> None:
        with self._lock:
            region = self._regions.pop(region_id, None)
        if region is not None:
            self._emit(REGION_REMOVED, region)

    def clear(self) -> int:
        with self._lock:
            removed = list(self._regions.values())
            self._regions.clear()
        for region in removed:
            self._emit(REGION_REMOVED, region)
        if removed:
            logger.info("Removed %d loop region(s)", len(removed))
        return len(removed)

    def all(self) -> List[Region]:
        with self._lock:
            return list(self._regions.values())

    def active_loop(self) -> Optional[Region]:
        """Most recently created looping region, if any."""
        with self._lock:
            loops = [r for r in self._regions.values() if r.loop]
        return loops[-1] if loops else None

    def notify_out(self, region: Region) -> None:
        self._emit(REGION_OUT, region)

    def __len__(self) -> int:
        with self._lock:
            return len(self._regions)
