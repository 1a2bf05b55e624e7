# // ecg_trace/rhythm_logic.py
import logging
import math
from collections.abc import Sequence
from typing import List, NamedTuple, Optional

import numpy as np

from .constants import (
    RhythmMode, LOOKAHEAD_SEC, HISTORY_SEC, WAVE_META_RETENTION_SEC,
    AFIB_INTERVAL_FACTOR_RANGE, MOBITZ_II_DROP_PROBABILITY, COMPLETE_BLOCK_ATRIAL_RATE_BPM,
    DEFAULT_HEART_RATE_BPM,
)
from .beat_generation import enabled_components
from .waveform_primitives import ParameterSet

logger = logging.getLogger(__name__)


class WaveMeta(NamedTuple):
    label: str
    time: float


# --- Beat Queues ---
class BeatQueue(Sequence):
    """Ascending beat fiducial times (seconds of simulation time)."""

    def __init__(self, beats: Optional[List[float]] = None):
        self._beats: List[float] = sorted(beats) if beats else []

    def __getitem__(self, index):
        return self._beats[index]

    def __len__(self):
        return len(self._beats)

    def __repr__(self):
        return f"BeatQueue({', '.join(f'{b:.3f}' for b in self._beats)})"

    @property
    def last(self) -> Optional[float]:
        return self._beats[-1] if self._beats else None

    def append(self, beat_time: float):
        if self._beats and beat_time < self._beats[-1]:
            raise ValueError(f"Beat at {beat_time:.3f}s would break ascending order (last {self._beats[-1]:.3f}s)")
        self._beats.append(beat_time)

    def pop_last(self) -> float:
        return self._beats.pop()

    def evict_before(self, cutoff: float) -> int:
        evicted = 0
        while self._beats and self._beats[0] < cutoff:
            self._beats.pop(0)
            evicted += 1
        return evicted

    def clear(self):
        self._beats.clear()

    def view(self) -> "BeatQueueView":
        return BeatQueueView(self)


class BeatQueueView(Sequence):
    """Live read-only window onto another instance's BeatQueue."""

    def __init__(self, queue: BeatQueue):
        self._queue = queue

    def __getitem__(self, index):
        return self._queue[index]

    def __len__(self):
        return len(self._queue)

    def __repr__(self):
        return f"BeatQueueView({self._queue!r})"


# --- Scheduler ---
def beat_interval_sec(rate_bpm: float) -> float:
    return 60.0 / rate_bpm if rate_bpm > 0 else float('inf')


class RhythmScheduler:
    """
    Keeps the ventricular beat queue (and, in complete heart block, an
    independent atrial queue) populated from now - HISTORY_SEC to at least
    now + LOOKAHEAD_SEC, and records label annotations for each new beat.

    Rhythm rules:
      - Sinus and organized rhythms: fixed RR of 60/rate.
      - AFib: each RR scaled by a uniform factor in [0.5, 1.5).
      - Mobitz II: a conducted beat is dropped (one extra RR added) with p=0.25.
      - Complete block: atria paced at 75/min independently of the ventricles.

    A rate of zero schedules no further beats; the queue is capped with a
    beat at +inf, which is removed once the rate becomes positive again.
    """

    def __init__(self, rng: np.random.Generator, params: Optional[ParameterSet] = None,
                 rhythm_mode: RhythmMode = RhythmMode.SINUS, rate_bpm: float = DEFAULT_HEART_RATE_BPM):
        self.rng = rng
        self.params = params if params is not None else ParameterSet.default()
        self.rhythm_mode = rhythm_mode
        self.rate_bpm = rate_bpm
        self.beat_queue = BeatQueue()
        self.atrial_queue = BeatQueue()
        self.wave_meta: List[WaveMeta] = []
        self._external_queue: Optional[BeatQueueView] = None

    @property
    def beats(self) -> Sequence:
        """The queue used for synthesis: the borrowed view if attached, else our own."""
        return self._external_queue if self._external_queue is not None else self.beat_queue

    @property
    def is_borrowing(self) -> bool:
        return self._external_queue is not None

    def attach_external_queue(self, view: Optional[BeatQueueView]):
        if view is not None and not isinstance(view, BeatQueueView):
            raise TypeError("External beat queues must be attached as a BeatQueueView")
        self._external_queue = view

    def reset(self):
        """Drop all scheduled beats and annotations (defibrillation)."""
        self.beat_queue.clear()
        self.atrial_queue.clear()
        self.wave_meta.clear()

    def advance(self, now: float):
        if self._external_queue is None:
            self._extend_ventricular_queue(now)
            self.beat_queue.evict_before(now - HISTORY_SEC)

        if self.rhythm_mode == RhythmMode.COMPLETE_BLOCK:
            self._extend_atrial_queue(now)
            self.atrial_queue.evict_before(now - HISTORY_SEC)
        else:
            self.atrial_queue.clear()

        cutoff = now - WAVE_META_RETENTION_SEC
        self.wave_meta = [m for m in self.wave_meta if m.time > cutoff]

    def next_interval(self) -> float:
        interval = beat_interval_sec(self.rate_bpm)
        if self.rhythm_mode == RhythmMode.ATRIAL_FIBRILLATION and math.isfinite(interval):
            low, high = AFIB_INTERVAL_FACTOR_RANGE
            interval *= self.rng.uniform(low, high)
        return interval

    def _extend_ventricular_queue(self, now: float):
        queue = self.beat_queue
        horizon = now + LOOKAHEAD_SEC

        if queue.last is not None and not math.isfinite(queue.last) and self.rate_bpm > 0:
            queue.pop_last()
            if queue.last is None or queue.last < now:
                self._push_beat(now)
            logger.debug("Rate restored to %.1f bpm, resuming beats at t=%.3f", self.rate_bpm, queue.last)

        if queue.last is None:
            self._push_beat(now)

        while queue.last <= horizon:
            interval = self.next_interval()
            if not math.isfinite(interval):
                queue.append(float('inf'))
                break
            next_beat = queue.last + interval
            if self.rhythm_mode == RhythmMode.MOBITZ_2_BLOCK and self.rng.random() < MOBITZ_II_DROP_PROBABILITY:
                next_beat += interval
            self._push_beat(next_beat)

    def _extend_atrial_queue(self, now: float):
        queue = self.atrial_queue
        horizon = now + LOOKAHEAD_SEC
        interval = beat_interval_sec(COMPLETE_BLOCK_ATRIAL_RATE_BPM)

        if queue.last is None:
            queue.append(now)
            self.wave_meta.append(WaveMeta("P", now))
        while queue.last <= horizon:
            next_p = queue.last + interval
            queue.append(next_p)
            self.wave_meta.append(WaveMeta("P", next_p))

    def _push_beat(self, beat_time: float):
        self.beat_queue.append(beat_time)
        self.wave_meta.extend(self.annotations_for_beat(beat_time))

    def annotations_for_beat(self, beat_time: float) -> List[WaveMeta]:
        # Labels follow the drawn components; ST has no label
        p = self.params
        return [WaveMeta(name.upper(), beat_time + p[name].offset)
                for name in enabled_components(self.rhythm_mode) if name != "st"]
