# // ecg_trace/simulator.py
import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np

from .api_models import ConditionProfile, SimulatorSettings
from .beat_generation import WaveformSynthesizer
from .conditions import ConditionCatalog, DEFAULT_CATALOG, NORMAL_CONDITION_ID, apply_condition, lead_visibility
from .constants import (
    AlertRegion, RhythmMode, STANDARD_LEADS, SAMPLES_PER_SEC_BY_PAPER_SPEED, MAX_FRAME_ELAPSED_SEC,
    MV_TO_HEIGHT_FRACTION, RATE_CONVERGENCE_GAIN, RATE_SNAP_THRESHOLD_BPM, DEFAULT_NOISE_LEVEL,
)
from .full_ecg.lead_projection import project_lead, project_to_12_leads
from .rhythm_logic import BeatQueueView, RhythmScheduler, WaveMeta
from .signal_buffer import SignalBuffer, SignalSample
from .waveform_primitives import ParameterSet

logger = logging.getLogger(__name__)


class ECGSimulator:
    """
    One scrolling ECG trace.

    Each call to advance() converts wall-clock time into whole samples at
    the paper-speed sampling rate (one sample per pixel), writes them at the
    scan cursor, eases the heart rate toward its target and refreshes the
    beat schedule. All state changes happen inside these synchronous calls.
    """

    def __init__(self, viewport_width_px: int, settings: Optional[SimulatorSettings] = None,
                 catalog: ConditionCatalog = DEFAULT_CATALOG, rng: Optional[np.random.Generator] = None):
        settings = settings or SimulatorSettings()
        self.catalog = catalog
        self.rng = rng if rng is not None else np.random.default_rng(settings.seed)

        self.lead = self._validate_lead(settings.lead)
        self.noise_level = settings.noise_level
        self.paper_speed_mm_s = self._validate_paper_speed(settings.paper_speed_mm_s)
        self.amplitude_zoom = settings.amplitude_zoom
        self.viewport_height_px = settings.viewport_height_px
        self.target_heart_rate_bpm = settings.heart_rate_bpm

        self.condition_id: Optional[str] = None
        self.alert_regions: List[AlertRegion] = []
        self.is_paused = False
        self.show_labels = False

        self.time = 0.0
        self.time_accumulator = 0.0
        self.last_voltage_mv = 0.0

        self.scheduler = RhythmScheduler(self.rng, rate_bpm=settings.heart_rate_bpm)
        self.synthesizer = WaveformSynthesizer(self)
        self.buffer = SignalBuffer(viewport_width_px, self.baseline_y)

    def __repr__(self):
        return (f"ECGSimulator(lead={self.lead!r}, condition={self.condition_id!r}, "
                f"rhythm={self.rhythm_mode.value}, rate={self.heart_rate_bpm:.1f}, t={self.time:.2f})")

    # --- Scheduler-backed state ---
    @property
    def params(self) -> ParameterSet:
        return self.scheduler.params

    @params.setter
    def params(self, value: ParameterSet):
        self.scheduler.params = value

    @property
    def rhythm_mode(self) -> RhythmMode:
        return self.scheduler.rhythm_mode

    @rhythm_mode.setter
    def rhythm_mode(self, value: RhythmMode):
        self.scheduler.rhythm_mode = value

    @property
    def heart_rate_bpm(self) -> float:
        return self.scheduler.rate_bpm

    @heart_rate_bpm.setter
    def heart_rate_bpm(self, value: float):
        self.scheduler.rate_bpm = value

    @property
    def beat_queue(self):
        return self.scheduler.beats

    @property
    def atrial_queue(self):
        return self.scheduler.atrial_queue

    @property
    def wave_meta(self) -> List[WaveMeta]:
        return self.scheduler.wave_meta

    # --- Geometry ---
    @property
    def viewport_width_px(self) -> int:
        return self.buffer.width

    @property
    def scan_cursor(self) -> int:
        return self.buffer.cursor

    @property
    def samples_per_sec(self) -> int:
        return SAMPLES_PER_SEC_BY_PAPER_SPEED[self.paper_speed_mm_s]

    @property
    def baseline_y(self) -> float:
        return self.viewport_height_px / 2

    @property
    def scale_y(self) -> float:
        # 1.0 mV spans a quarter of the viewport height at zoom 1.0
        return self.viewport_height_px * MV_TO_HEIGHT_FRACTION * self.amplitude_zoom

    def voltage_to_y(self, voltage: float) -> float:
        return self.baseline_y - voltage * self.scale_y

    # --- Public API ---
    def resize(self, width_px: int, height_px: Optional[int] = None):
        """Reallocate the trace. Everything drawn so far is discarded and the sweep restarts at x=0."""
        if width_px < 0:
            raise ValueError(f"Viewport width must be non-negative, got {width_px}")
        if height_px is not None:
            if height_px < 0:
                raise ValueError(f"Viewport height must be non-negative, got {height_px}")
            self.viewport_height_px = height_px
        self.buffer.reset(width_px, self.baseline_y)
        logger.debug("Resized trace to %dx%d px", width_px, self.viewport_height_px)

    def set_condition(self, condition_id: Optional[str]):
        applied = apply_condition(condition_id, self.lead, self.catalog)

        self.condition_id = condition_id
        self.noise_level = DEFAULT_NOISE_LEVEL
        self.scheduler.atrial_queue.clear()
        self.scheduler.wave_meta.clear()

        self.params = applied.params
        self.rhythm_mode = applied.rhythm_mode
        self.alert_regions = list(applied.alert_regions)
        if applied.target_rate_bpm is not None:
            self.target_heart_rate_bpm = applied.target_rate_bpm
        logger.debug("Condition %r on lead %s: rhythm=%s target=%.0f bpm alerts=%s",
                     condition_id, self.lead, self.rhythm_mode.value, self.target_heart_rate_bpm,
                     [r.value for r in self.alert_regions])

    def set_lead(self, lead: str):
        self.lead = self._validate_lead(lead)
        # Localized patterns depend on the lead, so the active condition is re-derived
        if self.condition_id is not None:
            self.set_condition(self.condition_id)

    def set_target_rate(self, heart_rate_bpm: float):
        if heart_rate_bpm < 0:
            raise ValueError(f"Heart rate must be non-negative, got {heart_rate_bpm}")
        self.target_heart_rate_bpm = float(heart_rate_bpm)

    def set_noise_level(self, fraction: float):
        if not 0.0 <= fraction <= 1.0:
            raise ValueError(f"Noise level must be within [0, 1], got {fraction}")
        self.noise_level = float(fraction)

    def set_paper_speed(self, paper_speed_mm_s: int):
        self.paper_speed_mm_s = self._validate_paper_speed(paper_speed_mm_s)

    def toggle_paper_speed(self) -> int:
        self.paper_speed_mm_s = 50 if self.paper_speed_mm_s == 25 else 25
        return self.paper_speed_mm_s

    def set_amplitude_zoom(self, factor: float):
        if factor <= 0:
            raise ValueError(f"Amplitude zoom must be positive, got {factor}")
        self.amplitude_zoom = float(factor)

    def pause(self):
        self.is_paused = True

    def resume(self):
        self.is_paused = False

    def toggle_pause(self) -> bool:
        self.is_paused = not self.is_paused
        return self.is_paused

    def toggle_labels(self) -> bool:
        self.show_labels = not self.show_labels
        return self.show_labels

    def trigger_shock(self):
        """Defibrillate: return to normal sinus rhythm with an empty beat schedule."""
        self.set_condition(NORMAL_CONDITION_ID)
        self.scheduler.reset()
        logger.debug("Shock delivered at t=%.3f", self.time)

    def attach_external_beat_queue(self, view: Optional[BeatQueueView]):
        """Follow another simulator's beat schedule (read-only). Pass None to resume own scheduling."""
        self.scheduler.attach_external_queue(view)

    def beat_queue_view(self) -> BeatQueueView:
        return self.scheduler.beat_queue.view()

    def read_sample(self, pixel_index: int) -> SignalSample:
        return self.buffer.read(pixel_index)

    def read_samples(self) -> List[SignalSample]:
        return list(self.buffer.samples)

    def condition_profile(self) -> Optional[ConditionProfile]:
        return self.catalog.get(self.condition_id) if self.condition_id is not None else None

    def visibility(self) -> Tuple[str, Optional[str]]:
        return lead_visibility(self.condition_profile(), self.lead)

    def label_positions(self) -> List[Tuple[str, float]]:
        """Pixel columns of recent wave annotations, measured back from the scan cursor."""
        width = self.buffer.width
        positions = []
        for meta in self.wave_meta:
            time_diff = self.time - meta.time
            if time_diff < 0:
                continue
            px_diff = time_diff * self.samples_per_sec
            if px_diff > width:
                continue
            x = self.buffer.cursor - px_diff
            if x < 0:
                x += width
            positions.append((meta.label, x))
        return positions

    def twelve_lead_snapshot(self) -> Dict[str, float]:
        """The most recent synthesized sample as seen from every standard lead."""
        return project_to_12_leads(self.last_voltage_mv)

    # --- Stepping ---
    def advance(self, elapsed_real_sec: float) -> int:
        """
        Produce every whole sample owed for elapsed_real_sec of wall time.

        Returns the number of samples written. Paused or zero-width traces
        produce nothing and leave simulation time untouched.
        """
        if self.is_paused or self.buffer.width == 0:
            return 0

        elapsed = min(max(elapsed_real_sec, 0.0), MAX_FRAME_ELAPSED_SEC)
        self.time_accumulator += elapsed

        rate = self.samples_per_sec
        steps = math.floor(self.time_accumulator * rate)
        if steps > 0:
            self.time_accumulator -= steps / rate
            for _ in range(steps):
                self.time += 1 / rate
                voltage, is_alert = self.synthesizer.sample(self.time)
                self.last_voltage_mv = voltage
                voltage = project_lead(voltage, self.lead)
                self.buffer.write(SignalSample(self.voltage_to_y(voltage), is_alert, self.time))

        self._converge_rate(elapsed)
        self.scheduler.advance(self.time + self.time_accumulator)
        return steps

    def _converge_rate(self, elapsed: float):
        if self.heart_rate_bpm == self.target_heart_rate_bpm:
            return
        diff = self.target_heart_rate_bpm - self.heart_rate_bpm
        if abs(diff) < RATE_SNAP_THRESHOLD_BPM:
            self.heart_rate_bpm = self.target_heart_rate_bpm
        else:
            self.heart_rate_bpm += diff * elapsed * RATE_CONVERGENCE_GAIN

    @staticmethod
    def _validate_lead(lead: str) -> str:
        if lead not in STANDARD_LEADS:
            raise ValueError(f"Unknown lead '{lead}'. Expected one of {', '.join(STANDARD_LEADS)}")
        return lead

    @staticmethod
    def _validate_paper_speed(paper_speed_mm_s: int) -> int:
        if paper_speed_mm_s not in SAMPLES_PER_SEC_BY_PAPER_SPEED:
            raise ValueError(f"Paper speed must be 25 or 50 mm/s, got {paper_speed_mm_s}")
        return paper_speed_mm_s
