# // ecg_trace/beat_generation.py
from typing import Iterable, Sequence, Tuple

import numpy as np

from .constants import (
    RhythmMode, AlertRegion, BEAT_INFLUENCE_SEC, P_SUPPRESSED_RHYTHMS, ST_WIDE_MORPHOLOGY_THRESHOLD,
    ALERT_PR_ONSET_MARGIN_SEC, ALERT_PR_END_SEC, ALERT_ST_WINDOW_SEC, ALERT_QRS_WINDOW_SEC,
    ALERT_QT_ONSET_SEC, ALERT_QT_END_MARGIN_SEC,
)
from .waveform_primitives import ParameterSet, gaussian_wave, baseline_artifact


def enabled_components(rhythm: RhythmMode) -> Tuple[str, ...]:
    """Wave components drawn for each conducted beat under the given rhythm."""
    components = []
    if rhythm not in P_SUPPRESSED_RHYTHMS:
        components.append("p")
    if rhythm != RhythmMode.VENTRICULAR_FIBRILLATION:
        components.extend(("q", "r", "s"))
    components.append("st")
    if rhythm != RhythmMode.VENTRICULAR_FIBRILLATION:
        components.append("t")
    return tuple(components)


def generate_single_beat_voltage(dt: float, params: ParameterSet, rhythm: RhythmMode) -> float:
    """
    Voltage of one beat at dt seconds after its fiducial.

    The ST segment is skipped while flat. An elevation above
    ST_WIDE_MORPHOLOGY_THRESHOLD is drawn with twice the configured width,
    giving the broad convex shape of acute injury rather than the narrow
    sag of depression.
    """
    v = 0.0
    for name in enabled_components(rhythm):
        component = params[name]
        width = component.width
        if name == "st":
            if component.amplitude == 0:
                continue
            if component.amplitude > ST_WIDE_MORPHOLOGY_THRESHOLD:
                width *= 2.0
        v += gaussian_wave(dt, component.offset, component.amplitude, width)
    return float(v)


def alert_windows(params: ParameterSet, regions: Iterable[AlertRegion]) -> Tuple[Tuple[float, float], ...]:
    windows = []
    for region in regions:
        if region == AlertRegion.PR:
            windows.append((params["p"].offset + ALERT_PR_ONSET_MARGIN_SEC, ALERT_PR_END_SEC))
        elif region == AlertRegion.ST:
            windows.append(ALERT_ST_WINDOW_SEC)
        elif region == AlertRegion.QRS:
            windows.append(ALERT_QRS_WINDOW_SEC)
        elif region == AlertRegion.QT:
            windows.append((ALERT_QT_ONSET_SEC, params["t"].offset + ALERT_QT_END_MARGIN_SEC))
    return tuple(windows)


def is_in_alert_window(dt: float, windows: Sequence[Tuple[float, float]]) -> bool:
    return any(start < dt < end for start, end in windows)


class WaveformSynthesizer:
    """
    Instantaneous ECG voltage from the beat queues of one simulator.

    Holds references to the owning simulator's scheduler state and reads the
    current parameter set, rhythm, alert regions and noise level through the
    simulator on each call, so condition changes apply to the next sample.
    """

    def __init__(self, simulator):
        self._sim = simulator

    def sample(self, t: float) -> Tuple[float, bool]:
        sim = self._sim
        params = sim.params
        rhythm = sim.rhythm_mode
        windows = alert_windows(params, sim.alert_regions)
        scheduler = sim.scheduler

        v = 0.0
        is_alert = False
        for beat_time in scheduler.beats:
            dt = t - beat_time
            if abs(dt) > BEAT_INFLUENCE_SEC:
                continue
            v += generate_single_beat_voltage(dt, params, rhythm)
            if windows and not is_alert:
                is_alert = is_in_alert_window(dt, windows)

        # Dissociated atrial activity (complete heart block)
        if rhythm == RhythmMode.COMPLETE_BLOCK:
            p_wave = params["p"]
            for p_time in scheduler.atrial_queue:
                dt = t - p_time
                if abs(dt) > BEAT_INFLUENCE_SEC:
                    continue
                v += float(gaussian_wave(dt, 0.0, p_wave.amplitude, p_wave.width))

        v += baseline_artifact(t, rhythm, sim.noise_level, sim.rng)
        return v, is_alert
