"""
Pytest configuration and shared fixtures for ECG trace simulator tests.
"""
import pytest
import numpy as np
from ecg_trace.api_models import SimulatorSettings
from ecg_trace.rhythm_logic import RhythmScheduler
from ecg_trace.simulator import ECGSimulator


@pytest.fixture
def rng():
    """Seeded generator so jitter and noise are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def quiet_settings():
    """Instance settings with measurement noise disabled."""
    return SimulatorSettings(seed=7, noise_level=0.0, viewport_height_px=300)


@pytest.fixture
def quiet_sim(quiet_settings):
    """Noise-free simulator on lead II with a 500px trace."""
    sim = ECGSimulator(500, quiet_settings)
    sim.set_noise_level(0.0)
    return sim


@pytest.fixture
def sinus_scheduler(rng):
    """Scheduler at a steady 60 bpm sinus rhythm."""
    return RhythmScheduler(rng, rate_bpm=60.0)


@pytest.fixture
def run_for():
    """Advance a simulator in fixed frame steps for a span of wall time."""
    def _run(sim, seconds, frame_sec=0.05):
        frames = int(round(seconds / frame_sec))
        written = 0
        for _ in range(frames):
            written += sim.advance(frame_sec)
        return written
    return _run


@pytest.fixture
def tolerance_config():
    """Standard tolerance values for numerical comparisons."""
    return {
        'timing_tolerance_sec': 1e-9,
        'amplitude_tolerance_mv': 1e-9,
        'pixel_tolerance': 1e-6,
    }


@pytest.fixture
def voltage_from_y():
    """Invert a simulator's vertical mapping (lead coefficient not removed)."""
    def _invert(sim, y):
        return (sim.baseline_y - y) / sim.scale_y
    return _invert
