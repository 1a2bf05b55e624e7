# // ecg_trace/waveform_primitives.py
from collections.abc import Mapping
from typing import Dict, Iterator, Optional, Union

import numpy as np

from .api_models import ComponentDelta, ParameterDeltas, WaveComponent
from .constants import (
    DEFAULT_WAVE_PARAMS, WAVE_COMPONENT_NAMES, RhythmMode,
    TORSADES_PARAMS, AFIB_BASELINE_PARAMS, FLUTTER_PARAMS, VFIB_PARAMS,
)


# --- Waveform Primitive ---
def gaussian_wave(t_points, center, amplitude, width_std_dev):
    if width_std_dev <= 1e-9: return np.zeros_like(t_points, dtype=float)
    return amplitude * np.exp(-((t_points - center)**2) / (2 * width_std_dev**2))


# --- Parameter Set ---
DeltaLike = Union[ParameterDeltas, Dict[str, Dict[str, float]]]


class ParameterSet(Mapping):
    """
    Complete table of named wave components (p, q, r, s, j, st, t).

    Instances are never partial: every operation that changes a component
    returns a new set built from a full copy, so the set held by one simulator
    can be handed out without aliasing concerns.
    """

    def __init__(self, components: Dict[str, WaveComponent]):
        missing = [name for name in WAVE_COMPONENT_NAMES if name not in components]
        if missing:
            raise ValueError(f"ParameterSet is missing components: {missing}")
        self._components = {name: components[name] for name in WAVE_COMPONENT_NAMES}

    @classmethod
    def default(cls) -> "ParameterSet":
        return cls({name: WaveComponent(**fields) for name, fields in DEFAULT_WAVE_PARAMS.items()})

    def __getitem__(self, name: str) -> WaveComponent:
        return self._components[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __repr__(self):
        inner = ", ".join(f"{n}=({c.amplitude:g}, {c.offset:g}, {c.width:g})" for n, c in self._components.items())
        return f"ParameterSet({inner})"

    def merge(self, deltas: Optional[DeltaLike]) -> "ParameterSet":
        """Overlay partial per-component overrides; unspecified fields keep their values."""
        if deltas is None:
            return ParameterSet(dict(self._components))
        if isinstance(deltas, ParameterDeltas):
            updates = {name: delta.as_update() for name, delta in deltas if delta is not None}
        else:
            updates = {name: ComponentDelta(**fields).as_update() for name, fields in deltas.items()}

        merged = dict(self._components)
        for name, fields in updates.items():
            if name not in merged:
                raise ValueError(f"Unknown wave component '{name}'")
            merged[name] = merged[name].model_copy(update=fields)
        return ParameterSet(merged)

    def as_dict(self) -> Dict[str, Dict[str, float]]:
        return {name: component.model_dump() for name, component in self._components.items()}


# --- Baseline Artifacts ---
def torsades_baseline(t: float) -> float:
    # Amplitude-modulated oscillation: QRS axis "twisting" around the isoelectric line
    fast = np.sin(t * TORSADES_PARAMS["fast_rad_per_sec"])
    slow = np.sin(t * TORSADES_PARAMS["slow_rad_per_sec"])
    return float(fast * slow * TORSADES_PARAMS["amplitude"])


def fibrillatory_baseline(t: float, rng: np.random.Generator) -> float:
    tremor = np.sin(t * AFIB_BASELINE_PARAMS["rad_per_sec"]) * AFIB_BASELINE_PARAMS["amplitude"]
    jitter = (rng.random() - 0.5) * AFIB_BASELINE_PARAMS["noise_span"]
    return float(tremor + jitter)


def flutter_baseline(t: float) -> float:
    """Saw-tooth F-waves from a 5 Hz fundamental plus its first harmonic."""
    omega = FLUTTER_PARAMS["base_hz"] * 2 * np.pi
    return float(
        np.sin(t * omega) * FLUTTER_PARAMS["base_amplitude"]
        + np.sin(t * omega * 2) * FLUTTER_PARAMS["harmonic_amplitude"]
    )


def vfib_baseline(t: float) -> float:
    return float(
        np.sin(t * VFIB_PARAMS["sin_rad_per_sec"]) * VFIB_PARAMS["sin_amplitude"]
        + np.cos(t * VFIB_PARAMS["cos_rad_per_sec"]) * VFIB_PARAMS["cos_amplitude"]
    )


def baseline_artifact(t: float, rhythm: RhythmMode, noise_level: float, rng: np.random.Generator) -> float:
    """
    Rhythm-specific baseline activity plus uniform measurement noise.

    Torsades returns its oscillation alone; every other rhythm adds its
    artifact (if any) to noise drawn from [-noise_level/2, noise_level/2].
    """
    if rhythm == RhythmMode.TORSADES:
        return torsades_baseline(t)

    v = 0.0
    if rhythm == RhythmMode.ATRIAL_FIBRILLATION:
        v += fibrillatory_baseline(t, rng)
    elif rhythm == RhythmMode.ATRIAL_FLUTTER:
        v += flutter_baseline(t)
    elif rhythm == RhythmMode.VENTRICULAR_FIBRILLATION:
        v += vfib_baseline(t)

    if noise_level > 0:
        v += (rng.random() - 0.5) * noise_level
    return v
