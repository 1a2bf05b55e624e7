# --- ECG Trace Simulator Constants ---
from enum import Enum


class RhythmMode(str, Enum):
    SINUS = "SINUS"
    ATRIAL_FIBRILLATION = "AFIB"
    ATRIAL_FLUTTER = "FLUTTER"
    VENTRICULAR_TACHYCARDIA = "VT"
    VENTRICULAR_FIBRILLATION = "VF"
    TORSADES = "TORSADES"
    MOBITZ_2_BLOCK = "BLOCK2"
    COMPLETE_BLOCK = "BLOCK3"


class AlertRegion(str, Enum):
    PR = "pr"
    ST = "st"
    QRS = "qrs"
    QT = "qt"


# --- Sampling / Paper Speed ---
# One sample per horizontal pixel: 25mm/s -> 100px/s, 50mm/s -> 200px/s
SAMPLES_PER_SEC_BY_PAPER_SPEED = {25: 100, 50: 200}
DEFAULT_PAPER_SPEED_MM_S = 25
MAX_FRAME_ELAPSED_SEC = 0.1  # Caps catch-up work after a stalled tick

# --- Vertical Mapping ---
DEFAULT_VIEWPORT_HEIGHT_PX = 300
MV_TO_HEIGHT_FRACTION = 0.25  # 1.0 mV = 25% of viewport height at zoom 1.0
DEFAULT_AMPLITUDE_ZOOM = 1.0

# --- Rate Control ---
DEFAULT_HEART_RATE_BPM = 60.0
RATE_CONVERGENCE_GAIN = 2.0
RATE_SNAP_THRESHOLD_BPM = 1.0

# --- Beat Scheduling Windows ---
LOOKAHEAD_SEC = 2.0
HISTORY_SEC = 4.0
WAVE_META_RETENTION_SEC = 5.0
BEAT_INFLUENCE_SEC = 1.0  # Beats further than this from t contribute nothing

AFIB_INTERVAL_FACTOR_RANGE = (0.5, 1.5)
MOBITZ_II_DROP_PROBABILITY = 0.25
COMPLETE_BLOCK_ATRIAL_RATE_BPM = 75.0

# --- Noise ---
DEFAULT_NOISE_LEVEL = 0.05

# --- Beat Morphology Definitions ---
# Each component: amplitude (mV), offset from the R-wave fiducial (s), gaussian width (s)
WAVE_COMPONENT_NAMES = ("p", "q", "r", "s", "j", "st", "t")

DEFAULT_WAVE_PARAMS = {
    "p":  {"amplitude": 0.15,  "offset": -0.2,  "width": 0.04},
    "q":  {"amplitude": -0.15, "offset": -0.05, "width": 0.02},
    "r":  {"amplitude": 1.0,   "offset": 0.0,   "width": 0.025},
    "s":  {"amplitude": -0.25, "offset": 0.05,  "width": 0.03},
    "j":  {"amplitude": 0.0,   "offset": 0.08,  "width": 0.01},
    "st": {"amplitude": 0.0,   "offset": 0.15,  "width": 0.05},
    "t":  {"amplitude": 0.3,   "offset": 0.3,   "width": 0.08},
}

# ST amplitudes above this are drawn with a doubled width (convex "tombstone" elevation)
ST_WIDE_MORPHOLOGY_THRESHOLD = 0.2

# Lead-localized injury patterns
ST_ELEVATION_OVERRIDES = {
    "st": {"amplitude": 0.5, "offset": 0.1, "width": 0.12},
    "t":  {"amplitude": 0.4},
}
ST_DEPRESSION_OVERRIDES = {
    "st": {"amplitude": -0.2},
    "t":  {"amplitude": -0.1},
}

# --- Rhythm Component Suppression ---
P_SUPPRESSED_RHYTHMS = frozenset({
    RhythmMode.ATRIAL_FIBRILLATION,
    RhythmMode.ATRIAL_FLUTTER,
    RhythmMode.VENTRICULAR_TACHYCARDIA,
    RhythmMode.VENTRICULAR_FIBRILLATION,
    RhythmMode.COMPLETE_BLOCK,
})

# --- Alert Windows (seconds relative to the beat fiducial) ---
ALERT_PR_ONSET_MARGIN_SEC = 0.1
ALERT_PR_END_SEC = -0.05
ALERT_ST_WINDOW_SEC = (0.08, 0.25)
ALERT_QRS_WINDOW_SEC = (-0.06, 0.06)
ALERT_QT_ONSET_SEC = -0.05
ALERT_QT_END_MARGIN_SEC = 0.1

# --- Baseline Artifacts ---
TORSADES_PARAMS = {
    "fast_rad_per_sec": 25.0,
    "slow_rad_per_sec": 3.0,
    "amplitude": 1.5,
}
AFIB_BASELINE_PARAMS = {
    "rad_per_sec": 45.0,
    "amplitude": 0.05,
    "noise_span": 0.03,  # uniform in [-0.015, 0.015]
}
FLUTTER_PARAMS = {
    "base_hz": 5.0,
    "base_amplitude": 0.15,
    "harmonic_amplitude": 0.05,
}
VFIB_PARAMS = {
    "sin_rad_per_sec": 20.0,
    "sin_amplitude": 0.3,
    "cos_rad_per_sec": 15.0,
    "cos_amplitude": 0.2,
}

# --- Leads ---
STANDARD_LEADS = ("I", "II", "III", "aVR", "aVL", "aVF", "V1", "V2", "V3", "V4", "V5", "V6")
DEFAULT_LEAD = "II"
