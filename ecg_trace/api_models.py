# // ecg_trace/api_models.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Tuple

from .constants import (
    AlertRegion, RhythmMode, DEFAULT_LEAD, DEFAULT_NOISE_LEVEL, DEFAULT_PAPER_SPEED_MM_S,
    DEFAULT_AMPLITUDE_ZOOM, DEFAULT_VIEWPORT_HEIGHT_PX, DEFAULT_HEART_RATE_BPM,
)


# --- Waveform Parameter Models ---
class WaveComponent(BaseModel):
    """One gaussian deflection, positioned relative to the R-wave fiducial."""
    model_config = ConfigDict(frozen=True)

    amplitude: float = Field(..., description="Peak amplitude in mV (signed).")
    offset: float = Field(..., description="Center offset from the beat fiducial in seconds (signed).")
    width: float = Field(..., gt=0, description="Gaussian standard deviation in seconds.")


class ComponentDelta(BaseModel):
    """Partial override for a single WaveComponent. Unset fields keep their current value."""
    model_config = ConfigDict(frozen=True)

    amplitude: Optional[float] = None
    offset: Optional[float] = None
    width: Optional[float] = Field(None, gt=0)

    def as_update(self) -> Dict[str, float]:
        return self.model_dump(exclude_none=True)


class ParameterDeltas(BaseModel):
    model_config = ConfigDict(frozen=True)

    p: Optional[ComponentDelta] = None
    q: Optional[ComponentDelta] = None
    r: Optional[ComponentDelta] = None
    s: Optional[ComponentDelta] = None
    j: Optional[ComponentDelta] = None
    st: Optional[ComponentDelta] = None
    t: Optional[ComponentDelta] = None


# --- Condition Catalog Entry ---
class ConditionProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    detailed_note: str = ""
    base_rate: Optional[float] = Field(None, ge=0, description="Target rate in bpm. None keeps the current target.")
    rhythm_mode: Optional[RhythmMode] = None
    parameter_deltas: Optional[ParameterDeltas] = None
    st_elevation_leads: Optional[Tuple[str, ...]] = None
    st_depression_leads: Optional[Tuple[str, ...]] = None
    alert_regions: Tuple[AlertRegion, ...] = ()

    @property
    def is_lead_localized(self) -> bool:
        return bool(self.st_elevation_leads or self.st_depression_leads)


# --- Instance Configuration ---
class SimulatorSettings(BaseModel):
    """Initial state of a simulator instance."""
    lead: str = Field(DEFAULT_LEAD, description="Standard lead name, e.g. 'II' or 'V2'.")
    heart_rate_bpm: float = Field(DEFAULT_HEART_RATE_BPM, ge=0, le=300)
    noise_level: float = Field(DEFAULT_NOISE_LEVEL, ge=0.0, le=1.0)
    paper_speed_mm_s: int = Field(DEFAULT_PAPER_SPEED_MM_S, description="25 or 50 mm/s.")
    amplitude_zoom: float = Field(DEFAULT_AMPLITUDE_ZOOM, gt=0, le=10.0)
    viewport_height_px: int = Field(DEFAULT_VIEWPORT_HEIGHT_PX, ge=0)
    seed: Optional[int] = Field(None, description="Seed for beat jitter and noise. None draws fresh entropy.")


# --- HTTP Request / Response Bodies ---
class CreateInstanceRequest(BaseModel):
    viewport_width_px: int = Field(..., ge=0, le=20000)
    settings: SimulatorSettings = Field(default_factory=SimulatorSettings)
    condition_id: Optional[str] = None


class ViewportRequest(BaseModel):
    width_px: int = Field(..., ge=0, le=20000)
    height_px: Optional[int] = Field(None, ge=0, le=20000)


class ConditionRequest(BaseModel):
    condition_id: str


class LeadRequest(BaseModel):
    lead: str


class RateRequest(BaseModel):
    heart_rate_bpm: float = Field(..., ge=0, le=300)


class NoiseRequest(BaseModel):
    noise_level: float = Field(..., ge=0.0, le=1.0)


class PaperSpeedRequest(BaseModel):
    paper_speed_mm_s: int = Field(..., description="25 or 50 mm/s.")


class ZoomRequest(BaseModel):
    amplitude_zoom: float = Field(..., gt=0, le=10.0)


class AdvanceRequest(BaseModel):
    elapsed_sec: float = Field(..., ge=0, description="Wall-clock seconds since the previous tick.")


class SignalSampleModel(BaseModel):
    y: float
    is_alert: bool
    time: Optional[float] = None


class InstanceState(BaseModel):
    instance_id: str
    condition_id: Optional[str]
    lead: str
    rhythm_mode: RhythmMode
    heart_rate_bpm: float
    target_heart_rate_bpm: float
    noise_level: float
    paper_speed_mm_s: int
    amplitude_zoom: float
    viewport_width_px: int
    viewport_height_px: int
    scan_cursor: int
    time_sec: float
    is_paused: bool
    show_labels: bool
    alert_regions: List[AlertRegion]


class SamplesResponse(BaseModel):
    instance_id: str
    scan_cursor: int
    samples: List[SignalSampleModel]


class WaveMetaModel(BaseModel):
    label: str
    time: float


class LabelPositionModel(BaseModel):
    label: str
    x: float = Field(..., description="Pixel column of the annotated wave.")


class LeadSnapshot(BaseModel):
    time_sec: float
    voltages_mv: Dict[str, float]


class ConditionInfo(BaseModel):
    condition_id: str
    name: str
    description: str
    detailed_note: str
    visibility: str
    visibility_note: Optional[str] = None
