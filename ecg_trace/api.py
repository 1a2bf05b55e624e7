# // ecg_trace/api.py
import logging
import threading
import uuid
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .api_models import (
    AdvanceRequest, ConditionInfo, ConditionRequest, CreateInstanceRequest, InstanceState, LabelPositionModel,
    LeadRequest, LeadSnapshot, NoiseRequest, PaperSpeedRequest, RateRequest, SamplesResponse, SignalSampleModel,
    ViewportRequest, WaveMetaModel, ZoomRequest,
)
from .conditions import DEFAULT_CATALOG, MENU_STRUCTURE, NORMAL_CONDITION_ID
from .simulator import ECGSimulator

logger = logging.getLogger(__name__)

app = FastAPI(title="ECG Trace Simulator")

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SimulatorRegistry:
    """In-process table of live simulator instances keyed by handle."""

    def __init__(self):
        self._instances: Dict[str, ECGSimulator] = {}
        self._lock = threading.Lock()

    def create(self, simulator: ECGSimulator) -> str:
        instance_id = uuid.uuid4().hex
        with self._lock:
            self._instances[instance_id] = simulator
        return instance_id

    def get(self, instance_id: str) -> ECGSimulator:
        simulator = self._instances.get(instance_id)
        if simulator is None:
            raise HTTPException(status_code=404, detail=f"Unknown simulator instance '{instance_id}'")
        return simulator

    def remove(self, instance_id: str):
        with self._lock:
            if self._instances.pop(instance_id, None) is None:
                raise HTTPException(status_code=404, detail=f"Unknown simulator instance '{instance_id}'")

    def __len__(self):
        return len(self._instances)


registry = SimulatorRegistry()


def _state(instance_id: str, sim: ECGSimulator) -> InstanceState:
    return InstanceState(
        instance_id=instance_id,
        condition_id=sim.condition_id,
        lead=sim.lead,
        rhythm_mode=sim.rhythm_mode,
        heart_rate_bpm=sim.heart_rate_bpm,
        target_heart_rate_bpm=sim.target_heart_rate_bpm,
        noise_level=sim.noise_level,
        paper_speed_mm_s=sim.paper_speed_mm_s,
        amplitude_zoom=sim.amplitude_zoom,
        viewport_width_px=sim.viewport_width_px,
        viewport_height_px=sim.viewport_height_px,
        scan_cursor=sim.scan_cursor,
        time_sec=sim.time,
        is_paused=sim.is_paused,
        show_labels=sim.show_labels,
        alert_regions=list(sim.alert_regions),
    )


def _apply(setter, *args):
    # Core setters reject out-of-range values with ValueError
    try:
        setter(*args)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.get("/conditions")
def list_conditions():
    return {
        "menu": [{"category": category, "items": list(items)} for category, items in MENU_STRUCTURE],
        "conditions": {cid: profile.model_dump(mode="json") for cid, profile in DEFAULT_CATALOG.items()},
    }


@app.post("/instances", response_model=InstanceState, status_code=201)
def create_instance(request: CreateInstanceRequest):
    try:
        sim = ECGSimulator(request.viewport_width_px, request.settings)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    if request.condition_id is not None:
        sim.set_condition(request.condition_id)
    instance_id = registry.create(sim)
    logger.info("Created simulator %s (%d px, lead %s)", instance_id, sim.viewport_width_px, sim.lead)
    return _state(instance_id, sim)


@app.get("/instances/{instance_id}", response_model=InstanceState)
def get_instance(instance_id: str):
    return _state(instance_id, registry.get(instance_id))


@app.delete("/instances/{instance_id}", status_code=204)
def delete_instance(instance_id: str):
    registry.remove(instance_id)


@app.put("/instances/{instance_id}/viewport", response_model=InstanceState)
def resize_instance(instance_id: str, request: ViewportRequest):
    sim = registry.get(instance_id)
    _apply(sim.resize, request.width_px, request.height_px)
    return _state(instance_id, sim)


@app.put("/instances/{instance_id}/condition", response_model=InstanceState)
def set_condition(instance_id: str, request: ConditionRequest):
    sim = registry.get(instance_id)
    sim.set_condition(request.condition_id)
    return _state(instance_id, sim)


@app.put("/instances/{instance_id}/lead", response_model=InstanceState)
def set_lead(instance_id: str, request: LeadRequest):
    sim = registry.get(instance_id)
    _apply(sim.set_lead, request.lead)
    return _state(instance_id, sim)


@app.put("/instances/{instance_id}/rate", response_model=InstanceState)
def set_target_rate(instance_id: str, request: RateRequest):
    sim = registry.get(instance_id)
    _apply(sim.set_target_rate, request.heart_rate_bpm)
    return _state(instance_id, sim)


@app.put("/instances/{instance_id}/noise", response_model=InstanceState)
def set_noise_level(instance_id: str, request: NoiseRequest):
    sim = registry.get(instance_id)
    _apply(sim.set_noise_level, request.noise_level)
    return _state(instance_id, sim)


@app.put("/instances/{instance_id}/paper_speed", response_model=InstanceState)
def set_paper_speed(instance_id: str, request: PaperSpeedRequest):
    sim = registry.get(instance_id)
    _apply(sim.set_paper_speed, request.paper_speed_mm_s)
    return _state(instance_id, sim)


@app.put("/instances/{instance_id}/zoom", response_model=InstanceState)
def set_amplitude_zoom(instance_id: str, request: ZoomRequest):
    sim = registry.get(instance_id)
    _apply(sim.set_amplitude_zoom, request.amplitude_zoom)
    return _state(instance_id, sim)


@app.post("/instances/{instance_id}/pause", response_model=InstanceState)
def pause_instance(instance_id: str):
    sim = registry.get(instance_id)
    sim.pause()
    return _state(instance_id, sim)


@app.post("/instances/{instance_id}/resume", response_model=InstanceState)
def resume_instance(instance_id: str):
    sim = registry.get(instance_id)
    sim.resume()
    return _state(instance_id, sim)


@app.post("/instances/{instance_id}/shock", response_model=InstanceState)
def shock_instance(instance_id: str):
    sim = registry.get(instance_id)
    sim.trigger_shock()
    return _state(instance_id, sim)


@app.post("/instances/{instance_id}/advance")
def advance_instance(instance_id: str, request: AdvanceRequest):
    sim = registry.get(instance_id)
    samples_written = sim.advance(request.elapsed_sec)
    return {"samples_written": samples_written, "scan_cursor": sim.scan_cursor, "time_sec": sim.time}


@app.get("/instances/{instance_id}/samples", response_model=SamplesResponse)
def read_samples(instance_id: str, start: int = 0, count: Optional[int] = None):
    sim = registry.get(instance_id)
    width = sim.viewport_width_px
    if not 0 <= start <= width:
        raise HTTPException(status_code=422, detail=f"start {start} outside buffer of width {width}")
    end = width if count is None else min(width, start + max(count, 0))
    samples: List[SignalSampleModel] = [
        SignalSampleModel(y=s.y, is_alert=s.is_alert, time=s.time)
        for s in (sim.read_sample(i) for i in range(start, end))
    ]
    return SamplesResponse(instance_id=instance_id, scan_cursor=sim.scan_cursor, samples=samples)


@app.get("/instances/{instance_id}/labels", response_model=List[WaveMetaModel])
def read_wave_labels(instance_id: str):
    sim = registry.get(instance_id)
    return [WaveMetaModel(label=m.label, time=m.time) for m in sim.wave_meta]


@app.post("/instances/{instance_id}/labels/toggle", response_model=InstanceState)
def toggle_labels(instance_id: str):
    sim = registry.get(instance_id)
    sim.toggle_labels()
    return _state(instance_id, sim)


@app.get("/instances/{instance_id}/labels/positions", response_model=List[LabelPositionModel])
def read_label_positions(instance_id: str):
    sim = registry.get(instance_id)
    if not sim.show_labels:
        return []
    return [LabelPositionModel(label=label, x=x) for label, x in sim.label_positions()]


@app.get("/instances/{instance_id}/leads", response_model=LeadSnapshot)
def read_twelve_lead_snapshot(instance_id: str):
    sim = registry.get(instance_id)
    return LeadSnapshot(time_sec=sim.time, voltages_mv=sim.twelve_lead_snapshot())


@app.get("/instances/{instance_id}/info", response_model=ConditionInfo)
def condition_info(instance_id: str):
    sim = registry.get(instance_id)
    profile = sim.condition_profile()
    condition_id = sim.condition_id
    if profile is None:
        condition_id = NORMAL_CONDITION_ID
        profile = sim.catalog.get(NORMAL_CONDITION_ID) or DEFAULT_CATALOG[NORMAL_CONDITION_ID]
    visibility, note = sim.visibility()
    return ConditionInfo(
        condition_id=condition_id,
        name=profile.name,
        description=profile.description,
        detailed_note=profile.detailed_note,
        visibility=visibility,
        visibility_note=note,
    )
