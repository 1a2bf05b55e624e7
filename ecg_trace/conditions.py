"""
Clinical condition catalog and its translation into simulator parameters.

The catalog is a read-only mapping of condition id to ConditionProfile. It is
passed into each simulator rather than looked up globally, so tests and
alternative front ends can supply their own tables.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .api_models import ComponentDelta, ConditionProfile, ParameterDeltas
from .constants import (
    AlertRegion, RhythmMode, ST_ELEVATION_OVERRIDES, ST_DEPRESSION_OVERRIDES,
)
from .waveform_primitives import ParameterSet

logger = logging.getLogger(__name__)

ConditionCatalog = Mapping[str, ConditionProfile]

NORMAL_CONDITION_ID = "normal"

_CONDITIONS = {
    # --- Ischemia / MI ---
    "normal": ConditionProfile(
        name="Normal Sinus Rhythm", base_rate=60, rhythm_mode=RhythmMode.SINUS,
        description="Healthy heart rhythm.",
        detailed_note="Observe regular P-Q-R-S-T intervals. No ST deviation.",
    ),
    "stemi_ant": ConditionProfile(
        name="Anterior STEMI (LAD)", base_rate=90,
        st_elevation_leads=("V1", "V2", "V3", "V4"),
        description="Acute occlusion of the Left Anterior Descending artery.",
        detailed_note="Look for ST elevation (highlighted) in precordial leads V1-V4. "
                      "This pattern is often called \"tombstoning\".",
    ),
    "stemi_inf": ConditionProfile(
        name="Inferior STEMI (RCA)", base_rate=80,
        st_elevation_leads=("II", "III", "aVF"),
        description="Occlusion of the Right Coronary Artery.",
        detailed_note="ST elevation is prominent in the inferior leads (II, III, aVF). "
                      "Lead I and aVL may show reciprocal depression.",
    ),
    "stemi_lat": ConditionProfile(
        name="Lateral STEMI (LCx)", base_rate=85,
        st_elevation_leads=("I", "aVL", "V5", "V6"),
        description="Occlusion of the Circumflex artery.",
        detailed_note="Elevation visible in lateral leads (I, aVL, V5, V6).",
    ),
    "nstemi": ConditionProfile(
        name="NSTEMI / Ischemia", base_rate=80,
        st_depression_leads=("V2", "V3", "V4", "V5"),
        description="Subendocardial ischemia without full thickness necrosis.",
        detailed_note="Characterized by ST depression and/or T-wave inversion. "
                      "Unlike STEMI, the artery is not completely blocked.",
    ),

    # --- Arrhythmias ---
    "afib": ConditionProfile(
        name="Atrial Fibrillation", base_rate=130, rhythm_mode=RhythmMode.ATRIAL_FIBRILLATION,
        description="Irregularly irregular rhythm.",
        detailed_note="Absence of distinct P-waves, replaced by fine fibrillatory baseline tremors. "
                      "Ventricular rate is rapid and chaotic.",
    ),
    "aflutter": ConditionProfile(
        name="Atrial Flutter", base_rate=150, rhythm_mode=RhythmMode.ATRIAL_FLUTTER,
        description="Macro-reentrant atrial circuit.",
        detailed_note="Classic saw-tooth pattern (F-waves) best seen in leads II and III. "
                      "Rate is often fixed (e.g., 2:1 block).",
    ),
    "vtach": ConditionProfile(
        name="Ventricular Tachycardia", base_rate=180, rhythm_mode=RhythmMode.VENTRICULAR_TACHYCARDIA,
        alert_regions=(AlertRegion.QRS,),
        parameter_deltas=ParameterDeltas(
            r=ComponentDelta(width=0.08, amplitude=1.2),
            t=ComponentDelta(amplitude=0.0),
            p=ComponentDelta(amplitude=0.0),
        ),
        description="Wide QRS complex tachycardia.",
        detailed_note="Broad QRS complexes (>120ms). P-waves are often dissociated and invisible.",
    ),
    "vf": ConditionProfile(
        name="Ventricular Fibrillation", rhythm_mode=RhythmMode.VENTRICULAR_FIBRILLATION,
        description="Cardiac arrest.",
        detailed_note="Chaotic, disorganized electrical activity. No pulse. Immediate defibrillation required.",
    ),
    "torsades": ConditionProfile(
        name="Torsades de Pointes", rhythm_mode=RhythmMode.TORSADES,
        description="Polymorphic VT.",
        detailed_note="\"Twisting of the points\". The QRS amplitude modulates around the isoelectric line.",
    ),

    # --- Conduction Blocks ---
    "avblock1": ConditionProfile(
        name="1st Degree AV Block", base_rate=60,
        alert_regions=(AlertRegion.PR,),
        parameter_deltas=ParameterDeltas(p=ComponentDelta(offset=-0.3)),
        description="Prolonged conduction.",
        detailed_note="PR interval is >200ms (one big square). Every P-wave is followed by a QRS.",
    ),
    "block2": ConditionProfile(
        name="2nd Deg AV Block (Mobitz II)", base_rate=60, rhythm_mode=RhythmMode.MOBITZ_2_BLOCK,
        description="Intermittent dropped beats.",
        detailed_note="Regular P-waves, but some QRS complexes are missing. "
                      "The PR interval remains constant for conducted beats.",
    ),
    "block3": ConditionProfile(
        name="3rd Deg AV Block (Complete)", base_rate=30, rhythm_mode=RhythmMode.COMPLETE_BLOCK,
        description="Total AV Dissociation.",
        detailed_note="Atria (P) and ventricles (QRS) beat independently. "
                      "P-waves \"march through\" the rhythm strip regardless of QRS timing.",
    ),
    "lbbb": ConditionProfile(
        name="Left Bundle Branch Block", base_rate=70,
        alert_regions=(AlertRegion.QRS,),
        parameter_deltas=ParameterDeltas(r=ComponentDelta(width=0.06)),
        description="Conduction delay in LBB.",
        detailed_note="Wide QRS complex (>120ms). Broad, notched R-waves in lateral leads.",
    ),
    "rbbb": ConditionProfile(
        name="Right Bundle Branch Block", base_rate=70,
        alert_regions=(AlertRegion.QRS,),
        description="Conduction delay in RBB.",
        detailed_note="Wide QRS. \"Rabbit ears\" (RSR') pattern in V1.",
    ),

    # --- Electrolytes ---
    "hyperkalemia": ConditionProfile(
        name="Hyperkalemia", base_rate=50,
        alert_regions=(AlertRegion.QRS,),
        parameter_deltas=ParameterDeltas(
            t=ComponentDelta(amplitude=0.9, width=0.04),
            r=ComponentDelta(width=0.05),
        ),
        description="High Potassium.",
        detailed_note="Tall, peaked T-waves. As it worsens, QRS widens.",
    ),
    "hypokalemia": ConditionProfile(
        name="Hypokalemia", base_rate=65,
        alert_regions=(AlertRegion.ST,),
        parameter_deltas=ParameterDeltas(
            t=ComponentDelta(amplitude=0.1),
            st=ComponentDelta(amplitude=-0.1),
        ),
        description="Low Potassium.",
        detailed_note="Flattened T-waves, ST depression, and prominent U-waves.",
    ),
    "hypercalcemia": ConditionProfile(
        name="Hypercalcemia", base_rate=60,
        alert_regions=(AlertRegion.QT,),
        parameter_deltas=ParameterDeltas(
            st=ComponentDelta(width=0.01),
            t=ComponentDelta(offset=0.25),
        ),
        description="High Calcium.",
        detailed_note="Shortened QT interval.",
    ),
    "hypocalcemia": ConditionProfile(
        name="Hypocalcemia", base_rate=60,
        alert_regions=(AlertRegion.QT,),
        parameter_deltas=ParameterDeltas(
            st=ComponentDelta(width=0.12),
            t=ComponentDelta(offset=0.5),
        ),
        description="Low Calcium.",
        detailed_note="Prolonged QT interval.",
    ),

    # --- Drugs & Toxins ---
    "digoxin": ConditionProfile(
        name="Digoxin Effect", base_rate=60,
        alert_regions=(AlertRegion.ST,),
        parameter_deltas=ParameterDeltas(st=ComponentDelta(amplitude=-0.15, offset=0.1)),
        description="Therapeutic effect.",
        detailed_note="Scooped ST depression resembling a \"Salvador Dali moustache\".",
    ),
    "quinidine": ConditionProfile(
        name="Quinidine (Class Ia)", base_rate=60,
        alert_regions=(AlertRegion.QT,),
        parameter_deltas=ParameterDeltas(t=ComponentDelta(offset=0.5, width=0.1)),
        description="Anti-arrhythmic effect.",
        detailed_note="QT prolongation and T-wave widening.",
    ),

    # --- Structural / Other ---
    "pericarditis": ConditionProfile(
        name="Acute Pericarditis", base_rate=90,
        st_elevation_leads=("I", "II", "III", "aVF", "V2", "V3", "V4", "V5", "V6"),
        description="Inflammation of pericardium.",
        detailed_note="Diffuse ST elevation in almost all leads. PR segment depression is often present.",
    ),
}

DEFAULT_CATALOG: ConditionCatalog = MappingProxyType(_CONDITIONS)

MENU_STRUCTURE: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Ischemia / MI", ("normal", "stemi_ant", "stemi_inf", "stemi_lat", "nstemi")),
    ("Arrhythmias", ("afib", "aflutter", "vtach", "vf", "torsades")),
    ("Conduction Blocks", ("avblock1", "block2", "block3", "lbbb", "rbbb")),
    ("Electrolytes", ("hyperkalemia", "hypokalemia", "hypercalcemia", "hypocalcemia")),
    ("Drugs & Toxins", ("digoxin", "quinidine")),
    ("Structural / Other", ("pericarditis",)),
)


@dataclass(frozen=True)
class AppliedCondition:
    """Simulator state produced by applying one catalog entry on one lead."""
    params: ParameterSet
    rhythm_mode: RhythmMode
    target_rate_bpm: Optional[float]
    alert_regions: Tuple[AlertRegion, ...]
    lead_match: bool


def apply_condition(condition_id: Optional[str], lead: str,
                    catalog: ConditionCatalog = DEFAULT_CATALOG) -> AppliedCondition:
    """
    Derive parameters, rhythm, target rate and alert regions for a condition as seen from a lead.

    Lead-localized patterns (ST elevation / depression) only change the
    waveform, and only raise their alert regions, when the lead is one of the
    listed leads. Unknown ids fall back to the default parameters.
    """
    params = ParameterSet.default()
    condition = catalog.get(condition_id) if condition_id is not None else None
    if condition is None:
        if condition_id is not None:
            logger.debug("Unknown condition '%s', using default parameters", condition_id)
        return AppliedCondition(params, RhythmMode.SINUS, None, (), False)

    rhythm_mode = condition.rhythm_mode or RhythmMode.SINUS
    params = params.merge(condition.parameter_deltas)

    regions = []
    lead_match = False
    if condition.st_elevation_leads and lead in condition.st_elevation_leads:
        params = params.merge(ST_ELEVATION_OVERRIDES)
        lead_match = True
        regions.append(AlertRegion.ST)
    if condition.st_depression_leads and lead in condition.st_depression_leads:
        params = params.merge(ST_DEPRESSION_OVERRIDES)
        lead_match = True
        if AlertRegion.ST not in regions:
            regions.append(AlertRegion.ST)

    if not condition.is_lead_localized or lead_match:
        for region in condition.alert_regions:
            if region not in regions:
                regions.append(region)

    return AppliedCondition(params, rhythm_mode, condition.base_rate, tuple(regions), lead_match)


def lead_visibility(condition: Optional[ConditionProfile], lead: str) -> Tuple[str, Optional[str]]:
    """
    Whether a condition's localized pattern shows on a lead.

    Returns ("visible" | "hidden" | "global", note). Hidden results name the
    first lead that would show the change.
    """
    if condition is None or not condition.is_lead_localized:
        return "global", None

    elevation = condition.st_elevation_leads or ()
    depression = condition.st_depression_leads or ()
    if lead in elevation:
        return "visible", "Significant ST elevation detected in this lead."
    if lead in depression:
        return "visible", "ST depression detected in this lead."
    suggested = (elevation or depression)[0]
    return "hidden", f"Changes not typically seen in lead {lead}. Switch to {suggested} to view."
