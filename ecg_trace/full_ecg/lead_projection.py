# ecg_trace/full_ecg/lead_projection.py
from typing import Dict

# Scalar view of the single synthesized vector from each standard lead.
# aVR looks at the heart from the right shoulder, so its deflections are inverted;
# V1 sits over the right ventricle and sees a mostly negative (rS) complex.
LEAD_COEFFICIENTS: Dict[str, float] = {
    # Frontal Plane Leads (Einthoven limb leads + Goldberger augmented leads)
    "I":   0.7,
    "II":  1.0,
    "III": 0.5,
    "aVR": -0.8,
    "aVL": 0.4,
    "aVF": 0.9,

    # Precordial Leads
    "V1":  -0.3,
    "V2":  0.2,
    "V3":  0.8,
    "V4":  1.1,
    "V5":  1.0,
    "V6":  0.8,
}


def lead_coefficient(lead: str) -> float:
    return LEAD_COEFFICIENTS.get(lead, 1.0)


def project_lead(voltage: float, lead: str) -> float:
    """Scale a synthesized voltage into the given lead. Unknown leads pass through unchanged."""
    return voltage * lead_coefficient(lead)


def project_to_12_leads(voltage: float) -> Dict[str, float]:
    """
    Projects one instantaneous voltage onto all 12 standard leads.
    """
    return {lead_name: voltage * coefficient for lead_name, coefficient in LEAD_COEFFICIENTS.items()}
