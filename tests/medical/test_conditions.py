"""
Clinical condition catalog: lead-localized ST patterns, parameter deltas,
alert regions and lead visibility notes.
"""
import pytest
from types import MappingProxyType

from ecg_trace.api_models import ComponentDelta, ConditionProfile, ParameterDeltas
from ecg_trace.conditions import (
    DEFAULT_CATALOG, MENU_STRUCTURE, apply_condition, lead_visibility,
)
from ecg_trace.constants import AlertRegion, RhythmMode, DEFAULT_NOISE_LEVEL, STANDARD_LEADS
from ecg_trace.simulator import ECGSimulator
from ecg_trace.waveform_primitives import ParameterSet


class TestLocalizedPatterns:
    """ST elevation / depression shows only on the affected leads."""

    @pytest.mark.medical
    def test_anterior_stemi_on_v2(self):
        applied = apply_condition("stemi_ant", "V2")
        assert applied.params["st"].amplitude == 0.5
        assert applied.params["st"].offset == 0.1
        assert applied.params["st"].width == 0.12
        assert applied.params["t"].amplitude == 0.4
        assert applied.alert_regions == (AlertRegion.ST,)
        assert applied.lead_match
        assert applied.target_rate_bpm == 90

    @pytest.mark.medical
    def test_anterior_stemi_invisible_on_iii(self):
        applied = apply_condition("stemi_ant", "III")
        assert applied.params["st"].amplitude == 0.0
        assert applied.params == ParameterSet.default()
        assert applied.alert_regions == ()
        assert not applied.lead_match

    @pytest.mark.medical
    @pytest.mark.parametrize("lead", ["II", "III", "aVF"])
    def test_inferior_stemi_leads(self, lead):
        assert apply_condition("stemi_inf", lead).params["st"].amplitude == 0.5

    @pytest.mark.medical
    def test_nstemi_depression(self):
        applied = apply_condition("nstemi", "V3")
        assert applied.params["st"].amplitude == -0.2
        assert applied.params["t"].amplitude == -0.1
        assert applied.alert_regions == (AlertRegion.ST,)

    @pytest.mark.medical
    def test_applying_twice_is_idempotent(self):
        assert apply_condition("stemi_lat", "aVL") == apply_condition("stemi_lat", "aVL")

    @pytest.mark.medical
    def test_all_regions_dropped_off_lead(self):
        catalog = {
            "mixed": ConditionProfile(
                name="Mixed", base_rate=70, st_elevation_leads=("V1",),
                alert_regions=(AlertRegion.QT,),
            ),
        }
        assert apply_condition("mixed", "V1", catalog).alert_regions == (AlertRegion.ST, AlertRegion.QT)
        assert apply_condition("mixed", "II", catalog).alert_regions == ()


class TestGlobalConditions:
    """Deltas and rhythms that apply regardless of lead."""

    @pytest.mark.medical
    def test_vtach_wide_complex(self):
        applied = apply_condition("vtach", "V6")
        assert applied.rhythm_mode == RhythmMode.VENTRICULAR_TACHYCARDIA
        assert applied.params["r"].width == 0.08
        assert applied.params["r"].amplitude == 1.2
        assert applied.params["t"].amplitude == 0
        assert applied.params["p"].amplitude == 0
        # Untouched fields keep their defaults
        assert applied.params["r"].offset == 0.0

    @pytest.mark.medical
    @pytest.mark.parametrize("lead", STANDARD_LEADS)
    def test_hypercalcemia_short_st_on_every_lead(self, lead):
        applied = apply_condition("hypercalcemia", lead)
        assert applied.params["st"].width == 0.01
        assert applied.params["t"].offset == 0.25
        assert applied.alert_regions == (AlertRegion.QT,)

    @pytest.mark.medical
    def test_unknown_condition_falls_back_to_defaults(self):
        applied = apply_condition("not_a_condition", "II")
        assert applied.params == ParameterSet.default()
        assert applied.rhythm_mode == RhythmMode.SINUS
        assert applied.target_rate_bpm is None
        assert applied.alert_regions == ()

    @pytest.mark.medical
    @pytest.mark.parametrize("condition_id", ["vf", "torsades"])
    def test_rate_free_rhythms_keep_target(self, condition_id):
        assert apply_condition(condition_id, "II").target_rate_bpm is None


class TestSimulatorConditionChanges:
    """Condition and lead changes applied through a simulator."""

    @pytest.mark.medical
    def test_condition_resets_noise_and_sets_target(self, quiet_sim):
        quiet_sim.set_noise_level(0.4)
        quiet_sim.set_condition("afib")
        assert quiet_sim.noise_level == DEFAULT_NOISE_LEVEL
        assert quiet_sim.target_heart_rate_bpm == 130
        assert quiet_sim.rhythm_mode == RhythmMode.ATRIAL_FIBRILLATION

    @pytest.mark.medical
    def test_vf_keeps_previous_target_rate(self, quiet_sim):
        quiet_sim.set_condition("afib")
        quiet_sim.set_condition("vf")
        assert quiet_sim.target_heart_rate_bpm == 130

    @pytest.mark.medical
    def test_lead_switch_reapplies_condition(self, quiet_sim):
        quiet_sim.set_condition("stemi_ant")
        assert quiet_sim.params["st"].amplitude == 0.0
        assert quiet_sim.alert_regions == []

        quiet_sim.set_lead("V3")
        assert quiet_sim.params["st"].amplitude == 0.5
        assert quiet_sim.alert_regions == [AlertRegion.ST]

    @pytest.mark.medical
    def test_unknown_lead_rejected(self, quiet_sim):
        with pytest.raises(ValueError):
            quiet_sim.set_lead("V7")

    @pytest.mark.medical
    def test_custom_catalog_injection(self, quiet_settings):
        catalog = {
            "peaked": ConditionProfile(
                name="Peaked T", base_rate=45,
                parameter_deltas=ParameterDeltas(t=ComponentDelta(amplitude=1.1)),
            ),
        }
        sim = ECGSimulator(100, quiet_settings, catalog=catalog)
        sim.set_condition("peaked")
        assert sim.params["t"].amplitude == 1.1
        assert sim.target_heart_rate_bpm == 45

        sim.set_condition("stemi_ant")
        assert sim.params == ParameterSet.default()


class TestLeadVisibility:
    """Educational notes about where a pattern can be seen."""

    @pytest.mark.medical
    def test_global_condition(self):
        assert lead_visibility(DEFAULT_CATALOG["afib"], "V1") == ("global", None)
        assert lead_visibility(None, "II") == ("global", None)

    @pytest.mark.medical
    def test_visible_elevation(self):
        status, note = lead_visibility(DEFAULT_CATALOG["stemi_inf"], "aVF")
        assert status == "visible"
        assert "elevation" in note

    @pytest.mark.medical
    def test_visible_depression(self):
        status, note = lead_visibility(DEFAULT_CATALOG["nstemi"], "V4")
        assert status == "visible"
        assert "depression" in note

    @pytest.mark.medical
    def test_pericarditis_hidden_in_avr(self):
        status, note = lead_visibility(DEFAULT_CATALOG["pericarditis"], "aVR")
        assert status == "hidden"
        assert note == "Changes not typically seen in lead aVR. Switch to I to view."

    @pytest.mark.medical
    def test_simulator_reports_visibility(self, quiet_sim):
        quiet_sim.set_condition("stemi_lat")
        assert quiet_sim.visibility()[0] == "hidden"
        quiet_sim.set_lead("V5")
        assert quiet_sim.visibility()[0] == "visible"


class TestCatalog:
    """Shape of the built-in catalog."""

    @pytest.mark.medical
    def test_menu_covers_every_condition(self):
        menu_ids = [cid for _, ids in MENU_STRUCTURE for cid in ids]
        assert len(menu_ids) == len(set(menu_ids))
        assert set(menu_ids) == set(DEFAULT_CATALOG)
        assert len(DEFAULT_CATALOG) == 22

    @pytest.mark.medical
    def test_catalog_is_read_only(self):
        assert isinstance(DEFAULT_CATALOG, MappingProxyType)
        with pytest.raises(TypeError):
            DEFAULT_CATALOG["new"] = DEFAULT_CATALOG["normal"]

    @pytest.mark.medical
    def test_profiles_are_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_CATALOG["normal"].base_rate = 100
