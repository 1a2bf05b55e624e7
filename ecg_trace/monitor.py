# // ecg_trace/monitor.py
import logging
from typing import Callable, List, Optional

from .api_models import SimulatorSettings
from .conditions import ConditionCatalog, DEFAULT_CATALOG
from .constants import STANDARD_LEADS
from .simulator import ECGSimulator

logger = logging.getLogger(__name__)

LAYOUT_PANEL_COUNTS = {"1": 1, "2": 2, "4": 4, "12": 12}


class MonitorBank:
    """
    A wall of monitor panels, one ECGSimulator each.

    In the "12" layout every panel shows a different standard lead of the same
    heart: panel 0 (lead I) is the master and schedules beats, and all other
    panels follow its beat queue through a read-only view. Control changes are
    broadcast to every panel in that layout and go to the selected panel
    otherwise.
    """

    def __init__(self, panel_width_px: int, settings: Optional[SimulatorSettings] = None,
                 catalog: ConditionCatalog = DEFAULT_CATALOG, layout: str = "1"):
        self.panel_width_px = panel_width_px
        self.settings = settings or SimulatorSettings()
        self.catalog = catalog
        self.simulators: List[ECGSimulator] = []
        self.selected_index = 0
        self.layout = layout
        self.set_layout(layout)

    @property
    def is_twelve_lead(self) -> bool:
        return self.layout == "12"

    @property
    def master(self) -> Optional[ECGSimulator]:
        return self.simulators[0] if self.simulators else None

    @property
    def selected(self) -> Optional[ECGSimulator]:
        if 0 <= self.selected_index < len(self.simulators):
            return self.simulators[self.selected_index]
        return None

    def set_layout(self, layout: str):
        if layout not in LAYOUT_PANEL_COUNTS:
            raise ValueError(f"Unknown layout '{layout}'. Expected one of {', '.join(LAYOUT_PANEL_COUNTS)}")
        self.layout = layout
        self.simulators = []
        for i in range(LAYOUT_PANEL_COUNTS[layout]):
            settings = self.settings
            if self.is_twelve_lead:
                settings = settings.model_copy(update={"lead": STANDARD_LEADS[i]})
            if settings.seed is not None:
                settings = settings.model_copy(update={"seed": settings.seed + i})
            self.simulators.append(ECGSimulator(self.panel_width_px, settings, self.catalog))

        if self.is_twelve_lead:
            master_view = self.master.beat_queue_view()
            for sim in self.simulators[1:]:
                sim.attach_external_beat_queue(master_view)
        self.selected_index = 0
        logger.debug("Layout %s with %d panels", layout, len(self.simulators))

    def select(self, index: int):
        if not 0 <= index < len(self.simulators):
            raise IndexError(f"Panel {index} does not exist in layout {self.layout}")
        self.selected_index = index

    def update_active(self, callback: Callable[[ECGSimulator], None]):
        if self.is_twelve_lead:
            for sim in self.simulators:
                callback(sim)
        elif self.selected is not None:
            callback(self.selected)

    def set_condition(self, condition_id: str):
        self.update_active(lambda sim: sim.set_condition(condition_id))

    def trigger_shock(self):
        self.update_active(lambda sim: sim.trigger_shock())

    def advance(self, elapsed_real_sec: float):
        # Master first, so followers read a queue already extended for this tick
        for sim in self.simulators:
            sim.advance(elapsed_real_sec)

    def resize(self, panel_width_px: int, panel_height_px: Optional[int] = None):
        self.panel_width_px = panel_width_px
        for sim in self.simulators:
            sim.resize(panel_width_px, panel_height_px)
