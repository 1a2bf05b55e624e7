# // ecg_trace/signal_buffer.py
from typing import List, NamedTuple, Optional


class SignalSample(NamedTuple):
    y: float                       # vertical pixel position (0 = top of viewport)
    is_alert: bool
    time: Optional[float] = None   # simulation time that produced it; None for blank fill


class SignalBuffer:
    """
    Circular store of one sample per horizontal pixel.

    The scan cursor marks the next column to be written and wraps at the
    buffer width, so the trace overwrites itself from left to right like a
    bedside monitor sweep.
    """

    def __init__(self, width: int, baseline_y: float):
        self.samples: List[SignalSample] = []
        self.cursor = 0
        self.reset(width, baseline_y)

    @property
    def width(self) -> int:
        return len(self.samples)

    def reset(self, width: int, baseline_y: float):
        if width < 0:
            raise ValueError(f"Buffer width must be non-negative, got {width}")
        blank = SignalSample(baseline_y, False)
        self.samples = [blank] * width
        self.cursor = 0

    def write(self, sample: SignalSample) -> bool:
        if not self.samples:
            return False
        self.samples[self.cursor] = sample
        self.cursor += 1
        if self.cursor >= len(self.samples):
            self.cursor = 0
        return True

    def read(self, index: int) -> SignalSample:
        if not 0 <= index < len(self.samples):
            raise IndexError(f"Pixel {index} outside buffer of width {len(self.samples)}")
        return self.samples[index]
