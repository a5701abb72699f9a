"""Poll cycle, its explicit state and the fixed-interval loop."""

from .cycle import PollCycle, PollOutcome
from .loop import PollLoop
from .state import PollerState
from .stats import PollStats

__all__ = ["PollCycle", "PollOutcome", "PollLoop", "PollerState", "PollStats"]
