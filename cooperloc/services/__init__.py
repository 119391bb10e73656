from .lifecycle import TrackerLifecycle, TRANSITIONS, allowed_transitions, check_transition, get_tracker
from .aggregation import build_state_map, overall_totals, color_band
from .dashboard import get_dashboard, recent_movements, monthly_histogram

__all__ = [
    "TrackerLifecycle",
    "TRANSITIONS",
    "allowed_transitions",
    "check_transition",
    "get_tracker",
    "build_state_map",
    "overall_totals",
    "color_band",
    "get_dashboard",
    "recent_movements",
    "monthly_histogram"
]
