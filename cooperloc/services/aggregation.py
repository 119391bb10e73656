"""
CooperLoc - Geographic Aggregation
Consolida rastreadores por estado e franquia para o mapa de envios.
Recalculado por completo a cada chamada.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from cooperloc.core.brazil_states import BRAZIL_STATES
from cooperloc.models import TrackerStatus

SENT_STATUSES = frozenset({
    TrackerStatus.ENVIADO.value,
    TrackerStatus.INSTALADO.value,
    TrackerStatus.DEFEITO.value,
})

# (limite exclusivo, faixa) em ordem decrescente
COLOR_BANDS = [
    (20, "high"),
    (10, "medium"),
    (5, "low"),
    (0, "very_low"),
]


def color_band(total_sent: int) -> str:
    for threshold, band in COLOR_BANDS:
        if total_sent > threshold:
            return band
    return "empty"


@dataclass
class FranchiseRollup:
    franchise_id: Optional[str]
    name: str
    sent: int = 0
    installed: int = 0
    defective: int = 0

    def to_dict(self):
        return {
            "franchise_id": self.franchise_id,
            "name": self.name,
            "sent": self.sent,
            "installed": self.installed,
            "defective": self.defective,
        }


@dataclass
class StateRollup:
    code: str
    name: str
    total_sent: int = 0
    total_installed: int = 0
    total_defective: int = 0
    franchises: List[FranchiseRollup] = field(default_factory=list)

    @property
    def pending(self) -> int:
        return self.total_sent - self.total_installed - self.total_defective

    @property
    def color_band(self) -> str:
        return color_band(self.total_sent)

    def to_dict(self):
        return {
            "code": self.code,
            "name": self.name,
            "total_sent": self.total_sent,
            "total_installed": self.total_installed,
            "total_defective": self.total_defective,
            "pending": self.pending,
            "color_band": self.color_band,
            "franchises": [f.to_dict() for f in self.franchises],
        }


@dataclass
class MapTotals:
    total_sent: int = 0
    total_installed: int = 0
    total_defective: int = 0

    @property
    def pending(self) -> int:
        return self.total_sent - self.total_installed - self.total_defective

    def to_dict(self):
        return {
            "total_sent": self.total_sent,
            "total_installed": self.total_installed,
            "total_defective": self.total_defective,
            "pending": self.pending,
        }


def build_state_map(trackers: Iterable) -> Dict[str, StateRollup]:
    """
    Agrupa rastreadores por (franquia, UF) e soma por UF.

    Espera objetos com status, franchise_id e franchise (name, state).
    Rastreadores sem franquia, sem UF ou com UF desconhecida ficam de fora.
    Todas as UFs aparecem no resultado, zeradas quando não há dados.
    """
    states = {code: StateRollup(code=code, name=name) for code, name in BRAZIL_STATES}
    buckets: Dict[tuple, FranchiseRollup] = {}
    bucket_states: Dict[tuple, str] = {}

    for tracker in trackers:
        franchise = tracker.franchise
        if not franchise or not franchise.state:
            continue

        state_code = franchise.state.strip().upper()
        if state_code not in states:
            continue

        key = (tracker.franchise_id, state_code)
        rollup = buckets.get(key)
        if rollup is None:
            rollup = buckets[key] = FranchiseRollup(tracker.franchise_id, franchise.name)
            bucket_states[key] = state_code

        if tracker.status in SENT_STATUSES:
            rollup.sent += 1
        if tracker.status == TrackerStatus.INSTALADO.value:
            rollup.installed += 1
        if tracker.status == TrackerStatus.DEFEITO.value:
            rollup.defective += 1

    for key, rollup in buckets.items():
        state = states[bucket_states[key]]
        state.total_sent += rollup.sent
        state.total_installed += rollup.installed
        state.total_defective += rollup.defective
        state.franchises.append(rollup)

    return states


def overall_totals(states: Dict[str, StateRollup]) -> MapTotals:
    totals = MapTotals()
    for state in states.values():
        totals.total_sent += state.total_sent
        totals.total_installed += state.total_installed
        totals.total_defective += state.total_defective
    return totals
