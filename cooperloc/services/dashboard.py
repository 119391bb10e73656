"""
CooperLoc - Dashboard Statistics
Contagem por status (escopo da franquia para franqueado) e entradas no estoque por mês
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select, func, or_, false
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.core.session import SessionContext
from cooperloc.models import Franchise, Tracker, TrackerMovement, TrackerStatus, UserRole

MONTH_NAMES = [
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez"
]


@dataclass
class MonthBucket:
    month: str
    month_name: str
    count: int = 0


@dataclass
class DashboardStats:
    total_trackers: int = 0
    in_stock: int = 0
    sent: int = 0
    installed: int = 0
    defective: int = 0
    available: int = 0
    total_franchises: Optional[int] = None


def count_by_status(statuses: Iterable[str]) -> dict:
    counts = {status.value: 0 for status in TrackerStatus}
    for status in statuses:
        if status in counts:
            counts[status] += 1
    return counts


def monthly_histogram(timestamps: Iterable[datetime], year: int) -> List[MonthBucket]:
    """Sempre 12 meses (01..12); datas de outros anos são ignoradas"""
    buckets = [MonthBucket(f"{i:02d}", MONTH_NAMES[i - 1]) for i in range(1, 13)]
    for ts in timestamps:
        if ts is not None and ts.year == year:
            buckets[ts.month - 1].count += 1
    return buckets


def _scope(query, session: SessionContext, column):
    """Franqueado só enxerga a própria franquia (nenhuma, se não tiver)"""
    if session.role == UserRole.FRANQUEADO:
        return query.where(column == session.franchise_id) if session.franchise_id else query.where(false())
    return query


async def get_dashboard(db: AsyncSession, session: SessionContext, now: datetime = None) -> dict:
    now = now or datetime.utcnow()
    is_franchisee = session.role == UserRole.FRANQUEADO

    result = await db.execute(_scope(select(Tracker.status), session, Tracker.franchise_id))
    statuses = result.scalars().all()
    counts = count_by_status(statuses)

    stats = DashboardStats(
        total_trackers=len(statuses),
        in_stock=counts[TrackerStatus.ESTOQUE.value],
        sent=counts[TrackerStatus.ENVIADO.value],
        installed=counts[TrackerStatus.INSTALADO.value],
        defective=counts[TrackerStatus.DEFEITO.value],
    )
    # Franqueado: recebidos aguardando instalação; matriz/admin: disponíveis para envio
    stats.available = stats.sent if is_franchisee else stats.in_stock

    if not is_franchisee:
        result = await db.execute(
            select(func.count(Franchise.id)).where(Franchise.active == True)  # noqa: E712
        )
        stats.total_franchises = result.scalar() or 0

    year_start = datetime(now.year, 1, 1)
    year_end = datetime(now.year + 1, 1, 1)
    result = await db.execute(
        _scope(
            select(Tracker.created_at).where(
                Tracker.created_at >= year_start,
                Tracker.created_at < year_end
            ),
            session,
            Tracker.franchise_id
        )
    )
    monthly = monthly_histogram(result.scalars().all(), now.year)

    return {
        "role": session.role.value if session.role else None,
        "stats": asdict(stats),
        "monthly_stock": [asdict(bucket) for bucket in monthly],
        "year": now.year,
        "generated_at": now.isoformat()
    }


async def recent_movements(db: AsyncSession, session: SessionContext, limit: int = 10) -> list:
    """Movimentações mais recentes; franqueado vê as que envolvem a sua franquia"""
    query = select(TrackerMovement).order_by(TrackerMovement.created_at.desc()).limit(limit)

    if session.role == UserRole.FRANQUEADO:
        if not session.franchise_id:
            return []
        query = query.where(
            or_(
                TrackerMovement.to_franchise_id == session.franchise_id,
                TrackerMovement.from_franchise_id == session.franchise_id
            )
        )

    result = await db.execute(query)
    movements = result.scalars().all()

    if not movements:
        return []

    tracker_ids = {m.tracker_id for m in movements}
    result = await db.execute(
        select(Tracker.id, Tracker.serial_number).where(Tracker.id.in_(tracker_ids))
    )
    serials = dict(result.all())

    return [
        {**m.to_dict(), "serial_number": serials.get(m.tracker_id)}
        for m in movements
    ]
