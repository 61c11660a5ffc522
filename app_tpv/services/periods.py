# ==============================================================================
# UTILIDADES DE FECHAS Y PERÍODOS
# ==============================================================================
# Todas las fechas se guardan en ISO 8601 y se comparan como hora local
# sin zona horaria (la caja opera en un solo lugar).
# ==============================================================================

from datetime import datetime, timedelta
from typing import Optional, Tuple

from .errors import ValidationError

# Inicio de los tiempos (período de la primera nómina)
EPOCH = datetime(1970, 1, 1)

VALID_PERIODS = ('today', 'week', 'month', 'year')


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    """
    Parsea una fecha desde string ISO.
    Las fechas con zona horaria se convierten a hora local.
    Retorna None si no puede parsear.
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (ValueError, TypeError, AttributeError):
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def to_iso(dt: datetime) -> str:
    return dt.isoformat(timespec='milliseconds')


def day_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Día calendario local: [00:00:00.000, 23:59:59.999]."""
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(hour=23, minute=59, second=59, microsecond=999000)
    return start, end


def period_range(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """
    Calcula el rango de fechas según el período solicitado.

    Args:
        period: 'today', 'week' (desde el lunes), 'month' o 'year'
        now: Momento de referencia

    Returns:
        Tupla (inicio, fin) con fin = final del día de `now`

    Raises:
        ValidationError: Si el período no es válido
    """
    today_start, today_end = day_bounds(now)

    if period == 'today':
        return today_start, today_end
    elif period == 'week':
        return today_start - timedelta(days=now.weekday()), today_end
    elif period == 'month':
        return today_start.replace(day=1), today_end
    elif period == 'year':
        return today_start.replace(month=1, day=1), today_end

    raise ValidationError(f"Período inválido: {period}. Use: {', '.join(VALID_PERIODS)}")


def in_range(value: Optional[str], start: datetime, end: datetime) -> bool:
    """Verifica si una fecha ISO cae dentro de [start, end]."""
    dt = parse_ts(value)
    return dt is not None and start <= dt <= end
