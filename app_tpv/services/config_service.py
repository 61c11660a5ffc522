# ==============================================================================
# SERVICIO DE CONFIGURACIÓN - Tasas de cambio
# ==============================================================================
# Las tasas solo se usan al liquidar ventas en MLC o USD.
# ==============================================================================

import math
from dataclasses import replace
from typing import Any, Dict, Tuple

from app_tpv.models import AppState, ExchangeRates, Worker
from .errors import TPVError, ValidationError


def _valid_rate(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        raise ValidationError(f"La tasa {name} debe ser un número válido y positivo.")
    return float(value)


def update_exchange_rates(
    state: AppState,
    mlc_to_cup: Any = None,
    usd_to_cup: Any = None
) -> Tuple[AppState, ExchangeRates]:
    """
    Actualiza una o ambas tasas. Un valor None conserva la tasa actual.

    Raises:
        ValidationError: Tasa no numérica o negativa
    """
    current = state.config.exchange_rates
    rates = ExchangeRates(
        mlc_to_cup=current.mlc_to_cup if mlc_to_cup is None else _valid_rate(mlc_to_cup, 'MLC'),
        usd_to_cup=current.usd_to_cup if usd_to_cup is None else _valid_rate(usd_to_cup, 'USD')
    )
    new_state = replace(state, config=replace(state.config, exchange_rates=rates))
    return new_state, rates


class ConfigService:
    """Servicio de configuración del negocio."""

    def __init__(self, state_repo, activity_service=None):
        self.state_repo = state_repo
        self.activity_service = activity_service

    def get_exchange_rates(self) -> Dict[str, float]:
        return self.state_repo.load().config.exchange_rates.to_dict()

    def set_exchange_rates(self, data: Dict[str, Any], worker: Worker) -> Dict[str, Any]:
        """
        Args:
            data: {"mlc_to_cup": 240, "usd_to_cup": 390} (cualquiera opcional)
        """
        values = {}
        for key in ('mlc_to_cup', 'usd_to_cup'):
            raw = data.get(key)
            if raw is None or raw == '':
                continue
            try:
                values[key] = float(raw)
            except (TypeError, ValueError):
                label = 'MLC' if key == 'mlc_to_cup' else 'USD'
                return {'ok': False, 'error': f"La tasa {label} debe ser un número válido y positivo."}

        try:
            rates = self.state_repo.apply(lambda state: update_exchange_rates(state, **values))
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        if self.activity_service:
            self.activity_service.log_rates_change(worker.name, rates.mlc_to_cup, rates.usd_to_cup)

        return {'ok': True, 'exchange_rates': rates.to_dict()}
