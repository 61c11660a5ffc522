# ==============================================================================
# PROFILING DEL TPV
# ==============================================================================
# Tiempos de cada petición y de las operaciones que tocan el libro de caja.
# Los bloques se escriben en logs/ en texto legible:
#   performance.log     → todas las peticiones
#   slow_routes.log     → peticiones sobre el umbral
#   slow_functions.log  → operaciones sobre el umbral
#
# TPV_PROFILING=0 lo desactiva; TPV_LOGS_DIR cambia el directorio.
# ==============================================================================

import os
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps

ENABLE_PROFILING = os.environ.get('TPV_PROFILING', '1').lower() in ('1', 'true', 'yes')

# Milisegundos
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

LOGS_DIR = os.environ.get('TPV_LOGS_DIR') or os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
PERFORMANCE_LOG = os.path.join(LOGS_DIR, 'performance.log')
SLOW_ROUTES_LOG = os.path.join(LOGS_DIR, 'slow_routes.log')
SLOW_FUNCTIONS_LOG = os.path.join(LOGS_DIR, 'slow_functions.log')

# Regla Flask → acción legible
ROUTE_NAMES = {
    'GET /api/estado': 'Ver estado del negocio',
    'POST /api/ventas': 'Registrar venta',
    'POST /api/compras': 'Registrar compra',
    'POST /api/compras/calcular': 'Calcular línea de compra',
    'GET /api/caja/resumen': 'Ver resumen del día',
    'POST /api/caja/vista-previa': 'Previsualizar cierre de caja',
    'POST /api/caja/cierre': 'Cerrar caja',
    'GET /api/nomina/calculo': 'Calcular nómina',
    'POST /api/nomina/procesar': 'Procesar nómina',
    'POST /api/saldo/inversion': 'Ajustar saldo de inversión',
    'GET /api/transacciones': 'Ver libro de transacciones',
    'GET /api/transacciones/verificar': 'Verificar libro',
    'GET /api/deudas': 'Ver deudas',
    'POST /api/deudas/<int:debt_id>/abonos': 'Registrar abono',
    'POST /api/config/tasas': 'Actualizar tasas de cambio',
    'GET /api/reportes/ganancias': 'Ver ganancias',
    'GET /api/reportes/capital': 'Ver capital',
    'GET /api/actividad': 'Ver registro de actividad',
    'GET /api/rendimiento': 'Ver rendimiento',
}

# {operación: {calls, total_time, max_time}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()

if ENABLE_PROFILING:
    os.makedirs(LOGS_DIR, exist_ok=True)


def _severity(time_ms):
    """'CRITICAL', 'WARNING' o None según los umbrales."""
    if time_ms >= THRESHOLD_CRITICAL:
        return 'CRITICAL'
    if time_ms >= THRESHOLD_WARNING:
        return 'WARNING'
    return None


def _append_block(filepath, title, fields):
    """Agrega un bloque 'titulo + campo: valor' al archivo de log."""
    lines = ['', f"[{title}] {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", '-' * 40]
    lines += [f"{key}: {value}" for key, value in fields]
    try:
        with _write_lock:
            with open(filepath, 'a', encoding='utf-8') as f:
                f.write('\n'.join(lines) + '\n')
    except OSError:
        pass


def init_profiling(app):
    """Registra los hooks before/after request en la app Flask."""
    if not ENABLE_PROFILING:
        return

    from flask import g, request

    @app.before_request
    def _start_timer():
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000
        rule = str(request.url_rule) if request.url_rule else request.path
        worker = getattr(g, 'worker', None)
        fields = [
            ('Acción', ROUTE_NAMES.get(f"{request.method} {rule}", f"{request.method} {request.path}")),
            ('Trabajador', worker.name if worker else 'anónimo'),
            ('Ruta', f"{request.method} {request.path}"),
            ('Estado', response.status_code),
            ('Tiempo', f"{elapsed:.0f} ms"),
        ]

        _append_block(PERFORMANCE_LOG, 'PERFORMANCE', fields)
        level = _severity(elapsed)
        if level:
            _append_block(SLOW_ROUTES_LOG, level, fields)
        return response


def profile_function(func=None, name=None):
    """
    Decorador que acumula llamadas y tiempos de una operación.

    Uso:
        @profile_function(name="Liquidar venta")
        def create_sale(...):
            ...
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        label = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed = (time.perf_counter() - start) * 1000
                with _stats_lock:
                    stats = _function_stats[label]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed
                    stats['max_time'] = max(stats['max_time'], elapsed)

                level = _severity(elapsed)
                if level:
                    _append_block(SLOW_FUNCTIONS_LOG, level, [('Operación', label), ('Tiempo', f"{elapsed:.0f} ms")])

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def get_function_stats():
    """
    Returns:
        {operación: {calls, avg_time, max_time}} con tiempos en ms
    """
    with _stats_lock:
        return {
            label: {
                'calls': stats['calls'],
                'avg_time': round(stats['total_time'] / stats['calls'], 2) if stats['calls'] else 0,
                'max_time': round(stats['max_time'], 2),
            }
            for label, stats in _function_stats.items()
        }
