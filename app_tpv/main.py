# ==============================================================================
# API HTTP DEL TPV
# ==============================================================================
# Capa delgada: request → service → response JSON.
# Toda la lógica de negocio vive en services/, NO en las rutas.
#
# IDENTIDAD: cada petición que opera sobre dinero debe traer la cabecera
#   X-Worker-Id: <id del trabajador>
#
# RESPUESTAS:
#   éxito  → {"success": true, ...}
#   rechazo → {"success": false, "error": "..."}, 400
#   fallo inesperado → {"success": false, "error": "Error interno: ..."}, 500
# ==============================================================================

import os
from functools import wraps

from flask import Flask, current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from app_tpv.app_container import AppContainer, get_container
from app_tpv.performance_logger import ENABLE_PROFILING, get_function_stats, init_profiling

_DEFAULT_SECRET = "app_tpv_dev_secret_key_change_in_production"


# ═══════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def _container() -> AppContainer:
    return current_app.extensions['tpv_container']


def _respond(result, status_ok=200):
    """Traduce {'ok': ..., ...} de un servicio a la respuesta JSON."""
    payload = {k: v for k, v in result.items() if k != 'ok'}
    if not result.get('ok'):
        return {"success": False, "error": payload.get('error', 'Operación rechazada')}, 400
    return {"success": True, **payload}, status_ok


def _json_body():
    return request.get_json(silent=True) or {}


def worker_required(f):
    """Resuelve el trabajador desde X-Worker-Id y lo deja en g.worker."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        raw_id = request.headers.get('X-Worker-Id', '').strip()
        try:
            worker_id = int(raw_id)
        except ValueError:
            return {"success": False, "error": "Trabajador no identificado."}, 401

        worker = _container().state_repo.load().get_worker(worker_id)
        if worker is None:
            return {"success": False, "error": f"Trabajador #{worker_id} no encontrado."}, 401

        g.worker = worker
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════
# RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def register_routes(app):

    @app.route('/api/estado', methods=['GET'])
    def api_estado():
        """Resumen del estado: saldos, tasas y conteos."""
        container = _container()
        state = container.state_repo.load()
        return {
            "success": True,
            **container.ledger_service.get_balances(),
            "exchange_rates": state.config.exchange_rates.to_dict(),
            "counts": {
                "products": len(state.products),
                "sales": len(state.reports),
                "purchases": len(state.purchases),
                "transactions": len(state.transaction_log),
                "audit_reports": len(state.audit_reports),
                "payroll_reports": len(state.payroll_reports),
                "open_debts": len([d for d in state.debts if d.status.value in ('PENDING', 'PARTIAL', 'OVERDUE')]),
            },
            "overdue_debts": len(container.debt_service.list_overdue()),
        }

    # ── Ventas y compras ──

    @app.route('/api/ventas', methods=['POST'])
    @worker_required
    def api_ventas():
        """
        Registra una venta.

        Body JSON:
        {
            "items": [{"product_id": 1, "quantity": 2}],
            "currency": "CUP" | "MLC" | "USD",
            "amount_paid": 100,
            "is_credit": false,
            "debtor_id": null
        }
        """
        result = _container().sales_service.create_sale(_json_body(), g.worker)
        return _respond(result, 201)

    @app.route('/api/compras', methods=['POST'])
    @worker_required
    def api_compras():
        result = _container().purchase_service.create_purchase(_json_body(), g.worker)
        return _respond(result, 201)

    @app.route('/api/compras/calcular', methods=['POST'])
    def api_compras_calcular():
        return _respond(_container().purchase_service.preview_line(_json_body()))

    # ── Caja ──

    @app.route('/api/caja/resumen', methods=['GET'])
    def api_caja_resumen():
        return _respond(_container().cash_audit_service.get_day_summary())

    @app.route('/api/caja/vista-previa', methods=['POST'])
    def api_caja_vista_previa():
        return _respond(_container().cash_audit_service.preview(_json_body()))

    @app.route('/api/caja/cierre', methods=['POST'])
    @worker_required
    def api_caja_cierre():
        """
        Cierra la caja.

        Body JSON:
        {"cash_count": {"1000": 1, "50": 2}, "counted_mlc": 0, "counted_usd": 0}
        """
        return _respond(_container().cash_audit_service.close(_json_body(), g.worker))

    # ── Nómina ──

    @app.route('/api/nomina/calculo', methods=['GET'])
    def api_nomina_calculo():
        return _respond(_container().payroll_service.preview())

    @app.route('/api/nomina/procesar', methods=['POST'])
    @worker_required
    def api_nomina_procesar():
        return _respond(_container().payroll_service.process(g.worker))

    # ── Saldos y libro ──

    @app.route('/api/saldo/inversion', methods=['POST'])
    @worker_required
    def api_saldo_inversion():
        """Body JSON: {"balance": 1500.00}"""
        data = _json_body()
        return _respond(_container().ledger_service.set_investment_balance(data.get('balance'), g.worker))

    @app.route('/api/transacciones', methods=['GET'])
    def api_transacciones():
        limit = request.args.get('limit', type=int)
        kind = request.args.get('type') or None
        return _respond(_container().ledger_service.list_transactions(kind, limit))

    @app.route('/api/transacciones/verificar', methods=['GET'])
    def api_transacciones_verificar():
        return _respond(_container().ledger_service.verify())

    # ── Deudas ──

    @app.route('/api/deudas', methods=['GET'])
    def api_deudas():
        debt_service = _container().debt_service
        if request.args.get('overdue') == '1':
            return {"success": True, "debts": debt_service.list_overdue()}
        return {"success": True, "debts": debt_service.list_debts(request.args.get('status'))}

    @app.route('/api/deudas/<int:debt_id>/abonos', methods=['POST'])
    @worker_required
    def api_deudas_abono(debt_id):
        """Body JSON: {"amount": 50, "method": "CASH"}"""
        return _respond(_container().debt_service.register_payment(debt_id, _json_body(), g.worker), 201)

    # ── Configuración y reportes ──

    @app.route('/api/config/tasas', methods=['POST'])
    @worker_required
    def api_config_tasas():
        return _respond(_container().config_service.set_exchange_rates(_json_body(), g.worker))

    @app.route('/api/reportes/ganancias', methods=['GET'])
    def api_reportes_ganancias():
        period = request.args.get('period', 'today')
        return _respond(_container().stats_service.get_profit_stats(period))

    @app.route('/api/reportes/capital', methods=['GET'])
    def api_reportes_capital():
        return _respond(_container().stats_service.get_capital_stats())

    @app.route('/api/actividad', methods=['GET'])
    def api_actividad():
        limit = request.args.get('limit', 100, type=int)
        return {"success": True, "logs": _container().activity_service.get_recent(limit)}

    @app.route('/api/rendimiento', methods=['GET'])
    def api_rendimiento():
        """Llamadas, promedio y máximo (ms) de las operaciones perfiladas."""
        return {"success": True, "profiling": ENABLE_PROFILING, "operations": get_function_stats()}


def register_error_handlers(app):

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify({"success": False, "error": e.description}), e.code

    @app.errorhandler(Exception)
    def _unexpected_error(e):
        app.logger.exception("Error no controlado en %s %s", request.method, request.path)
        return jsonify({"success": False, "error": f"Error interno: {str(e)}"}), 500


# ═══════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def create_app(data_dir: str = None) -> Flask:
    """
    Crea la app Flask.

    Args:
        data_dir: Directorio de state.json / activity.json.
                  Por defecto TPV_DATA_DIR o el directorio del paquete.
    """
    app = Flask(__name__)
    app.secret_key = os.environ.get("TPV_SECRET_KEY") or _DEFAULT_SECRET
    app.json.sort_keys = False

    # Un contenedor nuevo por app: los tests crean varias apps
    AppContainer.reset_instance()
    app.extensions['tpv_container'] = get_container(data_dir)

    init_profiling(app)
    register_routes(app)
    register_error_handlers(app)
    return app


if __name__ == "__main__":
    # En producción usar WSGI (gunicorn wsgi:app)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    if not DEBUG:
        print(f"\n{'='*50}")
        print(f"  TPV iniciado en http://{HOST}:{PORT}")
        print(f"  Datos en: {os.environ.get('TPV_DATA_DIR', 'directorio del paquete')}")
        print(f"{'='*50}\n")

    create_app().run(host=HOST, port=PORT, debug=DEBUG)
