# ==============================================================================
# CONSTANTES DE NEGOCIO
# ==============================================================================
# Reglas numéricas compartidas por los servicios del libro de caja.
# Cambiar un valor aquí cambia la política para TODAS las operaciones.
# ==============================================================================

# Reparto de la ganancia de cada venta
PROFIT_SHARE_INVESTMENT = 0.60   # 60% vuelve al saldo de inversión
PROFIT_SHARE_PAYOUT = 0.40       # 40% va al fondo de pago de trabajadores

# Reparto del fondo de pago en la nómina
PAYROLL_ADMIN_SHARE = 0.30       # Parte del administrador
PAYROLL_WORKER_SHARE = 0.70      # Parte de los trabajadores

# Rol que recibe la parte de administración (sin deducciones)
ADMIN_ROLE = 'Admin'

# Monedas aceptadas en caja
CURRENCIES = ('CUP', 'MLC', 'USD')

# Billetes y monedas de CUP para el conteo físico
CUP_DENOMINATIONS = (1000, 500, 200, 100, 50, 20, 10, 5, 1)

# Tasas de cambio por defecto (1 unidad -> CUP)
DEFAULT_MLC_TO_CUP = 235.00
DEFAULT_USD_TO_CUP = 380.00

# Días de plazo para deudas generadas por ventas a crédito
DEFAULT_CREDIT_DAYS = 30

# Compras: precio sugerido y umbral de ganancia baja
SUGGESTED_MARKUP = 1.3
LOW_PROFIT_MARGIN = 0.3

# Prefijo de SKU cuando la categoría no existe
DEFAULT_SKU_PREFIX = 'GEN'
