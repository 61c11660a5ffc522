# ==============================================================================
# APP TPV - Libro de caja y conciliación para un punto de venta
# ==============================================================================

__version__ = '1.0.0'
