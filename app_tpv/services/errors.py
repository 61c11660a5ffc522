# ==============================================================================
# ERRORES DEL DOMINIO
# ==============================================================================
# Las transiciones (funciones puras de cada servicio) lanzan estas
# excepciones. Las clases *Service las capturan y devuelven
# {'ok': False, 'error': mensaje}.
# ==============================================================================


class TPVError(Exception):
    """Error base de las operaciones del libro de caja."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TPVError):
    """Datos de entrada con forma o rango inválido."""
    pass


class BusinessRuleError(TPVError):
    """La operación viola una regla del negocio (stock, saldo, fondo...)."""
    pass
