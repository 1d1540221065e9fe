# barberia_core/errores.py
# Errores de negocio. core_app los traduce a respuestas HTTP.


class ErrorBarberia(Exception):
    """
    Base de los errores de la barbería.
    """
    status_code = 400

    def __init__(self, detalle: str):
        super().__init__(detalle)
        self.detalle = detalle


class ErrorValidacion(ErrorBarberia):
    """
    Falta un campo obligatorio o viene con un valor inválido.
    Se lanza antes de tocar la base de datos.
    """
    status_code = 422


class StockInsuficiente(ErrorBarberia):
    status_code = 409

    def __init__(self, articulo: str, disponible: int, solicitado: int):
        super().__init__(
            f"No hay suficiente stock de {articulo}: "
            f"disponible={disponible}, solicitado={solicitado}"
        )
        self.articulo = articulo
        self.disponible = disponible
        self.solicitado = solicitado


class ErrorBackend(ErrorBarberia):
    """
    Falló una operación contra la base de datos.
    """
    status_code = 503


class BarberoNoVinculado(ErrorBarberia):
    """
    El usuario no tiene un barbero vinculado y no puede ver estadísticas propias.
    """
    status_code = 404

    def __init__(self, usuario_id: int):
        super().__init__("Tu usuario no está vinculado a ningún barbero")
        self.usuario_id = usuario_id
