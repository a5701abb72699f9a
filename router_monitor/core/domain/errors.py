"""Taxonomía de errores del monitor.

Ninguno de estos errores es fatal para el proceso: el ciclo de polling los
captura, los registra y continúa con el siguiente intervalo.
"""

from __future__ import annotations


class RouterMonitorError(Exception):
    """Base de todos los errores del monitor."""


class NetworkError(RouterMonitorError):
    """Fallo de transporte hacia el router (timeout, conexión, HTTP no-2xx)."""


class AuthError(RouterMonitorError):
    """La re-autenticación contra el router falló."""


class AuthExpired(AuthError):
    """El router respondió con la página de login en vez de JSON."""


class ParseError(RouterMonitorError):
    """El snapshot no tiene la forma esperada."""


class StorageError(RouterMonitorError):
    """Fallo de I/O del almacén de series temporales."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Storage operation '{operation}' failed{detail}")
