"""
Erreurs métier des services.

Les services lèvent ces exceptions, la couche HTTP
(lapak.app.api.errors) les traduit en réponse JSON.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(ServiceError):
    """Entrée invalide, détectée avant tout accès en écriture."""

    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Règle métier violée par l'état courant (ex: stock insuffisant)."""

    status_code = 400


class Unauthenticated(ServiceError):
    status_code = 401


class InternalError(ServiceError):
    status_code = 500
