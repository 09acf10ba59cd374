from __future__ import annotations
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class SSESourceError(RuntimeError):
    """
    Error base de la librería.

    Todas las fallas del stream se entregan a los listeners como el ``data``
    de un evento ``error``; nunca se propagan fuera del loop de lectura.
    """
    message: str
    status: int = 500
    code: str = ""
    cause: Any | None = None

    def __str__(self) -> str:
        parts = [f"{type(self).__name__}(status={self.status}"]
        if self.code:
            parts.append(f", code={self.code!r}")
        parts.append(f", message={self.message!r}")
        if self.cause is not None:
            parts.append(f", cause={type(self.cause).__name__}")
        parts.append(")")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convierte el error a dict para logging estructurado."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "cause": repr(self.cause) if self.cause is not None else None,
        }


class TransportError(SSESourceError):
    """Respuesta HTTP fuera del rango 2xx (status code + reason phrase)."""

    @property
    def is_client_error(self) -> bool:
        """True si es un error 4xx (problema del cliente)."""
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        """True si es un error 5xx (problema del servidor)."""
        return 500 <= self.status < 600


class MissingBodyError(SSESourceError):
    """El stream se estableció pero la respuesta no trae un body legible."""


class StreamFailure(SSESourceError):
    """Cualquier excepción al emitir el request o al leer el stream."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> StreamFailure:
        message = str(exc) or type(exc).__name__
        code = type(exc).__name__
        return cls(message=message, code=code, cause=exc)
