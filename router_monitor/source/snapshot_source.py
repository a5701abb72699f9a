"""Contrato de la fuente de snapshots del router."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Iterable, Protocol, Union


class SnapshotSource(Protocol):
    """Fuente upstream: "dame un snapshot fresco o falla".

    ``fetch_snapshot`` falla con AuthExpired, NetworkError o ParseError;
    ``reauthenticate`` falla con AuthError.
    """

    def fetch_snapshot(self) -> Dict[str, Any]:
        ...

    def reauthenticate(self) -> None:
        ...

    def close(self) -> None:
        ...


class ScriptedSnapshotSource:
    """Fuente en memoria que reproduce respuestas en orden.

    Cada elemento es un dict (snapshot crudo) o una excepción a lanzar.
    Útil para tests y para reproducir capturas del router.
    """

    def __init__(self, responses: Iterable[Union[Dict[str, Any], Exception]] = ()):
        self._responses: Deque[Union[Dict[str, Any], Exception]] = deque(responses)
        self.fetch_calls = 0
        self.reauth_calls = 0
        self.reauth_error: Exception | None = None

    def push(self, response: Union[Dict[str, Any], Exception]) -> None:
        self._responses.append(response)

    def fetch_snapshot(self) -> Dict[str, Any]:
        self.fetch_calls += 1
        if not self._responses:
            raise IndexError("no scripted snapshot left")
        response = self._responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    def reauthenticate(self) -> None:
        self.reauth_calls += 1
        if self.reauth_error is not None:
            raise self.reauth_error

    def close(self) -> None:
        self._responses.clear()
