"""Backoff exponencial para operaciones que pueden fallar transitoriamente.

Hoy lo usa la autenticación de arranque contra el router: unos pocos
intentos consecutivos y, si todos fallan, se propaga la última excepción
para que la CLI termine con código 1.
"""

from __future__ import annotations

import functools
import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fracción del delay que puede variar por jitter (en ambos sentidos)
JITTER_FRACTION = 0.25


@dataclass
class RetryConfig:
    max_attempts: int = 3
    base_delay: float = 1.0  # segundos
    max_delay: float = 15.0  # segundos
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,)

    def calculate_delay(self, attempt: int) -> float:
        """Espera tras el intento fallido número ``attempt`` (1-indexed)."""
        raw = self.base_delay * self.exponential_base ** (attempt - 1)
        delay = raw if raw < self.max_delay else self.max_delay
        if not self.jitter:
            return max(0.0, delay)
        spread = delay * JITTER_FRACTION
        return max(0.0, delay + random.uniform(-spread, spread))

    def is_retryable(self, error: BaseException) -> bool:
        return isinstance(error, self.retryable_exceptions)

    @classmethod
    def from_env(cls, **overrides) -> "RetryConfig":
        """Lee STARTUP_AUTH_*; ``overrides`` pisa cualquier campo."""
        config = cls(
            max_attempts=int(os.getenv("STARTUP_AUTH_ATTEMPTS", "3")),
            base_delay=float(os.getenv("STARTUP_AUTH_BASE_DELAY_SEC", "1.0")),
            max_delay=float(os.getenv("STARTUP_AUTH_MAX_DELAY_SEC", "15.0")),
        )
        for name, value in overrides.items():
            setattr(config, name, value)
        return config


def retry_with_backoff(
    config: Optional[RetryConfig] = None,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 15.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
):
    """Decorador: reintenta la función decorada con backoff exponencial.

    Si se pasa ``config`` los demás parámetros (salvo ``on_retry``) se
    ignoran. Las excepciones fuera de ``retryable_exceptions`` salen en el
    primer intento.

    Example:
        @retry_with_backoff(max_attempts=3, retryable_exceptions=(AuthError,))
        def authenticate():
            source.reauthenticate()
    """
    cfg = config or RetryConfig(
        max_attempts=max_attempts,
        base_delay=base_delay,
        max_delay=max_delay,
        retryable_exceptions=retryable_exceptions,
    )

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = getattr(func, "__name__", repr(func))

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            if cfg.max_attempts < 1:
                raise ValueError(f"max_attempts must be >= 1, got {cfg.max_attempts}")

            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not cfg.is_retryable(e):
                        raise
                    if attempt == cfg.max_attempts:
                        logger.error("[RETRY] %s agotado tras %d intentos: %s", name, attempt, e)
                        raise
                    delay = cfg.calculate_delay(attempt)
                    logger.warning(
                        "[RETRY] %s intento %d/%d falló (%s); reintento en %.2fs",
                        name, attempt, cfg.max_attempts, e, delay,
                    )
                    if on_retry is not None:
                        on_retry(attempt, e)
                    time.sleep(delay)
                    attempt += 1

        return wrapper
    return decorator
