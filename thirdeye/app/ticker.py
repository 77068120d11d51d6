"""
Periodic Tick Source
====================

Un único thread por sesión que invoca el callback cada `period_s`
(semántica setInterval: el primer tick llega tras un período).

Cancelable: stop() despierta el thread vía Event y (opcionalmente) lo joinea.
"""
import logging
from threading import Event, Thread, current_thread
from typing import Callable, Optional

from ..logging import log_error_with_context

logger = logging.getLogger(__name__)


class PeriodicTicker:
    """
    Args:
        period_s: Período nominal en segundos
        callback: Función sin argumentos a invocar en cada tick
        name: Nombre del thread (debugging)
    """

    def __init__(self, period_s: float, callback: Callable[[], None], name: str = "detection-ticker"):
        self.period_s = period_s
        self.callback = callback
        self.name = name
        self._stop_event = Event()
        self._thread: Optional[Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """
        Detiene el ticker. Si se llama desde el propio thread del ticker
        (ej: un listener que ejecuta stop), no se joinea.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not current_thread():
            thread.join(timeout=timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.period_s):
            try:
                self.callback()
            except Exception as e:
                log_error_with_context(
                    logger,
                    message="❌ Error en tick",
                    exception=e,
                    component="ticker",
                    event="tick_failed",
                )
