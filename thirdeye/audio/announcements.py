"""
Announcement Tracker
====================

Evita repetir "<label> nearby" para el mismo objeto en cada tick.

Identidad: la MISMA que usa el stabilizer (LabelIoUMatcher), no una key de
grilla aparte. Un objeto anunciado que se mueve sigue siendo el mismo
mientras el matcher lo reconozca; la entrada sigue al objeto pero su
ventana no se renueva, así que tras announce_window_s se re-anuncia.
"""
from dataclasses import dataclass
from typing import List, Optional

from ..detection.models import DetectedObject
from ..detection.stabilization import LabelIoUMatcher, MatchingStrategy

DEFAULT_ANNOUNCE_WINDOW_S = 3.0


@dataclass
class _Announcement:
    obj: DetectedObject
    announced_at: float


class AnnouncementTracker:
    """
    Args:
        matcher: Definición de identidad (compartida con el stabilizer)
        window_s: Segundos antes de re-armar un anuncio
    """

    def __init__(
        self,
        matcher: Optional[MatchingStrategy] = None,
        window_s: float = DEFAULT_ANNOUNCE_WINDOW_S,
    ):
        self.matcher = matcher or LabelIoUMatcher()
        self.window_s = window_s
        self._entries: List[_Announcement] = []

    def should_announce(self, obj: DetectedObject, now: float) -> bool:
        """
        True si obj no fue anunciado dentro de la ventana (y lo registra).

        Args:
            obj: Objeto candidato a anuncio
            now: Tiempo monotónico en segundos
        """
        self._expire(now)

        entry = self.matcher.find_match(obj, self._entries, key=lambda e: e.obj)
        if entry is not None:
            entry.obj = obj
            return False

        self._entries.append(_Announcement(obj=obj, announced_at=now))
        return True

    def _expire(self, now: float) -> None:
        self._entries = [e for e in self._entries if now - e.announced_at < self.window_s]

    def reset(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
