"""
Command Registry
================

Comandos de control registrados explícitamente por la aplicación.

Un comando que no aplica a la configuración actual (ej: mute sin audio)
simplemente no se registra; ejecutarlo lanza CommandNotAvailableError con
la lista de comandos válidos.
"""
import logging
from typing import Any, Callable, Dict, NamedTuple, Set

logger = logging.getLogger(__name__)


class CommandNotAvailableError(Exception):
    """Comando no registrado en la configuración actual."""


class Command(NamedTuple):
    handler: Callable[[], Any]
    description: str = ""


class CommandRegistry:
    """
    Nombres case-insensitive: se normalizan a minúsculas al registrar y
    al ejecutar.

    Usage:
        registry = CommandRegistry()
        registry.register('start', controller.start, "Inicia la detección")
        if audio is not None:
            registry.register('mute', audio.mute, "Silencia el audio")

        registry.execute('START')
    """

    def __init__(self):
        self._commands: Dict[str, Command] = {}

    @staticmethod
    def _key(command: str) -> str:
        return command.strip().lower()

    def register(self, command: str, handler: Callable[[], Any], description: str = "") -> None:
        key = self._key(command)
        if key in self._commands:
            logger.warning(f"⚠️ Comando '{key}' ya registrado, sobrescribiendo")
        self._commands[key] = Command(handler, description)
        logger.debug(f"📝 Comando registrado: '{key}' - {description}")

    def execute(self, command: str) -> Any:
        """
        Raises:
            CommandNotAvailableError: Si el comando no está registrado
        """
        entry = self._commands.get(self._key(command))
        if entry is None:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self._commands))}"
            )
        return entry.handler()

    def is_available(self, command: str) -> bool:
        return self._key(command) in self._commands

    @property
    def available_commands(self) -> Set[str]:
        return set(self._commands)

    def get_help(self) -> Dict[str, str]:
        return {name: entry.description for name, entry in self._commands.items()}

    def __len__(self) -> int:
        return len(self._commands)

    def __repr__(self) -> str:
        return f"CommandRegistry({', '.join(sorted(self._commands))})"
