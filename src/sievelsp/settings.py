"""
Server settings.

The client supplies settings through ``initializationOptions`` and
``workspace/didChangeConfiguration``.  Either the payload itself or its
``"sieve"`` section is read, accepting camelCase or snake_case keys::

    {"sieve": {"protonExtensions": false, "maxErrors": 20}}

A payload always replaces the settings as a whole: missing keys take their
defaults, unknown keys are ignored, and a payload with a wrongly typed value is
rejected with :class:`SettingsError` so the caller can keep what it had.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass

SECTION = 'sieve'

# payload key -> Settings field
_KEYS = {
    'protonExtensions': 'extended_dialect',
    'proton_extensions': 'extended_dialect',
    'extendedDialect': 'extended_dialect',
    'extended_dialect': 'extended_dialect',
    'strictMode': 'strict_mode',
    'strict_mode': 'strict_mode',
    'maxErrors': 'max_diagnostics',
    'max_errors': 'max_diagnostics',
    'maxDiagnostics': 'max_diagnostics',
    'max_diagnostics': 'max_diagnostics',
    'semanticAnalysis': 'semantic_analysis',
    'semantic_analysis': 'semantic_analysis',
}


class SettingsError(ValueError):
    """Raised when a settings payload does not have the expected shape."""


@dataclass(frozen=True)
class Settings:
    extended_dialect: bool = True   # allow vendor keywords such as 'expire'
    strict_mode: bool = False       # accepted from clients; no rule reads it
    max_diagnostics: int = 100
    semantic_analysis: bool = True


def parse_settings(payload) -> Settings:
    """Build :class:`Settings` from a client payload, or raise :class:`SettingsError`."""
    if not isinstance(payload, dict):
        raise SettingsError(f'settings payload must be an object, got {type(payload).__name__}')
    section = payload.get(SECTION, payload)
    if not isinstance(section, dict):
        raise SettingsError(f'"{SECTION}" settings must be an object')

    values = {}
    for key, raw in section.items():
        name = _KEYS.get(key)
        if name is None:
            continue
        if name == 'max_diagnostics':
            if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
                raise SettingsError(f'{key} must be a positive integer, got {raw!r}')
        elif not isinstance(raw, bool):
            raise SettingsError(f'{key} must be a boolean, got {raw!r}')
        values[name] = raw
    return Settings(**values)


class SettingsState:
    """The current :class:`Settings`, swapped atomically.

    Readers get the immutable value itself and never take the lock; the lock
    only serialises writers.
    """

    def __init__(self, initial: Settings | None = None):
        self._current = initial or Settings()
        self._write_lock = threading.Lock()

    def get(self) -> Settings:
        return self._current

    def set(self, new: Settings) -> None:
        with self._write_lock:
            self._current = new
