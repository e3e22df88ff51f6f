"""
Gemini API Key Resolution

The key can arrive under several naming conventions depending on how the
board is deployed (a plain build-time variable, the generic Gemini name, a
frontend-tooling prefixed variant, or a .env file read by pydantic-settings).

DESIGN DECISION: The lookup is an explicit, ordered tuple of small
strategies evaluated until one yields a usable value. A missing key is a
normal state (offline/demo mode), so resolution never raises.
"""

import os
from typing import Callable, Mapping, Optional, Sequence

import structlog

from visionboard.config.settings import get_settings


KeySource = Callable[[], Optional[str]]

# Checked in this order
KEY_ENV_VARS = ("API_KEY", "GEMINI_API_KEY", "VITE_API_KEY")

_ABSENT_MARKERS = {"", "undefined"}

logger = structlog.get_logger(__name__)


def env_source(name: str, environ: Optional[Mapping[str, str]] = None) -> KeySource:
    """Build a strategy that reads one environment variable."""
    def _read() -> Optional[str]:
        env = os.environ if environ is None else environ
        return env.get(name)
    _read.__name__ = f"env:{name}"
    return _read


def settings_source() -> Optional[str]:
    """Strategy reading GeminiSettings (covers the .env file)."""
    return get_settings().gemini.api_key


def default_sources(environ: Optional[Mapping[str, str]] = None) -> tuple[KeySource, ...]:
    return tuple(env_source(name, environ) for name in KEY_ENV_VARS) + (settings_source,)


def mask_credential(key: Optional[str]) -> str:
    """Redact a credential for logging: only the last 4 characters survive."""
    if not key:
        return "<absent>"
    if len(key) <= 4:
        return "****"
    return f"****{key[-4:]}"


def _usable(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    if value in _ABSENT_MARKERS:
        return None
    return value


class ApiKeyResolver:
    """
    Finds the Gemini API key across the supported naming conventions.

    Returns the first value that is non-empty and not the literal
    string "undefined". Any error raised by a strategy counts as absent.
    """

    def __init__(
        self,
        sources: Optional[Sequence[KeySource]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._sources = tuple(sources) if sources is not None else default_sources(environ)

    def resolve(self) -> Optional[str]:
        for source in self._sources:
            try:
                value = _usable(source())
            except Exception as e:
                logger.debug(
                    "api_key_source_failed",
                    source=getattr(source, "__name__", repr(source)),
                    error_type=type(e).__name__,
                )
                continue
            if value is not None:
                logger.debug(
                    "api_key_resolved",
                    source=getattr(source, "__name__", repr(source)),
                    key=mask_credential(value),
                )
                return value
        return None

    def masked_key(self) -> str:
        """Redacted form of the resolved key, safe to show or log."""
        return mask_credential(self.resolve())

    def is_online(self) -> bool:
        """True when a usable key exists (drives the online/demo indicator)."""
        return self.resolve() is not None
