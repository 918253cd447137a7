"""Console trace of one extraction request: fetch, clean, prepare, extract.

Structured events go through structlog; this is the human-facing echo for
the CLI and for local debugging of the API. The level is process-wide and
set once from Settings.verbose or -v flags.

    1  request banner, one line per stage, final outcome
    2  plus fallback decisions and run bookkeeping
    3  plus HTTP status, payload sizes and cleaner internals
"""

from __future__ import annotations

from enum import IntEnum

_level: int = 0


class Level(IntEnum):
    OFF = 0
    INFO = 1
    DEBUG = 2
    TRACE = 3


def configure(level: int) -> None:
    global _level
    _level = level


def get_level() -> int:
    return _level


def header(text: str) -> None:
    """Banner naming the entry mode and request id."""
    if _level >= Level.INFO:
        print(f"\n═══ {text} ═══\n")


def stage(name: str, description: str) -> None:
    if _level >= Level.INFO:
        print(f"── {name}: {description} ──")


def result(outcome: str, duration: float) -> None:
    """Closing line: "extracted" or the error kind, with wall time."""
    if _level >= Level.INFO:
        print(f"── {outcome} ({duration:.2f}s) ──\n")


def step(text: str) -> None:
    if _level >= Level.DEBUG:
        print(f"  {text}")


def detail(text: str) -> None:
    if _level >= Level.TRACE:
        print(f"    {text}")
