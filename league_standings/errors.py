# league_standings/errors.py
"""
Exception taxonomy for standings recomputation.

Per-game data noise (bad scores, unknown teams, unparsable dates) is never
raised; it is logged and skipped inside the services. Only whole-input and
persistence failures surface to the caller.
"""

from __future__ import annotations

from typing import Sequence


class StandingsError(Exception):
    """Base class for failures that abort a standings operation."""


class InputUnavailableError(StandingsError):
    """A required input (roster or game list) could not be read or decoded."""


class RosterUnavailableError(InputUnavailableError):
    pass


class GamesUnavailableError(InputUnavailableError):
    pass


class PersistenceError(StandingsError):
    """
    One or both mirror writes failed.

    The primary and backup keys are written independently, so `written` may be
    non-empty while `failed` is also non-empty.
    """

    def __init__(self, message: str, written: Sequence[str] = (), failed: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.written = list(written)
        self.failed = list(failed)

    @property
    def partial(self) -> bool:
        return bool(self.written) and bool(self.failed)


class GameNotFoundError(StandingsError):
    pass


class InvalidResultError(StandingsError):
    pass
