from __future__ import annotations


class CompanionError(Exception):
    """Base class for errors raised by mfl_companion."""


class InvalidFranchiseId(CompanionError):
    """A franchise id is malformed or not part of the league."""

    def __init__(self, candidate: object, league: str | None = None):
        self.candidate = candidate
        self.league = league
        where = f" in league {league}" if league else ""
        super().__init__(f"Unknown franchise id {candidate!r}{where}")


class CorruptedPreference(CompanionError):
    """Stored preference cookie could not be read back."""


class AuthFailure(CompanionError):
    """Credentials or session token were rejected.

    The message is kept generic on purpose; callers must not learn which
    check failed.
    """

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class UpstreamUnavailable(CompanionError):
    """MFL API or the franchise asset store could not be reached."""


class UnknownLeague(CompanionError):
    def __init__(self, namespace: str):
        self.namespace = namespace
        super().__init__(f"Unknown league namespace: {namespace}")
