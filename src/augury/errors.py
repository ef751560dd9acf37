"""
Error taxonomy for the signing-request orchestrator.

Two categories:
- PreconditionError: the orchestrator was used before a client/session
  existed. Always propagated to the caller.
- OperationalError: something went wrong while serving a request (missing
  account, missing chain config, remote rejection). The dispatcher turns
  these into a negative FormattedResult.
"""

from __future__ import annotations


class OrchestratorError(RuntimeError):
    pass


class PreconditionError(OrchestratorError):
    pass


class NotInitializedError(PreconditionError):
    pass


class OperationalError(OrchestratorError):
    pass


class MissingAccountError(OperationalError):
    pass


class MissingChainConfigError(OperationalError):
    pass


class RemoteCallError(OperationalError):
    """The session channel rejected or failed a request."""


class ArtifactShapeError(OperationalError):
    """A wallet answered, but not with the structure the method promises."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
