"""Error taxonomy shared by the context builder, clients and action layer."""

from __future__ import annotations


class RepolensError(Exception):
    """Base class for every failure a user action can report."""


class RepoNotFound(RepolensError):
    """Repository lookup returned a non-success status."""


class MalformedArchive(RepolensError):
    """The uploaded archive could not be opened or decoded."""


class UnsupportedFile(RepolensError):
    """The uploaded file is not a .zip archive."""


class AIRequestFailed(RepolensError):
    """The AI backend could not be reached or rejected the request."""


class MissingCredential(AIRequestFailed):
    """No API key is configured for the AI backend."""


class AIResponseInvalid(RepolensError):
    """The AI backend answered with text that breaks the response contract."""


class GatedFeature(RepolensError):
    """The action needs an entitlement the current user does not have."""
