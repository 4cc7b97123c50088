"""User actions - the boundary where every failure becomes one message.

A repository query or an archive upload runs start to finish here.
Results are tagged with a request token so a slow, superseded action
cannot overwrite the state of a newer one.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .analysis import AIAnalysis, ProjectAnalyzer
from .context import AnalysisContext, from_repository, from_zip
from .errors import (
    AIRequestFailed,
    AIResponseInvalid,
    MissingCredential,
    RepolensError,
)
from .github import GithubClient
from .session import Session, require_pro

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of one user action."""

    token: int = 0
    context: AnalysisContext | None = None
    analysis: AIAnalysis | None = None
    error: str | None = None
    error_kind: str | None = None
    applied: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "context": self.context.to_dict() if self.context else None,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "error": self.error,
            "errorKind": self.error_kind,
            "applied": self.applied,
        }


class AnalysisState:
    """Latest-wins shared state for concurrently started actions."""

    def __init__(self):
        self._lock = threading.Lock()
        self._token = 0
        self.current = ActionResult()

    @property
    def latest_token(self) -> int:
        return self._token

    def begin(self) -> int:
        """Start a new action: reset state and hand out a fresh token."""
        with self._lock:
            self._token += 1
            self.current = ActionResult(token=self._token)
            return self._token

    def apply(self, result: ActionResult) -> bool:
        """Store ``result`` if it belongs to the latest action."""
        with self._lock:
            if result.token != self._token:
                logger.debug(
                    "Dropping stale result %d (latest is %d)", result.token, self._token
                )
                return False
            result.applied = True
            self.current = result
            return True

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return self.current.to_dict()


def user_message(exc: RepolensError) -> str:
    """Convert an error into the message shown to the user."""
    if isinstance(exc, MissingCredential):
        return (
            "AI analysis is unavailable: no API key configured. "
            "Set GEMINI_API_KEY and try again."
        )
    if isinstance(exc, AIRequestFailed):
        return (
            f"AI analysis request failed ({exc}). "
            "Check your GEMINI_API_KEY configuration and network connection."
        )
    if isinstance(exc, AIResponseInvalid):
        return "AI analysis returned an invalid response. Please try again."
    return str(exc)


def _fail(result: ActionResult, exc: RepolensError) -> ActionResult:
    logger.debug("Action %d failed: %r", result.token, exc)
    result.error = user_message(exc)
    result.error_kind = type(exc).__name__
    return result


def _analyze(result: ActionResult, analyzer: ProjectAnalyzer | None) -> ActionResult:
    if analyzer is None or result.context is None:
        return result
    try:
        result.analysis = analyzer.invoke(result.context)
    except RepolensError as e:
        # keep the metadata: only the analysis step failed
        return _fail(result, e)
    return result


def _finish(result: ActionResult, state: AnalysisState | None) -> ActionResult:
    if state is not None:
        state.apply(result)
    return result


def run_repository_action(
    query: str,
    github: GithubClient,
    analyzer: ProjectAnalyzer | None = None,
    state: AnalysisState | None = None,
) -> ActionResult:
    """Look up a repository and analyze it."""
    result = ActionResult(token=state.begin() if state else 0)
    try:
        repo = github.fetch_repository(query)
    except RepolensError as e:
        return _finish(_fail(result, e), state)

    result.context = from_repository(repo)
    return _finish(_analyze(result, analyzer), state)


def run_archive_action(
    source: str | Path | bytes,
    filename: str | None,
    session: Session,
    analyzer: ProjectAnalyzer | None = None,
    state: AnalysisState | None = None,
) -> ActionResult:
    """Build a local context from an uploaded archive and analyze it.

    The pro-tier check runs before anything else so a gated request
    never touches the archive or the AI backend.
    """
    try:
        require_pro(session)
    except RepolensError as e:
        return _fail(ActionResult(token=state.latest_token if state else 0), e)

    result = ActionResult(token=state.begin() if state else 0)
    try:
        result.context = from_zip(source, filename)
    except RepolensError as e:
        return _finish(_fail(result, e), state)

    return _finish(_analyze(result, analyzer), state)
