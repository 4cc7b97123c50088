"""Context builder - normalizes project inputs for analysis.

Turns either a GitHub repository record or an uploaded .zip archive
into an AnalysisContext: a tagged union the prompt renderer branches on.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterable, Literal, Mapping, Union

from .errors import MalformedArchive, UnsupportedFile

logger = logging.getLogger(__name__)

# Manifest / readme / container files worth sending to the model.
# Compared against the lowercased final path segment.
KEY_FILES = frozenset({
    "package.json", "package-lock.json", "yarn.lock",
    "readme.md",
    "requirements.txt", "pyproject.toml", "poetry.lock",
    "gemfile", "composer.json",
    "pom.xml", "build.gradle",
    "cargo.toml", "cargo.lock",
    "go.mod",
    "dockerfile", "docker-compose.yml", "compose.yml",
})

README_NAME = "readme.md"
DESCRIPTION_LIMIT = 300
NO_DESCRIPTION = "Local project uploaded via ZIP"
ARCHIVE_SUFFIX = ".zip"


@dataclass(frozen=True)
class RepoOwner:
    login: str
    avatar_url: str = ""


@dataclass(frozen=True)
class GithubRepo:
    """Snapshot of a repository as returned by the GitHub REST API."""

    id: int
    name: str
    full_name: str
    html_url: str
    owner: RepoOwner
    description: str | None = None
    stargazers_count: int = 0
    forks_count: int = 0
    language: str | None = None
    topics: tuple[str, ...] = ()
    updated_at: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> GithubRepo:
        owner = payload.get("owner") or {}
        return cls(
            id=payload["id"],
            name=payload["name"],
            full_name=payload["full_name"],
            html_url=payload.get("html_url", ""),
            owner=RepoOwner(
                login=owner.get("login", ""),
                avatar_url=owner.get("avatar_url", ""),
            ),
            description=payload.get("description"),
            stargazers_count=payload.get("stargazers_count", 0),
            forks_count=payload.get("forks_count", 0),
            language=payload.get("language"),
            topics=tuple(payload.get("topics") or ()),
            updated_at=payload.get("updated_at", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "full_name": self.full_name,
            "description": self.description,
            "html_url": self.html_url,
            "stargazers_count": self.stargazers_count,
            "forks_count": self.forks_count,
            "language": self.language,
            "owner": {"login": self.owner.login, "avatar_url": self.owner.avatar_url},
            "topics": list(self.topics),
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class LocalProject:
    """A project built from an uploaded archive listing."""

    name: str
    description: str | None = None
    files: tuple[str, ...] = ()
    key_files: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "files": list(self.files),
            "keyFiles": dict(self.key_files),
        }


ContextKind = Literal["github", "local"]


@dataclass(frozen=True)
class AnalysisContext:
    """Tagged union over the two project shapes.

    Exactly one variant is active. Read ``kind`` before touching
    variant-specific fields of ``data``.
    """

    kind: ContextKind
    data: Union[GithubRepo, LocalProject]

    @property
    def display_name(self) -> str:
        if self.kind == "github":
            return self.data.full_name
        if self.kind == "local":
            return self.data.name
        raise ValueError(f"Unknown context kind: {self.kind!r}")

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "data": self.data.to_dict()}


def from_repository(repo: GithubRepo) -> AnalysisContext:
    """Wrap a fetched repository record. The caller has confirmed the lookup."""
    return AnalysisContext(kind="github", data=repo)


def is_key_file(path: str) -> bool:
    """True when the entry's lowercased base name is in the allow-list."""
    if path.endswith("/"):
        return False
    return path.rsplit("/", 1)[-1].lower() in KEY_FILES


def truncate_description(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def archive_name(filename: str) -> str:
    """Base name of an uploaded archive with the .zip extension stripped."""
    base = Path(filename).name
    if base.lower().endswith(ARCHIVE_SUFFIX):
        base = base[: -len(ARCHIVE_SUFFIX)]
    return base


def from_archive(
    entries: Iterable[str],
    read_key_file: Callable[[str], str],
    name: str,
) -> AnalysisContext:
    """Build a local context from an archive listing.

    Args:
        entries: Ordered archive paths. Directory entries end with "/".
        read_key_file: Decodes the text content of one entry.
        name: Archive file name; the .zip extension is stripped.

    Gating (archive upload is a Pro feature) is the caller's job.
    """
    files = tuple(entries)
    key_files: dict[str, str] = {}
    readme = ""

    for path in files:
        if not is_key_file(path):
            continue
        content = read_key_file(path)
        key_files[path] = content
        if path.rsplit("/", 1)[-1].lower() == README_NAME:
            readme = content

    project = LocalProject(
        name=archive_name(name),
        description=truncate_description(readme) if readme else NO_DESCRIPTION,
        files=files,
        key_files=MappingProxyType(key_files),
    )
    logger.debug(
        "Built local context %s: %d entries, %d key files",
        project.name, len(files), len(key_files),
    )
    return AnalysisContext(kind="local", data=project)


def from_zip(source: str | Path | bytes, filename: str | None = None) -> AnalysisContext:
    """Open a .zip archive (path or raw bytes) and build a local context."""
    if filename is None:
        if isinstance(source, bytes):
            raise UnsupportedFile("Please upload a .zip file")
        filename = str(source)
    if not filename.lower().endswith(ARCHIVE_SUFFIX):
        raise UnsupportedFile("Please upload a .zip file")

    stream = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        with zipfile.ZipFile(stream) as archive:

            def read_key_file(path: str) -> str:
                return archive.read(path).decode("utf-8", errors="replace")

            return from_archive(archive.namelist(), read_key_file, filename)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, OSError) as e:
        raise MalformedArchive(f"Failed to process zip file: {e}")
    except (NotImplementedError, RuntimeError) as e:
        # unsupported compression method or encrypted entry
        raise MalformedArchive(f"Failed to process zip file: {e}")
