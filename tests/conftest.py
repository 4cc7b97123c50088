"""Shared fixtures."""

import io
import json
import zipfile

import pytest


@pytest.fixture
def repo_payload():
    """GitHub REST payload for octocat/Hello-World."""
    return {
        "id": 1296269,
        "name": "Hello-World",
        "full_name": "octocat/Hello-World",
        "description": "My first repository on GitHub!",
        "html_url": "https://github.com/octocat/Hello-World",
        "stargazers_count": 1500,
        "forks_count": 200,
        "language": "JavaScript",
        "owner": {
            "login": "octocat",
            "avatar_url": "https://github.com/images/error/octocat_happy.gif",
        },
        "topics": ["octocat", "atom", "electron"],
        "updated_at": "2011-01-26T19:14:43Z",
    }


@pytest.fixture
def analysis_payload():
    """A well-formed seven-field model response."""
    return {
        "summary": "A minimal demo repository.",
        "keyFeatures": ["Tiny", "Readable", "Forkable", "Well known"],
        "targetAudience": "New GitHub users",
        "techStackRating": "8/10 - nothing to build",
        "suggestions": ["Add a license", "Add CI", "Add tests"],
        "projectType": "Static site",
        "githubActionsWorkflow": "name: CI\non: push\njobs:\n  build:\n    runs-on: ubuntu-latest\n",
    }


@pytest.fixture
def analysis_text(analysis_payload):
    return json.dumps(analysis_payload)


@pytest.fixture
def make_zip():
    """Factory building zip archive bytes from {path: content}."""

    def _make(files, dirs=()):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for d in dirs:
                zf.writestr(d, "")
            for path, content in files.items():
                zf.writestr(path, content)
        return buf.getvalue()

    return _make


@pytest.fixture
def gemini_response():
    """Factory wrapping text in a generateContent envelope."""

    def _wrap(text):
        return {
            "candidates": [
                {"content": {"role": "model", "parts": [{"text": text}]}}
            ]
        }

    return _wrap


@pytest.fixture
def corrupt_deflated_zip():
    """A deflated archive whose README.md payload bytes are flipped.

    The central directory stays intact, so listing succeeds and the
    failure surfaces only when the entry is decompressed.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("README.md", "# Project\n" + "lorem ipsum dolor " * 200, compress_type=zipfile.ZIP_DEFLATED)
    data = bytearray(buf.getvalue())
    # local header is 30 bytes plus the file name
    start = 30 + len("README.md")
    for i in range(start, start + 10):
        data[i] ^= 0xFF
    return bytes(data)
