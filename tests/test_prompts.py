"""Tests for prompt rendering."""

from repolens_cli.context import AnalysisContext, GithubRepo, LocalProject, from_repository
from repolens_cli.prompts import (
    MAX_KEY_FILE_CHARS,
    MAX_LISTED_FILES,
    RESPONSE_FIELDS,
    RESPONSE_SCHEMA,
    build_prompt,
)


def _listing(prompt: str) -> list[str]:
    section = prompt.split("FILES (first 100):\n", 1)[1].split("\n\nKEY FILES:", 1)[0]
    return section.split("\n") if section else []


class TestGithubPrompt:
    def test_includes_repo_fields(self, repo_payload):
        prompt = build_prompt(from_repository(GithubRepo.from_api(repo_payload)))
        assert "Repo Name: octocat/Hello-World" in prompt
        assert "Description: My first repository on GitHub!" in prompt
        assert "Main Language: JavaScript" in prompt
        assert "Topics: octocat, atom, electron" in prompt

    def test_placeholders(self, repo_payload):
        payload = {**repo_payload, "description": None, "language": None}
        prompt = build_prompt(from_repository(GithubRepo.from_api(payload)))
        assert "Description: No description provided" in prompt
        assert "Main Language: Unknown" in prompt

    def test_instruction_block(self, repo_payload):
        prompt = build_prompt(from_repository(GithubRepo.from_api(repo_payload)))
        for name in RESPONSE_FIELDS:
            assert f'"{name}"' in prompt
        assert "exactly 4" in prompt
        assert "Exactly 3" in prompt
        assert "GitHub Actions workflow" in prompt

    def test_deterministic(self, repo_payload):
        context = from_repository(GithubRepo.from_api(repo_payload))
        assert build_prompt(context) == build_prompt(context)


class TestLocalPrompt:
    def test_file_listing_capped(self):
        files = tuple(f"src/file_{i}.py" for i in range(250))
        project = LocalProject(name="big", description="d", files=files)
        listing = _listing(build_prompt(AnalysisContext("local", project)))
        assert len(listing) == MAX_LISTED_FILES
        assert listing[0] == "src/file_0.py"
        assert listing[-1] == "src/file_99.py"
        assert "src/file_100.py" not in listing

    def test_short_listing_kept(self):
        project = LocalProject(name="small", files=("a.py", "b.py"))
        listing = _listing(build_prompt(AnalysisContext("local", project)))
        assert listing == ["a.py", "b.py"]

    def test_key_file_content_capped(self):
        content = "x" * 1995 + "TAILMARKER" + "y" * 3000
        project = LocalProject(
            name="p",
            files=("package.json",),
            key_files={"package.json": content},
        )
        prompt = build_prompt(AnalysisContext("local", project))
        assert "--- package.json ---" in prompt
        assert content[:MAX_KEY_FILE_CHARS] in prompt
        assert "TAILMARKER" not in prompt
        assert "y" * 100 not in prompt

    def test_cap_applies_per_file(self):
        project = LocalProject(
            name="p",
            key_files={"a/package.json": "a" * 5000, "b/go.mod": "b" * 5000},
        )
        prompt = build_prompt(AnalysisContext("local", project))
        assert "a" * MAX_KEY_FILE_CHARS in prompt
        assert "a" * (MAX_KEY_FILE_CHARS + 1) not in prompt
        assert "b" * MAX_KEY_FILE_CHARS in prompt
        assert "b" * (MAX_KEY_FILE_CHARS + 1) not in prompt

    def test_project_header(self):
        project = LocalProject(name="webapp", description="Next.js app")
        prompt = build_prompt(AnalysisContext("local", project))
        assert "Project Name: webapp" in prompt
        assert "Description: Next.js app" in prompt


class TestResponseSchema:
    def test_all_fields_required(self):
        assert RESPONSE_SCHEMA["required"] == list(RESPONSE_FIELDS)
        assert set(RESPONSE_SCHEMA["properties"]) == set(RESPONSE_FIELDS)

    def test_list_fields_are_string_arrays(self):
        for name in ("keyFeatures", "suggestions"):
            assert RESPONSE_SCHEMA["properties"][name] == {
                "type": "ARRAY",
                "items": {"type": "STRING"},
            }
