"""Prompt templates for deployment analysis.

Each context kind gets its own project section; both share the same
instruction block and response schema.
"""

from __future__ import annotations

from .context import AnalysisContext, GithubRepo, LocalProject

MAX_LISTED_FILES = 100
MAX_KEY_FILE_CHARS = 2000

RESPONSE_FIELDS = (
    "summary",
    "keyFeatures",
    "targetAudience",
    "techStackRating",
    "suggestions",
    "projectType",
    "githubActionsWorkflow",
)

KEY_FEATURE_COUNT = 4
SUGGESTION_COUNT = 3

_STRING = {"type": "STRING"}
_STRING_LIST = {"type": "ARRAY", "items": {"type": "STRING"}}

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": _STRING,
        "keyFeatures": _STRING_LIST,
        "targetAudience": _STRING,
        "techStackRating": _STRING,
        "suggestions": _STRING_LIST,
        "projectType": _STRING,
        "githubActionsWorkflow": _STRING,
    },
    "required": list(RESPONSE_FIELDS),
}

INSTRUCTIONS = f"""Please return a JSON object containing:
1. "summary": A concise summary of the project.
2. "keyFeatures": A list of exactly {KEY_FEATURE_COUNT} key features.
3. "targetAudience": The likely target audience.
4. "techStackRating": A rating/explanation of the tech stack choice.
5. "suggestions": Exactly {SUGGESTION_COUNT} suggestions for improvement or next steps.
6. "projectType": The detected project type (e.g. Node.js web app, Python library, Go service).
7. "githubActionsWorkflow": A complete, deployable GitHub Actions workflow in YAML
   that builds, tests and deploys this project, appropriate to the detected project type."""


def github_section(repo: GithubRepo) -> str:
    return f"""Analyze this GitHub repository and provide a technical and deployment evaluation.
Repo Name: {repo.full_name}
Description: {repo.description or 'No description provided'}
Main Language: {repo.language or 'Unknown'}
Topics: {', '.join(repo.topics)}
Stars: {repo.stargazers_count}
Forks: {repo.forks_count}"""


def local_section(project: LocalProject) -> str:
    listing = "\n".join(project.files[:MAX_LISTED_FILES])
    blocks = "\n\n".join(
        f"--- {path} ---\n{content[:MAX_KEY_FILE_CHARS]}"
        for path, content in project.key_files.items()
    )
    return f"""Analyze this local project (uploaded as an archive) and provide a technical and deployment evaluation.
Project Name: {project.name}
Description: {project.description or 'No description provided'}

FILES (first {MAX_LISTED_FILES}):
{listing}

KEY FILES:
{blocks}"""


def build_prompt(context: AnalysisContext) -> str:
    """Render the full analysis prompt for a context. Deterministic."""
    if context.kind == "github":
        section = github_section(context.data)
    elif context.kind == "local":
        section = local_section(context.data)
    else:
        raise ValueError(f"Unknown context kind: {context.kind!r}")
    return f"{section}\n\n{INSTRUCTIONS}\n"
