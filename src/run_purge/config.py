import re
from typing import List

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

TOKEN_RE = re.compile(r"^(ghp_|ghs_|github_pat_)[A-Za-z0-9_]{36,}$")
GITHUB_NAME_RE = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$")
REPO_NAME_RE = re.compile(r"^[a-zA-Z0-9._-]+$")
WORKFLOW_NAME_RE = re.compile(r"^[a-zA-Z0-9 _-]+$")

MAX_RUNS_TO_KEEP = 10000
MAX_DAYS_OLD = 3650


class PurgeSettings(BaseSettings):
    """Validated run inputs.

    Resolved from PURGE_* variables, then GitHub Action INPUT_* variables,
    then the runner's GITHUB_REPOSITORY_OWNER / GITHUB_REPOSITORY.
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, populate_by_name=True, extra="ignore"
    )

    token: str = Field(validation_alias=AliasChoices("token", "PURGE_TOKEN", "INPUT_TOKEN"))
    owner: str = Field(
        validation_alias=AliasChoices(
            "owner", "PURGE_OWNER", "INPUT_OWNER", "GITHUB_REPOSITORY_OWNER"
        )
    )
    repo: str = Field(
        validation_alias=AliasChoices("repo", "PURGE_REPO", "INPUT_REPO", "GITHUB_REPOSITORY")
    )
    runs_to_keep: int = Field(
        0,
        ge=0,
        le=MAX_RUNS_TO_KEEP,
        validation_alias=AliasChoices("runs_to_keep", "PURGE_RUNS_TO_KEEP", "INPUT_RUNS_TO_KEEP"),
    )
    runs_older_than: int = Field(
        7,
        ge=0,
        le=MAX_DAYS_OLD,
        validation_alias=AliasChoices(
            "runs_older_than", "PURGE_RUNS_OLDER_THAN", "INPUT_RUNS_OLDER_THAN"
        ),
    )
    dry_run: bool = Field(
        False, validation_alias=AliasChoices("dry_run", "PURGE_DRY_RUN", "INPUT_DRY_RUN")
    )
    workflow_names: str = Field(
        "",
        validation_alias=AliasChoices(
            "workflow_names", "PURGE_WORKFLOW_NAMES", "INPUT_WORKFLOW_NAMES"
        ),
    )

    @field_validator("token")
    @classmethod
    def _check_token(cls, v: str) -> str:
        v = v.strip()
        if not TOKEN_RE.match(v):
            raise ValueError("must be a valid GitHub token (ghp_, ghs_, or github_pat_)")
        return v

    @field_validator("owner")
    @classmethod
    def _check_owner(cls, v: str) -> str:
        v = v.strip()
        if not GITHUB_NAME_RE.match(v):
            raise ValueError("must be a valid GitHub username or organization")
        return v

    @field_validator("repo")
    @classmethod
    def _check_repo(cls, v: str) -> str:
        # GITHUB_REPOSITORY is "owner/repo"
        v = v.strip().rsplit("/", 1)[-1]
        if not REPO_NAME_RE.match(v):
            raise ValueError("must be a valid GitHub repository name")
        return v

    @field_validator("workflow_names")
    @classmethod
    def _check_workflow_names(cls, v: str) -> str:
        for name in _split_names(v):
            if not WORKFLOW_NAME_RE.match(name):
                raise ValueError(
                    "contains invalid characters. Use alphanumeric, spaces, dashes, "
                    "and underscores only"
                )
        return v

    @property
    def workflow_name_list(self) -> List[str]:
        return _split_names(self.workflow_names)


def _split_names(value: str) -> List[str]:
    return [n.strip() for n in (value or "").split(",") if n.strip()]


def load_settings(**overrides) -> PurgeSettings:
    """Build PurgeSettings, turning validation errors into ConfigurationError."""
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return PurgeSettings(**values)
    except ValidationError as e:
        first = e.errors()[0]
        field = first["loc"][0] if first.get("loc") else "input"
        msg = first["msg"].removeprefix("Value error, ")
        raise ConfigurationError(f"[Invalid Parameter] <{field}> {msg}") from e

