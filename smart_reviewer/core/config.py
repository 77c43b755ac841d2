from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_PATH_FILTERS = [
    "!dist/**",
    "!**/*.app",
    "!**/*.bin",
    "!**/*.bz2",
    "!**/*.class",
    "!**/*.db",
    "!**/*.csv",
    "!**/*.tsv",
    "!**/*.dat",
    "!**/*.dll",
    "!**/*.dylib",
    "!**/*.egg",
    "!**/*.glif",
    "!**/*.gz",
    "!**/*.xz",
    "!**/*.zip",
    "!**/*.7z",
    "!**/*.rar",
    "!**/*.zst",
    "!**/*.ico",
    "!**/*.jar",
    "!**/*.tar",
    "!**/*.war",
    "!**/*.lo",
    "!**/*.log",
    "!**/*.mp3",
    "!**/*.wav",
    "!**/*.wma",
    "!**/*.mp4",
    "!**/*.avi",
    "!**/*.mkv",
    "!**/*.wmv",
    "!**/*.m4a",
    "!**/*.m4v",
    "!**/*.3gp",
    "!**/*.3g2",
    "!**/*.rm",
    "!**/*.mov",
    "!**/*.flv",
    "!**/*.iso",
    "!**/*.swf",
    "!**/*.flac",
    "!**/*.nar",
    "!**/*.o",
    "!**/*.ogg",
    "!**/*.otf",
    "!**/*.p",
    "!**/*.pdf",
    "!**/*.doc",
    "!**/*.docx",
    "!**/*.xls",
    "!**/*.xlsx",
    "!**/*.ppt",
    "!**/*.pptx",
    "!**/*.pkl",
    "!**/*.pickle",
    "!**/*.pyc",
    "!**/*.pyd",
    "!**/*.pyo",
    "!**/*.pub",
    "!**/*.pem",
    "!**/*.rkt",
    "!**/*.so",
    "!**/*.ss",
    "!**/*.eot",
    "!**/*.exe",
    "!**/*.pb.go",
    "!**/*.lock",
    "!**/*.ttf",
    "!**/*.yaml",
    "!**/*.yml",
    "!**/*.cfg",
    "!**/*.toml",
    "!**/*.ini",
    "!**/*.mod",
    "!**/*.sum",
    "!**/*.work",
    "!**/*.json",
    "!**/*.mmd",
    "!**/*.svg",
    "!**/*.jpeg",
    "!**/*.jpg",
    "!**/*.png",
    "!**/*.gif",
    "!**/*.bmp",
    "!**/*.tiff",
    "!**/*.webm",
    "!**/*.woff",
    "!**/*.woff2",
    "!**/*.dot",
    "!**/*.md5sum",
    "!**/*.wasm",
    "!**/*.snap",
    "!**/*.parquet",
    "!**/gen/**",
    "!**/_gen/**",
    "!**/generated/**",
    "!**/@generated/**",
    "!**/vendor/**",
    "!**/*.min.js",
    "!**/*.min.js.map",
    "!**/*.min.js.css",
    "!**/*.tfstate",
    "!**/*.tfstate.backup",
]

DEFAULT_IGNORE_KEYWORDS = [
    "@review-bot: ignore",
    "@review-bot: no-review",
    "@review-bot: skip-review",
]

# Multi-line inputs arrive one item per line (GitHub Actions style) or
# comma separated from a shell.
MultiLine = Annotated[list[str], NoDecode]


class Settings(BaseSettings):  # type: ignore[misc]
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "smart-reviewer"
    app_version: str = "1.2.3"
    debug: bool = False
    environment: Literal["development", "production", "test"] = "development"
    dry_run: bool = False

    # GitHub
    github_token: SecretStr = Field(default=...)
    github_api_url: str = "https://api.github.com"
    github_event_path: str | None = None

    # LLM Providers
    anthropic_api_key: SecretStr | None = None
    openai_api_key: SecretStr | None = None
    openrouter_api_key: SecretStr | None = None
    google_api_key: SecretStr | None = None
    ollama_host: str = "http://localhost:11434"
    base_url: str | None = None

    # LLM Settings (priority order, first available wins)
    model: MultiLine = ["openai/gpt-4o"]
    summary_model: MultiLine = ["openai/gpt-3.5-turbo"]
    retries: int = 5
    timeout_ms: int = 300_000
    max_tokens: int = 8192
    temperature: float = 0.1

    # Review Settings
    disable_review: bool = False
    disable_release_notes: bool = False
    use_file_content: bool = False
    review_concurrency: int = 4
    language: str = "en-US"
    system_prompt: str | None = None
    review_policy: str = ""
    comment_greeting: str = "Review bot comments:"
    release_notes_title: str = "Key Changes"
    ignore_keywords: MultiLine = list(DEFAULT_IGNORE_KEYWORDS)
    path_filters: MultiLine = list(DEFAULT_PATH_FILTERS)

    @field_validator("model", "summary_model", "ignore_keywords", "path_filters", mode="before")
    @classmethod
    def split_multiline(cls, value: object) -> object:
        if isinstance(value, str):
            separator = "\n" if "\n" in value else ","
            return [item.strip() for item in value.split(separator) if item.strip()]
        return value

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def includes_ignore_keyword(self, description: str | None) -> bool:
        """Return True when the PR description opts out of review."""
        if not description:
            return False
        return any(keyword in description for keyword in self.ignore_keywords)


@lru_cache
def get_settings() -> Settings:
    return Settings()
