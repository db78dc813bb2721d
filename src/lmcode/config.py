"""lmcode configuration module.

Provides centralized configuration for all lmcode components.
All settings support environment variable overrides with LMCODE_ prefix.
"""

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelSettings(BaseModel):
    """Settings for the local model server."""

    endpoint: str = Field(
        default="http://127.0.0.1:1234",
        description="Base URL of the OpenAI-compatible model server",
    )
    name: str = Field(
        default="",
        description="Model identifier sent with requests and used for budget lookup",
    )
    max_tokens: int = Field(
        default=512,
        description="Maximum tokens in a generated reply",
    )
    temperature: float = Field(
        default=0.7,
        description="Sampling temperature for generation",
    )
    timeout_seconds: float = Field(
        default=60.0,
        description="Timeout for a single generation request",
    )
    retries: int = Field(
        default=1,
        ge=0,
        description="Extra attempts after a failed generation request",
    )
    context_lines: int = Field(
        default=50,
        description="Lines of the current file shown around the cursor",
    )

    @field_validator("endpoint")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


class BudgetSettings(BaseModel):
    """Settings for model budget discovery."""

    cache_ttl_seconds: float = Field(
        default=30.0,
        description="Lifetime of a queried budget before the next query",
    )
    query_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for the model-listing query",
    )
    chars_per_token: float = Field(
        default=3.6,
        description="Characters-per-token approximation",
    )
    headroom: float = Field(
        default=0.75,
        description="Fraction of the context window usable for project context",
    )
    default_context_tokens: int = Field(
        default=8192,
        description="Token limit assumed when the model entry reports none",
    )
    fallback_derating: float = Field(
        default=0.7,
        description="Factor applied to fallback table ceilings",
    )
    fallback_default_chars: int = Field(
        default=20000,
        description="Budget used when no fallback table entry matches",
    )
    fallback_table: dict[str, int] = Field(
        default={
            "phi-3": 420000,
            "llama-3.1": 420000,
            "deepseek": 110000,
            "mixtral": 110000,
            "codellama:34b": 58000,
            "codellama": 58000,
            "wizardcoder": 58000,
            "gemma": 28000,
            "mistral": 28000,
            "llama-3": 28000,
        },
        description="Ordered model-family substring to character ceiling",
    )


class ContextSettings(BaseModel):
    """Settings for context assembly."""

    max_file_read_chars: int = Field(
        default=1200,
        description="Per-file character cap",
    )
    sibling_gate: float = Field(
        default=0.92,
        description="Sibling tier runs only below this used fraction",
    )
    import_gate: float = Field(
        default=0.92,
        description="Import crawl continues only below this used fraction",
    )
    manifest_gate: float = Field(
        default=0.88,
        description="Manifest tier runs only below this used fraction",
    )
    manifest_stop: float = Field(
        default=0.95,
        description="Manifest tier stops above this used fraction",
    )
    lockfile_max_bytes: int = Field(
        default=100_000,
        description="Lockfiles larger than this are replaced by a marker",
    )


class SanitizerSettings(BaseModel):
    """Settings for model output cleanup."""

    similarity_threshold: float = Field(
        default=0.90,
        description="Blocks more similar than this to the previous kept block are dropped",
    )


class LmcodeSettings(BaseSettings):
    """lmcode configuration.

    All settings can be overridden via environment variables with LMCODE_ prefix.
    For example, LMCODE_MODEL__NAME=deepseek-coder sets model.name.
    """

    model_config = SettingsConfigDict(
        env_prefix="LMCODE_",
        env_nested_delimiter="__",
    )

    log_level: str = Field(
        default="info",
        description="Logging level (debug, info, warning, error)",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (console or json)",
    )

    # Nested settings
    model: ModelSettings = Field(default_factory=ModelSettings)
    budget: BudgetSettings = Field(default_factory=BudgetSettings)
    context: ContextSettings = Field(default_factory=ContextSettings)
    sanitizer: SanitizerSettings = Field(default_factory=SanitizerSettings)


# Module-level singleton
settings = LmcodeSettings()
