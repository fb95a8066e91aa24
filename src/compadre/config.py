"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_HOME = Path.home() / ".compadre"

PROVIDER_GEMINI = "gemini"
PROVIDER_GROQ = "groq"

DEFAULT_MODELS = {
    PROVIDER_GEMINI: "gemini-2.5-pro",
    PROVIDER_GROQ: "llama-3.3-70b-versatile",
}


@dataclass
class GenerationSettings:
    """Sampling and safety parameters sent with every chat call."""

    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 8192
    candidate_count: int = 1
    safety_thresholds: dict[str, str] = field(
        default_factory=lambda: {
            "HARM_CATEGORY_HARASSMENT": "BLOCK_MEDIUM_AND_ABOVE",
            "HARM_CATEGORY_HATE_SPEECH": "BLOCK_MEDIUM_AND_ABOVE",
            "HARM_CATEGORY_SEXUALLY_EXPLICIT": "BLOCK_MEDIUM_AND_ABOVE",
            "HARM_CATEGORY_DANGEROUS_CONTENT": "BLOCK_MEDIUM_AND_ABOVE",
        }
    )


@dataclass
class ModelConfig:
    """Which provider and model to talk to."""

    provider: str = PROVIDER_GEMINI
    model: str = DEFAULT_MODELS[PROVIDER_GEMINI]
    api_key: str | None = None
    generation: GenerationSettings = field(default_factory=GenerationSettings)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass
class AppConfig:
    """Top-level configuration for the server and the CLI."""

    model: ModelConfig = field(default_factory=ModelConfig)
    db_path: Path = DEFAULT_HOME / "kitchen.db"
    log_dir: Path = DEFAULT_HOME / "logs"
    history_max_turns: int = 20
    session_ttl_seconds: float | None = None
    recipe_recency_seconds: float = 300
    host: str = "127.0.0.1"
    port: int = 8000


def _model_config_from_env() -> ModelConfig:
    provider = os.getenv("MODEL_PROVIDER", PROVIDER_GEMINI).strip().lower()
    if provider not in DEFAULT_MODELS:
        raise ValueError(f"Unknown MODEL_PROVIDER: {provider}")

    if provider == PROVIDER_GROQ:
        api_key = os.getenv("GROQ_API_KEY")
        model = os.getenv("GROQ_MODEL", DEFAULT_MODELS[PROVIDER_GROQ])
    else:
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        model = os.getenv("GEMINI_MODEL", DEFAULT_MODELS[PROVIDER_GEMINI])

    return ModelConfig(provider=provider, model=model, api_key=api_key)


def config_from_env() -> AppConfig:
    """Load configuration from environment variables."""
    ttl = os.getenv("COMPADRE_SESSION_TTL")

    return AppConfig(
        model=_model_config_from_env(),
        db_path=Path(os.getenv("COMPADRE_DB_PATH", str(DEFAULT_HOME / "kitchen.db"))),
        log_dir=Path(os.getenv("COMPADRE_LOG_DIR", str(DEFAULT_HOME / "logs"))),
        history_max_turns=int(os.getenv("COMPADRE_HISTORY_MAX_TURNS", "20")),
        session_ttl_seconds=float(ttl) if ttl else None,
        recipe_recency_seconds=float(os.getenv("COMPADRE_RECIPE_RECENCY", "300")),
        host=os.getenv("COMPADRE_HOST", "127.0.0.1"),
        port=int(os.getenv("COMPADRE_PORT", "8000")),
    )
