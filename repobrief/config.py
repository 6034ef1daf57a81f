"""Configuration loading for repobrief (.repobrief.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import RepoBriefError

CONFIG_FILENAME = ".repobrief.yml"


class ConfigError(RepoBriefError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class GitHubConfig:
    """Hosting API access."""

    token: Optional[str] = None
    api_base_url: Optional[str] = None
    raw_base_url: Optional[str] = None
    timeout: float = 30.0


@dataclass
class EmbeddingsConfig:
    """Embedding provider settings. ``provider`` is one of local, http or none."""

    provider: str = "local"
    base_url: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    dimension: int = 768
    batch_size: int = 5
    max_chars: int = 4000


@dataclass
class LLMConfig:
    """Generation service settings."""

    base_url: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = 0.2
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = 120.0


@dataclass
class SelectionSettings:
    top_k: int = 8
    lam: float = 0.65


@dataclass
class ContextSettings:
    max_chars_per_file: int = 4000
    max_total_chars: int = 50000


@dataclass
class FetchConfig:
    """Tree filtering and candidate limits."""

    max_files: int = 25
    exclude_paths: List[str] = field(default_factory=list)
    exclude_extensions: List[str] = field(default_factory=list)


@dataclass
class JobsConfig:
    """Job execution and persistence. ``store`` is memory or file."""

    timeout_seconds: float = 600.0
    store: str = "memory"
    store_path: Optional[Path] = None
    retry_attempts: int = 3
    retry_backoff: float = 0.2


@dataclass
class RepoBriefConfig:
    """Represents the settings defined in .repobrief.yml plus environment overrides."""

    root: Path
    github: GitHubConfig = field(default_factory=GitHubConfig)
    embeddings: EmbeddingsConfig = field(default_factory=EmbeddingsConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    selection: SelectionSettings = field(default_factory=SelectionSettings)
    context: ContextSettings = field(default_factory=ContextSettings)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    jobs: JobsConfig = field(default_factory=JobsConfig)


_PROVIDERS = {"local", "http", "none"}
_STORES = {"memory", "file"}


def load_config(
    config_path: Path | None = None, *, environ: Mapping[str, str] | None = None
) -> RepoBriefConfig:
    """Load configuration from disk, then apply environment overrides."""
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path or Path.cwd())
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    github_data = _as_dict(data.get("github"))
    github = GitHubConfig(
        token=_as_str(github_data.get("token")),
        api_base_url=_as_str(github_data.get("api_base_url")),
        raw_base_url=_as_str(github_data.get("raw_base_url")),
        timeout=_as_float(github_data.get("timeout")) or 30.0,
    )

    embeddings_data = _as_dict(data.get("embeddings"))
    provider = (_as_str(embeddings_data.get("provider")) or "local").lower()
    if provider not in _PROVIDERS:
        raise ConfigError(f"Unknown embeddings provider: {provider}")
    embeddings = EmbeddingsConfig(
        provider=provider,
        base_url=_as_str(embeddings_data.get("base_url")),
        model=_as_str(embeddings_data.get("model")),
        api_key=_as_str(embeddings_data.get("api_key")),
        dimension=_positive_int(embeddings_data.get("dimension"), 768),
        batch_size=_positive_int(embeddings_data.get("batch_size"), 5),
        max_chars=_positive_int(embeddings_data.get("max_chars"), 4000),
    )

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        base_url=_as_str(llm_data.get("base_url")),
        model=_as_str(llm_data.get("model")),
        api_key=_as_str(llm_data.get("api_key")),
        temperature=_as_float(llm_data.get("temperature"), default=0.2),
        max_tokens=_as_int(llm_data.get("max_tokens")),
        request_timeout=_as_float(llm_data.get("request_timeout"), default=120.0),
    )

    selection_data = _as_dict(data.get("selection"))
    selection = SelectionSettings(
        top_k=_positive_int(selection_data.get("top_k"), 8),
        lam=_as_float(selection_data.get("lambda"), default=0.65) or 0.0,
    )
    if not 0.0 <= selection.lam <= 1.0:
        raise ConfigError("selection.lambda must be between 0 and 1")

    context_data = _as_dict(data.get("context"))
    context = ContextSettings(
        max_chars_per_file=_positive_int(context_data.get("max_chars_per_file"), 4000),
        max_total_chars=_positive_int(context_data.get("max_total_chars"), 50000),
    )

    fetch_data = _as_dict(data.get("fetch"))
    fetch = FetchConfig(
        max_files=_positive_int(fetch_data.get("max_files"), 25),
        exclude_paths=_as_str_list(fetch_data.get("exclude_paths")),
        exclude_extensions=_as_str_list(fetch_data.get("exclude_extensions")),
    )

    jobs_data = _as_dict(data.get("jobs"))
    store = (_as_str(jobs_data.get("store")) or "memory").lower()
    if store not in _STORES:
        raise ConfigError(f"Unknown job store: {store}")
    store_path_str = _as_str(jobs_data.get("store_path"))
    jobs = JobsConfig(
        timeout_seconds=_as_float(jobs_data.get("timeout_seconds")) or 600.0,
        store=store,
        store_path=root / store_path_str if store_path_str else None,
        retry_attempts=_positive_int(jobs_data.get("retry_attempts"), 3),
        retry_backoff=_as_float(jobs_data.get("retry_backoff"), default=0.2) or 0.0,
    )

    config = RepoBriefConfig(
        root=root,
        github=github,
        embeddings=embeddings,
        llm=llm,
        selection=selection,
        context=context,
        fetch=fetch,
        jobs=jobs,
    )
    _apply_env_overrides(config, env)
    return config


def _apply_env_overrides(config: RepoBriefConfig, env: Mapping[str, str]) -> None:
    config.github.token = _first_env(env, "REPOBRIEF_GITHUB_TOKEN", "GITHUB_TOKEN") or config.github.token
    config.llm.base_url = _first_env(env, "REPOBRIEF_LLM_BASE_URL") or config.llm.base_url
    config.llm.model = _first_env(env, "REPOBRIEF_LLM_MODEL") or config.llm.model
    config.llm.api_key = (
        _first_env(env, "REPOBRIEF_LLM_API_KEY", "OPENAI_API_KEY") or config.llm.api_key
    )
    base_url = _first_env(env, "REPOBRIEF_EMBEDDINGS_BASE_URL")
    if base_url:
        config.embeddings.base_url = base_url
    config.embeddings.api_key = (
        _first_env(env, "REPOBRIEF_EMBEDDINGS_API_KEY") or config.embeddings.api_key
    )


def _first_env(env: Mapping[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value and value.strip():
            return value.strip()
    return None


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _positive_int(value: Any, default: int) -> int:
    parsed = _as_int(value)
    return parsed if parsed is not None and parsed > 0 else default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ContextSettings",
    "EmbeddingsConfig",
    "FetchConfig",
    "GitHubConfig",
    "JobsConfig",
    "LLMConfig",
    "RepoBriefConfig",
    "SelectionSettings",
    "load_config",
]
