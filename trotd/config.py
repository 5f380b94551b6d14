"""
trotd configuration.

Settings are resolved with the precedence CLI > environment > file > default.
The file is TOML, looked up at ``$XDG_CONFIG_HOME/trotd/trotd.toml`` and then
``./trotd.toml``. Environment variables use the ``TROTD_`` prefix.

Example ``trotd.toml``:

    [general]
    max_per_provider = 3
    language_filter = ["rust", "go"]
    cache_ttl_mins = 30

    [providers]
    gitlab = false

    [gitea]
    base_url = "https://codeberg.org"
"""

import os
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import UnionType
from typing import Any, Union, get_args, get_origin

from trotd.cache import default_cache_dir
from trotd.exceptions import ConfigurationError
from trotd.logging import get_logger
from trotd.pipeline import PipelineOptions
from trotd.types.entry import DEFAULT_PROVIDER_ORDER, ProviderKind
from trotd.types.query import (
    DEFAULT_GITEA_BASE_URL,
    DEFAULT_MAX_PER_PROVIDER,
    FetchQuery,
    StarBasis,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "trotd.toml"
ENV_PREFIX = "TROTD_"


@dataclass
class GeneralConfig:
    max_per_provider: int = DEFAULT_MAX_PER_PROVIDER
    github_max_entries: int | None = None
    gitlab_max_entries: int | None = None
    gitea_max_entries: int | None = None
    timeout_secs: float = 6.0
    github_timeout_secs: float | None = None
    gitlab_timeout_secs: float | None = None
    gitea_timeout_secs: float | None = None
    cache_ttl_mins: float = 60.0
    language_filter: list[str] = field(default_factory=list)
    min_stars: int | None = None
    star_basis: str = StarBasis.TOTAL.value


@dataclass
class ProvidersConfig:
    github: bool = True
    gitlab: bool = True
    gitea: bool = True


@dataclass
class AuthConfig:
    github_token: str | None = None
    gitlab_token: str | None = None
    gitea_token: str | None = None


@dataclass
class GiteaConfig:
    base_url: str = DEFAULT_GITEA_BASE_URL


@dataclass
class GitHubConfig:
    exclude_topics: list[str] = field(default_factory=list)


@dataclass
class TrotdConfig:
    """Fully resolved configuration."""

    general: GeneralConfig = field(default_factory=GeneralConfig)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    gitea: GiteaConfig = field(default_factory=GiteaConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    cache_dir: Path = field(default_factory=default_cache_dir)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrotdConfig":
        """
        Build a configuration from parsed TOML.

        Raises:
            ConfigurationError: On unknown sections or keys, or wrong value types
        """
        sections = {
            "general": GeneralConfig,
            "providers": ProvidersConfig,
            "auth": AuthConfig,
            "gitea": GiteaConfig,
            "github": GitHubConfig,
        }
        config = cls()
        for name, value in data.items():
            section_cls = sections.get(name)
            if section_cls is None:
                raise ConfigurationError(f"unknown config section [{name}]")
            if not isinstance(value, dict):
                raise ConfigurationError(f"[{name}] must be a table")
            setattr(config, name, _build_section(section_cls, name, value))
        config.auth = _normalize_tokens(config.auth)
        return config

    def enabled_providers(self) -> list[ProviderKind]:
        """Enabled providers in the fixed display order."""
        return [kind for kind in DEFAULT_PROVIDER_ORDER if getattr(self.providers, kind.value)]

    def max_entries(self, kind: ProviderKind) -> int:
        """Entries kept for a provider: its own override or the global maximum."""
        override = getattr(self.general, f"{kind.value}_max_entries")
        return self.general.max_per_provider if override is None else override

    def with_overrides(
        self,
        max_per_provider: int | None = None,
        providers: Iterable[str] | None = None,
        languages: Iterable[str] | None = None,
        min_stars: int | None = None,
    ) -> "TrotdConfig":
        """
        Apply command line overrides on top of file and environment values.

        Raises:
            ConfigurationError: If a provider name is unknown
        """
        general = self.general
        if max_per_provider is not None:
            general = replace(general, max_per_provider=max_per_provider)
        if languages is not None:
            general = replace(general, language_filter=_split_list(languages))
        if min_stars is not None:
            general = replace(general, min_stars=min_stars)

        enabled = self.providers
        if providers is not None:
            kinds = {_parse_provider(name) for name in _split_list(providers)}
            enabled = ProvidersConfig(
                **{kind.value: kind in kinds for kind in DEFAULT_PROVIDER_ORDER}
            )

        return replace(self, general=general, providers=enabled)

    def to_query(self) -> FetchQuery:
        """The result-relevant part of the configuration."""
        try:
            return FetchQuery.create(
                providers=self.enabled_providers(),
                max_per_provider=self.general.max_per_provider,
                provider_limits={
                    kind: getattr(self.general, f"{kind.value}_max_entries")
                    for kind in DEFAULT_PROVIDER_ORDER
                    if getattr(self.general, f"{kind.value}_max_entries") is not None
                },
                languages=self.general.language_filter,
                min_stars=self.general.min_stars,
                exclude_topics=self.github.exclude_topics,
                gitea_base_url=self.gitea.base_url,
                star_basis=self.general.star_basis,
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid configuration: {e}") from e

    def to_options(self, no_cache: bool = False) -> PipelineOptions:
        """Operational settings for the pipeline."""
        provider_timeouts = {
            kind: timeout
            for kind in DEFAULT_PROVIDER_ORDER
            if (timeout := getattr(self.general, f"{kind.value}_timeout_secs")) is not None
        }
        tokens = {
            kind: token
            for kind in DEFAULT_PROVIDER_ORDER
            if (token := getattr(self.auth, f"{kind.value}_token")) is not None
        }
        return PipelineOptions(
            no_cache=no_cache,
            timeout=self.general.timeout_secs,
            ttl=self.general.cache_ttl_mins * 60,
            provider_timeouts=provider_timeouts,
            tokens=tokens,
        )


def find_config_file(env: Mapping[str, str] | None = None) -> Path | None:
    """First existing config file among the XDG location and the working directory."""
    env = os.environ if env is None else env
    xdg = env.get("XDG_CONFIG_HOME")
    config_home = Path(xdg) if xdg else Path.home() / ".config"
    for candidate in (config_home / "trotd" / CONFIG_FILE_NAME, Path(CONFIG_FILE_NAME)):
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> TrotdConfig:
    """
    Load configuration from file and environment.

    Args:
        path: Explicit config file; searched for when None
        env: Environment mapping (default: os.environ)

    Returns:
        Resolved TrotdConfig

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    env = os.environ if env is None else env

    config_path = Path(path) if path is not None else find_config_file(env)
    if config_path is None:
        logger.debug("no config file found, using defaults")
        config = TrotdConfig()
    else:
        config = TrotdConfig.from_dict(_read_toml(config_path))

    return apply_env_overrides(config, env)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except OSError as e:
        raise ConfigurationError(f"failed to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"failed to parse config file {path}: {e}") from e


def apply_env_overrides(config: TrotdConfig, env: Mapping[str, str]) -> TrotdConfig:
    """
    Overlay ``TROTD_*`` environment variables.

    Numeric values that do not parse are ignored.
    """
    general = config.general
    int_fields = {"MAX_PER_PROVIDER": "max_per_provider", "MIN_STARS": "min_stars"}
    float_fields = {
        "TIMEOUT_SECS": "timeout_secs",
        "GITHUB_TIMEOUT_SECS": "github_timeout_secs",
        "GITLAB_TIMEOUT_SECS": "gitlab_timeout_secs",
        "GITEA_TIMEOUT_SECS": "gitea_timeout_secs",
        "CACHE_TTL_MINS": "cache_ttl_mins",
    }

    for suffix, name in int_fields.items():
        value = _parse_number(env, suffix, int)
        if value is not None:
            general = replace(general, **{name: value})

    for suffix, name in float_fields.items():
        value = _parse_number(env, suffix, float)
        if value is not None:
            general = replace(general, **{name: value})

    if (languages := env.get(f"{ENV_PREFIX}LANGUAGE_FILTER")) is not None:
        general = replace(general, language_filter=_split_list([languages]))

    gitea = config.gitea
    if base_url := env.get(f"{ENV_PREFIX}GITEA_BASE_URL"):
        gitea = replace(gitea, base_url=base_url)

    github = config.github
    if (topics := env.get(f"{ENV_PREFIX}GITHUB_EXCLUDE_TOPICS")) is not None:
        github = replace(github, exclude_topics=_split_list([topics]))

    auth = config.auth
    for kind in DEFAULT_PROVIDER_ORDER:
        token = env.get(f"{ENV_PREFIX}{kind.value.upper()}_TOKEN")
        if token is not None:
            auth = replace(auth, **{f"{kind.value}_token": token})

    return replace(
        config,
        general=general,
        gitea=gitea,
        github=github,
        auth=_normalize_tokens(auth),
    )


def _build_section(section_cls: type, name: str, values: dict[str, Any]) -> Any:
    known = {f.name: f for f in fields(section_cls)}
    unknown = set(values) - set(known)
    if unknown:
        raise ConfigurationError(
            f"unknown key(s) in [{name}]: {', '.join(sorted(unknown))}"
        )
    for key, value in values.items():
        expected = known[key].type
        if not _matches_type(value, expected):
            raise ConfigurationError(
                f"invalid value for '{key}' in [{name}]: expected {_type_name(expected)}, "
                f"got {value!r}"
            )
    return section_cls(**values)


def _matches_type(value: Any, annotation: Any) -> bool:
    """Check a TOML value against a section field annotation."""
    origin = get_origin(annotation)
    if origin in (Union, UnionType):
        return any(_matches_type(value, arg) for arg in get_args(annotation))
    if annotation is type(None):
        return value is None
    if origin is list:
        (item_type,) = get_args(annotation)
        return isinstance(value, list) and all(_matches_type(v, item_type) for v in value)
    # bool is an int subclass, TOML keeps them apart
    if annotation is bool:
        return isinstance(value, bool)
    if annotation is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if annotation is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, annotation)


def _type_name(annotation: Any) -> str:
    names = {bool: "a boolean", int: "an integer", float: "a number", str: "a string"}
    if get_origin(annotation) is list:
        return "a list of strings"
    options = [a for a in get_args(annotation) if a is not type(None)] or [annotation]
    return " or ".join(names.get(a, getattr(a, "__name__", str(a))) for a in options)


def _normalize_tokens(auth: AuthConfig) -> AuthConfig:
    """Blank tokens mean "no token"."""
    return AuthConfig(
        **{
            f.name: (value if isinstance(value, str) and value.strip() else None)
            for f in fields(AuthConfig)
            for value in [getattr(auth, f.name)]
        }
    )


def _parse_number(env: Mapping[str, str], suffix: str, kind: type) -> Any:
    raw = env.get(f"{ENV_PREFIX}{suffix}")
    if raw is None:
        return None
    try:
        return kind(raw.strip())
    except ValueError:
        logger.warning("ignoring %s%s=%r: not a number", ENV_PREFIX, suffix, raw)
        return None


def _split_list(values: Iterable[str]) -> list[str]:
    """Flatten comma-separated values into a clean list."""
    items: list[str] = []
    for value in values:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def _parse_provider(name: str) -> ProviderKind:
    try:
        return ProviderKind.parse(name)
    except ValueError as e:
        raise ConfigurationError(
            f"unknown provider '{name}' (expected github/gh, gitlab/gl or gitea/ge)"
        ) from e
