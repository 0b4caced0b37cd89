from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from proxyhub.hub.health import DEFAULT_PROBE_URL
from proxyhub.hub.types import PathKind


class PathConfig(BaseModel):
    name: str
    kind: PathKind | None = None
    priority: int = 0
    enabled: bool = True
    api_key: str | None = None
    zone: str | None = None
    endpoint: str | None = None

    @model_validator(mode="after")
    def infer_kind(self) -> PathConfig:
        if self.kind is None:
            try:
                self.kind = PathKind(self.name)
            except ValueError as exc:
                raise ValueError(f"path '{self.name}' needs an explicit kind") from exc
        return self


class HubSettings(BaseModel):
    max_retries: int = Field(default=3, ge=1)
    backoff_base: float = Field(default=1.0, ge=0)
    default_timeout: float = Field(default=30.0, gt=0)
    max_failures: int = Field(default=5, ge=1)
    healthy_latency_ms: float = 1000.0
    degraded_latency_ms: float = 3000.0
    history_size: int = Field(default=100, ge=1)
    health_check_enabled: bool = True
    health_check_interval: float = Field(default=60.0, gt=0)
    probe_url: str = DEFAULT_PROBE_URL
    probe_timeout: float = Field(default=10.0, gt=0)


class AppConfig(BaseModel):
    hub_settings: HubSettings = Field(default_factory=HubSettings)
    paths: list[PathConfig] = Field(default_factory=list)

    @field_validator("paths")
    @classmethod
    def validate_unique_names(cls, value: list[PathConfig]) -> list[PathConfig]:
        seen: set[str] = set()
        for path in value:
            if path.name in seen:
                raise ValueError(f"duplicate path name: {path.name}")
            seen.add(path.name)
        return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PROXYHUB_", extra="ignore", populate_by_name=True)

    app_name: str = "ProxyHub"
    app_env: str = "dev"
    log_level: str = "INFO"
    config_path: str = "config.yaml"
    master_key: str | None = None
    proxifly_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PROXYHUB_PROXYFLY_API_KEY", "PROXYFLY_API_KEY"),
    )
    brightdata_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PROXYHUB_BRIGHTDATA_API_KEY", "BRIGHTDATA_API_KEY"),
    )
    brightdata_zone: str = Field(
        default="residential",
        validation_alias=AliasChoices("PROXYHUB_BRIGHTDATA_ZONE", "BRIGHTDATA_ZONE"),
    )
    smartproxy_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PROXYHUB_SMARTPROXY_API_KEY", "SMARTPROXY_API_KEY"),
    )

    def credential_for(self, kind: PathKind) -> str | None:
        return {
            PathKind.PROXIFLY: self.proxifly_api_key,
            PathKind.BRIGHTDATA: self.brightdata_api_key,
            PathKind.SMARTPROXY: self.smartproxy_api_key,
        }.get(kind)


def default_paths(settings: Settings) -> list[PathConfig]:
    return [
        PathConfig(name="direct", kind=PathKind.DIRECT, priority=0),
        PathConfig(name="proxifly", kind=PathKind.PROXIFLY, priority=1, api_key=settings.proxifly_api_key),
        PathConfig(
            name="brightdata",
            kind=PathKind.BRIGHTDATA,
            priority=2,
            api_key=settings.brightdata_api_key,
            zone=settings.brightdata_zone,
        ),
        PathConfig(name="smartproxy", kind=PathKind.SMARTPROXY, priority=3, api_key=settings.smartproxy_api_key),
    ]


def _resolve_env_token(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("os.environ/"):
        env_name = value.split("/", 1)[1]
        return os.getenv(env_name)
    if isinstance(value, dict):
        return {k: _resolve_env_token(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_token(v) for v in value]
    return value


def load_yaml_config(path: str | Path) -> AppConfig:
    cfg_path = Path(path)
    if not cfg_path.exists():
        return AppConfig()

    data = yaml.safe_load(cfg_path.read_text()) or {}
    return AppConfig.model_validate(_resolve_env_token(data))


def build_app_config(settings: Settings) -> AppConfig:
    cfg = load_yaml_config(settings.config_path)
    if not cfg.paths:
        return cfg.model_copy(update={"paths": default_paths(settings)})

    paths: list[PathConfig] = []
    for path in cfg.paths:
        update: dict[str, Any] = {}
        if path.api_key is None:
            update["api_key"] = settings.credential_for(path.kind)
        if path.kind is PathKind.BRIGHTDATA and path.zone is None:
            update["zone"] = settings.brightdata_zone
        paths.append(path.model_copy(update=update) if update else path)
    return cfg.model_copy(update={"paths": paths})


@lru_cache
def get_settings() -> Settings:
    return Settings()
