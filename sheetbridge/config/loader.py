from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader for the sheet -> portal sync service.

Responsibilities:
- Load the YAML config file (default ``config/sheetbridge.yml``)
- Validate it against the packaged JSON schema
- Apply defaults for every optional section
- Overlay environment variables (``.env`` is loaded by the CLI beforehand):
  credentials only ever come from the environment.

Environment precedence (highest first):
    1. ``VTEX_APP_KEY`` / ``VTEX_APP_TOKEN`` / ``VTEX_ACCOUNT``
       ``SHEETBRIDGE_BUCKET`` / ``STORAGE_ENDPOINT_URL``
    2. values from the YAML file
    3. built-in defaults
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/sheetbridge.yml")

DEFAULT_HOME_SHEETS = ("RD", "skus", "PROD", "Skus", "Cintillos")
DEFAULT_LOCATIONS_SHEETS = ("Locations", "LOCATIONS", "locations")
DEFAULT_SELLERS_SHEET = "Sellers"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class StorageConfig:
    bucket: str
    region: str = "us-east-1"
    endpoint_url: str | None = None
    inbox_prefix: str = "Archivos_sheets/"
    archive_prefix: str = "Publicaciones_json_vtex/"
    sibling_cleanup: str = "eager"  # eager | deferred


@dataclass(frozen=True)
class PortalEnvironment:
    account: str
    site: str


@dataclass(frozen=True)
class PortalConfig:
    default_account: str
    default_site: str
    app_key: str | None = None
    app_token: str | None = None
    base_url: str = "https://{account}.myvtex.com/api/portal/pvt/sites/{site}/files"
    timeout_seconds: float = 30.0
    environments: dict[str, PortalEnvironment] = field(default_factory=dict)


@dataclass(frozen=True)
class ScheduleConfig:
    interval_minutes: float = 10
    run_on_startup: bool = False
    startup_delay_seconds: float = 5


@dataclass(frozen=True)
class PathsConfig:
    work_dir: Path = Path("./data/input")
    output_json: Path = Path("./data/output.json")
    logs_dir: Path = Path("./logs")


@dataclass(frozen=True)
class SheetsConfig:
    home: tuple[str, ...] = DEFAULT_HOME_SHEETS
    locations: tuple[str, ...] = DEFAULT_LOCATIONS_SHEETS
    sellers: str = DEFAULT_SELLERS_SHEET


@dataclass(frozen=True)
class SyncConfig:
    storage: StorageConfig
    portal: PortalConfig
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    sheets: SheetsConfig = field(default_factory=SheetsConfig)
    timezone: str = "America/Lima"
    publish_failure_fails_cycle: bool = False
    log_level: str = "INFO"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the packaged JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the
            config violates it (missing keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> SyncConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    st_raw = data["storage"]
    storage = StorageConfig(
        bucket=_env("SHEETBRIDGE_BUCKET") or st_raw["bucket"],
        region=st_raw.get("region", "us-east-1"),
        endpoint_url=_env("STORAGE_ENDPOINT_URL") or st_raw.get("endpoint_url"),
        inbox_prefix=st_raw.get("inbox_prefix", "Archivos_sheets/"),
        archive_prefix=st_raw.get("archive_prefix", "Publicaciones_json_vtex/"),
        sibling_cleanup=st_raw.get("sibling_cleanup", "eager"),
    )

    pt_raw = data["portal"]
    default_account = _env("VTEX_ACCOUNT") or pt_raw["default_account"]
    environments = {
        tag.upper(): PortalEnvironment(account=env["account"], site=env.get("site", env["account"]))
        for tag, env in (pt_raw.get("environments") or {}).items()
    }
    portal_kwargs: dict[str, Any] = {}
    if "base_url" in pt_raw:
        portal_kwargs["base_url"] = pt_raw["base_url"]
    portal = PortalConfig(
        default_account=default_account,
        default_site=pt_raw.get("default_site", default_account),
        app_key=_env("VTEX_APP_KEY"),
        app_token=_env("VTEX_APP_TOKEN"),
        timeout_seconds=float(pt_raw.get("timeout_seconds", 30)),
        environments=environments,
        **portal_kwargs,
    )

    sc_raw = data.get("schedule", {})
    schedule = ScheduleConfig(
        interval_minutes=sc_raw.get("interval_minutes", 10),
        run_on_startup=sc_raw.get("run_on_startup", False),
        startup_delay_seconds=sc_raw.get("startup_delay_seconds", 5),
    )

    pa_raw = data.get("paths", {})
    paths = PathsConfig(
        work_dir=Path(pa_raw.get("work_dir", "./data/input")),
        output_json=Path(pa_raw.get("output_json", "./data/output.json")),
        logs_dir=Path(pa_raw.get("logs_dir", "./logs")),
    )

    sh_raw = data.get("sheets", {})
    sheets = SheetsConfig(
        home=tuple(sh_raw.get("home", DEFAULT_HOME_SHEETS)),
        locations=tuple(sh_raw.get("locations", DEFAULT_LOCATIONS_SHEETS)),
        sellers=sh_raw.get("sellers", DEFAULT_SELLERS_SHEET),
    )

    tz = data.get("timezone", "America/Lima")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {tz}") from e

    return SyncConfig(
        storage=storage,
        portal=portal,
        schedule=schedule,
        paths=paths,
        sheets=sheets,
        timezone=tz,
        publish_failure_fails_cycle=data.get("publish_failure_fails_cycle", False),
        log_level=data.get("log_level", "INFO"),
    )
