from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

STORE_BACKENDS = ("memory", "json", "postgres")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DbConfig:
    host: str
    port: int
    name: str
    user: str
    password: str
    sslmode: str = "disable"


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "json"
    path: str = "shoptrack.json"


@dataclass(frozen=True)
class BusinessConfig:
    long_wait_hours: float = 3.0
    strict_transitions: bool = False
    waiting_warning_minutes: int = 30
    waiting_danger_minutes: int = 120
    seed_sample_data: bool = False
    phone_pattern: str = r"^\+255\d{9}$"


@dataclass(frozen=True)
class AppConfig:
    name: str = "ShopTrack"
    log_level: str = "INFO"
    store: StoreConfig = field(default_factory=StoreConfig)
    db: DbConfig | None = None
    business: BusinessConfig = field(default_factory=BusinessConfig)


def _parse_db(db: dict) -> DbConfig:
    return DbConfig(
        host=str(db["host"]),
        port=int(db.get("port", 5432)),
        name=str(db["name"]),
        user=str(db["user"]),
        password=str(db["password"]),
        sslmode=str(db.get("sslmode", "disable")),
    )


def parse_config(data: dict) -> AppConfig:
    try:
        app = data.get("app", {})
        store = data.get("store", {})
        business = data.get("business", {})

        backend = str(store.get("backend", "json")).lower()
        if backend not in STORE_BACKENDS:
            raise ConfigError(f"Unknown store backend {backend!r}; expected one of {', '.join(STORE_BACKENDS)}")

        db = None
        if backend == "postgres":
            if "db" not in data:
                raise ConfigError("Store backend 'postgres' needs a [db] section.")
            db = _parse_db(data["db"])

        return AppConfig(
            name=str(app.get("name", "ShopTrack")),
            log_level=str(app.get("log_level", "INFO")).upper(),
            store=StoreConfig(
                backend=backend,
                path=str(store.get("path", "shoptrack.json")),
            ),
            db=db,
            business=BusinessConfig(
                long_wait_hours=float(business.get("long_wait_hours", 3.0)),
                strict_transitions=bool(business.get("strict_transitions", False)),
                waiting_warning_minutes=int(business.get("waiting_warning_minutes", 30)),
                waiting_danger_minutes=int(business.get("waiting_danger_minutes", 120)),
                seed_sample_data=bool(business.get("seed_sample_data", False)),
                phone_pattern=str(business.get("phone_pattern", r"^\+255\d{9}$")),
            ),
        )
    except ConfigError:
        raise
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e}") from e
    except Exception as e:
        raise ConfigError(f"Invalid config values: {e}") from e


def load_config(path: str | Path) -> AppConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p.resolve()}")

    try:
        data = tomllib.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to read config TOML: {e}") from e

    return parse_config(data)
