from __future__ import annotations

import argparse
import logging

from .cli import run_cli
from .config import AppConfig, ConfigError, load_config
from .errors import StorageError
from .services.tracking_service import TrackingService, build_service
from .store.factory import open_store

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def bootstrap(cfg: AppConfig) -> TrackingService:
    service = build_service(open_store(cfg), cfg.business)
    if cfg.business.seed_sample_data:
        service.seed_sample_data()
    logger.info("%s ready (store=%s)", cfg.name, cfg.store.backend)
    return service


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Customer and service order tracking")
    parser.add_argument("-c", "--config", default="config.toml", help="path to config TOML")
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
        setup_logging(cfg.log_level)
        run_cli(bootstrap(cfg))
        return 0
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        return 2
    except StorageError as e:
        print(f"[STORAGE ERROR] {e}")
        return 3
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
