from __future__ import annotations

from contextvars import ContextVar, Token
import os
from typing import Any

_VERBOSE_LOGGING: ContextVar[bool] = ContextVar("mbt_verbose_logging", default=False)

_DEFAULT_MANIFEST_JOBS = 4
_MAX_MANIFEST_JOBS = 64


def get_config_path(custom_path: str | None = None) -> str:
    if custom_path:
        return custom_path
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return os.path.join(xdg_config_home, "mbt", "config.yaml")


def read_config(custom_path: str | None = None) -> dict[str, Any]:
    import yaml

    config_path = get_config_path(custom_path)
    try:
        with open(config_path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except FileNotFoundError:
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _coerce_jobs(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        jobs = int(value)
    except (TypeError, ValueError):
        return None
    if jobs <= 0:
        return None
    return min(jobs, _MAX_MANIFEST_JOBS)


def _read_positive_int_env(name: str) -> int | None:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return None
    return _coerce_jobs(raw)


def get_verbose_logging() -> bool:
    return _VERBOSE_LOGGING.get()


def set_verbose_logging(enabled: bool) -> Token[bool]:
    return _VERBOSE_LOGGING.set(bool(enabled))


def reset_verbose_logging(token: Token[bool]) -> None:
    _VERBOSE_LOGGING.reset(token)


def get_manifest_jobs(config: dict[str, Any] | None = None) -> int:
    """
    Number of workers used to process descriptors.

    ``MBT_MANIFEST_JOBS`` wins over the ``jobs`` key of the config file.
    """
    jobs = _read_positive_int_env("MBT_MANIFEST_JOBS")
    if jobs is not None:
        return jobs
    if config is None:
        config = read_config()
    jobs = _coerce_jobs(config.get("jobs"))
    if jobs is not None:
        return jobs
    return _DEFAULT_MANIFEST_JOBS


def get_strict_descriptors(config: dict[str, Any] | None = None) -> bool:
    if config is None:
        config = read_config()
    strict = config.get("strict")
    if not isinstance(strict, bool):
        return False
    return strict
