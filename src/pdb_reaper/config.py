"""
Configuration management for PDB Reaper
"""

import os
from typing import Any, Dict, List, Optional
from dataclasses import asdict, dataclass, field
from dotenv import load_dotenv

from pdb_reaper.exceptions import ConfigError

LOG_FORMATS = ("json", "console")

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _default_excluded_namespaces() -> List[str]:
    return ["kube-system", "kube-public", "kube-node-lease"]


@dataclass
class Config:
    """Configuration class for PDB Reaper"""

    # Kubernetes configuration
    kube_config_path: Optional[str] = None
    in_cluster: bool = True

    # Namespace configuration
    excluded_namespaces: List[str] = field(default_factory=_default_excluded_namespaces)

    # Execution control
    dry_run: bool = False

    # Detection heuristics
    reap_multiple: bool = True
    reap_misconfigured: bool = True
    reap_crashloop: bool = False
    crashloop_restart_threshold: int = 5
    all_crashloop: bool = True
    reap_not_ready: bool = False
    not_ready_threshold_seconds: int = 1800
    all_not_ready: bool = True

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"

    # Metrics delivery
    pushgateway_url: Optional[str] = None
    metrics_job_name: str = "pdb_reaper"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Build a configuration from defaults overridden by environment variables"""
        load_dotenv(env_file)
        cfg = cls()

        cfg.kube_config_path = os.getenv("KUBE_CONFIG_PATH", cfg.kube_config_path)
        cfg.in_cluster = _env_bool("IN_CLUSTER", cfg.in_cluster)
        cfg.dry_run = _env_bool("DRY_RUN", cfg.dry_run)

        cfg.reap_multiple = _env_bool("REAP_MULTIPLE", cfg.reap_multiple)
        cfg.reap_misconfigured = _env_bool("REAP_MISCONFIGURED", cfg.reap_misconfigured)
        cfg.reap_crashloop = _env_bool("REAP_CRASHLOOP", cfg.reap_crashloop)
        cfg.crashloop_restart_threshold = _env_int("CRASHLOOP_RESTART_COUNT", cfg.crashloop_restart_threshold)
        cfg.all_crashloop = _env_bool("ALL_CRASHLOOP", cfg.all_crashloop)
        cfg.reap_not_ready = _env_bool("REAP_NOT_READY", cfg.reap_not_ready)
        cfg.not_ready_threshold_seconds = _env_int("NOT_READY_THRESHOLD_SECONDS", cfg.not_ready_threshold_seconds)
        cfg.all_not_ready = _env_bool("ALL_NOT_READY", cfg.all_not_ready)

        cfg.log_level = os.getenv("LOG_LEVEL", cfg.log_level)
        cfg.log_format = os.getenv("LOG_FORMAT", cfg.log_format)

        cfg.pushgateway_url = os.getenv("PROMETHEUS_PUSHGATEWAY_URL", cfg.pushgateway_url)
        cfg.metrics_job_name = os.getenv("PROMETHEUS_JOB_NAME", cfg.metrics_job_name)

        # Parse excluded namespaces from environment
        excluded_env = os.getenv("EXCLUDED_NAMESPACES")
        if excluded_env is not None:
            cfg.excluded_namespaces = [ns.strip() for ns in excluded_env.split(",") if ns.strip()]

        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.crashloop_restart_threshold < 1:
            raise ConfigError(
                f"crashloop restart threshold must be at least 1, got {self.crashloop_restart_threshold}"
            )
        if self.not_ready_threshold_seconds < 0:
            raise ConfigError(
                f"not-ready threshold must not be negative, got {self.not_ready_threshold_seconds}"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"log format must be one of {LOG_FORMATS}, got {self.log_format!r}")

    def is_excluded(self, namespace: str) -> bool:
        return namespace in self.excluded_namespaces

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
