"""Configuration loading for doccheck (.doccheck.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".doccheck.yml"

DEFAULT_SUFFIXES = (".md", ".markdown")
DEFAULT_CHECKS = ("links", "code-blocks", "parse")
REPORT_FORMATS = ("text", "json", "markdown")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ChecksConfig:
    """Check enablement and per-check options."""

    enabled: List[str] = field(default_factory=lambda: list(DEFAULT_CHECKS))
    check_anchors: bool = True
    languages: List[str] = field(default_factory=list)


@dataclass
class ReportConfig:
    """Report rendering settings."""

    format: str = "text"
    templates_dir: Optional[Path] = None


@dataclass
class DocCheckConfig:
    """Represents the settings defined in .doccheck.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    suffixes: List[str] = field(default_factory=lambda: list(DEFAULT_SUFFIXES))
    checks: ChecksConfig = field(default_factory=ChecksConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def load_config(config_path: Path) -> DocCheckConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocCheckConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    config = DocCheckConfig(root=root)
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    suffixes = _as_str_list(data.get("suffixes"))
    if suffixes:
        config.suffixes = [_normalise_suffix(suffix) for suffix in suffixes]

    checks_data = _as_dict(data.get("checks"))
    if checks_data:
        if "enabled" in checks_data:
            config.checks.enabled = [name.lower() for name in _as_str_list(checks_data.get("enabled"))]
        anchors = _as_bool(checks_data.get("check_anchors"))
        if anchors is not None:
            config.checks.check_anchors = anchors
        config.checks.languages = [lang.lower() for lang in _as_str_list(checks_data.get("languages"))]

    report_data = _as_dict(data.get("report"))
    if report_data:
        report_format = _as_str(report_data.get("format"))
        if report_format is not None:
            if report_format not in REPORT_FORMATS:
                raise ConfigError(
                    f"Unknown report format '{report_format}' (expected one of {', '.join(REPORT_FORMATS)})"
                )
            config.report.format = report_format
        templates_dir = _as_str(report_data.get("templates_dir"))
        if templates_dir:
            config.report.templates_dir = root / templates_dir

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _normalise_suffix(suffix: str) -> str:
    suffix = suffix.strip().lower()
    return suffix if suffix.startswith(".") else f".{suffix}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
