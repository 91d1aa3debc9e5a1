"""Plugin configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from docshim.errors import ConfigError

DEFAULT_CONFIG_FILE = Path("docshim.yml")
MAX_CONTENT_CHARS = 5000


@dataclass(slots=True)
class PluginConfig:
    assets_dir: str = "assets"
    index_filename: str = "search_pages.json"
    max_content_chars: int = MAX_CONTENT_CHARS
    extra_js: list[str] = field(default_factory=lambda: ["search.js"])
    extra_css: list[str] = field(default_factory=lambda: ["search.css"])
    script_escape_paths: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.max_content_chars < 0:
            raise ConfigError("max_content_chars must be >= 0")
        self.script_escape_paths = frozenset(self.script_escape_paths)
        self.extra_js = list(self.extra_js)
        self.extra_css = list(self.extra_css)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "PluginConfig":
        """Build a config from host-supplied options, rejecting unknown keys."""
        if not options:
            return cls()
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")

        values = dict(options)
        for key in ("extra_js", "extra_css", "script_escape_paths"):
            if key in values:
                values[key] = _as_str_list(key, values[key])
        try:
            return cls(**values)
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc

    def requires_script_escape(self, page_path: str) -> bool:
        return page_path in self.script_escape_paths

    def resolve_assets_dir(self, output_root: Path) -> Path:
        return Path(output_root) / self.assets_dir

    def resolve_index_path(self, output_root: Path) -> Path:
        return self.resolve_assets_dir(output_root) / self.index_filename


def _as_str_list(key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, Iterable):
        raise ConfigError(f"{key} must be a list of strings")
    items = list(value)
    if not all(isinstance(item, str) for item in items):
        raise ConfigError(f"{key} must be a list of strings")
    return items


def load_config(path: Path | None = None) -> PluginConfig:
    """Load options from a YAML file; a missing file yields the defaults."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_FILE
    if not config_path.exists():
        if path is not None:
            raise ConfigError(f"Config file not found: {config_path}")
        return PluginConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if data is None:
        return PluginConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping of options")
    return PluginConfig.from_mapping(data)
