"""Build configuration.

`configs/base.yaml` is merged with the environment (after loading `.env`) and
frozen into a `BuildConfig`. The value is created once at startup and handed
to every task through the run context; nothing reads the build mode from the
process environment after that.

Environment variables:
- SITE_ENV: `production` selects production mode; anything else is development.
- DEPLOY_BASE_URL: absolute base URL (scheme included) passed to Hugo in
  production so sitemaps and canonical links are absolute.
- REALFAVICON_API_KEY: RealFaviconGenerator API key, overrides the YAML value.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError
from .utils import _get


PRODUCTION = "production"
DEVELOPMENT = "development"
TOOL_ERRORS = ("fatal", "warn")

DEFAULT_HUGO_CONFIGS = (
    "config.toml",
    "contributors.toml",
    "leadership_team.toml",
    "sponsors.toml",
    "partners.toml",
)
DEFAULT_SITE_GLOBS = ("*.toml", "archetypes/**/*", "content/**/*", "layouts/**/*")
DEFAULT_ASSET_GLOBS = ("frontend/**/*",)


@dataclass(frozen=True)
class FaviconSettings:
    master_picture: Path = Path("frontend/images/master-favicon-512--default.png")
    icons_path: str = "/"
    api_key: str = ""
    api_url: str = "https://realfavicongenerator.net/api"
    markup_file: Path = Path("favicondata.json")
    design: Mapping[str, Any] = field(default_factory=dict)
    settings: Mapping[str, Any] = field(default_factory=dict)
    versioning: Mapping[str, Any] = field(default_factory=dict)
    keep: str = 'meta[property="og:image"]'
    html_glob: str = "**/*.html"
    timeout: float = 60.0


@dataclass(frozen=True)
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 3000
    site_globs: tuple[str, ...] = DEFAULT_SITE_GLOBS
    asset_globs: tuple[str, ...] = DEFAULT_ASSET_GLOBS
    delay: float = 1.0
    open_browser: bool = False


@dataclass(frozen=True)
class BuildConfig:
    mode: str = DEVELOPMENT
    base_url: Optional[str] = None
    tool_errors: str = "warn"
    output_dir: Path = Path("dist")
    hugo_bin: str = "hugo"
    hugo_configs: tuple[str, ...] = DEFAULT_HUGO_CONFIGS
    hugo_extra_args: tuple[str, ...] = ()
    bundle_command: tuple[str, ...] = (
        "npx",
        "webpack",
        "--config",
        "webpack.config.babel.js",
    )
    image_globs: tuple[str, ...] = ("frontend/images/**/*",)
    image_base: Path = Path("frontend/images")
    config_globs: tuple[str, ...] = ("frontend/**/*.json",)
    config_base: Path = Path("frontend")
    favicon: FaviconSettings = field(default_factory=FaviconSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    @property
    def is_production(self) -> bool:
        return self.mode == PRODUCTION

    @property
    def fatal_tool_errors(self) -> bool:
        return self.tool_errors == "fatal"


def _tuple(value, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def read_yaml(path: str | Path) -> dict:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {p}") from None
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {p} must contain a mapping")
    return data


def build_config(params: dict, environ: Mapping[str, str]) -> BuildConfig:
    """Freeze a parsed YAML mapping plus environment into a BuildConfig."""
    mode = PRODUCTION if environ.get("SITE_ENV", "").lower() == PRODUCTION else DEVELOPMENT
    base_url = environ.get("DEPLOY_BASE_URL") or _get(params, "site", "base_url")

    tool_errors = _get(params, "build", "tool_errors")
    if tool_errors is None:
        tool_errors = "fatal" if mode == PRODUCTION else "warn"
    if tool_errors not in TOOL_ERRORS:
        raise ConfigurationError(
            f"build.tool_errors must be one of {TOOL_ERRORS}, got {tool_errors!r}"
        )

    fav = _get(params, "favicon", default={}) or {}
    favicon = FaviconSettings(
        master_picture=Path(_get(fav, "master_picture", default=FaviconSettings.master_picture)),
        icons_path=_get(fav, "icons_path", default=FaviconSettings.icons_path),
        api_key=environ.get("REALFAVICON_API_KEY") or fav.get("api_key") or "",
        api_url=str(_get(fav, "api_url", default=FaviconSettings.api_url)).rstrip("/"),
        markup_file=Path(_get(fav, "markup_file", default=FaviconSettings.markup_file)),
        design=fav.get("design") or {},
        settings=fav.get("settings") or {},
        versioning=fav.get("versioning") or {},
        keep=fav.get("keep", FaviconSettings.keep),
        html_glob=_get(fav, "html_glob", default=FaviconSettings.html_glob),
        timeout=float(_get(fav, "timeout", default=FaviconSettings.timeout)),
    )

    srv = _get(params, "server", default={}) or {}
    server = ServerSettings(
        host=_get(srv, "host", default=ServerSettings.host),
        port=int(_get(srv, "port", default=ServerSettings.port)),
        site_globs=_tuple(srv.get("site_globs"), DEFAULT_SITE_GLOBS),
        asset_globs=_tuple(srv.get("asset_globs"), DEFAULT_ASSET_GLOBS),
        delay=float(_get(srv, "delay", default=ServerSettings.delay)),
        open_browser=bool(srv.get("open_browser", False)),
    )

    defaults = BuildConfig()
    return BuildConfig(
        mode=mode,
        base_url=base_url or None,
        tool_errors=tool_errors,
        output_dir=Path(_get(params, "build", "output_dir", default=defaults.output_dir)),
        hugo_bin=_get(params, "hugo", "bin", default=defaults.hugo_bin),
        hugo_configs=_tuple(_get(params, "hugo", "configs"), defaults.hugo_configs),
        hugo_extra_args=_tuple(_get(params, "hugo", "extra_args"), ()),
        bundle_command=_tuple(_get(params, "bundle", "command"), defaults.bundle_command),
        image_globs=_tuple(_get(params, "copy", "images", "globs"), defaults.image_globs),
        image_base=Path(_get(params, "copy", "images", "base", default=defaults.image_base)),
        config_globs=_tuple(_get(params, "copy", "configs", "globs"), defaults.config_globs),
        config_base=Path(_get(params, "copy", "configs", "base", default=defaults.config_base)),
        favicon=favicon,
        server=server,
    )


def load_config(path: str | Path, environ: Optional[Mapping[str, str]] = None) -> BuildConfig:
    if environ is None:
        load_dotenv()
        environ = os.environ
    return build_config(read_yaml(path), environ)
