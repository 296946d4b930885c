"""Configuration loading for bundlegen (.bundlegen.yml)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".bundlegen.yml"

DEFAULT_ENVIRONMENT = "development"

KNOWN_ENVIRONMENTS = (DEFAULT_ENVIRONMENT, "test", "staging", "production")

_DEFAULT_FAVICON_DESIGN: Dict[str, Any] = {
    "ios": {
        "pictureAspect": "backgroundAndMargin",
        "backgroundColor": "#ffffff",
        "margin": "21%",
        "assets": {
            "ios6AndPriorIcons": False,
            "ios7AndLaterIcons": False,
            "precomposedIcons": False,
            "declareOnlyDefaultIcon": True,
        },
    },
    "desktopBrowser": {},
    "windows": {
        "pictureAspect": "noChange",
        "backgroundColor": "#da532c",
        "onConflict": "override",
        "assets": {
            "windows80Ie10Tile": False,
            "windows10Ie11EdgeTiles": {
                "small": False,
                "medium": True,
                "big": False,
                "rectangle": False,
            },
        },
    },
    "androidChrome": {
        "pictureAspect": "backgroundAndMargin",
        "margin": "17%",
        "backgroundColor": "#ffffff",
        "themeColor": "#ffffff",
        "manifest": {
            "display": "standalone",
            "orientation": "notSet",
            "onConflict": "override",
            "declared": True,
        },
        "assets": {"legacyIcon": False, "lowResolutionIcons": False},
    },
    "safariPinnedTab": {
        "pictureAspect": "blackAndWhite",
        "threshold": 90,
        "themeColor": "#5bbad5",
    },
}

_DEFAULT_FAVICON_SETTINGS: Dict[str, Any] = {
    "compression": 2,
    "scalingAlgorithm": "Mitchell",
    "errorOnImageTooSmall": False,
}


@dataclass(frozen=True)
class PackageInfo:
    """Name and version read from the project's package.json."""

    name: str
    version: str


@dataclass(frozen=True)
class PathsConfig:
    """Absolute locations of the source and output trees."""

    static_root: Path

    @property
    def scripts(self) -> Path:
        return self.static_root / "scripts"

    @property
    def views(self) -> Path:
        return self.scripts / "views"

    @property
    def templates(self) -> Path:
        return self.static_root / "templates"

    @property
    def partials(self) -> Path:
        return self.templates / "partials"

    @property
    def styles(self) -> Path:
        return self.static_root / "styles"

    @property
    def node_modules(self) -> Path:
        return self.static_root / "node_modules"

    @property
    def dist(self) -> Path:
        return self.static_root / "dist"

    @property
    def partials_file(self) -> Path:
        return self.scripts / "partials.js"

    @property
    def view_map_file(self) -> Path:
        return self.scripts / "view-map.es6"

    @property
    def generated_files(self) -> Tuple[Path, Path]:
        return (self.partials_file, self.view_map_file)


@dataclass(frozen=True)
class BundleConfig:
    """Script bundling settings."""

    entry: str = "scripts/main.es6"
    third_party: Tuple[str, ...] = ("node_modules/bootstrap/dist/js/bootstrap.js",)
    output: str = "dist/js/build.js"
    template_runtime: str = "handlebars"
    transpile_command: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StylesConfig:
    """Stylesheet compiler settings."""

    command: Tuple[str, ...] = ("lessc",)
    entry: str = "styles/main.less"
    output: str = "dist/css/build.css"
    browsers: Tuple[str, ...] = ("last 2 versions",)
    font_path: str = "../fonts"
    fonts_source: str = "node_modules/font-awesome/fonts"


@dataclass(frozen=True)
class DocsConfig:
    """Documentation compiler settings."""

    root: Path
    config_file: Path
    command: Tuple[str, ...] = ("jsdoc",)


@dataclass(frozen=True)
class FaviconConfig:
    """Favicon generation settings."""

    master_picture: Path
    command: Tuple[str, ...] = ("real-favicon",)
    icons_path: str = "/"
    design: Mapping[str, Any] = field(default_factory=lambda: dict(_DEFAULT_FAVICON_DESIGN))
    settings: Mapping[str, Any] = field(default_factory=lambda: dict(_DEFAULT_FAVICON_SETTINGS))
    markup_templates: Tuple[str, ...] = ("templates/layout.hbs",)


@dataclass(frozen=True)
class WatchConfig:
    """File watching settings."""

    debounce: float = 0.1


@dataclass(frozen=True)
class BuildConfig:
    """Immutable, process-wide build configuration."""

    root: Path
    environment: str
    package: PackageInfo
    paths: PathsConfig
    docs: DocsConfig
    favicon: FaviconConfig
    bundle: BundleConfig = field(default_factory=BundleConfig)
    styles: StylesConfig = field(default_factory=StylesConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)

    @property
    def is_development(self) -> bool:
        return self.environment == DEFAULT_ENVIRONMENT


def load_config(config_path: Path, env: Optional[Mapping[str, str]] = None) -> BuildConfig:
    """Load configuration from disk, applying environment overrides once."""
    environ = os.environ if env is None else env
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    data = _read_config(config_file) if config_file.exists() else {}
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    environment = (
        environ.get("BUNDLEGEN_ENV")
        or environ.get("NODE_ENV")
        or _as_str(data.get("environment"))
        or DEFAULT_ENVIRONMENT
    ).strip()
    if environment not in KNOWN_ENVIRONMENTS:
        raise ConfigError(
            f"Unknown environment {environment!r}; expected one of {', '.join(KNOWN_ENVIRONMENTS)}"
        )

    static_value = environ.get("BUNDLEGEN_STATIC_ROOT") or _as_str(data.get("static_root")) or "static"
    static_root = (root / static_value).resolve()
    if not static_root.is_dir():
        raise ConfigError(f"Static assets root not found: {static_root}")

    bundle_data = _as_dict(data.get("bundle"), "bundle")
    bundle_defaults = BundleConfig()
    bundle = BundleConfig(
        entry=_as_str(bundle_data.get("entry")) or bundle_defaults.entry,
        third_party=_as_str_tuple(bundle_data.get("third_party"), bundle_defaults.third_party),
        output=_as_str(bundle_data.get("output")) or bundle_defaults.output,
        template_runtime=_as_str(bundle_data.get("template_runtime")) or bundle_defaults.template_runtime,
        transpile_command=_as_str_tuple(bundle_data.get("transpile_command"), ()),
    )

    styles_data = _as_dict(data.get("styles"), "styles")
    styles_defaults = StylesConfig()
    styles = StylesConfig(
        command=_as_str_tuple(styles_data.get("command"), styles_defaults.command),
        entry=_as_str(styles_data.get("entry")) or styles_defaults.entry,
        output=_as_str(styles_data.get("output")) or styles_defaults.output,
        browsers=_as_str_tuple(styles_data.get("browsers"), styles_defaults.browsers),
        font_path=_as_str(styles_data.get("font_path")) or styles_defaults.font_path,
        fonts_source=_as_str(styles_data.get("fonts_source")) or styles_defaults.fonts_source,
    )

    docs_data = _as_dict(data.get("docs"), "docs")
    docs = DocsConfig(
        root=root / (_as_str(docs_data.get("root")) or "docs"),
        config_file=root / (_as_str(docs_data.get("config")) or ".jsdocrc"),
        command=_as_str_tuple(docs_data.get("command"), ("jsdoc",)),
    )

    favicon_data = _as_dict(data.get("favicon"), "favicon")
    favicon_defaults = FaviconConfig(master_picture=root / "favicon-master.png")
    favicon = FaviconConfig(
        master_picture=root / (_as_str(favicon_data.get("master")) or "favicon-master.png"),
        command=_as_str_tuple(favicon_data.get("command"), favicon_defaults.command),
        icons_path=_as_str(favicon_data.get("icons_path")) or favicon_defaults.icons_path,
        design=_merge(favicon_defaults.design, _as_dict(favicon_data.get("design"), "favicon.design")),
        settings=_merge(
            favicon_defaults.settings, _as_dict(favicon_data.get("settings"), "favicon.settings")
        ),
        markup_templates=_as_str_tuple(
            favicon_data.get("markup_templates"), favicon_defaults.markup_templates
        ),
    )

    watch_data = _as_dict(data.get("watch"), "watch")
    debounce = _as_float(watch_data.get("debounce"))
    watch = WatchConfig(debounce=debounce if debounce is not None else WatchConfig().debounce)
    if watch.debounce < 0:
        raise ConfigError("watch.debounce must not be negative")

    return BuildConfig(
        root=root,
        environment=environment,
        package=_read_package_info(root),
        paths=PathsConfig(static_root=static_root),
        docs=docs,
        favicon=favicon,
        bundle=bundle,
        styles=styles,
        watch=watch,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _read_package_info(root: Path) -> PackageInfo:
    package_file = root / "package.json"
    try:
        payload = json.loads(package_file.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return PackageInfo(name=root.name, version="0.0.0")
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Failed to read {package_file}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("package.json must contain an object")
    name = _as_str(payload.get("name")) or root.name
    version = _as_str(payload.get("version")) or "0.0.0"
    return PackageInfo(name=name, version=version)


def _merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _as_dict(value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"`{key}` must be a mapping")
    return value


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise ConfigError(f"Expected a number, got {value!r}") from None
    return None


def _as_str_tuple(value: Any, default: Sequence[str]) -> Tuple[str, ...]:
    if value is None:
        return tuple(default)
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, list):
        items: List[str] = []
        for item in value:
            text = _as_str(item)
            if text is None:
                raise ConfigError(f"Expected a list of strings, got {value!r}")
            items.append(text)
        return tuple(items)
    raise ConfigError(f"Expected a list of strings, got {value!r}")


__all__ = [
    "BuildConfig",
    "BundleConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DocsConfig",
    "FaviconConfig",
    "KNOWN_ENVIRONMENTS",
    "PackageInfo",
    "PathsConfig",
    "StylesConfig",
    "WatchConfig",
    "load_config",
]
