"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Tuple

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = Path(__file__).resolve().parent
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"
ENV_PREFIX = "PDFOVERLAY_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Viewport": {
        "min_scale": "0.5",
        "max_scale": "2.0",
        "default_scale": "1.2",
        "zoom_step": "0.1",
        "rescale_annotations_on_zoom": "true",
    },
    "Annotations": {
        "paste_offset": "20",
        "min_font_size": "8",
        "max_font_size": "200",
        "default_font_size": "16",
        "default_text": "Add text",
        "default_font_family": "Arial, sans-serif",
        "default_color": "#000000",
        "signature_width": "200",
        "signature_height": "100",
        "signature_min_width": "50",
    },
    "Crop": {
        "min_size": "20",
        "handle_radius": "10",
    },
    "Compositor": {
        "page_width": "595",
        "page_height": "842",
        "default_document_name": "document",
        "export_prefix": "edited-",
        "base_font": "Helvetica",
        "text_encoding": "cp1252",
    },
    "Signatures": {
        "pen_width": "2",
        "canvas_width": "600",
        "canvas_height": "300",
        "encrypt_saved": "true",
    },
    "Logging": {
        "db_path": (PROJECT_ROOT / "databases" / "logs.db").as_posix(),
        "level": "INFO",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class ViewportConfig:
    min_scale: float = 0.5
    max_scale: float = 2.0
    default_scale: float = 1.2
    zoom_step: float = 0.1
    rescale_annotations_on_zoom: bool = True


@dataclass
class AnnotationConfig:
    paste_offset: float = 20.0
    min_font_size: float = 8.0
    max_font_size: float = 200.0
    default_font_size: float = 16.0
    default_text: str = "Add text"
    default_font_family: str = "Arial, sans-serif"
    default_color: str = "#000000"
    signature_width: float = 200.0
    signature_height: float = 100.0
    signature_min_width: float = 50.0


@dataclass
class CropConfig:
    min_size: float = 20.0
    handle_radius: float = 10.0


@dataclass
class CompositorConfig:
    page_width: float = 595.0
    page_height: float = 842.0
    default_document_name: str = "document"
    export_prefix: str = "edited-"
    base_font: str = "Helvetica"
    text_encoding: str = "cp1252"


@dataclass
class SignatureConfig:
    pen_width: int = 2
    canvas_width: int = 600
    canvas_height: int = 300
    encrypt_saved: bool = True


@dataclass
class LoggingConfig:
    db_path: Path = PROJECT_ROOT / "databases" / "logs.db"
    level: str = "INFO"


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    # Interpolation off: values like "%Y" or "#000000" are taken verbatim
    cp = configparser.ConfigParser(interpolation=None)
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: Any) -> Any:
    # with "from __future__ import annotations" field types arrive as strings
    if isinstance(typ, str):
        typ = {"Path": Path, "bool": bool, "int": int, "float": float, "str": str}.get(typ, str)
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(float(value))
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, field.type)
    return cls(**kwargs)


def _env_overlays() -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "PdfOverlay" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "pdfoverlay" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety."""

    def __init__(self) -> None:
        self._lock = RLock()
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if DEFAULTS_INI.exists():
                _apply(merged, _read_ini(DEFAULTS_INI), "defaults.ini", str(DEFAULTS_INI), sources)

            # Layer 2: environment variables
            _apply(merged, _env_overlays(), "env", "os.environ", sources)

            # Layer 3: machine config
            if MACHINE_INI.exists():
                _apply(merged, _read_ini(MACHINE_INI), "machine", str(MACHINE_INI), sources)

            # Layer 4: user overrides
            user_ini = _user_config_path()
            if user_ini.exists():
                _apply(merged, _read_ini(user_ini), "user", str(user_ini), sources)

            self._merged = merged
            self._sources = sources

            self.viewport = _build_dataclass(ViewportConfig, merged.get("Viewport", {}))
            self.annotations = _build_dataclass(AnnotationConfig, merged.get("Annotations", {}))
            self.crop = _build_dataclass(CropConfig, merged.get("Crop", {}))
            self.compositor = _build_dataclass(CompositorConfig, merged.get("Compositor", {}))
            self.signatures = _build_dataclass(SignatureConfig, merged.get("Signatures", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


# Global singleton
config_service = ConfigService()
