"""
Engine configuration loading from YAML with composable presets.

A configuration file maps option groups to option values:

    engine_path: /usr/local/bin/prince
    input:
      input_type: html
      base_url: https://example.com/
    pdf:
      tagged_pdf: true
      file_attachments:
        - url: terms.pdf
          description: Terms and conditions

A presets file groups named partial configurations by category. Presets are
flattened to ``<category>_<name>`` and applied in order, later presets
overriding earlier ones:

    profile:
      archival:
        pdf: {pdf_profile: PDF/A-3b}
    security:
      locked:
        encryption: {encrypt: true, disallow_copy: true}

Examples:
    >>> load_engine_config(Path("engine.yaml"), presets=["profile_archival"])
"""

import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, get_type_hints

from dotenv import load_dotenv
from omegaconf import OmegaConf

from inkpress.contexts.configuration import options as options_module
from inkpress.contexts.configuration.enums import OptionEnum, PdfEvent
from inkpress.contexts.configuration.options import (
    OPTION_GROUPS,
    EngineConfig,
    FileAttachment,
)
from inkpress.contexts.protocol.exceptions import ConfigurationError

load_dotenv()
CONFIG_PATH = os.getenv("INKPRESS_CONFIG_PATH")
PRESETS_PATH = os.getenv("INKPRESS_PRESETS_PATH")


def load_presets(presets_path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load a presets YAML file and flatten it to a single-level dict.

    Collapses nested structure: profile.archival -> profile_archival

    Args:
        presets_path: Path to presets file (defaults to INKPRESS_PRESETS_PATH env variable)

    Returns:
        Dict mapping preset names to partial configurations
    """
    if presets_path is None:
        if PRESETS_PATH is None:
            raise ConfigurationError("no presets file given and INKPRESS_PRESETS_PATH is unset")
        presets_path = Path(PRESETS_PATH)

    nested = OmegaConf.to_container(OmegaConf.load(presets_path), resolve=True)

    flattened = {}
    for category, presets in (nested or {}).items():
        for name, config in presets.items():
            flattened[f"{category}_{name}"] = config or {}

    return flattened


def load_engine_config(
    config_path: Optional[Path] = None,
    presets: Iterable[str] = (),
    presets_path: Optional[Path] = None,
) -> EngineConfig:
    """
    Load an EngineConfig from YAML, applying named presets on top.

    Args:
        config_path: YAML configuration file (defaults to INKPRESS_CONFIG_PATH;
            with neither, presets apply to the default configuration)
        presets: Preset names, applied in order
        presets_path: Presets file (defaults to INKPRESS_PRESETS_PATH)

    Returns:
        Frozen EngineConfig

    Raises:
        ConfigurationError: If a group, option, enum value or preset is unknown
    """
    if config_path is None and CONFIG_PATH is not None:
        config_path = Path(CONFIG_PATH)

    merged = OmegaConf.create({})
    if config_path is not None:
        merged = OmegaConf.merge(merged, OmegaConf.load(config_path))

    presets = list(presets)
    if presets:
        available = load_presets(presets_path)
        for name in presets:
            if name not in available:
                raise ConfigurationError(
                    f"Preset '{name}' not found. Available: {', '.join(sorted(available))}"
                )
            merged = OmegaConf.merge(merged, OmegaConf.create(available[name]))

    return config_from_dict(OmegaConf.to_container(merged, resolve=True))


def config_from_dict(data: Dict[str, Any]) -> EngineConfig:
    """
    Build an EngineConfig from plain nested dicts (e.g., parsed YAML).

    Strings are converted to enum members, lists to tuples, attachment dicts to
    FileAttachment, and ``pdf_event_scripts`` mappings to (event, script) pairs.
    """
    kwargs: Dict[str, Any] = {}
    for key, value in (data or {}).items():
        if key in OPTION_GROUPS:
            kwargs[key] = _build_group(key, value or {})
        elif key == "engine_path":
            kwargs[key] = str(value)
        elif key == "extra_options":
            kwargs[key] = tuple(
                (str(k), None if v is None else str(v)) for k, v in (value or {}).items()
            )
        else:
            raise ConfigurationError(f"unknown configuration key '{key}'", option=key)
    return EngineConfig(**kwargs)


def _build_group(group_name: str, values: Dict[str, Any]):
    group_cls = OPTION_GROUPS[group_name]
    hints = get_type_hints(group_cls, vars(options_module))
    known = {f.name for f in fields(group_cls)}

    kwargs = {}
    for key, value in values.items():
        if key not in known:
            raise ConfigurationError(f"unknown option '{key}'", option=f"{group_name}.{key}")
        kwargs[key] = _coerce(hints[key], value, f"{group_name}.{key}")
    return group_cls(**kwargs)


def _coerce(hint, value: Any, option: str) -> Any:
    if value is None:
        return None

    if option == "pdf.file_attachments":
        return tuple(_attachment(item, option) for item in value)
    if option == "pdf.pdf_event_scripts":
        if isinstance(value, dict):
            value = value.items()
        return tuple((_enum(PdfEvent, event, option), str(script)) for event, script in value)

    args = getattr(hint, "__args__", ())
    inner = [a for a in args if a is not type(None) and a is not Ellipsis]

    if isinstance(value, (list, tuple)):
        item_type = inner[0] if inner else str
        return tuple(_coerce_scalar(item_type, item, option) for item in value)

    target = inner[0] if inner else hint
    return _coerce_scalar(target, value, option)


def _coerce_scalar(target, value: Any, option: str) -> Any:
    if isinstance(target, type) and issubclass(target, OptionEnum):
        return _enum(target, value, option)
    return value


def _enum(enum_cls, value: Any, option: str):
    text = str(value)
    for member in enum_cls:
        if member.value.lower() == text.lower() or member.name == text.upper():
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ConfigurationError(f"invalid value '{text}' (choose from: {choices})", option=option)


def _attachment(item: Any, option: str) -> FileAttachment:
    if isinstance(item, str):
        return FileAttachment(url=item)
    if isinstance(item, dict) and "url" in item:
        return FileAttachment(
            url=str(item["url"]),
            filename=item.get("filename"),
            description=item.get("description"),
        )
    raise ConfigurationError(f"invalid file attachment {item!r} (need a url)", option=option)
