"""Project-level configuration loaded from ``.yocode.yaml``."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .models import VARIANT_LAYOUTS, LanguageVariant

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".yocode.yaml"


def _default_import_anchors() -> dict[LanguageVariant, str]:
    return {variant: layout.import_anchor for variant, layout in VARIANT_LAYOUTS.items()}


class MarkerConfig(BaseModel):
    """Anchor substrings used to locate insertion points in the entry source."""

    import_anchor: dict[LanguageVariant, str] = Field(
        default_factory=_default_import_anchors,
        description="Framework import line marker per language variant",
    )
    activation: str = Field(
        default="function activate(context",
        description="Signature marker of the activation routine",
    )
    collector: str = Field(
        default="context.subscriptions.push(",
        description="Consolidated subscriptions call marker",
    )

    @field_validator("import_anchor")
    @classmethod
    def fill_missing_variants(
        cls, v: dict[LanguageVariant, str],
    ) -> dict[LanguageVariant, str]:
        """Keep the built-in anchor for variants the file does not override."""
        return {**_default_import_anchors(), **v}

    @field_validator("collector")
    @classmethod
    def validate_collector(cls, v: str) -> str:
        """The collector marker must end at the call's open parenthesis."""
        if not v.endswith("("):
            msg = "Collector marker must end with '('"
            raise ValueError(msg)
        return v


class YocodeSettings(BaseModel):
    """Per-project augmentation settings."""

    variant: LanguageVariant | None = Field(
        default=None,
        description="Force a language variant instead of detecting it",
    )
    title_template: str = Field(
        default="{command_name} Command",
        description="Title of new manifest command entries",
    )
    markers: MarkerConfig = Field(default_factory=MarkerConfig)

    @field_validator("title_template")
    @classmethod
    def validate_title_template(cls, v: str) -> str:
        """Title template may only reference command_name and command_id."""
        try:
            v.format(command_name="x", command_id="p.x")
        except (KeyError, IndexError, ValueError) as e:
            msg = f"Invalid title template: {e}"
            raise ValueError(msg) from e
        return v

    def command_title(self, command_name: str, command_id: str) -> str:
        return self.title_template.format(command_name=command_name, command_id=command_id)


def load_settings(project_dir: Path) -> YocodeSettings:
    """Load settings for a project, falling back to defaults.

    Args:
        project_dir: Root of the extension project

    Returns:
        Validated settings

    Raises:
        ConfigError: If the config file exists but cannot be used
    """
    config_path = Path(project_dir) / CONFIG_FILENAME
    if not config_path.exists():
        return YocodeSettings()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except UnicodeDecodeError as e:
        msg = f"{CONFIG_FILENAME} is not valid UTF-8: {e}"
        raise ConfigError(msg, details={"path": str(config_path)}) from e
    except yaml.YAMLError as e:
        msg = f"Failed to parse {CONFIG_FILENAME}: {e}"
        raise ConfigError(msg, details={"path": str(config_path)}) from e
    except OSError as e:
        msg = f"Failed to read {CONFIG_FILENAME}: {e}"
        raise ConfigError(msg, details={"path": str(config_path)}) from e

    logger.debug("loaded settings from %s", config_path)
    try:
        return YocodeSettings.model_validate(data or {})
    except ValidationError as e:
        msg = f"Invalid {CONFIG_FILENAME}: {e}"
        raise ConfigError(msg, details={"path": str(config_path)}) from e
