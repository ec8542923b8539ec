"""Core data models for the Yocode augmentation engine."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

COMMAND_NAME_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class LanguageVariant(str, Enum):
    """Source language of a generated extension project."""

    SCRIPT = "script"
    TYPED = "typed"


class VariantLayout(BaseModel):
    """Where a language variant keeps its entry source and command modules."""

    model_config = ConfigDict(frozen=True)

    entry_source: str = Field(..., description="Entry source path relative to project root")
    commands_root: str = Field(..., description="Command modules directory")
    extension: str = Field(..., description="File extension of command modules")
    template_name: str = Field(..., description="Template used for new command modules")
    import_anchor: str = Field(..., description="Marker of the framework import line")


VARIANT_LAYOUTS: dict[LanguageVariant, VariantLayout] = {
    LanguageVariant.TYPED: VariantLayout(
        entry_source="src/extension.ts",
        commands_root="src/commands",
        extension="ts",
        template_name="command.ts.j2",
        import_anchor="import * as vscode from",
    ),
    LanguageVariant.SCRIPT: VariantLayout(
        entry_source="extension.js",
        commands_root="commands",
        extension="js",
        template_name="command.js.j2",
        import_anchor="const vscode = require(",
    ),
}


class CommandDescriptor(BaseModel):
    """One command to add to a project. Built once per request, never mutated."""

    model_config = ConfigDict(frozen=True)

    command_name: str = Field(..., description="Identifier-safe command name")
    language_variant: LanguageVariant = Field(..., description="Project language")
    command_prefix: str = Field(..., description="Manifest package name")

    @field_validator("command_name")
    @classmethod
    def validate_command_name(cls, v: str) -> str:
        """Reject names that cannot be spliced into source as identifiers."""
        if not COMMAND_NAME_PATTERN.match(v):
            msg = (
                "Command name must be an identifier "
                "(letters, digits, '_' or '$', not starting with a digit)"
            )
            raise ValueError(msg)
        return v

    @field_validator("command_prefix")
    @classmethod
    def validate_command_prefix(cls, v: str) -> str:
        """Reject prefixes that would break the quoted command id."""
        if not v or any(ch in v for ch in "'\"\\\n`"):
            msg = "Command prefix must be a non-empty string without quotes"
            raise ValueError(msg)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def function_name(self) -> str:
        """Handler function name, e.g. ``lint`` -> ``executeLint``."""
        return "execute" + self.command_name[0].upper() + self.command_name[1:]

    @property
    def command_id(self) -> str:
        return f"{self.command_prefix}.{self.command_name}"

    @property
    def identifier(self) -> str:
        """Variable bound to the registration handle in the entry source."""
        return f"{self.command_name}Command"

    @property
    def layout(self) -> VariantLayout:
        return VARIANT_LAYOUTS[self.language_variant]

    @property
    def module_path(self) -> PurePosixPath:
        """Path of the new command module relative to the project root."""
        layout = self.layout
        return PurePosixPath(layout.commands_root) / f"{self.command_name}.{layout.extension}"


class CollectorState(str, Enum):
    """What the registration mutator did to the subscriptions collector."""

    EXTENDED = "extended"
    CREATED = "created"


class Stage(str, Enum):
    """Named stages of one augmentation, used in failure reports."""

    PRECONDITIONS = "preconditions"
    RENDER = "render"
    WRITE_MODULE = "write-module"
    LOAD_ENTRY = "load-entry"
    INJECT_IMPORT = "inject-import"
    REGISTER_COMMAND = "register-command"
    UPDATE_MANIFEST = "update-manifest"
    COMMIT = "commit"


class AugmentationReport(BaseModel):
    """Outcome of a successful augmentation."""

    command_id: str = Field(..., description="Registered command id")
    module_path: Path = Field(..., description="New command module")
    entry_path: Path = Field(..., description="Updated entry source")
    manifest_path: Path = Field(..., description="Updated manifest")
    collector_state: CollectorState = Field(..., description="Collector call outcome")
    warnings: list[str] = Field(
        default_factory=list,
        description="Degraded-mode conditions met along the way",
    )
    dry_run: bool = Field(default=False, description="Whether files were left untouched")
