"""Command augmentation orchestrator.

Adds one command to an existing extension project: renders the command
module, wires it into the entry source and declares it in the manifest.
All new file contents are staged in memory and only committed once every
stage has succeeded.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError

from . import manifest as manifest_model
from . import source as source_model
from .config import YocodeSettings, load_settings
from .exceptions import (
    AugmentationError,
    CommandAlreadyRegistered,
    EntrySourceMissing,
    InvalidCommandName,
    ManifestMalformed,
    TargetExists,
    YocodeError,
)
from .injector import ensure_import
from .models import (
    VARIANT_LAYOUTS,
    AugmentationReport,
    CommandDescriptor,
    LanguageVariant,
    Stage,
)
from .registration import register_command
from .renderer import TemplateRenderer, module_target

logger = logging.getLogger(__name__)

StageCallback = Callable[[Stage], None]


@contextmanager
def _stage(stage: Stage, on_stage: StageCallback | None) -> Iterator[None]:
    """Attribute any failure inside the block to ``stage``."""
    logger.debug("stage %s", stage.value)
    if on_stage is not None:
        on_stage(stage)
    try:
        yield
    except AugmentationError:
        raise
    except (YocodeError, OSError) as e:
        raise AugmentationError(stage.value, e) from e


def describe_command(
    command_name: str,
    language_variant: LanguageVariant,
    command_prefix: str,
) -> CommandDescriptor:
    """Build a descriptor, turning validation failures into InvalidCommandName."""
    try:
        return CommandDescriptor(
            command_name=command_name,
            language_variant=language_variant,
            command_prefix=command_prefix,
        )
    except ValidationError as e:
        error = e.errors()[0]
        if error["loc"] and error["loc"][0] == "command_prefix":
            msg = f"Manifest name '{command_prefix}' cannot prefix a command id"
            raise ManifestMalformed(msg, details={"name": command_prefix}) from e
        msg = f"Invalid command name '{command_name}': {error['msg']}"
        raise InvalidCommandName(msg, details={"command_name": command_name}) from e


def write_atomic(path: Path, content: str) -> None:
    """Write through a temporary sibling file renamed over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def augment(
    project_dir: Path,
    command_name: str,
    language_variant: LanguageVariant | None = None,
    *,
    dry_run: bool = False,
    settings: YocodeSettings | None = None,
    renderer: TemplateRenderer | None = None,
    on_stage: StageCallback | None = None,
) -> AugmentationReport:
    """Add a command to an extension project.

    Args:
        project_dir: Root of the generated extension project
        command_name: Identifier-safe name of the new command
        language_variant: Project language, detected from the manifest when None
        dry_run: Run every stage but leave all files untouched
        settings: Project settings, loaded from .yocode.yaml when None
        renderer: Template renderer, defaults to the bundled templates
        on_stage: Called with each stage as it starts

    Returns:
        Report of the files touched and any warnings

    Raises:
        AugmentationError: Naming the failed stage and wrapping its cause
    """
    project_dir = Path(project_dir)
    warnings: list[str] = []
    staged: list[tuple[Path, str]] = []

    with _stage(Stage.PRECONDITIONS, on_stage):
        if settings is None:
            settings = load_settings(project_dir)
        manifest_path = project_dir / manifest_model.MANIFEST_FILENAME
        manifest = manifest_model.load(manifest_path)
        variant = (
            language_variant
            or settings.variant
            or manifest_model.detect_variant(manifest)
        )
        descriptor = describe_command(command_name, variant, manifest.name)
        entry_path = project_dir / VARIANT_LAYOUTS[variant].entry_source
        if not entry_path.exists():
            msg = f"Extension file not found at {entry_path}"
            raise EntrySourceMissing(msg, details={"path": str(entry_path)})
        if descriptor.command_id in manifest.command_ids():
            msg = f"Command '{descriptor.command_id}' is already declared in {manifest_path.name}"
            raise CommandAlreadyRegistered(msg, details={"command": descriptor.command_id})

    with _stage(Stage.RENDER, on_stage):
        module_text = (renderer or TemplateRenderer()).render_command(descriptor)

    with _stage(Stage.WRITE_MODULE, on_stage):
        module_path = module_target(project_dir, descriptor)
        if module_path.exists():
            msg = f"Command module already exists at {module_path}"
            raise TargetExists(msg, details={"path": str(module_path)})
        staged.append((module_path, module_text))

    with _stage(Stage.LOAD_ENTRY, on_stage):
        entry = source_model.load(entry_path)

    with _stage(Stage.INJECT_IMPORT, on_stage):
        result = ensure_import(
            entry.text,
            variant,
            descriptor.command_name,
            descriptor.function_name,
            anchor=settings.markers.import_anchor[variant],
        )
        if result.degraded:
            warnings.append(
                f"Import anchor not found in {entry_path.name}; "
                "import was added at the top of the file",
            )
        entry.text = result.text

    with _stage(Stage.REGISTER_COMMAND, on_stage):
        registration = register_command(entry.text, descriptor, settings.markers)
        entry.text = registration.text
        staged.append((entry.path, entry.text))

    with _stage(Stage.UPDATE_MANIFEST, on_stage):
        title = settings.command_title(descriptor.command_name, descriptor.command_id)
        manifest_model.add_command_entry(manifest, descriptor.command_id, title)
        staged.append((manifest_path, manifest_model.dumps(manifest)))

    if not dry_run:
        with _stage(Stage.COMMIT, on_stage):
            for path, content in staged:
                write_atomic(path, content)
                logger.debug("wrote %s", path)

    return AugmentationReport(
        command_id=descriptor.command_id,
        module_path=module_path,
        entry_path=entry_path,
        manifest_path=manifest_path,
        collector_state=registration.state,
        warnings=warnings,
        dry_run=dry_run,
    )
