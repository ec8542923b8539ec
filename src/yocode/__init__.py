"""Yocode: scaffolding and command augmentation for editor extension projects."""

__version__ = "0.1.0"
__author__ = "Yocode Contributors"
__description__ = "Scaffolding and command augmentation for editor extension projects"

from .augment import augment
from .models import AugmentationReport, CommandDescriptor, LanguageVariant
from .renderer import TemplateRenderer

__all__ = [
    "AugmentationReport",
    "CommandDescriptor",
    "LanguageVariant",
    "TemplateRenderer",
    "augment",
]
