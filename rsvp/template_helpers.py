"""
Template set helpers.

A template set is a ``jinja2.Environment``. Bodies select a template from it
by name; the template is rendered with the payload as ``data``.
"""

import logging
import os
from collections.abc import Mapping
from typing import Any, Dict, Optional

from jinja2 import DictLoader, Environment, FileSystemLoader, PackageLoader, Template, TemplateNotFound
from jinja2.loaders import BaseLoader

logger = logging.getLogger(__name__)


def _resolve_loader(templates: Optional[Dict[str, str]], package: Optional[str]) -> BaseLoader:
    if templates is not None:
        return DictLoader(dict(templates))

    if package is None:
        raise ValueError("Either 'templates' or 'package' must be provided")

    # Check if it's a directory path (absolute or relative)
    if os.path.isdir(package):
        return FileSystemLoader(package)

    possible_paths = [
        os.path.join(os.getcwd(), package),  # Relative to current directory
    ]
    for path in possible_paths:
        if os.path.isdir(path):
            return FileSystemLoader(path)

    try:
        return PackageLoader(package)
    except (ImportError, ValueError, ModuleNotFoundError):
        raise ValueError(
            f"Could not find template directory or package '{package}'. "
            f"Tried paths: {[package] + possible_paths}"
        )


def html_templates(templates: Optional[Dict[str, str]] = None, package: Optional[str] = None) -> Environment:
    """
    Build an HTML template set with autoescaping enabled.

    Args:
        templates: Inline templates keyed by name. Takes precedence over ``package``.
        package: Directory path or package name holding template files.
                If it's a valid directory path, FileSystemLoader is used.
                Otherwise, PackageLoader is attempted.

    Examples:
        html_templates({"home": "<h1>{{ data.title }}</h1>"})
        html_templates(package="./templates")
    """
    return Environment(loader=_resolve_loader(templates, package), autoescape=True)


def text_templates(templates: Optional[Dict[str, str]] = None, package: Optional[str] = None) -> Environment:
    """Build a plain text template set. Nothing is escaped."""
    # Text output is never parsed as markup, so autoescape stays off
    return Environment(loader=_resolve_loader(templates, package), autoescape=False)  # nosec B701


def lookup_template(environment: Environment, name: str) -> Optional[Template]:
    """Return the named template, or None when the set does not contain it."""
    try:
        return environment.get_template(name)
    except TemplateNotFound:
        logger.debug(f"Template {name!r} not found")
        return None


def template_context(data: Any) -> Dict[str, Any]:
    """
    Build the render context for a payload.

    The payload is always available as ``data``; a mapping's keys are also
    available as top-level variables.
    """
    context: Dict[str, Any] = {}
    if isinstance(data, Mapping):
        context.update({str(key): value for key, value in data.items()})
    context["data"] = data
    return context


def render_template(template: Template, data: Any) -> str:
    return template.render(template_context(data))
