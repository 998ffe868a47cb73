# /*
# Copyright 2026 The Kubernetes Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Rendering of packaged Jinja2 templates into the working directory."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
)

from sc_installer import logger
from sc_installer.constants import MANIFEST_FILE_MODE, TEMPLATES_DIR

TEMPLATE_SUFFIX = ".j2"


class RenderError(RuntimeError):
    """Raised when a template cannot be loaded or rendered."""


@lru_cache(maxsize=None)
def _environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )


def render_template(name: str, context: dict[str, Any], templates_dir: Path = TEMPLATES_DIR) -> str:
    """Render a packaged template to a string.

    Args:
        name: Template file name (e.g. ``service.yaml.j2``).
        context: Values substituted into the template.
        templates_dir: Directory holding the templates.

    Returns:
        The rendered text.

    Raises:
        RenderError: If the template is missing, malformed, or references a
            value not present in *context*.
    """
    try:
        template = _environment(templates_dir).get_template(name)
        return template.render(**context)
    except TemplateNotFound as e:
        raise RenderError(f"Template not found: {e}") from e
    except TemplateSyntaxError as e:
        raise RenderError(f"Template syntax error in {name}: {e}") from e
    except UndefinedError as e:
        raise RenderError(f"Missing value for template {name}: {e}") from e


def write_file(dst: Path, content: str) -> Path:
    """Write *content* to *dst* with the manifest file mode."""
    dst.write_text(content)
    dst.chmod(MANIFEST_FILE_MODE)
    return dst


def generate_file_from_template(
    dst: Path,
    name: str,
    context: dict[str, Any],
    templates_dir: Path = TEMPLATES_DIR,
) -> Path:
    """Render template *name* and write it to *dst*.

    Returns:
        The destination path.
    """
    logger.debug("rendering %s -> %s", name, dst)
    return write_file(dst, render_template(name, context, templates_dir))


def copy_static_file(dst: Path, name: str, templates_dir: Path = TEMPLATES_DIR) -> Path:
    """Copy a packaged file verbatim to *dst*.

    Raises:
        RenderError: If the packaged file does not exist.
    """
    src = templates_dir / name
    if not src.is_file():
        raise RenderError(f"Template not found: {name}")
    logger.debug("copying %s -> %s", name, dst)
    return write_file(dst, src.read_text())
