"""Jinja2 template rendering for module scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``federated_scaffold/scaffolder/templates/`` directory and renders them into
in-memory file maps that the generator stages into the virtual tree.
Template *paths* may carry placeholders such as ``__name@dasherize__`` which
are resolved against the same context as the template bodies.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from federated_scaffold.utils import classify, dasherize


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

# __name__ or __name@dasherize__
_PATH_PLACEHOLDER = re.compile(r"__([A-Za-z][A-Za-z0-9]*)(?:@([A-Za-z]+))?__")

_NAME_FILTERS: dict[str, Callable[[str], str]] = {
    "dasherize": dasherize,
    "classify": classify,
}


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for module scaffolding.

    The renderer discovers ``.j2`` template files under a configurable
    template directory.  Templates are rendered with a context dictionary that
    typically contains the generator options (name, project, role, ...).
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([], default_for_string=False),
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        for filter_name, func in _NAME_FILTERS.items():
            self.env.filters[filter_name] = func

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def render_path(self, relative_path: str, context: dict[str, Any]) -> str:
        """Resolve ``__var__`` / ``__var@filter__`` placeholders in a path.

        The ``.j2`` suffix, if any, is stripped.

        Raises:
            KeyError: If a placeholder names a variable missing from *context*
                or an unknown filter.
        """
        def _substitute(match: re.Match[str]) -> str:
            value = str(context[match.group(1)])
            filter_name = match.group(2)
            if filter_name:
                value = _NAME_FILTERS[filter_name](value)
            return value

        resolved = _PATH_PLACEHOLDER.sub(_substitute, relative_path)
        if resolved.endswith(".j2"):
            resolved = resolved[: -len(".j2")]
        return resolved

    # -- Tree rendering ----------------------------------------------------

    def render_tree(
        self,
        template_prefix: str,
        destination: str,
        context: dict[str, Any],
    ) -> dict[str, str]:
        """Render every ``*.j2`` file under *template_prefix*.

        The directory structure below the prefix is preserved and moved under
        *destination*; path placeholders are resolved and ``.j2`` stripped.

        Returns:
            Mapping of target tree path to rendered content, in template
            order.
        """
        rendered: dict[str, str] = {}
        for template_key in self.list_templates(template_prefix):
            rel = posixpath.relpath(template_key, template_prefix) if template_prefix else template_key
            target = posixpath.join(destination, self.render_path(rel, context))
            rendered[target] = self.render(template_key, context)
        return rendered

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory, POSIX separated.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )
