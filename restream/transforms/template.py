#!/usr/bin/env python3
"""Source rendering with Jinja2.

Treats a module's source as a Jinja2 template, which makes compile-time
feature flags possible:

    {% if DEBUG %}
    print("loaded", __name__)
    {% endif %}

Example:
    >>> transform = TemplateTransform(context={"DEBUG": False})
    >>> transform(b"x = {{ 40 + 2 }}")
    b'x = 42'
"""

from typing import Any, Dict, Optional

import jinja2

from restream.transforms.base import Transform, TransformError


class TemplateTransform(Transform):
    """Render module source as a Jinja2 template."""

    def __init__(
        self,
        context: Optional[Dict[str, Any]] = None,
        name: str = "template",
        **jinja_options,
    ):
        """Initialize template transform.

        Args:
            context: Template context variables
            name: Transform name
            **jinja_options: Additional Jinja2 environment options
        """
        super().__init__(name=name)
        self._context = dict(context or {})
        # Source files end with a newline that must survive rendering
        jinja_options.setdefault("keep_trailing_newline", True)
        self._jinja_options = jinja_options
        self._env: Optional[jinja2.Environment] = None

    def _get_environment(self) -> jinja2.Environment:
        if self._env is None:
            self._env = jinja2.Environment(**self._jinja_options)
        return self._env

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def transform(self, content: bytes) -> bytes:
        """Render content with the current context.

        Raises:
            TransformError: If content is not UTF-8 or the template fails
        """
        try:
            template = self._get_environment().from_string(content.decode("utf-8"))
            return template.render(**self._context).encode("utf-8")
        except UnicodeDecodeError as e:
            raise TransformError(f"Failed to decode template: {e}", self.name) from e
        except jinja2.TemplateError as e:
            raise TransformError(f"Template error: {e}", self.name) from e

    def set_context(self, context: Dict[str, Any]) -> None:
        """Replace template context.

        Args:
            context: New context variables
        """
        self._context = dict(context)

    def update_context(self, **kwargs) -> None:
        """Update template context with keyword arguments."""
        self._context.update(kwargs)
