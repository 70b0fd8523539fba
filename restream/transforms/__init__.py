"""Restream Transforms.

Reusable source rewrites for RoutingFilter.then() and Channel.on_read():
- TemplateTransform: Render source as a Jinja2 template
- ReplaceTransform: Regex substitution
"""

from .base import Transform, TransformError
from .replace import ReplaceTransform
from .template import TemplateTransform

__all__ = [
    "Transform",
    "TransformError",
    "TemplateTransform",
    "ReplaceTransform",
]
