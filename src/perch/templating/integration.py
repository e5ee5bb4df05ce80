"""Kida environment setup and rendering.

Creates a kida Environment from perch's AppConfig. The environment is
created once when the service container first builds the renderer and
is shared by every request afterwards.
"""

from collections.abc import Mapping
from typing import Any

from kida import Environment, FileSystemLoader

from perch.config import AppConfig


def create_environment(config: AppConfig) -> Environment:
    """Create a kida Environment from app configuration."""
    return Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
    )


class Renderer:
    """Render named templates to strings.

    Any error from kida (missing template, syntax error, undefined
    variable) propagates to the caller.
    """

    __slots__ = ("env",)

    def __init__(self, env: Environment) -> None:
        self.env = env

    @classmethod
    def from_config(cls, config: AppConfig) -> Renderer:
        return cls(create_environment(config))

    def render(self, name: str, context: Mapping[str, Any] | None = None) -> str:
        """Render the full template *name* with *context*."""
        template = self.env.get_template(name)
        return template.render(dict(context or {}))
