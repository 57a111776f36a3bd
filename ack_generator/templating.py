import os
from typing import Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .helpers import go_string_literal, to_snake_case
from .models import TemplateVars

DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "templates"
)

# Artifact kind -> template file name.
TEMPLATES: Dict[str, str] = {
    "doc": "doc.go.j2",
    "groupversion_info": "groupversion_info.go.j2",
    "types": "types.go.j2",
    "resource": "resource.go.j2",
}


class TemplateRenderer:
    """
    Renders template variables into artifact bytes. Rendering errors from
    Jinja2 are not caught here; they propagate to the caller unchanged.
    """

    def __init__(self, template_dir: Optional[str] = None):
        self.template_dir = template_dir or DEFAULT_TEMPLATE_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(self.template_dir),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self.jinja_env.filters["snake_case"] = to_snake_case
        self.jinja_env.filters["go_string"] = go_string_literal

    def render(self, kind: str, template_vars: TemplateVars) -> bytes:
        """
        Args:
            kind: The artifact kind, one of the keys of `TEMPLATES`.
            template_vars: The model value the template is rendered with.

        Returns:
            The rendered template, UTF-8 encoded.
        """
        if kind not in TEMPLATES:
            raise ValueError(f"Unknown artifact kind '{kind}'.")
        template = self.jinja_env.get_template(TEMPLATES[kind])
        return template.render(template_vars.to_dict()).encode("utf-8")
