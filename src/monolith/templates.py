# src/monolith/templates.py
"""
HTML fragment rendering for Monolith.

Links and video embeds are small Jinja2 templates kept in this module, so the
package needs no template files on disk. Everything renders through one
lazily created, autoescaping environment, and every render returns Markup so
a fragment can be dropped into a site's own templates without being escaped
a second time.
"""

from collections.abc import Callable, Mapping

from jinja2 import BaseLoader, Environment, TemplateNotFound
from markupsafe import Markup

# =============================================================================
# Template Names
# =============================================================================

TEMPLATE_LINK = "link.html"
TEMPLATE_VIDEO_EMBED = "video/embed.html"
TEMPLATE_VIDEO_LINK = "video/link.html"
TEMPLATE_VIDEO_RESPONSIVE = "video/responsive.html"

# =============================================================================
# Embedded Templates
# =============================================================================

# `attributes` in link.html is pre-rendered Markup from format_attributes()
_EMBEDDED_TEMPLATES = {
    TEMPLATE_LINK: "<a {{ attributes }}>{{ content }}</a>",
    TEMPLATE_VIDEO_EMBED: '<iframe src="{{ src }}" frameborder="0" allowfullscreen></iframe>',
    TEMPLATE_VIDEO_LINK: (
        '<a href="{{ href }}" title="{{ title }}"><img src="{{ image }}" alt="{{ alt }}"></a>'
    ),
    TEMPLATE_VIDEO_RESPONSIVE: """<div class="monolith-responsive-video" style="height: 0; padding-bottom: {{ padding }}%; position: relative">
    <iframe src="{{ src }}" style="height: 100%; left: 0; position: absolute; top: 0; width: 100%" frameborder="0" allowfullscreen></iframe>
</div>""",
}


class DictLoader(BaseLoader):
    """Serve template sources from an in-memory mapping of name to source."""

    def __init__(self, templates: Mapping[str, str]):
        self.templates = templates

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str, Callable[[], bool]]:
        try:
            source = self.templates[template]
        except KeyError:
            raise TemplateNotFound(template) from None
        # Sources never change, so the cached template is always up to date
        return source, template, lambda: True


# =============================================================================
# Shared Environment
# =============================================================================

_jinja_env: Environment | None = None


def _create_environment(loader: BaseLoader | None = None) -> Environment:
    return Environment(
        loader=loader or DictLoader(_EMBEDDED_TEMPLATES),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def get_jinja_env() -> Environment:
    """Return the shared environment, creating it on first use."""
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = _create_environment()
    return _jinja_env


def set_jinja_env(env: Environment) -> None:
    """Replace the shared environment, e.g. to override a template in tests."""
    global _jinja_env
    _jinja_env = env


def reset_jinja_env() -> None:
    """Drop the shared environment; the next render builds a fresh one."""
    global _jinja_env
    _jinja_env = None


# =============================================================================
# Rendering
# =============================================================================


def render_template(template_name: str, **context) -> Markup:
    """Render a named template from the shared environment."""
    return Markup(get_jinja_env().get_template(template_name).render(**context))
