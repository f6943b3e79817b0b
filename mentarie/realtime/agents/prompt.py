"""Agent instruction rendering with Jinja2 template support.

Agent instructions may contain Jinja2 syntax.  Example template::

    The chunks are:
    {% for chunk in chunks %}
      {{ loop.index }}. {{ chunk }}
    {% endfor %}
"""

from __future__ import annotations

import jinja2


def render_instructions(template: str, **variables: object) -> str:
    """Render ``template`` with ``variables``.

    If the template contains no Jinja2 syntax, it is returned unchanged.
    """
    if "{{" not in template and "{%" not in template:
        return template

    env = jinja2.Environment(autoescape=False, keep_trailing_newline=True, trim_blocks=True)  # noqa: S701
    return env.from_string(template).render(**variables)
