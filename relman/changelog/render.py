from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from jinja2 import Environment, StrictUndefined
from jinja2 import TemplateError as JinjaTemplateError
from jinja2 import TemplateSyntaxError

from relman.changelog.types import ChangelogDocument
from relman.core.errors import TemplateError

INITIAL_COMMIT_LABEL = "initial commit"
CURRENT_STATE_LABEL = "current state"

DEFAULT_CONTENT_TEMPLATE = """\
{% for section in sections %}
### {{ section.start_tagged_commit.tag if section.start_tagged_commit else initial_commit_label }} \
- {{ section.end_tagged_commit.tag }} ({{ format_date(section.end_tagged_commit.date) }})

{% for commit in section.commits %}
* [{{ truncate(commit.hash, 7) }}] {{ commit.subject }} ({{ commit.author }}, \
{{ format_date(commit.date) }})
{% endfor %}

{% endfor %}
"""

DEFAULT_HEADER_TEMPLATE = """\
## Changelog (Current version: {{ version }})

Updated: {{ format_date(current_date) }}
"""

DEFAULT_FOOTER_TEMPLATE = """\
Generated by relman on {{ format_date(current_date, "%Y-%m-%d %H:%M UTC") }}
"""

TemplateFuncs = Mapping[str, Callable[..., Any]]


def truncate(value: str, length: int) -> str:
    if len(value) < length:
        return value
    return value[:length]


def format_date(value: datetime | str, fmt: str = "%Y-%m-%d") -> str:
    if isinstance(value, datetime):
        return value.strftime(fmt)
    return str(value)


DEFAULT_FUNCS: dict[str, Callable[..., Any]] = {
    "truncate": truncate,
    "format_date": format_date,
}


class TemplateRenderer(Protocol):
    def render(
        self,
        template_source: str,
        data: Mapping[str, Any],
        funcs: TemplateFuncs,
        name: str = "content",
    ) -> str:
        """Render ``template_source`` or raise ``TemplateError``."""


class JinjaTemplateRenderer:
    def __init__(self) -> None:
        self._environment = Environment(
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render(
        self,
        template_source: str,
        data: Mapping[str, Any],
        funcs: TemplateFuncs,
        name: str = "content",
    ) -> str:
        try:
            template = self._environment.from_string(template_source)
        except TemplateSyntaxError as exc:
            raise TemplateError(f"line {exc.lineno}: {exc.message}", name) from exc

        context: dict[str, Any] = dict(funcs)
        context.update(data)
        try:
            return template.render(context)
        except (JinjaTemplateError, TypeError, ValueError, AttributeError) as exc:
            raise TemplateError(str(exc), name) from exc


@dataclass(frozen=True)
class ChangelogTemplates:
    content: str = DEFAULT_CONTENT_TEMPLATE
    header: str = ""
    footer: str = ""

    @property
    def wraps_content(self) -> bool:
        return bool(self.header or self.footer)


def document_data(document: ChangelogDocument) -> dict[str, Any]:
    return {
        "version": document.version,
        "current_date": document.current_date,
        "sections": document.sections,
        "initial_commit_label": INITIAL_COMMIT_LABEL,
        "current_state_label": CURRENT_STATE_LABEL,
    }


def render_content(
    renderer: TemplateRenderer,
    document: ChangelogDocument,
    template: str = DEFAULT_CONTENT_TEMPLATE,
    funcs: TemplateFuncs = DEFAULT_FUNCS,
) -> str:
    rendered = renderer.render(template, document_data(document), funcs, name="content")
    return rendered.rstrip("\n") + "\n"


def render_header(
    renderer: TemplateRenderer,
    template: str,
    version: str,
    current_date: datetime,
    funcs: TemplateFuncs = DEFAULT_FUNCS,
) -> str:
    data = {"version": version, "current_date": current_date}
    return renderer.render(template, data, funcs, name="header").rstrip("\n")


def render_footer(
    renderer: TemplateRenderer,
    template: str,
    current_date: datetime,
    funcs: TemplateFuncs = DEFAULT_FUNCS,
) -> str:
    data = {"current_date": current_date}
    return renderer.render(template, data, funcs, name="footer").rstrip("\n")
