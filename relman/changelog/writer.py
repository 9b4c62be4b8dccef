import logging
from dataclasses import dataclass
from pathlib import Path

from relman.changelog.merge import assemble, merge
from relman.changelog.render import (
    DEFAULT_CONTENT_TEMPLATE,
    ChangelogTemplates,
    JinjaTemplateRenderer,
    TemplateRenderer,
    render_content,
    render_footer,
    render_header,
)
from relman.changelog.types import ChangelogDocument
from relman.config.release_config import ChangelogConfig
from relman.core.errors import ChangelogIOError, ConfigError

logger = logging.getLogger("relman.changelog")


@dataclass(frozen=True)
class ComposedChangelog:
    text: str
    appended: bool = False
    degraded: bool = False
    warning: str | None = None


def load_templates(config: ChangelogConfig) -> ChangelogTemplates:
    content = config.content_template or DEFAULT_CONTENT_TEMPLATE
    if config.template_path:
        template_path = Path(config.template_path)
        try:
            content = template_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                f"Failed to read changelog template at ({template_path}): {exc}"
            ) from exc
    return ChangelogTemplates(
        content=content,
        header=config.header_template,
        footer=config.footer_template,
    )


class ChangelogWriter:
    def __init__(
        self,
        templates: ChangelogTemplates | None = None,
        renderer: TemplateRenderer | None = None,
    ):
        self._templates = templates or ChangelogTemplates()
        self._renderer = renderer or JinjaTemplateRenderer()

    @staticmethod
    def read_previous(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ChangelogIOError(f"Failed to read changelog at ({path}): {exc}") from exc

    def compose(self, document: ChangelogDocument, previous_text: str | None) -> ComposedChangelog:
        templates = self._templates
        content = render_content(self._renderer, document, templates.content)
        header = ""
        footer = ""
        if templates.header:
            header = render_header(
                self._renderer, templates.header, document.version, document.current_date
            )
        if templates.footer:
            footer = render_footer(self._renderer, templates.footer, document.current_date)

        if previous_text is None:
            return ComposedChangelog(text=self._finish(assemble(header, content, footer)))

        merged = merge(content, previous_text, header_configured=templates.wraps_content)
        return ComposedChangelog(
            text=self._finish(assemble(header, merged.content, footer)),
            appended=True,
            degraded=merged.degraded,
            warning=merged.warning,
        )

    def write(self, document: ChangelogDocument, path: Path, append: bool) -> ComposedChangelog:
        previous_text = self.read_previous(path) if append else None
        if append and previous_text is None:
            logger.info(
                "No previous changelog at %s, writing a new one",
                path,
                extra={"path": str(path)},
            )

        # everything is rendered before the file is touched
        composed = self.compose(document, previous_text)

        try:
            if path.parent != Path(""):
                path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(composed.text, encoding="utf-8")
        except OSError as exc:
            raise ChangelogIOError(f"Failed to write changelog at ({path}): {exc}") from exc

        logger.debug(
            "changelog written",
            extra={"path": str(path), "version": document.version},
        )
        return composed

    @staticmethod
    def _finish(text: str) -> str:
        return text if text.endswith("\n") else text + "\n"
