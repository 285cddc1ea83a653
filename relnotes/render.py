"""Changelog rendering: Markdown via the Jinja2 template, HTML via Python-Markdown."""

from pathlib import Path

import markdown
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from relnotes.models import ReleaseVersion, TransformOutput

TEMPLATE_DIR = Path(__file__).parent / "templates"
CHANGELOG_TEMPLATE = "changelog.md.j2"


def _environment() -> Environment:
    # Plain-text Markdown output: no HTML autoescaping of ticket summaries
    return Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def render_changelog(
    output: TransformOutput,
    base_url: str,
    release_versions: list[ReleaseVersion] | None = None,
    include_pending_approval_section: bool = False,
) -> str:
    """Render the changelog message as Markdown."""
    template = _environment().get_template(CHANGELOG_TEMPLATE)
    return template.render(
        tickets=output.tickets,
        commits=output.commits,
        base_url=base_url.rstrip("/"),
        release_versions=release_versions or [],
        include_pending_approval_section=include_pending_approval_section,
    )


def render_html(markdown_text: str) -> str:
    """Convert the Markdown changelog to an HTML email body."""
    return markdown.markdown(markdown_text)
