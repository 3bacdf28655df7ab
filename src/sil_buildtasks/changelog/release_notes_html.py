"""Render a markdown changelog as HTML release notes.

A fresh file gets a minimal page. An existing page is treated as XHTML: the
contents of its ``class="releasenotes"`` element are replaced and the rest of
the page is left alone. A page without such an element is not touched.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

import markdown

from sil_buildtasks.changelog.markdown import ChangelogError, strip_keep_a_changelog_head

RELEASE_NOTES_CLASS = "releasenotes"


def render_changelog_html(text: str) -> str:
    """Render changelog markdown, without any Keep a Changelog preamble, to HTML."""
    lines, _ = strip_keep_a_changelog_head(text.splitlines())
    return markdown.markdown("\n".join(lines))


def basic_release_notes_page(html: str) -> str:
    return (
        "<html><head></head><body>"
        f"<div class='{RELEASE_NOTES_CLASS}'>\n{html}</div>"
        "</body></html>"
    )


def write_release_notes_html(changelog_path: Path, html_path: Path) -> bool:
    """Write release notes into ``html_path``; return whether the file was written."""
    if not changelog_path.is_file():
        raise ChangelogError(
            reason=f"The given markdown file ({changelog_path}) does not exist.",
            hint="Pass the path of an existing markdown changelog.",
        )
    html = render_changelog_html(changelog_path.read_text(encoding="utf-8-sig"))

    if not html_path.exists():
        html_path.parent.mkdir(parents=True, exist_ok=True)
        html_path.write_text(basic_release_notes_page(html), encoding="utf-8")
        return True

    try:
        tree = ET.parse(html_path)
        rendered = ET.fromstring(f"<div>{html}</div>")
    except ET.ParseError as exc:
        raise ChangelogError(
            reason=f"Cannot update {html_path}: {exc}",
            hint="Release notes can only be merged into well-formed XHTML.",
        ) from exc

    target = _find_release_notes_element(tree.getroot())
    if target is None:
        return False
    for child in list(target):
        target.remove(child)
    target.text = None
    target.extend(rendered)
    tree.write(html_path, encoding="utf-8")
    return True


def _find_release_notes_element(root: ET.Element) -> ET.Element | None:
    for element in root.iter():
        if element.get("class") == RELEASE_NOTES_CLASS:
            return element
    return None
