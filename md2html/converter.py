"""
Markdown to HTML conversion.

Renders a single document with Python-Markdown and, when templates are
configured, wraps the result in a Jinja2 page template.
"""

from pathlib import Path
from typing import Optional

import markdown
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markupsafe import Markup

from .config import DOCUMENT_EXTENSIONS
from .errors import ConversionError

# Tables, fenced code, footnotes, definition lists, attribute lists and
# heading ids. No typographic quote replacement.
MARKDOWN_EXTENSIONS = ["extra", "sane_lists", "toc"]


def output_name(name: str) -> str:
    """
    Map a source path to its HTML path.

    Examples:
        "hello.md" -> "hello.html"
        "notes/today.markdown" -> "notes/today.html"
    """
    for ext in DOCUMENT_EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)] + ".html"
    return name + ".html"


class HtmlConverter:
    """
    Converts Markdown documents to HTML files.

    The first template is the page template; every template's folder is
    on the loader path so ``{% extends %}`` and ``{% include %}`` resolve
    by file name. Templates receive ``content`` (the rendered HTML) and
    ``title`` (the document's file stem).
    """

    def __init__(self, templates: Optional[list[Path]] = None):
        self.templates = list(templates or [])
        self._environment: Optional[Environment] = None

        if self.templates:
            search_path = []
            for template in self.templates:
                folder = str(template.parent)
                if folder not in search_path:
                    search_path.append(folder)
            self._environment = Environment(
                loader=FileSystemLoader(search_path),
                autoescape=select_autoescape(["html", "htm", "xml", "tmpl"]),
            )

    def render(self, text: str) -> str:
        """Render Markdown text to an HTML fragment."""
        md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, output_format="html")
        return md.convert(text)

    def apply_templates(self, html: str, title: str) -> str:
        """Wrap rendered HTML in the page template."""
        if self._environment is None:
            return html

        try:
            template = self._environment.get_template(self.templates[0].name)
            return template.render(content=Markup(html), title=title)
        except TemplateError as e:
            raise ConversionError(f"Failed to apply template {self.templates[0]}: {e}") from e

    def convert_file(self, name: str, source_dir: Path, destination_dir: Path) -> Path:
        """
        Convert one document and write it below ``destination_dir``.

        Args:
            name: Document path relative to ``source_dir``.
            source_dir: Folder holding the Markdown sources.
            destination_dir: Folder receiving the HTML output.

        Returns:
            Path of the written HTML file.

        Raises:
            ConversionError: If the document is not UTF-8 or a template fails.
            OSError: If the document cannot be read or the output written.
        """
        source = source_dir / name
        try:
            text = source.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ConversionError(f"{source} is not valid UTF-8: {e}") from e

        html = self.apply_templates(self.render(text), title=Path(name).stem)

        output_path = destination_dir / output_name(name)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(html)

        return output_path
