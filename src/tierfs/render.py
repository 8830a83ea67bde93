"""Markdown rendering for resources served as HTML pages."""

from __future__ import annotations

import html

import markdown

from tierfs.fs.exceptions import RenderError

MARKDOWN_EXTENSIONS = [
    "tables",
    "fenced_code",
    "toc",
    "sane_lists",
    "smarty",
]

_PAGE = """<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" \
"http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
  <title>{title}</title>
  <meta http-equiv="Content-Type" content="text/html; charset=utf-8" />
{stylesheet}</head>
<body>
{body}
</body>
</html>
"""


def render_markdown(data: bytes, title: str, stylesheet: str | None = None) -> bytes:
    """Render markdown *data* to a complete XHTML page.

    Raises ``RenderError`` if *data* is not UTF-8.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise RenderError(f"Cannot render {title!r}: not UTF-8") from e

    body = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS, output_format="xhtml")
    link = ""
    if stylesheet:
        link = f'  <link rel="stylesheet" type="text/css" href="{html.escape(stylesheet)}" />\n'
    page = _PAGE.format(title=html.escape(title), stylesheet=link, body=body)
    return page.encode("utf-8")
