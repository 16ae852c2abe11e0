"""
Minimal server-rendered HTML.

Pages are plain strings; no template engine. All interpolated values are
escaped.
"""

from html import escape

from fastapi.responses import HTMLResponse

ERROR_PAGES = {
    401: ("Authentication Required", "Please open this app from inside the host platform."),
    403: ("Access Denied", "You don't have access to this experience."),
    502: ("Service Unavailable", "We couldn't reach the platform. Please try again in a moment."),
    500: ("Server Error", "Something went wrong on our side. Please try again."),
}

_DOCUMENT = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
</head>
<body>
<main>
<h1>{title}</h1>
{body}
</main>
</body>
</html>
"""


def paragraph(text: str) -> str:
    return f"<p>{escape(text)}</p>"


def link(href: str, text: str) -> str:
    return f'<p><a href="{escape(href, quote=True)}">{escape(text)}</a></p>'


def render_page(title: str, body: str = "", status_code: int = 200) -> HTMLResponse:
    """
    Render a page.

    Args:
        title: Page title (escaped)
        body: Pre-built HTML fragment (use paragraph()/link() to build it)
        status_code: HTTP status
    """
    return HTMLResponse(_DOCUMENT.format(title=escape(title), body=body), status_code=status_code)


def render_error_page(status_code: int, message: str | None = None) -> HTMLResponse:
    """Error page for a gate failure, keeping the semantic status."""
    title, default_message = ERROR_PAGES.get(status_code, ERROR_PAGES[500])
    return render_page(title, paragraph(message or default_message), status_code=status_code)
