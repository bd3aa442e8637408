"""Merge generated source files into one self-contained HTML document."""

from core.bridge import INSTRUMENTATION_SCRIPT

PLACEHOLDER_HTML = "<p>No index.html file found to render.</p>"


def compose_preview(files, instrument=False):
    """Splice CSS and JS files into index.html for sandboxed rendering.

    Styles go before the first ``</head>`` and scripts before the first
    ``</body>``, each in collection order. With ``instrument`` the console
    bridge script is placed ahead of the styles. Returns PLACEHOLDER_HTML
    when there is no index.html.
    """
    entry = next((f for f in files if f.is_entry), None)
    if entry is None:
        return PLACEHOLDER_HTML

    html = entry.content

    head_parts = []
    if instrument:
        head_parts.append(INSTRUMENTATION_SCRIPT)
    head_parts.extend(
        f"<style>\n{f.content}\n</style>"
        for f in files if f.name.lower().endswith(".css")
    )
    html = html.replace("</head>", "\n".join(head_parts) + "\n</head>", 1)

    scripts = "\n".join(
        f"<script>\n{f.content}\n</script>"
        for f in files if f.name.lower().endswith(".js")
    )
    html = html.replace("</body>", scripts + "\n</body>", 1)

    return html
