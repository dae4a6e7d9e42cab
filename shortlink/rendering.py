"""HTML rendering for text links and the service's static pages.

Text links are always HTML-escaped. When the content carries simple structural
markers it is lightly formatted; the formatting is cosmetic, not a Markdown
implementation.

Structure Detection
===================
::
    heading      ^#{1,6} text
    emphasis     **bold**  __bold__  *italic*
    list item    ^- item   ^* item   ^1. item
    code fence   ```
    blockquote   ^> text

Each marker is checked on its own; any single match makes the whole content
"structured".

Functions:
    is_structured():  Whether content carries any structural marker.
    format_structured():  Escaped, lightly formatted HTML fragment.
    render_text_page():  Full page for a text link, optionally as a preview.
    render_landing_page(), render_admin_login_page(),
    render_admin_dashboard_page(), render_not_found_page():  Static pages.
"""

import html
import re

__all__ = [
    "STRUCTURE_PATTERNS",
    "format_structured",
    "is_structured",
    "render_admin_dashboard_page",
    "render_admin_login_page",
    "render_landing_page",
    "render_not_found_page",
    "render_text_page",
    "truncate_for_preview",
]

STRUCTURE_PATTERNS: dict[str, re.Pattern[str]] = {
    "heading": re.compile(r"^#{1,6}\s+\S", re.MULTILINE),
    "emphasis": re.compile(r"\*\*[^*\n]+\*\*|__[^_\n]+__|(?<![*\w])\*[^*\s][^*\n]*\*(?![*\w])"),
    "list": re.compile(r"^\s*(?:[-*+]|\d+\.)\s+\S", re.MULTILINE),
    "code_fence": re.compile(r"^\s*```", re.MULTILINE),
    "blockquote": re.compile(r"^\s*>\s?\S", re.MULTILINE),
}

_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_UNORDERED_ITEM = re.compile(r"^\s*[-*+]\s+(.*)$")
_ORDERED_ITEM = re.compile(r"^\s*\d+\.\s+(.*)$")
# blockquote markers are matched after escaping, where ">" became "&gt;"
_QUOTE = re.compile(r"^\s*&gt;\s?(.*)$")
_BOLD = re.compile(r"\*\*([^*\n]+)\*\*|__([^_\n]+)__")
_ITALIC = re.compile(r"(?<![*\w])\*([^*\s][^*\n]*)\*(?![*\w])")
_INLINE_CODE = re.compile(r"`([^`\n]+)`")

PAGE_STYLE = """
body{font-family:system-ui,-apple-system,Segoe UI,Roboto,sans-serif;max-width:760px;margin:2rem auto;padding:0 1rem;color:#1e293b;background:#f8fafc}
pre{background:#0f172a;color:#e2e8f0;padding:1rem;border-radius:8px;overflow-x:auto}
blockquote{border-left:4px solid #cbd5e1;margin:0;padding-left:1rem;color:#475569}
.content{background:#fff;border-radius:12px;padding:1.5rem;box-shadow:0 1px 3px rgba(0,0,0,.08);white-space:normal}
.plain{white-space:pre-wrap;word-break:break-word}
.notice{color:#64748b;font-size:.9rem}
table{width:100%;border-collapse:collapse}td,th{padding:.4rem;border-top:1px solid #e2e8f0;text-align:left}
"""


def is_structured(content: str) -> bool:
    return any(pattern.search(content) for pattern in STRUCTURE_PATTERNS.values())


def _inline(line: str) -> str:
    line = _INLINE_CODE.sub(r"<code>\1</code>", line)
    line = _BOLD.sub(lambda m: f"<strong>{m.group(1) or m.group(2)}</strong>", line)
    return _ITALIC.sub(r"<em>\1</em>", line)


def format_structured(content: str) -> str:
    """Render structured content as an escaped HTML fragment."""
    out: list[str] = []
    open_list: str | None = None
    in_code = False

    def close_list() -> None:
        nonlocal open_list
        if open_list:
            out.append(f"</{open_list}>")
            open_list = None

    for raw_line in content.splitlines():
        if raw_line.strip().startswith("```"):
            close_list()
            out.append("</code></pre>" if in_code else "<pre><code>")
            in_code = not in_code
            continue

        line = html.escape(raw_line)
        if in_code:
            out.append(line)
            continue

        heading = _HEADING.match(line)
        unordered = _UNORDERED_ITEM.match(line)
        ordered = _ORDERED_ITEM.match(line)
        quote = _QUOTE.match(line)

        if heading:
            close_list()
            level = len(heading.group(1))
            out.append(f"<h{level}>{_inline(heading.group(2))}</h{level}>")
        elif unordered or ordered:
            tag = "ul" if unordered else "ol"
            if open_list != tag:
                close_list()
                out.append(f"<{tag}>")
                open_list = tag
            out.append(f"<li>{_inline((unordered or ordered).group(1))}</li>")
        elif quote:
            close_list()
            out.append(f"<blockquote>{_inline(quote.group(1))}</blockquote>")
        elif not line.strip():
            close_list()
        else:
            close_list()
            out.append(f"<p>{_inline(line)}</p>")

    close_list()
    if in_code:
        out.append("</code></pre>")
    return "\n".join(out)


def truncate_for_preview(content: str, max_chars: int) -> tuple[str, bool]:
    if len(content) <= max_chars:
        return content, False
    return content[:max_chars].rstrip() + "…", True


def _page(title: str, body: str) -> str:
    return (
        "<!doctype html><html lang=en><head><meta charset=utf-8>"
        '<meta name=viewport content="width=device-width, initial-scale=1">'
        f"<title>{html.escape(title)}</title><style>{PAGE_STYLE}</style></head>"
        f"<body>{body}</body></html>"
    )


def render_text_page(slug: str, content: str, preview_chars: int | None = None) -> str:
    """Render a text link.

    With ``preview_chars`` set, the content is cut to that many characters
    before formatting and the page says so.
    """
    truncated = False
    if preview_chars is not None:
        content, truncated = truncate_for_preview(content, preview_chars)

    if is_structured(content):
        body = f'<div class="content">{format_structured(content)}</div>'
    else:
        body = f'<div class="content plain">{html.escape(content)}</div>'

    if preview_chars is not None:
        notice = "Preview, content truncated." if truncated else "Preview."
        full_link = f'<a href="/{html.escape(slug)}">View full content</a>'
        body += f'<p class="notice">{notice} {full_link}</p>'

    return _page(f"/{slug}", body)


def render_not_found_page(slug: str) -> str:
    return _page(
        "Link not found",
        f"<h1>Link not found</h1><p>The short link <code>/{html.escape(slug)}</code> does not exist.</p>",
    )


def render_landing_page(app_name: str) -> str:
    return _page(
        app_name,
        f"""<h1>{html.escape(app_name)}</h1>
<div class="content">
<form id="shorten">
<p><textarea id="content" rows="4" style="width:100%" placeholder="A URL to shorten, or text to share" required></textarea></p>
<p><input id="slug" placeholder="Custom slug (optional)">
<label><input id="useAI" type="checkbox"> Suggest a slug from the content</label></p>
<p><button type="submit">Shorten</button></p>
</form>
<p id="result" class="notice"></p>
</div>
<script>
document.getElementById('shorten').addEventListener('submit', async (e) => {{
  e.preventDefault();
  const result = document.getElementById('result');
  const res = await fetch('/api/shorten', {{
    method: 'POST',
    headers: {{'Content-Type': 'application/json'}},
    body: JSON.stringify({{
      content: document.getElementById('content').value,
      slug: document.getElementById('slug').value || undefined,
      useAI: document.getElementById('useAI').checked
    }})
  }});
  const data = await res.json();
  result.textContent = res.ok ? data.shortUrl : data.error;
}});
</script>""",
    )


def render_admin_login_page(app_name: str) -> str:
    return _page(
        f"{app_name} admin",
        """<h1>Admin login</h1>
<div class="content">
<form id="login"><p><input id="password" type="password" placeholder="Password" required>
<button type="submit">Sign in</button></p></form>
<p id="error" class="notice"></p>
</div>
<script>
document.getElementById('login').addEventListener('submit', async (e) => {
  e.preventDefault();
  const res = await fetch('/admin/api/login', {
    method: 'POST',
    headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({password: document.getElementById('password').value})
  });
  if (res.ok) { window.location.href = '/admin/dashboard'; return; }
  document.getElementById('error').textContent = (await res.json()).error;
});
</script>""",
    )


def render_admin_dashboard_page(app_name: str) -> str:
    return _page(
        f"{app_name} dashboard",
        """<h1>Links</h1>
<div class="content">
<table><thead><tr><th>Slug</th><th>Target</th><th>Type</th><th>Clicks</th><th>Created</th><th></th></tr></thead>
<tbody id="links"></tbody></table>
</div>
<script>
function cell(text) { const td = document.createElement('td'); td.textContent = text; return td; }
async function loadLinks() {
  const res = await fetch('/admin/api/links');
  const links = await res.json();
  const body = document.getElementById('links');
  body.replaceChildren();
  for (const link of links) {
    const row = document.createElement('tr');
    row.append(cell('/' + link.slug), cell(link.is_text ? 'TEXT' : link.target),
               cell(link.is_text ? 'Text' : 'URL'), cell(link.clicks), cell(link.created_at));
    const actions = document.createElement('td');
    const button = document.createElement('button');
    button.textContent = 'Delete';
    button.onclick = () => deleteLink(link.id, link.slug);
    actions.append(button);
    row.append(actions);
    body.append(row);
  }
}
async function deleteLink(id, slug) {
  if (!confirm('Delete /' + slug + '?')) return;
  await fetch('/admin/api/links/' + id, {method: 'DELETE'});
  loadLinks();
}
loadLinks();
</script>""",
    )
