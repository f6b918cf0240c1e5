from markdown_it import MarkdownIt
import bleach
from bs4 import BeautifulSoup

# Notes are short free text; keep the allowed markup small
_md = MarkdownIt()
_ALLOWED_TAGS = [
    "p", "br", "pre", "code", "blockquote",
    "ul", "ol", "li",
    "em", "strong", "del", "a",
]
_ALLOWED_ATTRS = {"a": ["href", "title", "target", "rel"]}


def _force_links_new_tab(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for a in soup.find_all("a"):
        href = (a.get("href") or "").strip()
        if not href:
            continue
        a["target"] = "_blank"
        a["rel"] = "noopener nofollow"
    return str(soup)


def render_markdown(text: str) -> str:
    if not text:
        return ""
    html = _force_links_new_tab(_md.render(text))
    # Sanitize last so only allowed tags/attrs survive
    return bleach.clean(html, tags=_ALLOWED_TAGS, attributes=_ALLOWED_ATTRS, strip=True, protocols=["http", "https", "mailto"])
