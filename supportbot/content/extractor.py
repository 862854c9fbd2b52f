"""HTML extraction for help-center pages."""

from dataclasses import dataclass
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

DEFAULT_TITLE = "Untitled Article"
ARTICLE_LINK_SELECTOR = 'a[href*="/articles/"]'
VIDEO_SELECTOR = "iframe[src], video source[src], video[src]"


@dataclass(frozen=True)
class ExtractedArticle:
    """Title and plain-text body of one article page."""

    title: str
    body: str


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _content_root(soup: BeautifulSoup) -> Tag | BeautifulSoup:
    for name in ("article", "main", "body"):
        element = soup.find(name)
        if isinstance(element, Tag):
            return element
    return soup


def _media_lines(root: Tag | BeautifulSoup, page_url: str) -> list[str]:
    """Supplementary references: links, images and embedded videos."""
    lines: list[str] = []

    for link in root.select("a[href]"):
        text = link.get_text(strip=True)
        href = link.get("href")
        if href and text:
            lines.append(f"{text}: {urljoin(page_url, str(href))}")

    for img in root.select("img[src]"):
        alt = img.get("alt") or "Image"
        lines.append(f"Image: {alt} ({urljoin(page_url, str(img['src']))})")

    for video in root.select(VIDEO_SELECTOR):
        title = video.get("title") or video.get("alt") or "Video"
        lines.append(f"Video: {title} ({urljoin(page_url, str(video['src']))})")

    return lines


def extract_article(html: str, page_url: str) -> ExtractedArticle:
    """Extract title and body (text plus media references) from an article page.

    Args:
        html: Raw page HTML
        page_url: URL the page was fetched from, used to resolve relative links

    Returns:
        ExtractedArticle with collapsed whitespace
    """
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    h1 = soup.find("h1")
    if isinstance(h1, Tag):
        title = h1.get_text(strip=True)
    if not title and soup.title is not None:
        title = soup.title.get_text(strip=True)

    root = _content_root(soup)
    for tag in root(["script", "style", "noscript"]):
        tag.decompose()

    text = _collapse(root.get_text(" "))
    media = _media_lines(root, page_url)
    body = text + ("\n\n" + "\n".join(media) if media else "")

    return ExtractedArticle(title=title or DEFAULT_TITLE, body=body)


def extract_plain_text(html: str) -> str:
    """Visible text of a page with whitespace collapsed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "header", "footer"]):
        tag.decompose()
    return _collapse(soup.get_text(" "))


def is_help_center_url(url: str, host: str, path_prefix: str) -> bool:
    """Whether url lives under the help center's host and path prefix."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and parsed.hostname == host and parsed.path.startswith(
        path_prefix
    )


def extract_article_links(
    html: str,
    page_url: str,
    host: str,
    path_prefix: str,
    limit: int,
) -> list[str]:
    """Article links of a category page, de-duplicated in discovery order.

    Args:
        html: Category page HTML
        page_url: URL of the category page
        host: Allowed help-center hostname
        path_prefix: Allowed path prefix
        limit: Maximum number of links to return

    Returns:
        Absolute article URLs without fragments
    """
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    seen: set[str] = set()

    for anchor in soup.select(ARTICLE_LINK_SELECTOR):
        href = anchor.get("href")
        if not href:
            continue
        url, _ = urldefrag(urljoin(page_url, str(href)))
        if url in seen or not is_help_center_url(url, host, path_prefix):
            continue
        seen.add(url)
        links.append(url)
        if len(links) >= limit:
            break

    return links
