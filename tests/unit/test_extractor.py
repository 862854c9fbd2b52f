"""Tests for help-center HTML extraction."""

from supportbot.content.extractor import (
    DEFAULT_TITLE,
    extract_article,
    extract_article_links,
    extract_plain_text,
    is_help_center_url,
)

PAGE_URL = "https://help.example.com/en/articles/1-reset"

ARTICLE = """
<html><head><title>Page title</title></head>
<body>
  <header>Site header</header>
  <article>
    <h1>Reset password</h1>
    <p>Open   the
       app.</p>
    <script>console.log("hidden")</script>
    <a href="/en/articles/2-more">More help</a>
    <img src="/img/a.png" alt="Screen">
    <iframe src="https://video.example.com/embed/x" title="Walkthrough"></iframe>
  </article>
</body></html>
"""


class TestExtractArticle:
    """Test cases for article extraction."""

    def test_title_and_collapsed_text(self):
        article = extract_article(ARTICLE, PAGE_URL)

        assert article.title == "Reset password"
        assert "Open the app." in article.body
        assert "Site header" not in article.body
        assert "hidden" not in article.body

    def test_media_references_are_appended(self):
        article = extract_article(ARTICLE, PAGE_URL)

        assert "More help: https://help.example.com/en/articles/2-more" in article.body
        assert "Image: Screen (https://help.example.com/img/a.png)" in article.body
        assert "Video: Walkthrough (https://video.example.com/embed/x)" in article.body

    def test_title_falls_back_to_title_tag(self):
        article = extract_article("<html><head><title>Only title</title></head><body>x</body></html>", PAGE_URL)
        assert article.title == "Only title"

    def test_untitled_article(self):
        article = extract_article("<html><body><p>Just text</p></body></html>", PAGE_URL)
        assert article.title == DEFAULT_TITLE
        assert article.body == "Just text"


class TestArticleLinks:
    """Test cases for category page link discovery."""

    CATEGORY_PAGE = """
    <html><body>
      <a href="/en/articles/1-a#section">A (anchor)</a>
      <a href="/en/articles/1-a">A</a>
      <a href="https://other.example.com/en/articles/9-x">Elsewhere</a>
      <a href="/fr/articles/3-fr">French</a>
      <a href="/en/collections/4">Collection</a>
      <a href="/en/articles/2-b">B</a>
      <a href="/en/articles/3-c">C</a>
    </body></html>
    """

    def test_links_are_filtered_deduplicated_and_capped(self):
        links = extract_article_links(
            self.CATEGORY_PAGE,
            "https://help.example.com/en/collections/1-start",
            host="help.example.com",
            path_prefix="/en/",
            limit=2,
        )

        assert links == [
            "https://help.example.com/en/articles/1-a",
            "https://help.example.com/en/articles/2-b",
        ]

    def test_is_help_center_url(self):
        assert is_help_center_url("https://help.example.com/en/articles/1", "help.example.com", "/en/")
        assert not is_help_center_url("https://help.example.com/fr/articles/1", "help.example.com", "/en/")
        assert not is_help_center_url("mailto:support@example.com", "help.example.com", "/en/")


def test_extract_plain_text_drops_chrome():
    html = "<html><body><header>Nav</header><p>Body  text</p><footer>Footer</footer></body></html>"
    assert extract_plain_text(html) == "Body text"
