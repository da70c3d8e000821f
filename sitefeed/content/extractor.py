"""
Post Page Extractor
===================

Reads a rendered post page from the build output and isolates the article
body: the contents of ``<main>`` minus the sections the site generates around
every post (comments, media links, external links).
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from bs4 import BeautifulSoup

from sitefeed.utils.exceptions import PostContentError, ErrorCode

PARSER = "html.parser"


class PostPageExtractor:
    """Locate rendered post pages and extract their main content region."""

    def __init__(self, posts_path: Union[str, Path], autogenerated_section_ids: Iterable[str]):
        """
        Args:
            posts_path: Directory holding one ``<slug>/index.html`` per post
            autogenerated_section_ids: Ids of generated sections to remove
        """
        self.posts_path = Path(posts_path)
        self.autogenerated_section_ids = list(autogenerated_section_ids)

    def page_path(self, slug: str) -> Path:
        return self.posts_path / slug / "index.html"

    def read_post_page(self, slug: str) -> str:
        """Read the rendered HTML of a post.

        Raises:
            PostContentError: If the page is missing or unreadable
        """
        path = self.page_path(slug)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise PostContentError(
                f"Rendered page not found: {path}",
                slug=slug,
                error_code=ErrorCode.CONTENT_SOURCE_MISSING,
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise PostContentError(
                f"Rendered page unreadable: {path}: {e}",
                slug=slug,
                error_code=ErrorCode.CONTENT_SOURCE_MISSING,
            ) from e

    def extract_main_region(self, html_content: str, slug: Optional[str] = None) -> str:
        """Return the inner HTML of the first ``<main>`` with generated sections removed.

        Raises:
            PostContentError: If the page has no ``<main>`` element
        """
        soup = BeautifulSoup(html_content, PARSER)
        main = soup.find("main")
        if main is None:
            raise PostContentError(
                "Rendered page has no <main> element",
                slug=slug,
                error_code=ErrorCode.CONTENT_EXTRACTION_FAILED,
            )

        self._remove_autogenerated_sections(main)
        return main.decode_contents()

    def _remove_autogenerated_sections(self, main) -> None:
        for section_id in self.autogenerated_section_ids:
            for element in main.find_all(id=section_id):
                if not element.decomposed:
                    element.decompose()
