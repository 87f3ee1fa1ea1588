"""Read-only CSS-selector view over a parsed HTML document."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag


class DocumentView:
    """Thin query surface over BeautifulSoup.

    Extractors only ever read through this class, so one parsed tree can be
    shared by all of them within a single request.
    """

    def __init__(self, html: str):
        self.raw = html or ""
        self._soup = BeautifulSoup(self.raw, "lxml")

    def select(self, selector: str) -> list[Tag]:
        return self._soup.select(selector)

    def select_one(self, selector: str) -> Tag | None:
        return self._soup.select_one(selector)

    def count(self, selector: str) -> int:
        return len(self._soup.select(selector))

    @staticmethod
    def attribute(element: Tag | None, name: str) -> str | None:
        """Attribute value as a string; multi-valued attributes are joined."""
        if element is None:
            return None
        val = element.get(name)
        if val is None:
            return None
        return val if isinstance(val, str) else " ".join(val)

    @staticmethod
    def text(element: Tag | None) -> str | None:
        if element is None:
            return None
        return element.get_text(" ", strip=True)

    def first_text(self, selector: str) -> str | None:
        return self.text(self.select_one(selector))

    def attr(self, selector: str, name: str) -> str | None:
        return self.attribute(self.select_one(selector), name)

    def meta_content(self, *, property: str | None = None, name: str | None = None) -> str | None:
        """Content of the first ``<meta>`` matching ``property`` or ``name``."""
        if property is not None:
            return self.attr(f'meta[property="{property}"]', "content")
        if name is not None:
            return self.attr(f'meta[name="{name}"]', "content")
        return None

    def meta_contents(self, *, property: str | None = None, name: str | None = None) -> list[str]:
        """Contents of every matching ``<meta>`` in document order."""
        if property is not None:
            elements = self.select(f'meta[property="{property}"]')
        elif name is not None:
            elements = self.select(f'meta[name="{name}"]')
        else:
            return []
        values = []
        for el in elements:
            content = self.attribute(el, "content")
            if content:
                values.append(content)
        return values

    def html_attribute(self, name: str) -> str | None:
        return self.attr("html", name)

    def links_with_rel(self, *rels: str) -> list[Tag]:
        """``<link>`` elements whose rel token set equals one of ``rels``.

        ``rels`` are space-separated rel values such as ``"shortcut icon"``.
        """
        wanted = [set(r.lower().split()) for r in rels]
        matches = []
        for el in self._soup.find_all("link"):
            rel = el.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            tokens = {t.lower() for t in rel}
            if tokens and tokens in wanted:
                matches.append(el)
        return matches
