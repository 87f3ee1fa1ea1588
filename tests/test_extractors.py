"""Tests for the facet extractors."""

from linkmeta.services.candidates import CandidateKind, parse_dimension, parse_sizes
from linkmeta.services.document import DocumentView
from linkmeta.services.extractors import (
    clean_text,
    extract_appearance,
    extract_basic,
    extract_canonical,
    extract_dates,
    extract_description,
    extract_extended,
    extract_icon_candidates,
    extract_image_candidates,
    extract_manifest_icons,
    extract_meta_image_candidates,
    extract_social,
    extract_structure,
    extract_title,
    find_manifest_url,
)
from linkmeta.services.url_guard import validate_url

ARTICLE_HTML = """
<!DOCTYPE html>
<html lang="en-GB">
<head>
  <meta charset="utf-8">
  <title>  Plain   Title  </title>
  <meta property="og:title" content="OG Title">
  <meta name="twitter:title" content="Twitter Title">
  <meta name="description" content="Meta description">
  <meta name="twitter:description" content="Twitter description">
  <meta property="og:site_name" content="Example Site">
  <meta property="og:image" content="/images/hero.png">
  <meta property="og:image:width" content="1200">
  <meta property="og:image:height" content="630">
  <meta property="og:image" content="https://cdn.example.com/second.jpg">
  <meta name="twitter:image" content="/images/card.png">
  <meta name="keywords" content="news, tech , , python">
  <meta name="twitter:card" content="summary_large_image">
  <meta name="twitter:site" content="@example">
  <meta name="twitter:creator" content="@jdoe">
  <meta property="fb:app_id" content="12345">
  <meta property="article:published_time" content="2024-05-01T10:00:00Z">
  <meta property="article:modified_time" content="not-a-date">
  <meta name="theme-color" content="#112233" media="(prefers-color-scheme: dark)">
  <meta name="generator" content="WordPress 6.4">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta name="robots" content="index,follow">
  <link rel="canonical" href="/canonical-page">
  <link rel="icon" href="/favicon-32.png" sizes="32x32" type="image/png">
  <link rel="shortcut icon" href="/favicon.ico">
  <link rel="apple-touch-icon" href="/apple.png">
  <link rel="manifest" href="/site.webmanifest">
  <script src="/app.js"></script>
</head>
<body>
  <h1>Heading One</h1>
  <h2>Sub A</h2><h2>Sub B</h2>
  <p>First paragraph of the article.</p>
  <img src="data:image/gif;base64,R0lGOD" width="500">
  <img src="/small.png" width="50">
  <img src="/big.jpg" width="640px" height="480" alt="A big picture">
  <form action="/search"></form>
  <iframe src="https://www.youtube.com/embed/xyz"></iframe>
</body>
</html>
"""


def _doc(html: str) -> DocumentView:
    return DocumentView(html)


class TestHelpers:
    def test_clean_text_collapses_whitespace(self):
        assert clean_text("  a \n\t b  ") == "a b"

    def test_clean_text_strips_markup(self):
        assert clean_text("<b>Bold</b> title") == "Bold title"

    def test_clean_text_empty(self):
        assert clean_text("   ") is None
        assert clean_text(None) is None

    def test_parse_sizes(self):
        assert parse_sizes("180x180") == (180, 180)
        assert parse_sizes("32X16 64x64") == (32, 16)
        assert parse_sizes("any") is None
        assert parse_sizes(None) is None

    def test_parse_dimension(self):
        assert parse_dimension("300px") == 300
        assert parse_dimension("100%") == 100
        assert parse_dimension("auto") is None


class TestTitle:
    def test_og_title_wins(self):
        assert extract_title(_doc(ARTICLE_HTML)) == "OG Title"

    def test_twitter_then_title_tag(self):
        html = '<html><head><meta name="twitter:title" content=" "><title> Tag Title </title></head></html>'
        assert extract_title(_doc(html)) == "Tag Title"

    def test_falls_back_to_h1_then_h2(self):
        assert extract_title(_doc("<body><h1>  Head </h1><h2>Sub</h2></body>")) == "Head"
        assert extract_title(_doc("<body><h1> </h1><h2>Sub</h2></body>")) == "Sub"

    def test_falls_back_to_site_name(self):
        html = '<head><meta property="og:site_name" content="Site"></head><body></body>'
        assert extract_title(_doc(html)) == "Site"

    def test_absent(self):
        assert extract_title(_doc("<body><p>nothing</p></body>")) is None


class TestDescription:
    def test_chain_order(self):
        assert extract_description(_doc(ARTICLE_HTML)) == "Twitter description"

    def test_meta_description_last(self):
        html = '<meta name="description" content="  Plain  desc ">'
        assert extract_description(_doc(html)) == "Plain desc"

    def test_og_first(self):
        html = (
            '<meta name="description" content="d">'
            '<meta property="og:description" content="og d">'
        )
        assert extract_description(_doc(html)) == "og d"


class TestImageCandidates:
    def test_union_in_discovery_order(self):
        candidates = extract_image_candidates(_doc(ARTICLE_HTML))
        kinds = [c.kind for c in candidates]
        assert kinds == [
            CandidateKind.OG,
            CandidateKind.OG,
            CandidateKind.TWITTER,
            CandidateKind.APPLE_TOUCH_ICON,
            CandidateKind.CONTENT_IMAGE,
        ]

    def test_og_structured_dimensions(self):
        first, second = extract_image_candidates(_doc(ARTICLE_HTML))[:2]
        assert (first.reference, first.width, first.height) == ("/images/hero.png", 1200, 630)
        assert second.width is None

    def test_content_image_threshold_and_data_uri(self):
        content = extract_image_candidates(_doc(ARTICLE_HTML))[-1]
        assert content.reference == "/big.jpg"
        assert content.width == 640
        assert content.alt == "A big picture"

    def test_width_must_exceed_threshold(self):
        html = '<img src="/exact.png" width="100"><img src="/ok.png" width="101">'
        (only,) = extract_image_candidates(_doc(html))
        assert only.reference == "/ok.png"

    def test_data_uri_og_image_filtered(self):
        html = '<meta property="og:image" content="data:image/png;base64,AAA">'
        assert extract_image_candidates(_doc(html)) == []

    def test_twitter_image_src(self):
        html = '<meta name="twitter:image:src" content="/t.png">'
        (c,) = extract_image_candidates(_doc(html))
        assert c.kind == CandidateKind.TWITTER

    def test_meta_images_need_declared_width(self):
        html = (
            '<meta property="og:image" content="/small.png">'
            '<meta property="og:image:width" content="300">'
            '<meta property="og:image" content="/unsized.png">'
            '<meta property="og:image" content="/big.png">'
            '<meta property="og:image:width" content="1200">'
            '<meta property="og:image:height" content="630">'
            '<meta name="twitter:image" content="/t.png">'
        )
        meta = extract_meta_image_candidates(_doc(html))
        assert [(c.reference, c.width, c.height) for c in meta] == [
            ("/small.png", 300, None),
            ("/big.png", 1200, 630),
        ]


class TestIconCandidates:
    def test_defaults(self):
        icons = extract_icon_candidates(_doc(ARTICLE_HTML))
        by_ref = {c.reference: c for c in icons}
        assert by_ref["/favicon-32.png"].sizes == "32x32"
        assert by_ref["/favicon-32.png"].type == "image/png"
        assert by_ref["/favicon.ico"].sizes == "16x16"
        assert by_ref["/apple.png"].sizes == "180x180"
        assert by_ref["/apple.png"].kind == CandidateKind.APPLE_TOUCH_ICON

    def test_mask_icon_ignored(self):
        html = '<link rel="mask-icon" href="/mask.svg"><link rel="stylesheet" href="/s.css">'
        assert extract_icon_candidates(_doc(html)) == []

    def test_precomposed_apple_icon(self):
        html = '<link rel="apple-touch-icon-precomposed" href="/p.png" sizes="152x152">'
        (c,) = extract_icon_candidates(_doc(html))
        assert c.sizes == "152x152"


class TestManifest:
    BASE = validate_url("https://site.test/page")

    def test_find_manifest_url(self):
        assert find_manifest_url(_doc(ARTICLE_HTML), self.BASE) == "https://site.test/site.webmanifest"

    def test_no_manifest(self):
        assert find_manifest_url(_doc("<head></head>"), self.BASE) is None

    def test_icons_resolved_against_manifest(self):
        manifest = {
            "icons": [
                {"src": "icons/192.png", "sizes": "192x192", "type": "image/png"},
                {"src": "/512.png", "sizes": "512x512", "purpose": "maskable"},
                {"src": "data:image/png;base64,AA"},
                {"sizes": "48x48"},
                "junk",
            ]
        }
        icons = extract_manifest_icons(manifest, "https://static.site.test/app/manifest.json")
        assert [c.reference for c in icons] == [
            "https://static.site.test/app/icons/192.png",
            "https://static.site.test/512.png",
        ]
        assert icons[0].purpose == "any"
        assert icons[1].purpose == "maskable"
        assert icons[1].type == "image/png"
        assert all(c.kind == CandidateKind.MANIFEST for c in icons)

    def test_malformed_manifest(self):
        assert extract_manifest_icons([], "https://site.test/m.json") == []
        assert extract_manifest_icons({"icons": "nope"}, "https://site.test/m.json") == []


class TestScalarGroups:
    def test_basic(self):
        basic = extract_basic(_doc(ARTICLE_HTML), "text/html; charset=utf-8")
        assert basic.keywords == ["news", "tech", "python"]
        assert basic.author == "jdoe"
        assert basic.content_type == "text/html"
        assert basic.locale == "en-GB"

    def test_basic_defaults(self):
        basic = extract_basic(_doc("<html><body></body></html>"))
        assert basic.keywords is None
        assert basic.author is None
        assert basic.content_type == "website"
        assert basic.locale == "en_US"

    def test_og_type_and_locale_preferred(self):
        html = (
            '<html lang="de"><head><meta property="og:type" content="article">'
            '<meta property="og:locale" content="fr_FR"></head></html>'
        )
        basic = extract_basic(_doc(html), "text/html")
        assert basic.content_type == "article"
        assert basic.locale == "fr_FR"

    def test_dates_passthrough(self):
        dates = extract_dates(_doc(ARTICLE_HTML), "2024-06-01T00:00:00+00:00")
        assert dates.published == "2024-05-01T10:00:00Z"
        assert dates.modified == "not-a-date"
        assert dates.fetched == "2024-06-01T00:00:00+00:00"

    def test_social(self):
        social = extract_social(_doc(ARTICLE_HTML))
        assert social.twitter.card == "summary_large_image"
        assert social.twitter.site == "@example"
        assert social.twitter.creator == "@jdoe"
        assert social.facebook.app_id == "12345"
        assert social.facebook.admins is None

    def test_appearance(self):
        appearance = extract_appearance(_doc(ARTICLE_HTML))
        assert appearance.theme_color == "#112233"
        assert appearance.has_dark_mode is True

    def test_structure(self):
        structure = extract_structure(_doc(ARTICLE_HTML))
        assert structure.has_javascript is True
        assert structure.has_forms is True
        assert structure.has_video is True
        assert structure.image_count == 3
        assert structure.generator == "WordPress 6.4"
        assert structure.language == "en-GB"
        assert structure.page_size.endswith(" KB")

    def test_canonical(self):
        assert extract_canonical(_doc(ARTICLE_HTML)) == "/canonical-page"
        assert extract_canonical(_doc("<head></head>")) is None


class TestExtended:
    def test_extended_fields(self):
        ext = extract_extended(_doc(ARTICLE_HTML))
        assert ext.first_paragraph == "First paragraph of the article...."
        assert ext.headings.h1 == ["Heading One"]
        assert ext.headings.h2 == ["Sub A", "Sub B"]
        assert ext.headings.h3 == []
        assert ext.technologies.wordpress is True
        assert ext.technologies.angular is False
        assert ext.charset == "utf-8"
        assert ext.viewport == "width=device-width, initial-scale=1"
        assert ext.robots == "index,follow"
        assert ext.language == "en-GB"

    def test_first_paragraph_truncated(self):
        ext = extract_extended(_doc(f"<p>{'x' * 500}</p>"))
        assert ext.first_paragraph == "x" * 200 + "..."

    def test_http_equiv_charset_and_nextjs(self):
        html = (
            '<head><meta http-equiv="content-type" content="text/html; charset=ISO-8859-1"></head>'
            '<body><div id="app"></div><script id="__NEXT_DATA__"></script></body>'
        )
        ext = extract_extended(_doc(html))
        assert ext.charset == "ISO-8859-1"
        assert ext.technologies.nextjs is True
        assert ext.technologies.vue is True
        assert ext.technologies.react is True

    def test_powered_by_header(self):
        ext = extract_extended(_doc("<p>hi</p>"), powered_by="Next.js")
        assert ext.technologies.nextjs is True
