from src.resolver.base import PageSnapshot
from src.utils.opengraph import build_signals, parse_meta_tags, parse_structured_data


SAMPLE_HTML = """
<!DOCTYPE html>
<html>
<head>
<meta property="og:image" content="https://scontent.cdninstagram.com/v/image.jpg" />
<meta property="og:title" content="Test Post Title" />
<meta property="og:description" content="alice.b on Instagram: sunset" />
<meta property="og:video:secure_url" content="https://scontent.cdninstagram.com/v/clip.mp4" />
<meta property="og:site_name" content="Instagram" />
</head>
<body></body>
</html>
"""

SAMPLE_HTML_REVERSED = """
<head>
<meta content="https://example.com/photo.jpg" property="og:image" />
<meta content="Reversed Order" name="og:title" />
</head>
"""

LD_JSON_HTML = """
<script type="application/ld+json">
{"@type": "SocialMediaPosting", "author": {"alternateName": "@alice.b"}}
</script>
<script type="application/ld+json">{not valid json</script>
<script type="application/ld+json">[{"@type": "ImageObject"}, 3]</script>
"""


class TestParseMetaTags:
    def test_standard_order(self):
        tags = parse_meta_tags(SAMPLE_HTML)
        assert tags["og:image"] == "https://scontent.cdninstagram.com/v/image.jpg"
        assert tags["og:title"] == "Test Post Title"
        assert tags["og:description"] == "alice.b on Instagram: sunset"
        assert tags["og:site_name"] == "Instagram"

    def test_namespaced_keys(self):
        tags = parse_meta_tags(SAMPLE_HTML)
        assert tags["og:video:secure_url"] == "https://scontent.cdninstagram.com/v/clip.mp4"

    def test_reversed_attrs(self):
        tags = parse_meta_tags(SAMPLE_HTML_REVERSED)
        assert tags["og:image"] == "https://example.com/photo.jpg"
        assert tags["og:title"] == "Reversed Order"

    def test_no_tags(self):
        assert parse_meta_tags("<html><body>No og tags</body></html>") == {}

    def test_first_occurrence_wins(self):
        html = (
            '<meta property="og:image" content="https://a.example/1.jpg">'
            '<meta property="og:image" content="https://a.example/2.jpg">'
        )
        assert parse_meta_tags(html)["og:image"] == "https://a.example/1.jpg"


class TestParseStructuredData:
    def test_valid_blocks_kept_invalid_skipped(self):
        blocks = parse_structured_data(LD_JSON_HTML)
        assert blocks == [
            {"@type": "SocialMediaPosting", "author": {"alternateName": "@alice.b"}},
            {"@type": "ImageObject"},
        ]

    def test_no_blocks(self):
        assert parse_structured_data("<html></html>") == []


class TestBuildSignals:
    def test_dom_tags_override_markup(self):
        snapshot = PageSnapshot(
            meta_tags={"og:title": "From DOM", "og:image": ""},
            markup=SAMPLE_HTML,
            final_url="https://www.instagram.com/p/XYZ/",
        )
        signals = build_signals(snapshot)
        assert signals.meta_tags["og:title"] == "From DOM"
        # empty DOM values do not clobber markup values
        assert signals.meta_tags["og:image"] == "https://scontent.cdninstagram.com/v/image.jpg"
        assert signals.final_url == "https://www.instagram.com/p/XYZ/"
        assert signals.markup == SAMPLE_HTML

    def test_structured_data_attached(self):
        signals = build_signals(PageSnapshot(markup=LD_JSON_HTML))
        assert signals.structured_data[0]["author"]["alternateName"] == "@alice.b"
