from src.resolver.base import MediaItem, MediaType, RawPageSignals
from src.resolver.extractor import extract, extract_author, extract_shortcode, scan_markup

CDN = ["cdn.example", "cdninstagram.com"]

VIDEO = "https://cdn.example/a.mp4"
IMAGE = "https://cdn.example/b.jpg"


def _extract(meta_tags=None, markup="", final_url="", structured_data=None, **kwargs):
    signals = RawPageSignals(
        meta_tags=meta_tags or {},
        markup=markup,
        final_url=final_url,
        structured_data=structured_data or [],
    )
    kwargs.setdefault("cdn_hosts", CDN)
    kwargs.setdefault("platform_name", "Instagram")
    return extract(signals, **kwargs)


# ---------------------------------------------------------------------------
# Metadata tags
# ---------------------------------------------------------------------------


def test_video_tag_precedes_image_tag():
    result = _extract({"og:video": VIDEO, "og:image": IMAGE})

    assert result.media == [
        MediaItem(url=VIDEO, media_type=MediaType.VIDEO),
        MediaItem(url=IMAGE, media_type=MediaType.IMAGE),
    ]
    assert result.count == 2
    assert result.ok is True


def test_secure_video_tag_used_when_primary_missing():
    result = _extract({"og:video:secure_url": VIDEO})
    assert result.media == [MediaItem(url=VIDEO, media_type=MediaType.VIDEO)]


def test_secure_video_tag_used_when_primary_off_allow_list():
    result = _extract(
        {
            "og:video": VIDEO.replace("https:", "http:"),
            "og:video:secure_url": VIDEO,
            "og:image": IMAGE,
        }
    )
    assert result.media == [
        MediaItem(url=VIDEO, media_type=MediaType.VIDEO),
        MediaItem(url=IMAGE, media_type=MediaType.IMAGE),
    ]


def test_tag_urls_entity_decoded():
    result = _extract({"og:image": "https://cdn.example/b.jpg?a=1&amp;b=2"})
    assert result.media[0].url == "https://cdn.example/b.jpg?a=1&b=2"


def test_tag_url_off_allow_list_dropped():
    result = _extract({"og:image": "https://static.example/logo.png"})
    assert result.media == []
    assert result.ok is False


# ---------------------------------------------------------------------------
# Markup scan
# ---------------------------------------------------------------------------


def test_markup_duplicate_and_tag_url_included_once():
    markup = f'<img src="{IMAGE}"><div data-src="{IMAGE}"></div>'
    result = _extract({"og:image": IMAGE}, markup=markup)

    assert [m.url for m in result.media] == [IMAGE]


def test_scan_order_videos_then_images():
    markup = (
        '<img src="https://cdn.example/1.jpg">'
        '<video src="https://cdn.example/2.mp4"></video>'
        '<img src="https://cdn.example/3.png">'
    )
    result = _extract({"og:image": IMAGE}, markup=markup)

    assert [(m.media_type, m.url) for m in result.media] == [
        (MediaType.IMAGE, IMAGE),
        (MediaType.VIDEO, "https://cdn.example/2.mp4"),
        (MediaType.IMAGE, "https://cdn.example/1.jpg"),
        (MediaType.IMAGE, "https://cdn.example/3.png"),
    ]


def test_scan_ignores_non_cdn_and_non_media_urls():
    markup = (
        '<link href="https://static.example/font.jpg">'
        '<script src="https://cdn.example/app.js"></script>'
        '<a href="http://cdn.example/insecure.jpg">x</a>'
    )
    assert _extract(markup=markup).media == []


def test_scan_reads_json_escaped_urls():
    markup = (
        '<script>{"display_url":"https:\\/\\/scontent.cdninstagram.com\\/v\\/p.jpg'
        '?stp=dst\\u0026_nc_ht=x"}</script>'
    )
    videos, images = scan_markup(markup, CDN)
    assert videos == []
    assert images == ["https://scontent.cdninstagram.com/v/p.jpg?stp=dst&_nc_ht=x"]


def test_scan_keeps_signed_query_string():
    url = "https://scontent.cdninstagram.com/v/t51/photo.webp?stp=1&oh=abc&oe=123"
    markup = f'<img src="{url.replace("&", "&amp;")}">'
    _, images = scan_markup(markup, CDN)
    assert images == [url]


def test_fallback_scan_when_no_tags():
    markup = '<video src="https://cdn.example/only.mp4"></video>'
    result = _extract(markup=markup)
    assert result.media == [
        MediaItem(url="https://cdn.example/only.mp4", media_type=MediaType.VIDEO)
    ]


# ---------------------------------------------------------------------------
# Shortcode, author, title
# ---------------------------------------------------------------------------


def test_shortcode_from_final_url():
    assert extract_shortcode("https://www.instagram.com/p/XYZ/?img_index=1") == "XYZ"
    assert extract_shortcode("https://www.instagram.com/reel/Cx-Y_z1") == "Cx-Y_z1"
    assert extract_shortcode("https://www.instagram.com/tv/ABC#top") == "ABC"


def test_shortcode_falls_back_to_source_url():
    login = "https://www.instagram.com/accounts/login/?next=/p/XYZ/"
    assert extract_shortcode(login, "https://instagram.com/p/XYZ") == "XYZ"


def test_shortcode_absent():
    assert extract_shortcode("https://www.instagram.com/alice.b/", "") is None


def test_author_from_description():
    result = _extract({"og:description": "alice.b on Instagram: \"beach day\""})
    assert result.author == "alice.b"


def test_author_absent_when_no_match():
    result = _extract({"og:description": "12 likes, 3 comments - January 1, 2024"})
    assert result.author is None
    assert result.ok is False


def test_author_requires_a_letter_or_digit():
    result = _extract({"og:description": "Watch ... on Instagram"})
    assert result.author is None


def test_author_from_structured_data():
    blocks = [{"author": {"identifier": {"value": "@carol_99"}}}]
    assert extract_author("no handle here", "Instagram", blocks) == "carol_99"


def test_title_and_description_sanitized():
    result = _extract(
        {
            "og:title": "  <b>Alice</b> &amp; friends  ",
            "og:description": "<p>Sunset</p>",
            "og:image": IMAGE,
        }
    )
    assert result.title == "Alice & friends"
    assert result.description == "Sunset"


def test_placeholder_title_uses_shortcode():
    result = _extract(final_url="https://www.instagram.com/p/XYZ/")
    assert result.title == "Instagram post XYZ"


def test_placeholder_title_generic():
    result = _extract({"og:title": "<span></span>"})
    assert result.title == "Instagram"
    assert result.description == ""


def test_source_url_recorded():
    result = _extract(source_url="https://instagram.com/p/XYZ")
    assert result.source_url == "https://instagram.com/p/XYZ"


def test_empty_signals_never_raise():
    result = extract(RawPageSignals(), cdn_hosts=CDN, platform_name="Instagram")
    assert result.ok is False
    assert result.count == 0
    assert result.author is None
    assert result.shortcode is None
    assert result.title == "Instagram"
