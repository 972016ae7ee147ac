import io
from concurrent.futures import ThreadPoolExecutor

import pytest

from crawlmodels.url import URL, encode_query, url_to_string


def parsed_string(raw):
    url = URL(raw)
    url.parse()
    return str(url)


def test_punycode_host():
    raw = "https://xn----8sbddjhbicfsohgbg1aeo.xn--p1ia/pic/file/map_of_sarlat.pdf"
    assert parsed_string(raw) == raw


def test_punycode_host_with_port():
    raw = "https://xn----8sbddjhbicfsohgbg1aeo.xn--p1ia:8080/pic/file/map_of_sarlat.pdf"
    assert parsed_string(raw) == raw


def test_unicode_host_to_idna_with_port():
    raw = "https://о-змладйвеклблнозеж.xn--p1ia:8080/pic/file/map_of_sarlat.pdf"
    expected = "https://xn----8sbddjhbicfsohgbg1aeo.xn--p1ia:8080/pic/file/map_of_sarlat.pdf"
    assert parsed_string(raw) == expected


def test_unicode_host_and_path():
    raw = "http://παράδειγμα.δοκιμή/Αρχική_σελίδα"
    expected = (
        "http://xn--hxajbheg2az3al.xn--jxalpdlp/"
        "%CE%91%CF%81%CF%87%CE%B9%CE%BA%CE%AE_%CF%83%CE%B5%CE%BB%CE%AF%CE%B4%CE%B1"
    )
    assert parsed_string(raw) == expected


def test_ipv6_host():
    raw = "https://[2600:4040:23c7:a620:3642:ebaa:ab23:735e]/test"
    assert parsed_string(raw) == raw


def test_ipv6_host_with_port():
    raw = "https://[2600:4040:23c7:a620:3642:ebaa:ab23:735e]:8080/test"
    assert parsed_string(raw) == raw


def test_query_with_unicode_is_encoded():
    raw = (
        "https://www.youtube.com/watch/0HBwC_wIFF4?t=18363石神視点【Minecraft】"
        "平日もど真ん中なんだから早く寝なきゃ【石神のぞみ／にじさんじ所属】"
        "https://www.youtube.com/watch/L30uAR9X8Uw?t=10100【倉持エン足中"
    )
    expected = (
        "https://www.youtube.com/watch/0HBwC_wIFF4?t=18363%E7%9F%B3%E7%A5%9E%E8%A6%96"
        "%E7%82%B9%E3%80%90Minecraft%E3%80%91%E5%B9%B3%E6%97%A5%E3%82%82%E3%81%A9%E7%9C"
        "%9F%E3%82%93%E4%B8%AD%E3%81%AA%E3%82%93%E3%81%A0%E3%81%8B%E3%82%89%E6%97%A9%E3"
        "%81%8F%E5%AF%9D%E3%81%AA%E3%81%8D%E3%82%83%E3%80%90%E7%9F%B3%E7%A5%9E%E3%81%AE"
        "%E3%81%9E%E3%81%BF%EF%BC%8F%E3%81%AB%E3%81%98%E3%81%95%E3%82%93%E3%81%98%E6%89"
        "%80%E5%B1%9E%E3%80%91https%3A%2F%2Fwww.youtube.com%2Fwatch%2FL30uAR9X8Uw%3Ft%3D"
        "10100%E3%80%90%E5%80%89%E6%8C%81%E3%82%A8%E3%83%B3%E8%B6%B3%E4%B8%AD"
    )
    assert parsed_string(raw) == expected


def test_reddit_query_left_unencoded():
    raw = (
        "https://styles.redditmedia.com/t5_7wkhw/styles/profileIcon_8w6r6fr3rh2d1.jpeg"
        "?width=64&height=64&frame=1&auto=webp&crop=64:64,smart"
        "&s=6d8ab9b89c9b846c9eb65622db9ced4992dc0905"
    )
    assert parsed_string(raw) == raw


def test_same_query_elsewhere_is_encoded():
    raw = "https://example.com/img.jpeg?crop=64:64,smart"
    assert parsed_string(raw) == "https://example.com/img.jpeg?crop=64%3A64%2Csmart"


def test_concurrent_string_access():
    url = URL("https://example.com")
    url.parse()
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: str(url), range(100)))
    assert len(results) == 100
    assert set(results) == {"https://example.com"}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://example.com/?a=1;b=2&c=3", "https://example.com/?c=3"),
        ("https://example.com/?a=%zz&b=1", "https://example.com/?b=1"),
        ("https://example.com/?b=2&a=1", "https://example.com/?b=2&a=1"),
        ("https://example.com/?a=1&b=2&a=3", "https://example.com/?a=1&a=3&b=2"),
        ("https://example.com/?q=a+b", "https://example.com/?q=a+b"),
        ("https://example.com/path?", "https://example.com/path?"),
        ("https://example.com/?&&", "https://example.com/"),
        ("http://example.com/a b", "http://example.com/a%20b"),
        ("http://example.com/a%2Fb", "http://example.com/a%2Fb"),
        ("HTTP://EXAMPLE.com/", "http://EXAMPLE.com/"),
        ("/relative/path?x=1", "/relative/path?x=1"),
        ("mailto:someone@example.com", "mailto:someone@example.com"),
        ("http://user@example.com/", "http://user@example.com/"),
        ("https://example.com/page#frag", "https://example.com/page%23frag"),
    ],
)
def test_canonical_strings(raw, expected):
    assert parsed_string(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "example.com/path",
        "://example.com",
        "http://example.com:80a/",
        "http://example.com/\x01",
        "http://example.com/path%zz",
        "http://[::1/",
        "http://exa mple.com/",
    ],
)
def test_parse_rejects_invalid(raw):
    url = URL(raw)
    with pytest.raises(ValueError):
        url.parse()
    assert url.parsed is None


def test_str_requires_parse():
    with pytest.raises(ValueError):
        str(URL("https://example.com"))


def test_parsed_components():
    url = URL("https://user@example.com:8080/a%20b?x=1")
    url.parse()
    assert url.parsed.scheme == "https"
    assert url.parsed.userinfo == "user"
    assert url.parsed.host == "example.com:8080"
    assert url.parsed.path == "/a b"
    assert url.parsed.raw_query == "x=1"
    assert url.parsed.query() == {"x": ["1"]}


def test_url_to_string_on_parsed():
    url = URL("http://παράδειγμα.δοκιμή/?k=v v")
    url.parse()
    assert url_to_string(url.parsed) == "http://xn--hxajbheg2az3al.xn--jxalpdlp/?k=v+v"


def test_encode_query_keeps_order_and_escapes():
    pairs = {"b c": ["x y", "z"], "a": ["1/2"]}
    assert encode_query(pairs) == "b+c=x+y&b+c=z&a=1%2F2"


def test_encode_query_empty():
    assert encode_query({}) == ""


def test_hops_and_redirects():
    url = URL("https://example.com", hops=2)
    assert url.hops == 2
    assert url.redirects == 0
    url.inc_redirects()
    url.inc_redirects()
    assert url.redirects == 2


def test_get_document_parses_and_rewinds():
    url = URL("https://example.com")
    url.body = io.BytesIO(b"<html><head><title>Hello</title></head><body></body></html>")
    document = url.get_document()
    assert document.title.string == "Hello"
    assert url.body.tell() == 0
    assert url.get_document() is document


def test_get_document_without_body():
    with pytest.raises(ValueError):
        URL("https://example.com").get_document()


def test_rewind_body():
    url = URL("https://example.com")
    url.body = io.BytesIO(b"abcdef")
    url.body.read(3)
    url.rewind_body()
    assert url.body.read() == b"abcdef"