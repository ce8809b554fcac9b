import pytest

from krew.semver import Version, less, parse


@pytest.mark.parametrize(
    "text, want",
    [
        ("v0.0.0", "v0.0.0"),
        ("v1.2.3", "v1.2.3"),
        ("v1.2.3-beta.2+foo.bar", "v1.2.3-beta.2+foo.bar"),
    ],
)
def test_parse_valid(text, want):
    assert str(parse(text)) == want


@pytest.mark.parametrize(
    "text",
    [
        "",
        "1.0.0",
        "v 1.0.0",
        "v1",
        "v1.2",
        "v1.0.1-",
        "v1.0.1+",
        "v-1.2.3",
        "v1.-2.3",
        "v1.2.-3",
        "v01.2.3",
        "v1.02.3",
        "v1.2.03",
        "v0a.0.0",
        "v0.0a.0",
        "v0.0.0a",
    ],
)
def test_parse_invalid(text):
    with pytest.raises(ValueError):
        parse(text)


def test_parse_fields():
    v = parse("v1.2.3-beta.2+foo.bar")
    assert v == Version((1, 2, 3), "beta.2", "foo.bar")


@pytest.mark.parametrize("a, b", [("v0.1.2", "v0.1.2"), ("v1.0.0-alpha", "v1.0.0-alpha+foo")])
def test_less_equal_values(a, b):
    va, vb = parse(a), parse(b)
    assert less(va, vb) is False
    assert less(vb, va) is False


@pytest.mark.parametrize(
    "a, b",
    [
        ("v1.0.0-0.3.7", "v1.0.0-alpha"),
        ("v1.0.0-alpha", "v1.0.0-alpha.1"),
        ("v1.0.0-alpha.1", "v1.0.0-alpha.2"),
        ("v1.0.0-alpha.2", "v1.0.0-alpha.a"),
        ("v1.0.0-alpha", "v1.0.0-beta"),
        ("v1.0.1", "v1.0.2"),
        ("v1.0.1", "v1.2.0"),
        ("v1.0.1", "v2.1.0"),
        ("v1.0.0-alpha.2", "v1.0.1-alpha.1"),
        ("v1.0.1-rc1", "v1.0.1"),
    ],
)
def test_less_ordered(a, b):
    va, vb = parse(a), parse(b)
    assert less(va, vb) is True
    assert less(vb, va) is False