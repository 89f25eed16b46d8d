import pytest

from featureserver.exceptions import ExternalValueError
from featureserver.parsers import values
from featureserver.queries.sorting import SortOrder


@pytest.mark.parametrize("raw,expect", [("0", 0), ("10", 10), (" 7 ", 7), ("+3", 3)])
def test_parse_non_negative_int(raw, expect):
    assert values.parse_non_negative_int(raw) == expect


@pytest.mark.parametrize("raw", ["abc", "", "1.5", "-1"])
def test_parse_non_negative_int_invalid(raw):
    with pytest.raises(ValueError):
        values.parse_non_negative_int(raw)


@pytest.mark.parametrize(
    "raw,expect",
    [
        ("id", ["id"]),
        ("id,name", ["id", "name"]),
        (" id , name ", ["id", "name"]),
    ],
)
def test_parse_list(raw, expect):
    assert values.parse_list(raw) == expect


@pytest.mark.parametrize("raw", [",", "id,,name", "id, "])
def test_parse_list_empty_item(raw):
    with pytest.raises(ExternalValueError):
        values.parse_list(raw)


def test_parse_sort_directions():
    assert values.parse_sort_directions("desc, ASC,bogus,") == [
        SortOrder.DESC,
        SortOrder.ASC,
        SortOrder.ASC,
        SortOrder.ASC,
    ]


def test_parse_format():
    assert values.parse_format(" NDJSON ") == "ndjson"


@pytest.mark.parametrize(
    "raw",
    ["export", "export.json", "data2.ndjson", "export_2024.json", "data-2024.json", "my export"],
)
def test_parse_filename(raw):
    assert values.parse_filename(raw) == raw


@pytest.mark.parametrize(
    "raw,expect",
    [
        (".htaccess", "htaccess"),
        ("../etc/passwd", "passwd"),
        ("C:\\temp\\export.csv", "export.csv"),
        ("x;y", "x_y"),
        ('a"b.json', "a_b.json"),
        ("café.json", "caf_.json"),
    ],
)
def test_parse_filename_unsafe(raw, expect):
    """Prove that unsafe names are cleaned up, instead of failing the request."""
    assert values.parse_filename(raw) == expect


@pytest.mark.parametrize("raw", ["", "...", "../", " "])
def test_parse_filename_empty(raw):
    assert values.parse_filename(raw) is None


@pytest.mark.parametrize("raw", [",", ";", "\t", "|"])
def test_parse_separator(raw):
    assert values.parse_separator(raw) == raw


@pytest.mark.parametrize("raw", ["", ";;", "tab", '"', "\n"])
def test_parse_separator_invalid(raw):
    with pytest.raises(ExternalValueError):
        values.parse_separator(raw)
