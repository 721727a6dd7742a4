import pytest

from scripts.common import build_parser, mask, mode_label, short_token


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, "<unset>"),
        ("", "<unset>"),
        ("abc", "***"),
        ("re_123456789", "********6789"),
    ],
)
def test_mask(value, expected):
    assert mask(value) == expected


def test_mode_label():
    assert mode_label(True) == "apply"
    assert mode_label(False) == "dry-run"


def test_short_token():
    assert short_token("abcdefghijkl") == "abcdefgh..."


def test_parser_defaults_to_dry_run():
    args = build_parser("demo", apply=True).parse_args([])

    assert args.apply is False
    assert args.database_url is None


def test_parser_without_database_option():
    args = build_parser("demo", database=False).parse_args([])

    assert not hasattr(args, "database_url")
