from __future__ import annotations

import allure
import pytest

from convert_to_blocks.migration.models import (
    DEFAULT_POST_TYPES,
    MigrationOptions,
    parse_bool,
)

pytestmark = [
    allure.epic("Bulk Migration"),
    allure.feature("Option Normalization"),
]


@pytest.mark.parametrize("raw", [None, "", "  ", "0", 0])
def test_per_page_defaults_to_unbounded_never_zero(raw: object) -> None:
    assert MigrationOptions.from_raw(per_page=raw).per_page == -1


def test_per_page_is_clamped_to_unbounded() -> None:
    assert MigrationOptions.from_raw(per_page="-20").per_page == -1
    assert MigrationOptions.from_raw(per_page="25").per_page == 25


@pytest.mark.parametrize(("raw", "expected"), [(None, 1), ("", 1), ("0", 1), ("-3", 1), ("4", 4)])
def test_page_defaults_and_clamps_to_first(raw: object, expected: int) -> None:
    assert MigrationOptions.from_raw(page=raw).page == expected


def test_non_numeric_pagination_is_rejected() -> None:
    with pytest.raises(ValueError, match="Expected an integer"):
        MigrationOptions.from_raw(per_page="ten")


def test_post_types_from_csv() -> None:
    options = MigrationOptions.from_raw(post_type=" post, product ,,post")
    assert options.post_types == frozenset({"post", "product"})


def test_post_types_default_when_blank() -> None:
    assert MigrationOptions.from_raw(post_type=" , ").post_types == DEFAULT_POST_TYPES
    assert MigrationOptions.from_raw().post_types == frozenset({"post", "page"})


def test_only_parses_ids_and_drops_blanks() -> None:
    assert MigrationOptions.from_raw(only="12, 7,,12").only == frozenset({7, 12})
    assert MigrationOptions.from_raw(only=" ").only is None


def test_only_rejects_non_integer_ids() -> None:
    with pytest.raises(ValueError, match="Invalid post id"):
        MigrationOptions.from_raw(only="12,abc")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (True, True),
        ("yes", True),
        ("ON", True),
        ("1", True),
        (1, True),
        (False, False),
        (None, False),
        ("", False),
        ("off", False),
        ("maybe", False),
    ],
)
def test_parse_bool(raw: object, expected: bool) -> None:
    assert parse_bool(raw) is expected


def test_options_are_immutable() -> None:
    options = MigrationOptions()
    with pytest.raises(AttributeError):
        options.page = 2  # type: ignore[misc]


def test_summary_matches_cli_output() -> None:
    options = MigrationOptions.from_raw(per_page="10", page="3", catalog="true")
    assert options.summary() == "Posts Per Page: 10, Page: 3, Catalog: true"
