"""
Conduit Backend: Pagination and List Option Tests
==================================================

What:  Tests for resolve_pagination() and parse_list_options().

What we test:
    ✅ Absent / non-numeric limit and offset fall back to {20, 0}
    ✅ Limits above the ceiling are clamped; zero and negative use the default
    ✅ Offsets are never clamped above zero
    ✅ Filters are built per kind; blank and absent values are dropped
    ✅ Starlette QueryParams with repeated keys are understood
"""

import pytest
from starlette.datastructures import QueryParams

from conduit.queries import ArticleFilter, FilterKind, ListOptions, parse_list_options, resolve_pagination
from conduit.queries.pagination import MAX_OFFSET


class TestResolvePagination:

    @pytest.mark.parametrize("limit, offset", [
        (None, None),
        ("", ""),
        ("abc", "xyz"),
        ("1.5", "2.5"),
        ("  ", None),
    ])
    def test_absent_or_non_numeric_input_uses_defaults(self, limit, offset):
        assert resolve_pagination(limit, offset) == (20, 0)

    def test_limit_above_ceiling_is_clamped(self):
        assert resolve_pagination("10000", None) == (100, 0)
        assert resolve_pagination(101, 0) == (100, 0)

    def test_limit_at_ceiling_is_kept(self):
        assert resolve_pagination(100, 0) == (100, 0)

    @pytest.mark.parametrize("limit", [0, "0", -5, "-1"])
    def test_zero_or_negative_limit_uses_default(self, limit):
        assert resolve_pagination(limit, None)[0] == 20

    def test_negative_offset_becomes_zero(self):
        assert resolve_pagination(10, -3) == (10, 0)

    def test_large_offset_is_accepted(self):
        assert resolve_pagination("5", "1000000") == (5, 1_000_000)

    @pytest.mark.parametrize("offset", ["9223372036854775808", "99999999999999999999", 2**70])
    def test_offset_beyond_int64_is_capped(self, offset):
        assert resolve_pagination(None, offset) == (20, MAX_OFFSET)

    def test_offset_at_int64_max_is_kept(self):
        assert resolve_pagination(None, str(MAX_OFFSET)) == (20, MAX_OFFSET)

    def test_numeric_strings_with_whitespace(self):
        assert resolve_pagination(" 15 ", " 30 ") == (15, 30)

    def test_custom_default_and_ceiling(self):
        assert resolve_pagination(None, None, default_limit=5, max_limit=10) == (5, 0)
        assert resolve_pagination(50, None, default_limit=5, max_limit=10) == (10, 0)


class TestParseListOptions:

    def test_empty_params_give_defaults(self):
        assert parse_list_options({}) == ListOptions(limit=20, offset=0, filters=())

    def test_filters_built_per_kind_in_enum_order(self):
        options = parse_list_options({
            "favorited": ["jake"],
            "tag": ["dragons", "training"],
            "author": "celeb",
        })

        assert options.filters == (
            ArticleFilter(FilterKind.TAG, ("dragons", "training")),
            ArticleFilter(FilterKind.AUTHOR, ("celeb",)),
            ArticleFilter(FilterKind.FAVORITED, ("jake",)),
        )

    def test_blank_values_and_empty_lists_are_dropped(self):
        options = parse_list_options({"tag": ["", "  "], "author": [], "favorited": None})
        assert options.filters == ()

    def test_values_are_stripped(self):
        options = parse_list_options({"tag": [" dragons ", ""]})
        assert options.filters == (ArticleFilter(FilterKind.TAG, ("dragons",)),)

    def test_unknown_keys_are_ignored(self):
        options = parse_list_options({"favorite": ["jake"], "sort": "asc"})
        assert options.filters == ()

    def test_query_params_with_repeated_keys(self):
        params = QueryParams("tag=a&tag=b&limit=10&offset=0&author=jake")
        options = parse_list_options(params)

        assert options.limit == 10
        assert options.offset == 0
        assert options.filters == (
            ArticleFilter(FilterKind.TAG, ("a", "b")),
            ArticleFilter(FilterKind.AUTHOR, ("jake",)),
        )

    def test_invalid_numbers_fall_back_silently(self):
        options = parse_list_options({"limit": "ten", "offset": "-4"})
        assert (options.limit, options.offset) == (20, 0)

    def test_custom_ceiling(self):
        options = parse_list_options({"limit": "500"}, default_limit=10, max_limit=50)
        assert options.limit == 50

    def test_list_options_are_immutable(self):
        options = ListOptions()
        with pytest.raises(AttributeError):
            options.limit = 5
