"""Tests for column resolution."""

from rostersync.roster.fields import FieldSelector, resolve_field

HEADER = ["name", "discordId", "ndaSigned"]
ROW = ["Jane", "123", "yes"]


def test_resolve_by_name():
    assert resolve_field(ROW, HEADER, FieldSelector(name="discordId")) == "123"


def test_resolve_by_index_is_one_based():
    assert resolve_field(ROW, HEADER, FieldSelector(index=3)) == "yes"


def test_index_wins_over_name():
    selector = FieldSelector(name="discordId", index=1)
    assert resolve_field(ROW, HEADER, selector) == "Jane"


def test_index_out_of_range():
    assert resolve_field(ROW, HEADER, FieldSelector(index=9)) == ""


def test_unknown_name():
    assert resolve_field(ROW, HEADER, FieldSelector(name="missing")) == ""


def test_name_lookup_is_case_sensitive():
    assert resolve_field(ROW, HEADER, FieldSelector(name="discordid")) == ""


def test_name_match_beyond_short_row():
    assert resolve_field(["Jane"], HEADER, FieldSelector(name="ndaSigned")) == ""


def test_empty_header_needs_index():
    assert resolve_field(ROW, [], FieldSelector(name="discordId")) == ""
    assert resolve_field(ROW, [], FieldSelector(name="discordId", index=2)) == "123"


def test_unconfigured_selector():
    selector = FieldSelector()
    assert not selector.is_configured
    assert resolve_field(ROW, HEADER, selector) == ""


def test_non_positive_index_falls_back_to_name():
    assert resolve_field(ROW, HEADER, FieldSelector(name="ndaSigned", index=0)) == "yes"
    assert resolve_field(ROW, HEADER, FieldSelector(name="ndaSigned", index=-2)) == "yes"
