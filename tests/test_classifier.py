"""Tests for roster classification."""

import pytest

from rostersync.roster.classifier import (
    RosterColumns,
    SignedStatus,
    classify_roster,
    is_valid_identity,
    parse_signed,
)
from rostersync.roster.fields import FieldSelector
from rostersync.roster.parser import parse_table

BY_NAME = RosterColumns(
    identity=FieldSelector(name="discordId"),
    signed=FieldSelector(name="ndaSigned"),
)
SCOPED = RosterColumns(
    identity=FieldSelector(name="discordId"),
    signed=FieldSelector(name="ndaSigned"),
    guild=FieldSelector(name="guildId"),
)


def _classify(csv: str, columns: RosterColumns = BY_NAME, guild_id: str = "1000"):
    return classify_roster(parse_table(csv), columns, guild_id)


@pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "Y", " yes "])
def test_signed_tokens(value):
    assert parse_signed(value) is SignedStatus.SIGNED


@pytest.mark.parametrize("value", ["false", "0", "No", "n", " FALSE"])
def test_not_signed_tokens(value):
    assert parse_signed(value) is SignedStatus.NOT_SIGNED


@pytest.mark.parametrize("value", ["", None, "maybe", "pending", "2"])
def test_unspecified_tokens(value):
    assert parse_signed(value) is SignedStatus.UNSPECIFIED


def test_identity_validation():
    assert is_valid_identity("123456789012345678")
    assert not is_valid_identity("jane#0001")
    assert not is_valid_identity("12 34")
    assert not is_valid_identity("")
    assert not is_valid_identity("١٢٣")  # non-ASCII digits


def test_partition_allowed_and_denied():
    result = _classify("discordId,ndaSigned\n123,true\n456,no\n789,\n")
    assert result.allowed == {"123"}
    assert result.denied == {"456"}
    assert result.unspecified == 1


def test_non_numeric_ids_never_enter_sets():
    result = _classify("discordId,ndaSigned\nJane Doe,yes\nbob@example.com,no\n123,yes\n")
    assert result.allowed == {"123"}
    assert result.denied == frozenset()
    assert result.rejected_identities == 2


def test_blank_ids_are_skipped_silently():
    result = _classify("discordId,ndaSigned\n,yes\n  ,no\n")
    assert result.allowed == frozenset()
    assert result.rejected_identities == 0


def test_scope_filter_excludes_other_guilds():
    csv = "discordId,ndaSigned,guildId\n1,yes,1000\n2,yes,2000\n3,no,2000\n4,yes,\n"
    result = _classify(csv, SCOPED, guild_id="1000")
    assert result.allowed == {"1", "4"}
    assert result.denied == frozenset()
    assert result.out_of_scope == 2


def test_scope_column_ignored_without_selector():
    csv = "discordId,ndaSigned,guildId\n1,yes,1000\n2,yes,2000\n"
    result = _classify(csv, BY_NAME, guild_id="1000")
    assert result.allowed == {"1", "2"}


def test_last_row_wins_for_conflicts():
    result = _classify("discordId,ndaSigned\n123,yes\n123,no\n456,no\n456,yes\n")
    assert result.allowed == {"456"}
    assert result.denied == {"123"}
    assert not (result.allowed & result.denied)


def test_unspecified_row_does_not_clear_earlier_status():
    result = _classify("discordId,ndaSigned\n123,yes\n123,\n")
    assert result.allowed == {"123"}


def test_index_columns_with_empty_header_line():
    columns = RosterColumns(identity=FieldSelector(index=4), signed=FieldSelector(index=5))
    csv = "ts,name,email,id,signed\nx,Jane,j@x.io,123,Yes\nx,Bob,b@x.io,456,No\n"
    result = _classify(csv, columns)
    assert result.allowed == {"123"}
    assert result.denied == {"456"}


def test_empty_roster():
    result = _classify("")
    assert result.allowed == frozenset()
    assert result.denied == frozenset()
