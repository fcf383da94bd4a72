"""Roster ingestion: CSV parsing, column resolution and classification."""

from rostersync.roster.classifier import (
    RosterClassification,
    RosterColumns,
    SignedStatus,
    classify_roster,
    parse_signed,
)
from rostersync.roster.fields import FieldSelector, resolve_field
from rostersync.roster.parser import ParsedTable, parse_table

__all__ = [
    "FieldSelector",
    "ParsedTable",
    "RosterClassification",
    "RosterColumns",
    "SignedStatus",
    "classify_roster",
    "parse_signed",
    "parse_table",
    "resolve_field",
]
