"""rostersync: keep a Discord member role in sync with a roster spreadsheet."""

__version__ = "0.1.0"
