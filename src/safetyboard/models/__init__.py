"""Data models — calendar records and board entities."""
