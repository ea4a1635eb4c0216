from __future__ import annotations

# Common ParsedReleaseInfo.extra_info keys used across the matcher.
# Keep these centralized to reduce magic strings and accidental divergence.

SIZE = "Size"
FILENAME = "Filename"

# Key inside HistoryRecord.data holding the grabbed release size.
HISTORY_SIZE = "size"
# Key inside HistoryRecord.data holding the grabbed release group.
HISTORY_RELEASE_GROUP = "releaseGroup"
