"""Deterministic merge of a remote snapshot into the local sequence.

This module intentionally contains *no* I/O. The HTTP layer is responsible
for producing validated :class:`~quotegen.models.Quote` records and the
store for persisting whatever this module returns.

Policy:
- a remote id unknown locally is appended, in remote order;
- a remote id known locally with a different text or category replaces the
  local record in place (the remote side always wins, no timestamps);
- local ids missing from the snapshot are kept, the snapshot is additive.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from quotegen.models import Conflict, MergeResult, Quote


def collapse_remote(remote: Iterable[Quote]) -> list[Quote]:
    """Drop duplicate ids from a snapshot, keeping the last occurrence.

    The position of the first occurrence is preserved.
    """
    by_id: dict[int, Quote] = {}
    for quote in remote:
        by_id[quote.id] = quote
    return list(by_id.values())


def merge_quotes(local: Sequence[Quote], remote: Iterable[Quote]) -> MergeResult:
    """Merge *remote* into *local* and report what changed.

    Neither input is modified. Quotes are immutable, so the result shares
    record instances with the inputs.
    """
    merged: list[Quote] = list(local)
    position = {quote.id: index for index, quote in enumerate(merged)}
    conflicts: list[Conflict] = []
    added: list[Quote] = []

    for incoming in collapse_remote(remote):
        index = position.get(incoming.id)
        if index is None:
            position[incoming.id] = len(merged)
            merged.append(incoming)
            added.append(incoming)
            continue

        current = merged[index]
        if current.same_payload(incoming):
            continue
        conflicts.append(Conflict(local=current, remote=incoming))
        merged[index] = incoming

    return MergeResult(quotes=tuple(merged), conflicts=tuple(conflicts), added=tuple(added))
