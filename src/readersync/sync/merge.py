"""Two-way merge of a local annotation set with a remote snapshot.

Annotations are matched by position key. Matching pairs resolve to the
newer effective timestamp (local wins ties). Deletions travel as tombstones:
remote tombstones remove local copies, and local tombstones stop a pull
that raced ahead of our push from bringing a deleted annotation back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from readersync.models import Annotation


def merge_annotations(
    local: Iterable[Annotation],
    remote: Iterable[Annotation],
    remote_tombstones: Collection[str] = frozenset(),
    local_tombstones: Collection[str] = frozenset(),
) -> list[Annotation]:
    """Merge ``remote`` into ``local``.

    Args:
        local: This replica's annotations, in display order.
        remote: Annotations returned by the server.
        remote_tombstones: Identifiers deleted on other replicas.
        local_tombstones: Identifiers deleted here but not yet pushed.

    Returns:
        Surviving local annotations (original order) followed by the
        remote-only survivors. Callers re-sort for display.
    """
    remote_deleted = set(remote_tombstones)
    local_deleted = set(local_tombstones)

    # Later duplicates overwrite earlier ones: one slot per position key.
    remote_by_key = {a.position_key: a for a in remote}

    merged: list[Annotation] = []
    for local_a in local:
        if local_a.identifier in remote_deleted:
            # The remote copy under the same key goes too.
            remote_by_key.pop(local_a.position_key, None)
            continue
        remote_a = remote_by_key.pop(local_a.position_key, None)
        if remote_a is None:
            merged.append(local_a)
        elif local_a.timestamp_key >= remote_a.timestamp_key:
            merged.append(local_a)
        else:
            merged.append(remote_a)

    merged.extend(
        remote_a
        for remote_a in remote_by_key.values()
        if remote_a.identifier not in local_deleted
        and remote_a.identifier not in remote_deleted
    )
    return merged
