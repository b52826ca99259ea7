"""Remote path completion for interactive shells."""

from __future__ import annotations

import logging

from .exceptions import DriveError
from .hierarchy import Hierarchy, Snapshot

__all__ = ["CompletionProvider"]

logger = logging.getLogger(__name__)


class CompletionProvider:
    """Complete partial remote paths against a drive.

    Listings are cached for the lifetime of the provider, so one provider
    per interactive session lists each directory once.
    """

    def __init__(self, client: Hierarchy):
        self.snapshot = Snapshot(client)

    def complete(self, partial: str) -> list[str]:
        """Return the completed words for *partial*, in name order.

        The text before the last ``/`` is kept as typed; the rest is a name
        prefix matched against that directory's children.  Directories
        complete with a trailing ``/``.  Names starting with ``.`` are only
        offered when the prefix starts with ``.``.  Errors (missing parent,
        permission problems) give an empty list.
        """
        cut = partial.rfind("/") + 1
        typed_parent, prefix = partial[:cut], partial[cut:]
        try:
            children = self.snapshot.list(typed_parent or self.snapshot.hierarchy.root)
        except (DriveError, OSError, ValueError) as exc:
            logger.debug("No completions for %r: %s", partial, exc)
            return []

        words = []
        for child in children:
            if child.name.startswith(".") and not prefix.startswith("."):
                continue
            if child.name.startswith(prefix):
                words.append(typed_parent + child.name + ("/" if child.is_dir else ""))
        return words
