"""Resolution of tag names from CSV cells to tag ids, creating tags on demand."""

import logging
from typing import List, NamedTuple, Optional

from .errors import TagConflictError

logger = logging.getLogger(__name__)


class ResolvedTags(NamedTuple):
    tag_ids: List[str]
    skipped: List[str]


class TagResolver:
    """
    Find-or-create tags for one owner.

    A create that conflicts (someone else created the tag in between) is
    followed by exactly one more lookup; if that also fails the tag is
    skipped rather than failing the row.
    """

    def __init__(self, store, owner_id: str):
        self.store = store
        self.owner_id = owner_id

    def resolve(self, name: str, transaction_type: Optional[str], match_type: bool = False) -> Optional[str]:
        existing = self.store.find_tag(
            self.owner_id, name, transaction_type if match_type else None
        )
        if existing:
            return existing.id

        try:
            return self.store.create_tag(self.owner_id, name, transaction_type).id
        except TagConflictError:
            logger.info("Tag %r was created concurrently, looking it up again", name)

        existing = self.store.find_tag(self.owner_id, name)
        if existing:
            return existing.id
        logger.warning("Could not resolve tag %r for owner %s", name, self.owner_id)
        return None

    def resolve_many(self, names: List[str], transaction_type: Optional[str]) -> ResolvedTags:
        tag_ids: List[str] = []
        skipped: List[str] = []
        for name in names:
            tag_id = self.resolve(name, transaction_type)
            if tag_id is None:
                skipped.append(name)
            elif tag_id not in tag_ids:
                tag_ids.append(tag_id)
        return ResolvedTags(tag_ids=tag_ids, skipped=skipped)
