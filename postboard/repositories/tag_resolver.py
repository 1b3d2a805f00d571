from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postboard.models.tag import Tag


@dataclass(frozen=True)
class Created:
    """The tag was inserted by this call"""
    tag_id: int


@dataclass(frozen=True)
class AlreadyExists:
    """Another writer inserted the tag first"""
    tag_id: int


TagInsertResult = Union[Created, AlreadyExists]


class TagResolver:
    """Find-or-create tags by exact name

    Runs inside the caller's transaction and never commits.
    """

    def __init__(self, session: Session):
        self.session = session

    def find(self, name: str) -> Optional[int]:
        return self.session.execute(
            select(Tag.id).where(Tag.name == name)
        ).scalar_one_or_none()

    def insert_tag(self, name: str) -> TagInsertResult:
        """Insert a tag, reporting a lost race instead of raising

        The insert runs in a SAVEPOINT so a unique violation only discards
        this statement, not the enclosing transaction.
        """
        tag = Tag(name=name)
        try:
            with self.session.begin_nested():
                self.session.add(tag)
                self.session.flush()
        except IntegrityError:
            winner = self.find(name)
            if winner is None:
                # not a name conflict
                raise
            return AlreadyExists(winner)
        return Created(tag.id)

    def resolve_one(self, name: str) -> int:
        tag_id = self.find(name)
        if tag_id is not None:
            return tag_id
        result = self.insert_tag(name)
        return result.tag_id

    def resolve(self, names: Sequence[str]) -> List[int]:
        """Map each name to a tag id, in input order"""
        resolved: Dict[str, int] = {}
        for name in names:
            if name not in resolved:
                resolved[name] = self.resolve_one(name)
        return [resolved[name] for name in names]
