from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import List, Optional, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postboard.core.errors import DuplicateTitle, NotFound, UnknownCategory
from postboard.models.category import Category
from postboard.models.post import Post
from postboard.models.post_tag import PostTag
from postboard.repositories.tag_resolver import TagResolver


@dataclass
class PostInput:
    """Validated post fields as handed over by the API layer"""
    title: str
    content: str
    category_id: Optional[int]
    tags: List[str] = field(default_factory=list)


def unique_ids(ids: Sequence[int]) -> List[int]:
    """Drop repeated ids, keeping first-seen order"""
    return list(dict.fromkeys(ids))


class PostWriteOperation:
    """Create, update and delete posts together with their tag links

    Each public method is one transaction: it commits on success and rolls
    the session back on any error.
    """

    def __init__(self, session: Session, tag_resolver: Optional[TagResolver] = None):
        self.session = session
        self.tag_resolver = tag_resolver or TagResolver(session)

    def _check_title(self, title: str, exclude_id: Optional[int] = None):
        stmt = select(Post.id).where(Post.title == title)
        if exclude_id is not None:
            stmt = stmt.where(Post.id != exclude_id)
        if self.session.execute(stmt.limit(1)).first() is not None:
            raise DuplicateTitle(title)

    def _check_category(self, category_id: Optional[int]):
        if category_id is None:
            return
        if self.session.get(Category, category_id) is None:
            raise UnknownCategory(category_id)

    def _flush(self, title: str):
        try:
            self.session.flush()
        except IntegrityError as exc:
            # a concurrent writer took the title after the pre-check
            self.session.rollback()
            if self.session.execute(select(Post.id).where(Post.title == title)).first() is not None:
                raise DuplicateTitle(title) from exc
            raise

    def replace_tags(self, post_id: int, names: Sequence[str]):
        """Replace every tag link of the post with the resolved names"""
        tag_ids = unique_ids(self.tag_resolver.resolve(names))
        self.session.execute(delete(PostTag).where(PostTag.post_id == post_id))
        if tag_ids:
            self.session.execute(
                insert(PostTag),
                [{"post_id": post_id, "tag_id": tag_id} for tag_id in tag_ids],
            )

    def create(self, data: PostInput, author_id: Optional[int]) -> int:
        try:
            self._check_title(data.title)
            self._check_category(data.category_id)
            post = Post(
                title=data.title,
                content=data.content,
                category_id=data.category_id,
                user_id=author_id,
            )
            self.session.add(post)
            self._flush(data.title)  # Flush to get the post ID
            if data.tags:
                self.replace_tags(post.id, data.tags)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return post.id

    def update(self, post_id: int, data: PostInput) -> int:
        try:
            post = self.session.get(Post, post_id)
            if post is None:
                raise NotFound(post_id)
            self._check_title(data.title, exclude_id=post_id)
            self._check_category(data.category_id)

            post.title = data.title
            post.content = data.content
            post.category_id = data.category_id
            post.updated_at = datetime.now(UTC)
            self._flush(data.title)

            # an empty or missing tag list keeps the current links
            if data.tags:
                self.replace_tags(post_id, data.tags)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return post_id

    def delete(self, post_id: int):
        try:
            post = self.session.get(Post, post_id)
            if post is None:
                raise NotFound(post_id)
            self.session.execute(delete(PostTag).where(PostTag.post_id == post_id))
            self.session.delete(post)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
