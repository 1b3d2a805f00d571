from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import DisconnectionError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from postboard.core.errors import NotFound, StoreUnavailable
from postboard.repositories.post_query import PostFilterQuery, PostPage, PostRow
from postboard.repositories.post_writer import PostInput, PostWriteOperation
from postboard.repositories.tag_resolver import TagResolver


class PostRepository:
    """Entry point used by the posts API"""

    def __init__(self, session: Session):
        self.session = session
        self.query = PostFilterQuery(session)
        self.writer = PostWriteOperation(session, TagResolver(session))

    @contextmanager
    def _store_errors(self):
        try:
            yield
        except (OperationalError, DisconnectionError, PoolTimeoutError) as exc:
            self.session.rollback()
            raise StoreUnavailable(str(exc)) from exc

    def list(self, page=1, tag: Optional[str] = None, category: Optional[str] = None) -> PostPage:
        with self._store_errors():
            return self.query.run(page, tag_name=tag, category_name=category)

    def get_by_id(self, post_id: int) -> PostRow:
        with self._store_errors():
            row = self.query.get(post_id)
        if row is None:
            raise NotFound(post_id)
        return row

    def create(self, data: PostInput, author_id: Optional[int]) -> PostRow:
        with self._store_errors():
            post_id = self.writer.create(data, author_id)
        return self.get_by_id(post_id)

    def update(self, post_id: int, data: PostInput) -> PostRow:
        with self._store_errors():
            self.writer.update(post_id, data)
        return self.get_by_id(post_id)

    def delete(self, post_id: int):
        with self._store_errors():
            self.writer.delete(post_id)
