import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.orm import Session, aliased

from postboard.models.category import Category
from postboard.models.post import Post
from postboard.models.post_tag import PostTag
from postboard.models.tag import Tag
from postboard.models.user import User
from postboard.repositories.predicates import PredicateBuilder

PAGE_SIZE = 10
TAG_DELIMITER = ","


@dataclass
class PostRow:
    """A post flattened with its author, category and tag names"""
    id: int
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    username: Optional[str]
    category_id: Optional[int]
    category: Optional[str]
    tags: List[str] = field(default_factory=list)

    @property
    def joined_tags(self) -> str:
        return TAG_DELIMITER.join(self.tags)


@dataclass
class PostPage:
    rows: List[PostRow]
    current_page: int
    total_pages: int
    total_posts: int


def normalize_page(raw) -> int:
    """Turn a raw page value into a page number, falling back to 1"""
    if raw is None or isinstance(raw, bool):
        return 1
    try:
        page = int(str(raw).strip())
    except ValueError:
        return 1
    return page if page >= 1 else 1


def page_offset(page: int, page_size: int = PAGE_SIZE) -> int:
    return (page - 1) * page_size


def count_pages(total: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(total / page_size)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


class PostFilterQuery:
    """Filtered, paginated read of posts

    Never writes: the session is only used to execute SELECT statements.
    """

    def __init__(self, session: Session, page_size: int = PAGE_SIZE):
        self.session = session
        self.page_size = page_size

    def _apply_filters(self, stmt: Select, tag_name: Optional[str], category_name: Optional[str]) -> Select:
        # separate aliases for the tag filter so the tag list of a matching
        # post is not narrowed down to the filtered tag
        filter_link = aliased(PostTag)
        filter_tag = aliased(Tag)

        predicates = PredicateBuilder()
        if tag_name is not None:
            stmt = stmt.join(filter_link, filter_link.post_id == Post.id).join(
                filter_tag, filter_tag.id == filter_link.tag_id
            )
            predicates.add(filter_tag.name, "eq", tag_name)
        predicates.add_if(category_name, Category.name)

        where = predicates.compile()
        if where is not None:
            stmt = stmt.where(where)
        return stmt

    def count(self, tag_name: Optional[str] = None, category_name: Optional[str] = None) -> int:
        stmt = (
            select(func.count(distinct(Post.id)))
            .select_from(Post)
            .outerjoin(Category, Post.category_id == Category.id)
        )
        stmt = self._apply_filters(stmt, _blank_to_none(tag_name), _blank_to_none(category_name))
        return self.session.execute(stmt).scalar_one()

    def _base_rows(self) -> Select:
        return (
            select(
                Post.id,
                Post.title,
                Post.content,
                Post.created_at,
                Post.updated_at,
                User.username,
                Category.id.label("category_id"),
                Category.name.label("category"),
            )
            .select_from(Post)
            .outerjoin(User, Post.user_id == User.id)
            .outerjoin(Category, Post.category_id == Category.id)
        )

    def tag_names(self, post_ids: Sequence[int]) -> Dict[int, List[str]]:
        """Distinct tag names per post, alphabetical"""
        if not post_ids:
            return {}
        stmt = (
            select(PostTag.post_id, Tag.name)
            .join(Tag, Tag.id == PostTag.tag_id)
            .where(PostTag.post_id.in_(list(post_ids)))
            .distinct()
            .order_by(PostTag.post_id, Tag.name)
        )
        names: Dict[int, List[str]] = {post_id: [] for post_id in post_ids}
        for post_id, name in self.session.execute(stmt):
            names[post_id].append(name)
        return names

    def _to_rows(self, result) -> List[PostRow]:
        rows = [
            PostRow(
                id=r.id,
                title=r.title,
                content=r.content,
                created_at=r.created_at,
                updated_at=r.updated_at,
                username=r.username,
                category_id=r.category_id,
                category=r.category,
            )
            for r in result
        ]
        tags = self.tag_names([row.id for row in rows])
        for row in rows:
            row.tags = tags[row.id]
        return rows

    def rows(self, page: int, tag_name: Optional[str] = None, category_name: Optional[str] = None) -> List[PostRow]:
        stmt = self._apply_filters(self._base_rows(), _blank_to_none(tag_name), _blank_to_none(category_name))
        stmt = (
            stmt.order_by(Post.created_at.desc(), Post.id.desc())
            .limit(self.page_size)
            .offset(page_offset(page, self.page_size))
        )
        return self._to_rows(self.session.execute(stmt))

    def run(self, page=1, tag_name: Optional[str] = None, category_name: Optional[str] = None) -> PostPage:
        page = normalize_page(page)
        total = self.count(tag_name, category_name)
        # past the last page; also keeps huge offsets away from the driver
        if page_offset(page, self.page_size) >= total:
            rows = []
        else:
            rows = self.rows(page, tag_name, category_name)
        return PostPage(
            rows=rows,
            current_page=page,
            total_pages=count_pages(total, self.page_size),
            total_posts=total,
        )

    def get(self, post_id: int) -> Optional[PostRow]:
        stmt = self._base_rows().where(Post.id == post_id)
        rows = self._to_rows(self.session.execute(stmt))
        return rows[0] if rows else None
