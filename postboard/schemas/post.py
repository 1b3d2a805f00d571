from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Annotated, Optional, List
from postboard.repositories.post_query import PostPage, PostRow
from postboard.repositories.post_writer import PostInput

TagName = Annotated[str, Field(min_length=1, max_length=50)]

class CamelModel(BaseModel):
    """Models exchanged with clients in camelCase"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class PostBase(CamelModel):
    """文章基础模型"""
    title: str = Field(..., min_length=3, max_length=255)
    content: str = Field(..., min_length=10)
    category_id: int = Field(..., gt=0, description="分类ID")
    tags: Optional[List[TagName]] = Field(default=None, description="标签名称列表")

    def to_input(self) -> PostInput:
        return PostInput(
            title=self.title,
            content=self.content,
            category_id=self.category_id,
            tags=list(self.tags or []),
        )

class PostCreate(PostBase):
    """创建文章请求模型"""
    pass

class PostUpdate(PostBase):
    """更新文章请求模型（总是完整字段）"""
    pass

class PostAuthor(CamelModel):
    username: str

class CategoryRef(CamelModel):
    name: str

class TagRef(CamelModel):
    name: str

class PostResponse(CamelModel):
    """文章响应模型"""
    id: int
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    category_id: Optional[int] = None
    user: Optional[PostAuthor] = None
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = []

    @classmethod
    def from_row(cls, row: PostRow) -> "PostResponse":
        return cls(
            id=row.id,
            title=row.title,
            content=row.content,
            created_at=row.created_at,
            updated_at=row.updated_at,
            category_id=row.category_id,
            user=PostAuthor(username=row.username) if row.username is not None else None,
            category=CategoryRef(name=row.category) if row.category is not None else None,
            tags=[TagRef(name=name) for name in row.tags],
        )

class PostListRow(CamelModel):
    """列表中的一行，tags 为逗号分隔的标签名"""
    id: int
    title: str
    content: str
    created_at: datetime
    username: Optional[str] = None
    category_id: Optional[int] = None
    category: Optional[str] = None
    tags: str = ""

    @classmethod
    def from_row(cls, row: PostRow) -> "PostListRow":
        return cls(
            id=row.id,
            title=row.title,
            content=row.content,
            created_at=row.created_at,
            username=row.username,
            category_id=row.category_id,
            category=row.category,
            tags=row.joined_tags,
        )

class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_posts: int

class PostListResponse(CamelModel):
    rows: List[PostListRow]
    pagination: Pagination

    @classmethod
    def from_page(cls, page: PostPage) -> "PostListResponse":
        return cls(
            rows=[PostListRow.from_row(row) for row in page.rows],
            pagination=Pagination(
                current_page=page.current_page,
                total_pages=page.total_pages,
                total_posts=page.total_posts,
            ),
        )
