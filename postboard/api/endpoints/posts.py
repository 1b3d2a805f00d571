import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from postboard.core.errors import DuplicateTitle, NotFound, StoreUnavailable, UnknownCategory
from postboard.core.security import get_current_user
from postboard.db.database import get_session
from postboard.models.user import User
from postboard.repositories.post_repository import PostRepository
from postboard.schemas.post import PostCreate, PostUpdate, PostResponse, PostListResponse

logger = logging.getLogger(__name__)

router = APIRouter()

def get_post_repository(session: Session = Depends(get_session)) -> PostRepository:
    return PostRepository(session)

def _raise_http(exc: Exception):
    """Translate a repository error into an HTTP error"""
    if isinstance(exc, NotFound):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        ) from exc
    if isinstance(exc, DuplicateTitle):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A post with this title already exists"
        ) from exc
    if isinstance(exc, UnknownCategory):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category not found"
        ) from exc
    if isinstance(exc, StoreUnavailable):
        logger.error("Database unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable"
        ) from exc
    raise exc

@router.get("", response_model=PostListResponse, summary="List posts, optionally filtered by tag and category")
def list_posts(
    page: Optional[str] = Query(default=None, description="Page number, invalid values fall back to 1"),
    tag: Optional[str] = None,
    category: Optional[str] = None,
    repository: PostRepository = Depends(get_post_repository)
):
    """List posts, 10 per page, newest first"""
    try:
        result = repository.list(page, tag=tag, category=category)
    except StoreUnavailable as exc:
        _raise_http(exc)
    return PostListResponse.from_page(result)

@router.get("/{post_id}", response_model=PostResponse, summary="Get a specific post")
def get_post(
    post_id: int,
    repository: PostRepository = Depends(get_post_repository)
):
    """Get a specific post"""
    try:
        row = repository.get_by_id(post_id)
    except (NotFound, StoreUnavailable) as exc:
        _raise_http(exc)
    return PostResponse.from_row(row)

@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED, summary="Create a new post")
def create_post(
    post: PostCreate,
    current_user: User = Depends(get_current_user),
    repository: PostRepository = Depends(get_post_repository)
):
    """Create a new post, creating any tags that do not exist yet"""
    try:
        row = repository.create(post.to_input(), author_id=current_user.id)
    except (DuplicateTitle, UnknownCategory, StoreUnavailable) as exc:
        _raise_http(exc)
    return PostResponse.from_row(row)

@router.put("/{post_id}", response_model=PostResponse, summary="Update a post, including title, content, category and tags")
def update_post(
    post_id: int,
    post_update: PostUpdate,
    current_user: User = Depends(get_current_user),
    repository: PostRepository = Depends(get_post_repository)
):
    """Update a post

    A non-empty tag list replaces the post's tags; an empty or missing one
    leaves them as they are.
    """
    try:
        row = repository.update(post_id, post_update.to_input())
    except (NotFound, DuplicateTitle, UnknownCategory, StoreUnavailable) as exc:
        _raise_http(exc)
    return PostResponse.from_row(row)

@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a post and its tag links")
def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    repository: PostRepository = Depends(get_post_repository)
):
    """Delete a post"""
    try:
        repository.delete(post_id)
    except (NotFound, StoreUnavailable) as exc:
        _raise_http(exc)
    return None
