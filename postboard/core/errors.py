class PostboardError(Exception):
    """Base class for errors raised by the post repositories"""


class NotFound(PostboardError):
    """The requested post does not exist"""

    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class DuplicateTitle(PostboardError):
    """Another post already uses this title"""

    def __init__(self, title: str):
        super().__init__(f"A post with title {title!r} already exists")
        self.title = title


class UnknownCategory(PostboardError):
    """The referenced category does not exist"""

    def __init__(self, category_id: int):
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class StoreUnavailable(PostboardError):
    """The database could not be reached"""
