from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from postboard.db.database import Base

class Category(Base):
    """Category model, a post belongs to at most one"""
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)  # category name must be unique
