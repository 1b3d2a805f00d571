from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from postboard.db.database import Base

class Tag(Base):
    """Tag model, shared across posts"""
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # exact, case-sensitive match; the unique constraint arbitrates concurrent creation
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
