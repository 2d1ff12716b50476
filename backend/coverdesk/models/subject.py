from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from coverdesk.db.base import Base


class Subject(Base):
    __tablename__ = "subjects"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # 1 (optional) .. 5 (core exam subject); drives substitution priority.
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
