# SQLAlchemy models

from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class PointEvent(Base):
    __tablename__ = "point_events"

    id = Column(String(255), primary_key=True)
    category = Column(String(255), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    # Range filtering for time windows
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<PointEvent id={self.id!r} category={self.category!r} points={self.points}>"
