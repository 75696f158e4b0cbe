# podio/db/models/document.py
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from podio.db.session import Base

class DocumentRow(Base):
    __tablename__ = "documents"
    __table_args__ = (
        # Una clave solo existe una vez por colección
        UniqueConstraint("collection", "key", name="uq_collection_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    collection: Mapped[str] = mapped_column(String, index=True, nullable=False)  # results, predictions, scores, users
    key: Mapped[str] = mapped_column(String, nullable=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
