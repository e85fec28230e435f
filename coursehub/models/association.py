"""Reference sets kept outside the owning rows.

Each row says that ``owner_type``/``owner_id`` holds ``target_id`` in its
``relation`` set. There is no foreign key on either side: references are
validated when written, not enforced afterwards.
"""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from coursehub.database import Base


class Association(Base):
    __tablename__ = "associations"
    __table_args__ = (
        UniqueConstraint('owner_type', 'owner_id', 'relation', 'target_id', name='uq_association_edge'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_type = Column(String, nullable=False)
    owner_id = Column(String(24), index=True, nullable=False)
    relation = Column(String, nullable=False)
    target_id = Column(String(24), index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
