"""Organization model."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from docflow.models.base import Base


class Organization(Base):
    """A company. Its addresses and employees are reached through Contragent links."""

    __tablename__ = "organizations"

    organization_id: Mapped[UUID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(512), index=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
