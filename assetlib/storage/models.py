from __future__ import annotations

from sqlalchemy import String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass

Base.metadata.naming_convention = {
            "ix": "ix_%(table_name)s_%(column_0_N_label)s",
            "uq": "uq_%(table_name)s_%(column_0_N_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }


class TimestampMixin:
    created_at: Mapped[str] = mapped_column(
        String, server_default=func.current_timestamp(), nullable=False
    )
    updated_at: Mapped[str] = mapped_column(
        String,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )


# ---------- Key/value slot ----------
class KeyValueEntry(TimestampMixin, Base):
    """ One storage slot. The library tree is a single row holding its JSON blob. """
    __tablename__ = "kv_entry"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<KeyValueEntry key={self.key!r} size={len(self.value or '')}>"
