"""SQLAlchemy ORM models."""

from datetime import datetime

from sqlalchemy import DDL, DateTime, Integer, String, Text, event, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ProfileModel(Base):
    """One row per phone number."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(Text)
    age: Mapped[int | None] = mapped_column(Integer)
    address: Mapped[str | None] = mapped_column(Text)
    avatar_url: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


# PostgreSQL refreshes updated_at on an UPDATE that leaves it untouched, so
# writes made outside this service still move it. Writes from this service
# set updated_at themselves and keep the application clock.
SET_UPDATED_AT_FUNCTION = DDL(
    """
    CREATE OR REPLACE FUNCTION set_updated_at()
    RETURNS trigger AS $$
    BEGIN
        IF NEW.updated_at IS NOT DISTINCT FROM OLD.updated_at THEN
            NEW.updated_at = now();
        END IF;
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """
)
DROP_PROFILES_UPDATED_TRIGGER = DDL("DROP TRIGGER IF EXISTS trg_profiles_updated ON profiles")
CREATE_PROFILES_UPDATED_TRIGGER = DDL(
    """
    CREATE TRIGGER trg_profiles_updated
        BEFORE UPDATE ON profiles
        FOR EACH ROW EXECUTE PROCEDURE set_updated_at()
    """
)

for _ddl in (
    SET_UPDATED_AT_FUNCTION,
    DROP_PROFILES_UPDATED_TRIGGER,
    CREATE_PROFILES_UPDATED_TRIGGER,
):
    event.listen(
        ProfileModel.__table__,
        "after_create",
        _ddl.execute_if(dialect="postgresql"),
    )
