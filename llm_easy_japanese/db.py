from __future__ import annotations
from sqlalchemy import create_engine, String, Text, select, delete, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session, Mapped, mapped_column
import os
from typing import Optional, Dict, Iterable, List

DEBUG_MODE = os.getenv("DEBUG", "0") == "1"
DEFAULT_DB_PATH = "easy_japanese.db"


class Base(DeclarativeBase):
    pass


class Preference(Base):
    """One key-value preference entry (statuses, positions, modes, menu flags)."""
    __tablename__ = "preferences"
    key: Mapped[str] = mapped_column(String, primary_key=True)
    value_type: Mapped[str] = mapped_column(String, nullable=False)  # "string", "int" or "bool"
    value: Mapped[str] = mapped_column(Text, nullable=False)


def get_db_path() -> str:
    return os.environ.get("EASY_JP_DB", DEFAULT_DB_PATH)


def _db_url(db_path: str) -> str:
    if "://" in db_path:
        return db_path
    return f"sqlite:///{db_path}"


def is_db_initialized(engine: Engine) -> bool:
    """Check if the preferences table already exists."""
    return "preferences" in set(inspect(engine).get_table_names())


def init_db(engine: Engine) -> None:
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=engine)


class PreferenceStore:
    """SQLite-backed key-value store for user progress and settings.

    Every call opens its own short session and commits before returning, so
    callers can treat each read-modify-write as atomic.
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path or get_db_path()
        self.engine = create_engine(_db_url(self.db_path))
        # Prevent attribute expiration on commit so returned objects remain accessible
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        if not is_db_initialized(self.engine):
            init_db(self.engine)
            if DEBUG_MODE:
                print(f"✅ Preference database initialized at {self.db_path}")

    def get_session(self) -> Session:
        return self.SessionLocal()

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def _get(self, key: str, value_type: str) -> Optional[str]:
        session = self.get_session()
        try:
            pref = session.get(Preference, key)
            if pref is None:
                return None
            if pref.value_type != value_type:
                if DEBUG_MODE:
                    print(f"⚠️ Preference '{key}' is stored as {pref.value_type}, not {value_type}")
                return None
            return pref.value
        finally:
            session.close()

    def _set(self, key: str, value_type: str, value: str) -> None:
        session = self.get_session()
        try:
            pref = session.get(Preference, key)
            if pref is None:
                session.add(Preference(key=key, value_type=value_type, value=value))
            else:
                pref.value_type = value_type
                pref.value = value
            session.commit()
        finally:
            session.close()

    def get_string(self, key: str, default: str) -> str:
        value = self._get(key, "string")
        return default if value is None else value

    def set_string(self, key: str, value: str) -> None:
        self._set(key, "string", value)

    def get_int(self, key: str, default: int) -> int:
        value = self._get(key, "int")
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def set_int(self, key: str, value: int) -> None:
        self._set(key, "int", str(int(value)))

    def get_bool(self, key: str, default: bool) -> bool:
        value = self._get(key, "bool")
        if value is None:
            return default
        return value == "1"

    def set_bool(self, key: str, value: bool) -> None:
        self._set(key, "bool", "1" if value else "0")

    # ------------------------------------------------------------------
    # Bulk access by key prefix
    # ------------------------------------------------------------------

    def keys_with_prefix(self, prefix: str) -> List[str]:
        return list(self.items_with_prefix(prefix).keys())

    def items_with_prefix(self, prefix: str) -> Dict[str, str]:
        """Return raw stored values for every key starting with ``prefix``."""
        session = self.get_session()
        try:
            stmt = (
                select(Preference)
                .where(Preference.key.startswith(prefix, autoescape=True))
                .order_by(Preference.key)
            )
            return {row.key: row.value for row in session.scalars(stmt).all()}
        finally:
            session.close()

    def remove_keys(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        session = self.get_session()
        try:
            result = session.execute(delete(Preference).where(Preference.key.in_(keys)))
            session.commit()
            removed = result.rowcount or 0
        finally:
            session.close()
        if DEBUG_MODE:
            print(f"🗑️ Removed {removed} preference entries")
        return removed

    def count(self) -> int:
        session = self.get_session()
        try:
            return len(session.scalars(select(Preference.key)).all())
        finally:
            session.close()

    def close(self) -> None:
        self.engine.dispose()


def open_store(db_path: Optional[str] = None) -> PreferenceStore:
    """Open the preference store at ``db_path`` or the configured default."""
    return PreferenceStore(db_path)
