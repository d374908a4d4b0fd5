"""SQLAlchemy models for fintrack database."""

import uuid
from decimal import Decimal
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Boolean,
    Text,
    UniqueConstraint,
    Index,
    create_engine,
    event,
)
from sqlalchemy.types import TypeDecorator
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from fintrack.domain.entities import utc_now

Base = declarative_base()


class Money(TypeDecorator):
    """Fixed-point amount stored as an integer number of cents.

    SQLite has no exact decimal storage, so amounts and balances are kept as
    integers and `balance + delta` stays exact.
    """

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        cents = Decimal(str(value)).scaleb(2)
        if cents != cents.to_integral_value():
            raise ValueError(f"Amount {value} is not a whole number of cents")
        return int(cents)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value).scaleb(-2)


MONEY = Money()


def _new_id() -> str:
    return str(uuid.uuid4())


class Account(Base):
    """Account model. Balance is only ever changed by atomic increments."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    kind = Column(String(20), nullable=False, default="cash")
    balance = Column(MONEY, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="SLL")
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    transactions = relationship("Transaction", back_populates="account", passive_deletes=True)


class Transaction(Base):
    """Ledger transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    # Opaque reference; categories live outside the ledger.
    category_id = Column(String, nullable=True)
    amount = Column(MONEY, nullable=False)
    type = Column(String(10), nullable=False)
    occurred_at = Column(DateTime, nullable=False, default=utc_now)
    description = Column(String(255), nullable=True)
    mode = Column(String(20), nullable=False, default="cash")
    reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    account = relationship("Account", back_populates="transactions")

    __table_args__ = (Index("ix_transactions_owner_occurred", "owner_id", "occurred_at"),)


class ImportJob(Base):
    """CSV import job model."""

    __tablename__ = "import_jobs"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    filename = Column(String, nullable=False)
    file_size = Column(Integer, nullable=True)
    total_rows = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending")
    headers = Column(JSON, nullable=False, default=list)
    preview_rows = Column(JSON, nullable=False, default=list)
    source_rows = Column(JSON, nullable=False, default=list)
    mapping = Column(JSON, nullable=True)
    processed_rows = Column(Integer, nullable=False, default=0)
    successful_rows = Column(Integer, nullable=False, default=0)
    failed_rows = Column(Integer, nullable=False, default=0)
    duplicate_rows = Column(Integer, nullable=False, default=0)
    error_log = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    rows = relationship(
        "ImportRow",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="ImportRow.row_number",
    )


class ImportRow(Base):
    """Outcome of a single source row of an import job."""

    __tablename__ = "import_rows"

    id = Column(String(36), primary_key=True, default=_new_id)
    job_id = Column(String(36), ForeignKey("import_jobs.id", ondelete="CASCADE"), nullable=False)
    row_number = Column(Integer, nullable=False)
    idempotency_key = Column(String(64), nullable=False, index=True)
    raw_data = Column(JSON, nullable=False)
    mapped_data = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False)
    error_message = Column(Text, nullable=True)
    transaction_id = Column(
        String(36), ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (UniqueConstraint("job_id", "row_number", name="uq_import_row_number"),)

    job = relationship("ImportJob", back_populates="rows")


class ImportKey(Base):
    """Owner-scoped idempotency index. Every processed or failed row claims its key."""

    __tablename__ = "import_keys"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False)
    idempotency_key = Column(String(64), nullable=False)
    job_id = Column(String(36), nullable=False)
    row_number = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("owner_id", "idempotency_key", name="uq_owner_idempotency_key"),
    )


class Notification(Base):
    """Notification delivered to an owner."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    kind = Column(String(50), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utc_now, nullable=False)


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # Hand transaction control to SQLAlchemy so SAVEPOINT and rollback behave.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _begin_sqlite_immediate(conn) -> None:
    # Units serialize on the busy timeout.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections are shared with the import runner thread."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_sqlite_immediate)
        return engine
    return create_engine(database_url, echo=False, pool_pre_ping=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_db_engine(database_url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
