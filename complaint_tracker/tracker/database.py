"""
SQLAlchemy models and CRUD operations for persisting complaints.

Rows mirror the domain objects in ``models``: one table for users, one for
complaints, one for responses. Deleting a complaint deletes its responses.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    create_engine,
    event,
    func,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Session, relationship, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from complaint_tracker.errors import ConflictError, NotFoundError, ValidationError
from complaint_tracker.tracker.models import (
    MAX_TEXT_LENGTH,
    OPEN_STATUSES,
    Complaint,
    ComplaintStatus,
    Response,
    User,
)
from complaint_tracker.tracker.store import ComplaintStore, UserDirectory

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class UserRecord(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True)
    email = Column(String(180), nullable=False, default="")

    complaints = relationship("ComplaintRecord", back_populates="owner")


class ComplaintRecord(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    subject = Column(String(MAX_TEXT_LENGTH), nullable=False)
    description = Column(String(MAX_TEXT_LENGTH), nullable=False)
    filed_date = Column(Date, nullable=False)
    status = Column(
        Enum(
            ComplaintStatus,
            values_callable=lambda members: [m.value for m in members],
            native_enum=False,
            length=50,
        ),
        default=ComplaintStatus.SUBMITTED,
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False, default=1)
    date_created = Column(DateTime, server_default=func.now(), nullable=False)

    owner = relationship("UserRecord", back_populates="complaints")
    responses = relationship(
        "ResponseRecord",
        back_populates="complaint",
        cascade="all, delete-orphan",
        order_by="ResponseRecord.id",
    )

    # The application bumps the version itself on every save so that
    # thread-only edits still UPDATE (and check) the parent row.
    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}

    def __repr__(self) -> str:
        return (
            f"<ComplaintRecord(id={self.id}, owner_id={self.owner_id}, "
            f"status={self.status.value}, version={self.version})>"
        )


class ResponseRecord(Base):
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    complaint_id = Column(
        Integer,
        ForeignKey("complaints.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    body = Column(String(MAX_TEXT_LENGTH), nullable=False)
    responded_date = Column(Date, nullable=False)

    complaint = relationship("ComplaintRecord", back_populates="responses")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _to_user(record: UserRecord) -> User:
    return User(id=record.id, username=record.username, email=record.email or "")


def _response_row(
    session: Session, response: Response, existing: dict[int, ResponseRecord]
) -> ResponseRecord:
    """Return the row backing ``response``, creating one if it was never stored.

    A stored response that was moved to another complaint keeps its row;
    attaching that row to the new parent re-points its ``complaint_id``.
    """
    row = None
    if response.id is not None:
        row = existing.get(response.id) or session.get(ResponseRecord, response.id)
    if row is None:
        return ResponseRecord(body=response.body, responded_date=response.responded_date)
    row.body = response.body
    row.responded_date = response.responded_date
    return row


def _to_complaint(record: ComplaintRecord) -> Complaint:
    complaint = Complaint(
        owner_id=record.owner_id,
        subject=record.subject,
        description=record.description,
        filed_date=record.filed_date,
        status=record.status,
        id=record.id,
        version=record.version,
    )
    for row in record.responses:
        complaint.add_response(
            Response(body=row.body, responded_date=row.responded_date, id=row.id)
        )
    return complaint


class ComplaintDB(ComplaintStore, UserDirectory):
    """
    Database-backed complaint store and user directory.

    Usage:
        db = ComplaintDB("sqlite:///complaints.db")
        user = db.create_user("alice", "alice@example.org")
        tracker = ComplaintTracker(db, users=db)
    """

    def __init__(self, db_url: str = "sqlite:///complaint_tracker.db") -> None:
        self.engine = create_engine(db_url, echo=False)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        Base.metadata.create_all(self.engine)
        self.SessionFactory = sessionmaker(bind=self.engine)

    def _session(self) -> Session:
        return self.SessionFactory()

    # ---- Users ----

    def create_user(self, username: str, email: str = "") -> User:
        with self._session() as session:
            record = UserRecord(username=username, email=email)
            session.add(record)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise ValidationError("username", f"'{username}' is already taken")
            session.refresh(record)
            logger.debug("Created user #%s (%s)", record.id, username)
            return _to_user(record)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._session() as session:
            record = session.get(UserRecord, user_id)
            return _to_user(record) if record is not None else None

    # ---- Create ----

    def create_complaint(self, complaint: Complaint) -> Complaint:
        with self._session() as session:
            record = ComplaintRecord(
                owner_id=complaint.owner_id,
                subject=complaint.subject,
                description=complaint.description,
                filed_date=complaint.filed_date,
                status=complaint.status,
                version=complaint.version,
            )
            rows = [
                (response, _response_row(session, response, {}))
                for response in complaint.responses
            ]
            record.responses = [row for _, row in rows]
            session.add(record)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise NotFoundError("user", complaint.owner_id)
            complaint.id = record.id
            for response, row in rows:
                response.id = row.id
            logger.debug("Inserted complaint #%s", complaint.id)
            return complaint

    # ---- Read ----

    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        with self._session() as session:
            record = session.get(ComplaintRecord, complaint_id)
            return _to_complaint(record) if record is not None else None

    def list_complaints(
        self,
        owner_id: Optional[int] = None,
        status: Optional[ComplaintStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Complaint]:
        with self._session() as session:
            q = session.query(ComplaintRecord)
            if owner_id is not None:
                q = q.filter(ComplaintRecord.owner_id == owner_id)
            if status is not None:
                q = q.filter(ComplaintRecord.status == status)
            q = q.order_by(ComplaintRecord.filed_date.desc(), ComplaintRecord.id.desc())
            return [_to_complaint(r) for r in q.offset(offset).limit(limit).all()]

    def count_by_status(self) -> dict[ComplaintStatus, int]:
        with self._session() as session:
            rows = (
                session.query(ComplaintRecord.status, func.count(ComplaintRecord.id))
                .group_by(ComplaintRecord.status)
                .all()
            )
            return {status: count for status, count in rows if count > 0}

    def count_unanswered(self) -> int:
        with self._session() as session:
            return (
                session.query(ComplaintRecord)
                .filter(
                    ComplaintRecord.status.in_(OPEN_STATUSES),
                    ~ComplaintRecord.responses.any(),
                )
                .count()
            )

    # ---- Update ----

    def save_complaint(self, complaint: Complaint) -> Complaint:
        with self._session() as session:
            record = session.get(ComplaintRecord, complaint.id)
            if record is None:
                raise NotFoundError("complaint", complaint.id)
            if record.version != complaint.version:
                raise ConflictError(complaint.id, complaint.version, record.version)

            record.subject = complaint.subject
            record.description = complaint.description
            record.filed_date = complaint.filed_date
            record.status = complaint.status
            record.version = complaint.version + 1

            existing = {row.id: row for row in record.responses}
            kept: list[ResponseRecord] = []
            inserted: list[tuple[Response, ResponseRecord]] = []
            for response in complaint.responses:
                row = _response_row(session, response, existing)
                if row.id is None:
                    inserted.append((response, row))
                kept.append(row)
            # delete-orphan removes rows no longer in the thread
            record.responses = kept

            try:
                session.commit()
            except StaleDataError:
                session.rollback()
                raise ConflictError(complaint.id, complaint.version)

            for response, row in inserted:
                response.id = row.id
            complaint.version = record.version
            logger.debug("Saved complaint #%s at version %s", complaint.id, complaint.version)
            return complaint

    # ---- Delete ----

    def delete_complaint(self, complaint_id: int) -> bool:
        with self._session() as session:
            record = session.get(ComplaintRecord, complaint_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            logger.debug("Deleted complaint #%s", complaint_id)
            return True
