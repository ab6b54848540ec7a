"""
auth/store.py -- SQLAlchemy Core persistence layer for identities.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_identity
is the mapper. Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is enforced by a UNIQUE index. create_user() translates the
  resulting IntegrityError into DuplicateKeyError, so the service can tell
  "email taken" apart from any other database failure by type, not by
  matching driver error text.

  create_user() and update_password() accept only a StoredHash. A plaintext
  password cannot reach the hashed_password column by accident.

DB path: auth/sessiongate_auth.db by default; DATABASE_URL overrides it.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateKeyError
from auth.models import Identity, Role, StoredHash

logger = logging.getLogger("sessiongate.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4 string
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", String(255), nullable=False),
    Column("avatar", String(500)),
    Column("role", String(50), nullable=False, server_default=Role.USER.value),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for Identity records.

    Usage:
        store = UserStore("sqlite:////var/lib/sessiongate/auth.db")
        store.create_user(Identity(name="Ann", email="ann@x.com", hashed_password=hash_password(secret)))
        identity = store.get_by_email("ann@x.com")
        store.close()

    Plain sqlite:///:memory: gives every pooled connection its own empty
    database. It is fine for single-threaded use, but a threaded server needs
    a file URL or a named shared-memory URI
    ("sqlite:///file:name?mode=memory&cache=shared&uri=true").
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /api/health."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create_user(self, identity: Identity) -> str:
        """Insert a new identity and return its id.

        Stamps created_at / updated_at on both the row and the passed object.

        Raises:
            DuplicateKeyError: the email (or id) is already present.
            TypeError:         hashed_password is not a StoredHash.
        """
        if not isinstance(identity.hashed_password, StoredHash):
            raise TypeError("Identity.hashed_password must be a StoredHash")
        now = _now_iso()
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=identity.id,
                        name=identity.name,
                        email=identity.email,
                        hashed_password=str(identity.hashed_password),
                        avatar=identity.avatar,
                        role=Role(identity.role).value,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateKeyError(identity.email) from exc
        identity.created_at = now
        identity.updated_at = now
        logger.info("Created identity %s (role=%s)", identity.id, Role(identity.role).value)
        return identity.id

    def get_by_email(self, email: str) -> Identity | None:
        """Look up an identity by its normalized email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_identity(row) if row is not None else None

    def get_by_id(self, identity_id: str) -> Identity | None:
        """Look up an identity by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == identity_id)).fetchone()
        return _row_to_identity(row) if row is not None else None

    def update_profile(self, identity_id: str, **fields) -> bool:
        """Update name and/or avatar. Returns False if identity_id was not found.

        Only name and avatar are accepted. Unknown keys raise ValueError rather
        than silently passing through to SQL.
        """
        unknown = set(fields) - {"name", "avatar"}
        if unknown:
            raise ValueError(f"Unknown profile fields: {unknown!r}")
        if not fields:
            return self.get_by_id(identity_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == identity_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def update_password(self, identity_id: str, hashed_password: StoredHash) -> bool:
        """Replace the stored hash. Returns False if identity_id was not found."""
        if not isinstance(hashed_password, StoredHash):
            raise TypeError("hashed_password must be a StoredHash")
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == identity_id)
                .values(hashed_password=str(hashed_password), updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> Identity:
    return Identity(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=StoredHash(row.hashed_password),
        avatar=row.avatar,
        role=Role(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
