"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  account.py   — Accounts (agencies carry the derived `verified` flag)
  document.py  — Agency document records and their append-only versions
  audit.py     — Immutable review audit trail (never updated or deleted)
  mixins.py    — Shared id / timestamp columns
"""

from app.domain.account import Account
from app.domain.audit import AuditTrail
from app.domain.document import AgencyDocument, AgencyDocumentVersion

__all__ = [
    "Account",
    "AgencyDocument",
    "AgencyDocumentVersion",
    "AuditTrail",
]
