"""Services package — all business logic lives here, never in routers.

Files:
  document_registry.py   — One record per (agency, document type); race-safe upsert
  version_store.py       — Upload validation, append-only versions, latest-version selection
  review.py              — Admin accept / reject state machine (+ audit trail)
  eligibility.py         — Derives and persists an agency's verified flag
  agency_verification.py — Facade composing the above (what routers call)

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
