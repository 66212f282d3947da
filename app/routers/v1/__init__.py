"""v1 router package — all /api/v1/* endpoints live here.

Files:
  agency_documents.py  — Agency uploads, document lists, verification status
  admin_documents.py   — Admin review: versions, decisions, downloads, recompute

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to app/services/.
"""
