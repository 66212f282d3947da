"""Pydantic schemas package.

Folder intent:
  common.py        — CamelModel base + HealthResponse (all schemas inherit CamelModel)
  verification.py  — Agency document records, versions, decisions, verification status
"""
