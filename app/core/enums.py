"""Closed enumerations shared by models, schemas, and services."""

import enum


class DocumentType(str, enum.Enum):
    """Compliance document categories an agency can upload."""

    REGISTRATION_CERTIFICATE = "registration_certificate"
    TAX_ID = "tax_id"
    BUSINESS_LICENSE = "business_license"
    TRANSPORT_AUTHORIZATION = "transport_authorization"
    SOCIAL_SECURITY = "social_security"
    INSURANCE = "insurance"
    OTHER = "other"


class DocumentStatus(str, enum.Enum):
    """Review status of one uploaded version.

    ``submitted`` is the initial state; ``accepted`` and ``rejected`` are the
    decisions an admin may record (and re-record) on a version.
    """

    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


DECISION_STATUSES = frozenset({DocumentStatus.ACCEPTED, DocumentStatus.REJECTED})


class AccountRole(str, enum.Enum):
    AGENCY = "agency"
    ADMIN = "admin"
    USER = "user"
