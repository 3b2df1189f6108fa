"""
Database entities organized by business domain.

Importing this package registers every table on ``Base.metadata``.
"""

from .admin_actions import AdminAction
from .content import Announcement, Resource
from .contractors import CaliforniaContractor, OutreachStatus
from .events import Event, EventRegistration, EventStatus, RegistrationStatus
from .messages import Message, MessageStatus
from .projects import (
    Project,
    ProjectStatus,
    ProjectVisibility,
    ServiceRequest,
    ServiceRequestStatus,
)
from .tech_projects import TechProject
from .users import MemberType, User

__all__ = [
    "AdminAction",
    "Announcement",
    "CaliforniaContractor",
    "Event",
    "EventRegistration",
    "EventStatus",
    "MemberType",
    "Message",
    "MessageStatus",
    "OutreachStatus",
    "Project",
    "ProjectStatus",
    "ProjectVisibility",
    "RegistrationStatus",
    "Resource",
    "ServiceRequest",
    "ServiceRequestStatus",
    "TechProject",
    "User",
]
