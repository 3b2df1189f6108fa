"""
Repositories organized by business domain.

Each repository wraps one table (or one aggregate) behind the async CRUD
interface from ``base`` plus the domain queries the API needs.
"""

from .admin_actions import AdminActionRepository
from .base import AsyncBaseRepository, Page, QueryBuilder, SQLModelRepository
from .content import AnnouncementRepository, ResourceRepository
from .contractors import ContractorRepository
from .events import EventRegistrationRepository, EventRepository
from .messages import MessageRepository
from .projects import ProjectRepository, ServiceRequestRepository
from .tech_projects import TechProjectRepository
from .users import UserRepository

__all__ = [
    "AdminActionRepository",
    "AnnouncementRepository",
    "AsyncBaseRepository",
    "ContractorRepository",
    "EventRegistrationRepository",
    "EventRepository",
    "MessageRepository",
    "Page",
    "ProjectRepository",
    "QueryBuilder",
    "ResourceRepository",
    "SQLModelRepository",
    "ServiceRequestRepository",
    "TechProjectRepository",
    "UserRepository",
]
