"""
Member engagement scoring pushed to HubSpot with each contact.

The score starts at 50, rewards recent logins, event attendance and profile
completeness, and is clamped to 0..100. The risk level buckets the score for
retention campaigns.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from namc_portal.core.database.entities.users import User

BASE_SCORE = 50
EVENT_POINTS = 3
EVENT_POINTS_CAP = 15


def login_recency_points(last_login: Optional[datetime], now: datetime) -> int:
    if last_login is None:
        return 0
    days = (now - last_login).days
    if days <= 7:
        return 25
    if days <= 30:
        return 15
    if days <= 90:
        return 5
    return 0


def engagement_score(user: User, event_count: int, now: datetime) -> int:
    score = BASE_SCORE
    score += login_recency_points(user.last_successful_login, now)
    score += min(event_count * EVENT_POINTS, EVENT_POINTS_CAP)
    if user.company:
        score += 2
    if user.phone:
        score += 2
    if user.get_skills_list():
        score += 3
    if user.city:
        score += 3
    return max(0, min(100, score))


def risk_level(score: int) -> str:
    if score < 25:
        return "at_risk_intervention"
    if score < 50:
        return "high_risk"
    if score < 75:
        return "medium_risk"
    return "standard"
