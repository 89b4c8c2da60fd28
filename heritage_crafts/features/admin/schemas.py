from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel


class ActivityOut(BaseModel):
    type: str  # user_registered | order_created | booking_created
    entity_id: int
    user_id: int
    description: str
    created_at: datetime


class DashboardOut(BaseModel):
    total_users: int
    users_by_role: Dict[str, int]
    total_craftsmen: int
    pending_verifications: int
    total_courses: int
    total_products: int
    total_orders: int
    pending_reports: int
    recent_activities: List[ActivityOut]
