from app.models.user import User
from app.models.customer import Customer, Purchase
from app.models.campaign import Campaign, CampaignPerformance
from app.models.audit import AuditLog

__all__ = [
    "User",
    "Customer", "Purchase",
    "Campaign", "CampaignPerformance",
    "AuditLog",
]
