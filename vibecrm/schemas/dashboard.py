from pydantic import BaseModel


class OrganizationStats(BaseModel):
    """Record counts; organization_id is "all" for the global superadmin view"""
    organization_id: str
    clients: int = 0
    projects: int = 0
    tasks: int = 0
    invoices: int = 0


class MonthlyRevenue(BaseModel):
    month: str  # YYYY-MM
    revenue: float
    invoice_count: int


class RevenuePoint(BaseModel):
    month: str  # "Jan 2024"
    revenue: float
    invoice_count: int
