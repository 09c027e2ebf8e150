from typing import List

from museumtix.schemas import CamelModel


class TicketTypeSales(CamelModel):
    ticket_type_id: int
    name: str
    quantity: int
    revenue: float

class ExhibitionPopularity(CamelModel):
    title: str
    quantity: int

class AnalyticsSummary(CamelModel):
    total_tickets: int
    paid_tickets: int
    used_tickets: int
    total_revenue: float
    sales_by_ticket_type: List[TicketTypeSales]
    top_exhibitions: List[ExhibitionPopularity]
