from collections import Counter
from typing import Dict, List

from museumtix.analytics.schemas import AnalyticsSummary, ExhibitionPopularity, TicketTypeSales
from museumtix.schemas import Ticket

TOP_EXHIBITIONS = 5


class AnalyticsService:
    @staticmethod
    def summarize(tickets: List[Ticket]) -> AnalyticsSummary:
        """Aggregate sales figures over every ticket in the store"""
        paid = [t for t in tickets if t.is_paid]
        
        sales: Dict[int, TicketTypeSales] = {}
        for ticket in tickets:
            entry = sales.get(ticket.ticket_type_id)
            if entry is None:
                name = ticket.ticket_type.name if ticket.ticket_type else f"Ticket type {ticket.ticket_type_id}"
                entry = TicketTypeSales(ticket_type_id=ticket.ticket_type_id, name=name, quantity=0, revenue=0.0)
                sales[ticket.ticket_type_id] = entry
            entry.quantity += ticket.quantity
            if ticket.is_paid:
                entry.revenue += ticket.total_price
        
        # Tickets whose exhibition is missing count as general admission
        popularity: Counter = Counter()
        for ticket in tickets:
            popularity[ticket.exhibition_title] += ticket.quantity
        
        return AnalyticsSummary(
            total_tickets=len(tickets),
            paid_tickets=len(paid),
            used_tickets=sum(1 for t in tickets if t.is_used),
            total_revenue=sum(t.total_price for t in paid),
            sales_by_ticket_type=sorted(sales.values(), key=lambda s: s.ticket_type_id),
            top_exhibitions=[
                ExhibitionPopularity(title=title, quantity=quantity)
                for title, quantity in popularity.most_common(TOP_EXHIBITIONS)
            ]
        )
