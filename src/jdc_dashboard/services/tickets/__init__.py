from .reader import TicketFeed, fetch_recent_tickets, ticket_from_record

__all__ = ["TicketFeed", "fetch_recent_tickets", "ticket_from_record"]
