from .associations import user_roles, organizers_users
from .organizers.models import Organizer
from .users.models import User, Role
from .events.models import Event
from .categories.models import TicketCategory
from .tickets.models import Ticket, TicketStatus
from .tokens.models import SpecialPriceToken, TokenStatus

__all__ = (
    "user_roles", "organizers_users", "Organizer", "User", "Role", "Event", "TicketCategory", "Ticket",
    "TicketStatus", "SpecialPriceToken", "TokenStatus"
)
