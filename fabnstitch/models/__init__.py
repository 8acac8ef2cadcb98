# Models package
from fabnstitch.models.user import User, UserRole
from fabnstitch.models.measurement import Measurement, MEASUREMENT_FIELDS
from fabnstitch.models.fabric import Fabric
from fabnstitch.models.order import Order, OrderStatus, OrderStatusHistory
from fabnstitch.models.ticket import Ticket, TicketStatus, TicketPriority
from fabnstitch.models.lead import Lead, LeadStatus
