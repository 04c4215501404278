from .tenancy import Company
from .auth import Employee, SessionToken
from .catalog import Movie, SeatMap, Seat, Room
from .screenings import MovieSession
from .tickets import Ticket, SeatReservation
from .discounts import DiscountCode
from .inventory import InventoryItem, InventoryAdjustment
from .sales import Sale, SaleItem, SaleDiscount, Payment
from .audit import AuditLog

__all__ = [
    'Company',
    'Employee', 'SessionToken',
    'Movie', 'SeatMap', 'Seat', 'Room',
    'MovieSession',
    'Ticket', 'SeatReservation',
    'DiscountCode',
    'InventoryItem', 'InventoryAdjustment',
    'Sale', 'SaleItem', 'SaleDiscount', 'Payment',
    'AuditLog',
]
