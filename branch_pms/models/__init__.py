# Domain Models
from branch_pms.models.ontology import (
    Branch, Designation, Staff, RoomType, Room, Guest, Booking, ServiceCatalogue,
    ServiceUsage, Bill, Payment, AuditLog
)

__all__ = [
    'Branch', 'Designation', 'Staff', 'RoomType', 'Room', 'Guest', 'Booking', 'ServiceCatalogue',
    'ServiceUsage', 'Bill', 'Payment', 'AuditLog'
]
