# Business Services
from branch_pms.services.room_service import RoomService
from branch_pms.services.booking_service import BookingService
from branch_pms.services.billing_service import BillingService
from branch_pms.services.guest_service import GuestService
from branch_pms.services.service_usage_service import ServiceUsageService
from branch_pms.services.staff_service import StaffService
from branch_pms.services.audit_service import AuditService
from branch_pms.services.report_service import ReportService

__all__ = [
    'RoomService', 'BookingService', 'BillingService', 'GuestService',
    'ServiceUsageService', 'StaffService', 'AuditService', 'ReportService'
]
