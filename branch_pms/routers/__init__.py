# API Routers
from branch_pms.routers import auth, rooms, guests, bookings, services, bills, payments, audit_logs, admin

__all__ = ['auth', 'rooms', 'guests', 'bookings', 'services', 'bills', 'payments', 'audit_logs', 'admin']
