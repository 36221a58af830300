"""
Staff Availability Domain

Weekly recurring working windows per salon staff member, and the searches
the booking flow uses to find who is free.

STRUCTURE:
- time_calculator.py: "HH:MM" parsing, window arithmetic (no I/O)
- repository.py: StaffAvailabilityRepository (queries, bulk writes)
- service.py: StaffAvailabilityService (validation, templates, searches)
- router.py: /staff-availability endpoints
"""

from .router import router

__all__ = ["router"]
