"""
Appointments Domain

Books appointments against staff weekly availability. A booking with a staff
member is accepted only inside an available slot and never on top of another
non-cancelled appointment.
"""

from .router import router

__all__ = ["router"]
