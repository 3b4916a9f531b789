"""
shared/utils/errors.py
Domain exceptions raised below the HTTP layer. Routers translate them to HTTP errors.
"""


class UserNotFoundError(LookupError):
    def __init__(self, email: str):
        super().__init__(f"User {email} not found")
        self.email = email


class BookingNotFoundError(LookupError):
    def __init__(self, booking_id):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id
