"""Class reservations and waitlist"""
