"""
Class scheduling domains

- class_types: catalog of class kinds
- schedules: weekly templates sessions are generated from
- sessions: dated occurrences and their status workflow
- bookings: reservations, waitlist and attendance
"""
