"""Attendance Guard package.

Authorizes employee clock-in/clock-out by combining geofence, weekly schedule
windows, PIN lockout and face matching into one auditable decision. Organized
by feature modules (attendance, schedules, faces, employees, ...) with a thin
Flask controller layer over service/repository layers.
"""
