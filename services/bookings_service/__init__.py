"""Bookings Service: students and the lesson booking state machine."""
