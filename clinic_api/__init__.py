"""
Clinic Management API

A FastAPI-based service for managing clinic users and appointments,
with JWT authentication and role-based access control.
"""

__version__ = "1.0.0"
