"""Clinic application for the hospital management portal.

This package contains models, serializers, views and route registrations
implementing the REST contract the role dashboards (admin, doctor,
staff, patient) consume, plus a small HTTP client for that contract.
"""
