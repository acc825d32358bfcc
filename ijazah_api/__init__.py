"""Ijazah API - FastAPI server for Quranic certification workflows.

This package provides a REST API for ijazah applications, scholar review,
certificate issuance with QR verification, and user notifications.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
