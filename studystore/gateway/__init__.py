"""
StudyStore HTTP gateway.

REST surface over LocalClient for browser views. All callers share one
signed-in session; see app.py.

Usage:
    uvicorn studystore.gateway:create_app --factory --port 8000
"""

from .app import create_app

__all__ = ["create_app"]
