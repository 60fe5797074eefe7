"""
Service layer.

Each service groups the data-access operations for one area of the
site as async classmethods.  Services open their own SQLite connection
per call, so API handlers and background jobs can call them directly.
"""
