"""
Edutrail - Dashboard data layer.

Built on restbase: user-scoped CRUD helpers, project image upload,
and security-event recording.
"""

__version__ = "1.0.0"
