"""
Membership resolution and access control for paid video lessons.

Verifies membership credentials, resolves the effective tier for a request,
gates video sections by tier and meters AI chat usage per lesson and day.
"""

__version__ = "0.1.0"
