"""
errors.py
Exceptions raised by the logic and data-access modules.
Views catch MembershipDeskError and show str(error) to the user.
"""

from __future__ import annotations


class MembershipDeskError(Exception):
    """Base class; the message is meant to be shown verbatim."""


class ValidationError(MembershipDeskError):
    """A form field is missing or invalid."""


class PermissionDenied(MembershipDeskError):
    """The signed-in role lacks the capability for this operation."""


class BackendError(MembershipDeskError):
    """The data or identity backend rejected or failed a call."""
