"""
contact/models.py -- Domain dataclass for contact form messages.

Pure data container. Validation happens at the HTTP boundary (api/models.py,
web/routes.py); storage lives in contact/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ContactMessage:
    """A message submitted through the public contact form.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    subject: str
    message: str
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
