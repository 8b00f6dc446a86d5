from eventease.models.base import Base
from eventease.models.event import Event
from eventease.models.feedback import Feedback
from eventease.models.refresh_token import RefreshToken
from eventease.models.rsvp import Rsvp
from eventease.models.user import User

__all__ = ["Base", "User", "Event", "Rsvp", "Feedback", "RefreshToken"]
