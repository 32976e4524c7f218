"""Client for the freedesktop.org Desktop Notifications protocol."""

from .actions import DEFAULT_ACTION, INLINE_REPLY, Action, Actions
from .capabilities import Capabilities
from .channel import BUS_NAME, INTERFACE, OBJECT_PATH, Channel
from .correlator import SignalCorrelator, State, Subscription
from .errors import (
    MalformedPayload, NotifyError, ProtocolViolation, TransportError, TypeMismatch,
)
from .hints import HINT_KEYS, HintKey, Hints, Urgency
from .image import RawImage
from .notifications import (
    EXPIRES_DEFAULT, EXPIRES_NEVER, Notifications, Request, ServerInformation,
)
from .signals import (
    ActionInvoked, ActivationToken, CloseReason, NotificationClosed,
    NotificationReplied,
)
from .variant import StructType, Tag, Variant

__version__ = "0.1.0"
