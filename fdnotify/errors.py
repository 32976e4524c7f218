"""Exceptions raised by fdnotify."""


class NotifyError(Exception):
    """Base class of every error raised by this package."""


class TransportError(NotifyError):
    """
    The bus refused or failed a call: connection lost, no notification
    server on the bus, the server rejected the method, a transport level
    timeout. *name* is the bus error name, *message* the text the bus or
    server sent with it; both are kept verbatim.
    """

    def __init__(self, name, message=""):
        super().__init__(f"{name}: {message}" if message else name)
        self.name = name
        self.message = message


class ProtocolViolation(NotifyError):
    """The server sent something the notification protocol does not allow."""


class MalformedPayload(ProtocolViolation, ValueError):
    """An array or struct has the wrong number of elements."""


class TypeMismatch(NotifyError, TypeError):
    """A value does not have the wire type it is being encoded or read as."""
