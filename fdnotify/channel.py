"""
What fdnotify needs from a message bus binding.

A channel sends the methods of the ``org.freedesktop.Notifications``
interface and delivers its signals. Arguments and results are plain Python
values (``str``, ``int``, ``list`` of ``str``); the ``a{sv}`` hint
dictionaries are ``dict`` of :class:`~fdnotify.variant.Variant`, which the
channel converts to its binding's own types. Failures of the bus are raised
as :exc:`~fdnotify.errors.TransportError`.
"""

BUS_NAME = "org.freedesktop.Notifications"
OBJECT_PATH = "/org/freedesktop/Notifications"
INTERFACE = "org.freedesktop.Notifications"

# method -> (input signature, number of values returned)
METHODS = {
    "Notify": ("susssasa{sv}i", 1),
    "CloseNotification": ("u", 0),
    "GetCapabilities": ("", 1),
    "GetServerInformation": ("", 4),
    "Inhibit": ("ssa{sv}", 1),
    "UnInhibit": ("u", 0),
}


class SignalReceiver:
    """Returned by :meth:`Channel.subscribe`; :meth:`remove` undoes it."""

    def __init__(self, signal, handler, on_remove):
        self.signal = signal
        self.handler = handler
        self._on_remove = on_remove

    def remove(self):
        on_remove, self._on_remove = self._on_remove, None
        if on_remove is not None:
            on_remove(self)


class Channel:
    """Base class of the bus adapters."""

    def call(self, method, *args):
        """
        Call *method* with positional *args* and block until it returns.
        The return values come back as a tuple, empty for methods that
        return nothing.
        """
        raise NotImplementedError

    def subscribe(self, signal, handler) -> SignalReceiver:
        """
        Call ``handler(*args)`` for every *signal* the notification server
        emits, on whatever thread the binding delivers signals on.
        """
        raise NotImplementedError

    def run(self):
        """Deliver signals until :meth:`quit` is called."""
        raise NotImplementedError

    def quit(self):
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
