"""Actions offered on a notification."""

from typing import List, NamedTuple, Sequence

from .errors import MalformedPayload

# Invoked when the notification itself is clicked, on most servers.
DEFAULT_ACTION = "default"
# Shows a text field on servers with the "inline-reply" capability.
INLINE_REPLY = "inline-reply"


class Action(NamedTuple):
    identifier: str
    text: str


class Actions:
    """
    Ordered list of :class:`Action`. On the wire it is a flat string array
    alternating identifier and label; order matters, as servers treat the
    first action specially.
    """

    def __init__(self, actions=()):
        self._actions: List[Action] = [Action(*a) for a in actions]

    def add(self, identifier, text):
        self._actions.append(Action(identifier, text))
        return self

    def flatten(self) -> List[str]:
        return [item for action in self._actions for item in action]

    @classmethod
    def unflatten(cls, strings: Sequence[str]):
        strings = list(strings)
        if len(strings) % 2:
            raise MalformedPayload(
                f"actions must be identifier/label pairs, got {len(strings)} strings"
            )
        return cls(zip(strings[0::2], strings[1::2]))

    def identifiers(self):
        return [action.identifier for action in self._actions]

    def __iter__(self):
        return iter(self._actions)

    def __len__(self):
        return len(self._actions)

    def __getitem__(self, index):
        return self._actions[index]

    def __eq__(self, other):
        if not isinstance(other, Actions):
            return NotImplemented
        return self._actions == other._actions

    def __repr__(self):
        return f"Actions({self._actions!r})"
