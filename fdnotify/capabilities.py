"""Capability tokens advertised by notification servers."""

import logging

log = logging.getLogger(__name__)

# Icons instead of text for actions; enabled per notification with the
# "action-icons" hint.
ACTION_ICONS = "action-icons"
# Actions are shown to the user. Without it actions may be ignored.
ACTIONS = "actions"
# Body text is shown. Some servers (OSDs, marquees) only show the summary.
BODY = "body"
BODY_HYPERLINKS = "body-hyperlinks"
BODY_IMAGES = "body-images"
# Markup in the body. Without it markup shows through and must be stripped
# by the client.
BODY_MARKUP = "body-markup"
# Animates all frames of an image array.
ICON_MULTI = "icon-multi"
# Shows exactly one frame. Mutually exclusive with icon-multi.
ICON_STATIC = "icon-static"
# Notifications are kept until acknowledged, removed, or recalled.
PERSISTENCE = "persistence"
# Sounds are supported, as are the "sound-file" and "suppress-sound" hints.
SOUND = "sound"
X_KDE_URLS = "x-kde-urls"
X_KDE_ORIGIN_NAME = "x-kde-origin-name"
X_KDE_DISPLAY_APPNAME = "x-kde-display-appname"
# An action with the identifier "inline-reply" shows an input field whose
# text comes back in the NotificationReplied signal. KDE only.
INLINE_REPLY = "inline-reply"

KNOWN = frozenset({
    ACTION_ICONS, ACTIONS, BODY, BODY_HYPERLINKS, BODY_IMAGES, BODY_MARKUP,
    ICON_MULTI, ICON_STATIC, PERSISTENCE, SOUND, X_KDE_URLS,
    X_KDE_ORIGIN_NAME, X_KDE_DISPLAY_APPNAME, INLINE_REPLY,
})


class Capabilities:
    """
    The set of tokens returned by ``GetCapabilities``. Unknown tokens are
    kept; duplicates collapse.

    A server advertising both "icon-multi" and "icon-static" violates the
    protocol; the conflict is logged and the set behaves as if only
    "icon-static" had been sent.
    """

    def __init__(self, tokens=()):
        tokens = set(tokens)
        if ICON_MULTI in tokens and ICON_STATIC in tokens:
            log.warning(
                "server advertises both %s and %s, treating it as %s",
                ICON_MULTI, ICON_STATIC, ICON_STATIC,
            )
            tokens.discard(ICON_MULTI)
        self._tokens = frozenset(tokens)

    def __contains__(self, token):
        return token in self._tokens

    def __iter__(self):
        return iter(sorted(self._tokens))

    def __len__(self):
        return len(self._tokens)

    def __eq__(self, other):
        if isinstance(other, Capabilities):
            return self._tokens == other._tokens
        if isinstance(other, (set, frozenset)):
            return self._tokens == other
        return NotImplemented

    def __hash__(self):
        return hash(self._tokens)

    def __repr__(self):
        return f"Capabilities({sorted(self._tokens)!r})"

    @property
    def unknown(self):
        """Tokens that are not part of the protocol or a known extension."""
        return self._tokens - KNOWN

    @property
    def icon_mode(self):
        """ICON_MULTI, ICON_STATIC, or None when the server says neither."""
        if ICON_STATIC in self._tokens:
            return ICON_STATIC
        if ICON_MULTI in self._tokens:
            return ICON_MULTI
        return None

    def allows(self, hint_key):
        """
        Whether setting *hint_key* means anything to this server. Hints that
        are not tied to a capability are always allowed.
        """
        return hint_key.capability is None or hint_key.capability in self._tokens
