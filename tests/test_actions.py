import pytest

from fdnotify.actions import Action, Actions
from fdnotify.errors import MalformedPayload, ProtocolViolation


def test_flatten_interleaves_in_order():
    actions = Actions().add("ok", "OK").add("cancel", "Cancel")
    assert actions.flatten() == ["ok", "OK", "cancel", "Cancel"]


def test_unflatten_restores_pairs():
    actions = Actions([("default", "Open"), ("reply", "Reply"), ("mute", "Mute")])
    again = Actions.unflatten(actions.flatten())
    assert again == actions
    assert again[0] == Action("default", "Open")
    assert again.identifiers() == ["default", "reply", "mute"]


def test_empty():
    assert Actions().flatten() == []
    assert len(Actions.unflatten([])) == 0


@pytest.mark.parametrize("strings", [["id"], ["id1", "text1", "id2"]])
def test_odd_length_is_malformed(strings):
    with pytest.raises(MalformedPayload):
        Actions.unflatten(strings)
    with pytest.raises(ProtocolViolation):
        Actions.unflatten(strings)
