import pytest

from ultron_core.domain.models import ChatMessage


def test_chat_message_dict_form():
    msg = ChatMessage(role="user", content="Turtle State: ok\nUser Command: ")
    assert msg.to_dict() == {"role": "user", "content": "Turtle State: ok\nUser Command: "}
    assert ChatMessage.from_dict({"role": "assistant", "content": "", "name": "x"}) == ChatMessage("assistant", "")


@pytest.mark.parametrize(
    "data",
    [
        ["user", "hi"],
        {"role": "tool", "content": "hi"},
        {"role": "user"},
        {"role": "user", "content": 42},
    ],
)
def test_chat_message_from_dict_rejects_bad_input(data):
    with pytest.raises(ValueError):
        ChatMessage.from_dict(data)
