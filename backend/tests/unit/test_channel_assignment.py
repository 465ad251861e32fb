import pytest

from servicedesk.slack.thread import (
    ChannelAssignments,
    ConversationRestriction,
    determine_conversation_channel,
)


@pytest.mark.unit
def test_primary_restriction_keeps_everything_in_primary_channel():
    result = determine_conversation_channel("C2", "C1", ConversationRestriction.PRIMARY)

    assert result == ChannelAssignments(conversation_channel_id="C1", notification_channel_id="C1")


@pytest.mark.unit
@pytest.mark.parametrize("restriction", ["invited", "none", None])
def test_unrestricted_conversation_stays_in_starting_channel(restriction):
    result = determine_conversation_channel("C2", "C1", restriction)

    assert result.conversation_channel_id == "C2"
    assert result.notification_channel_id == "C1"


@pytest.mark.unit
def test_missing_starting_channel_falls_back_to_primary():
    result = determine_conversation_channel(None, "C1", "invited")

    assert result == ChannelAssignments("C1", "C1")


@pytest.mark.unit
def test_missing_primary_notifies_in_conversation_channel():
    result = determine_conversation_channel("C2", None, "primary")

    assert result == ChannelAssignments("C2", "C2")


@pytest.mark.unit
def test_no_channel_at_all_is_rejected():
    with pytest.raises(ValueError):
        determine_conversation_channel(None, None, "none")


@pytest.mark.unit
def test_assignment_is_deterministic():
    first = determine_conversation_channel("C2", "C1", "invited")
    second = determine_conversation_channel("C2", "C1", "invited")

    assert first == second


@pytest.mark.unit
def test_unknown_restriction_is_rejected():
    with pytest.raises(ValueError):
        determine_conversation_channel("C2", "C1", "everywhere")
