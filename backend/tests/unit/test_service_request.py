import pytest

from servicedesk.jira.events import JiraChangeItem, JiraIssue
from servicedesk.services.service_request import THREAD_PROPERTY, RequestParams, ServiceRequest
from servicedesk.slack.thread import SlackMessageId


def _request(ctx, notification: str = "C1", conversation: str = "C2") -> ServiceRequest:  # type: ignore[no-untyped-def]
    return ServiceRequest(SlackMessageId(conversation, "111.222"), notification, "U1", ctx)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_builds_issue_fields_from_settings_and_params(make_ctx, fake_jira):  # type: ignore[no-untyped-def]
    ctx = make_ctx(jira_project_key="OPS", jira_issue_type="Service Request")
    request = _request(ctx)

    ok = await request.create(
        RequestParams(
            slack_user_id="U1",
            title="  Printer broken ",
            description="Jams",
            priority="High",
            components=["hardware", ""],
        )
    )

    assert ok is True
    (fields,) = fake_jira.created
    assert fields["project"] == {"key": "OPS"}
    assert fields["issuetype"] == {"name": "Service Request"}
    assert fields["summary"] == "Printer broken"
    assert fields["description"] == "Jams"
    assert fields["priority"] == {"name": "High"}
    assert fields["components"] == [{"name": "hardware"}]
    assert fields["labels"] == ["slack-U1"]
    assert request.ticket is not None and request.ticket.key == "SD-1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_without_title_uses_placeholder(make_ctx, fake_jira):  # type: ignore[no-untyped-def]
    request = _request(make_ctx())

    await request.create(RequestParams(slack_user_id=None, title=None))

    (fields,) = fake_jira.created
    assert fields["summary"] == "Untitled request"
    assert "priority" not in fields
    assert "labels" not in fields


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_binds_thread_and_redraws_root(make_ctx, fake_jira, fake_slack):  # type: ignore[no-untyped-def]
    request = _request(make_ctx())

    await request.create(RequestParams(slack_user_id="U1", title="Printer broken"))

    assert fake_jira.properties[("SD-1", THREAD_PROPERTY)] == {
        "channel": "C2",
        "ts": "111.222",
        "notification_channel": "C1",
        "slack_user_id": "U1",
    }
    (update,) = fake_slack.updated
    assert update["channel"] == "C2"
    assert update["ts"] == "111.222"
    assert update["text"] == "SD-1: Printer broken [Open]"
    assert "https://jira.example.com/browse/SD-1" in update["blocks"][0]["text"]["text"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_failure_replies_in_thread(make_ctx, fake_jira, fake_slack):  # type: ignore[no-untyped-def]
    fake_jira.fail.add("create_issue")
    request = _request(make_ctx())

    ok = await request.create(RequestParams(slack_user_id="U1", title="Printer broken"))

    assert ok is False
    assert request.ticket is None
    (reply,) = fake_slack.posted
    assert reply["channel"] == "C2"
    assert reply["thread_ts"] == "111.222"
    assert reply["text"].startswith(":warning:")
    assert fake_slack.updated == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_binding_failure_still_counts_as_created(make_ctx, fake_jira, fake_slack):  # type: ignore[no-untyped-def]
    fake_jira.fail.add("set_issue_property")
    fake_slack.fail.add("update_message")
    request = _request(make_ctx())

    ok = await request.create(RequestParams(slack_user_id="U1", title="Printer broken"))

    assert ok is True
    assert fake_jira.properties == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_same_channel_sends_no_notification(make_ctx, fake_slack):  # type: ignore[no-untyped-def]
    request = _request(make_ctx(), notification="C1", conversation="C1")

    await request.create(RequestParams(slack_user_id="U1", title="Printer broken"))

    assert fake_slack.posted == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_notification_failure_is_not_fatal(make_ctx, fake_slack):  # type: ignore[no-untyped-def]
    fake_slack.fail.add("get_permalink")
    request = _request(make_ctx())

    ok = await request.create(RequestParams(slack_user_id="U1", title="Printer broken"))

    assert ok is True
    assert fake_slack.posted == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_without_ticket_is_a_no_op(make_ctx, fake_slack):  # type: ignore[no-untyped-def]
    request = _request(make_ctx())

    await request.update_slack_thread()

    assert fake_slack.updated == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_announces_status_change(make_ctx, fake_slack):  # type: ignore[no-untyped-def]
    ticket = JiraIssue.model_validate(
        {"key": "SD-7", "fields": {"summary": "VPN", "status": {"name": "Done"}, "description": "d"}}
    )
    change = JiraChangeItem.model_validate({"field": "status", "fromString": "Open", "toString": "Done"})
    request = ServiceRequest(
        SlackMessageId("C2", "111.222"), "C1", "U1", make_ctx(), ticket=ticket, status_change=change
    )

    await request.update_slack_thread()

    (update,) = fake_slack.updated
    assert update["text"] == "SD-7: VPN [Done]"
    # Description block sits between the summary and the context line
    assert [b["type"] for b in update["blocks"]] == ["section", "section", "context"]
    reply, notice = fake_slack.posted
    assert reply["thread_ts"] == "111.222"
    assert reply["text"] == "Status changed from *Open* to *Done*"
    assert notice["channel"] == "C1"
    assert notice["text"].startswith("SD-7: Status changed")
    assert "view thread" in notice["text"]
