import json

import pytest
from pydantic import ValidationError

from servicedesk.slack.modal import (
    REQUEST_MODAL_CALLBACK_ID,
    ModalConfig,
    ModalPrefill,
    RequestModal,
)
from tests.fakes import build_settings


def _prefill(title: str = "VPN is down") -> ModalPrefill:
    return ModalPrefill(slack_user_id="U1", title=title, channel_id="C1")


@pytest.mark.unit
def test_default_view_layout():
    view = RequestModal(_prefill()).build_view()

    assert view["type"] == "modal"
    assert view["callback_id"] == REQUEST_MODAL_CALLBACK_ID
    assert view["private_metadata"] == "C1"
    assert view["title"]["text"] == "Submit a Request"
    block_ids = [b["block_id"] for b in view["blocks"]]
    assert block_ids == ["title_input", "description_input", "priority_input", "category_input"]
    assert view["blocks"][0]["element"]["initial_value"] == "VPN is down"
    categories = view["blocks"][3]["element"]["options"]
    assert [o["value"] for o in categories] == ["access", "hardware", "software", "other"]


@pytest.mark.unit
def test_empty_prefill_has_no_initial_value():
    view = RequestModal(_prefill("   ")).build_view()

    assert "initial_value" not in view["blocks"][0]["element"]


@pytest.mark.unit
def test_long_prefill_is_truncated():
    view = RequestModal(_prefill("x" * 500)).build_view()

    assert len(view["blocks"][0]["element"]["initial_value"]) == RequestModal.MAX_INITIAL_TITLE


@pytest.mark.unit
def test_explicit_channel_overrides_prefill():
    view = RequestModal(_prefill(), channel_id="C9").build_view()

    assert view["private_metadata"] == "C9"


@pytest.mark.unit
def test_config_from_settings_json():
    raw = json.dumps(
        {
            "title": "IT Help",
            "categories": [{"label": "Network", "value": "network"}],
            "priorities": [],
        }
    )
    settings = build_settings(submit_modal_config=raw)

    view = RequestModal(_prefill(), settings.modal_config).build_view()

    assert view["title"]["text"] == "IT Help"
    block_ids = [b["block_id"] for b in view["blocks"]]
    assert "priority_input" not in block_ids
    assert view["blocks"][-1]["element"]["options"][0]["value"] == "network"


@pytest.mark.unit
def test_invalid_config_raises():
    settings = build_settings(submit_modal_config='{"title": "' + "t" * 40 + '"}')

    with pytest.raises(ValidationError):
        _ = settings.modal_config


@pytest.mark.unit
def test_unset_config_uses_defaults():
    assert build_settings(submit_modal_config="  ").modal_config == ModalConfig()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_show_opens_view(fake_slack):  # type: ignore[no-untyped-def]
    ok = await RequestModal(_prefill()).show("T1", fake_slack)

    assert ok is True
    (opened,) = fake_slack.views
    assert opened["trigger_id"] == "T1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_show_reports_failure(fake_slack):  # type: ignore[no-untyped-def]
    fake_slack.fail.add("open_view")

    ok = await RequestModal(_prefill()).show("T1", fake_slack)

    assert ok is False
