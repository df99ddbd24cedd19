import asyncio

import pytest

from judgment_analyzer.utils import ClientDisconnected, mask_secret, redact_url, run_until_disconnected


class FakeRequest:
    def __init__(self, disconnect_after: int):
        self.polls = 0
        self.disconnect_after = disconnect_after

    async def is_disconnected(self):
        self.polls += 1
        return self.polls >= self.disconnect_after


def test_returns_result_when_work_finishes_first():
    async def work():
        return {"ok": True}

    request = FakeRequest(disconnect_after=1)
    assert asyncio.run(run_until_disconnected(request, work(), poll_interval=0.01)) == {"ok": True}
    assert request.polls == 0


def test_cancels_work_when_client_disconnects():
    state = {}

    async def scenario():
        async def slow_call():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                state["cancelled"] = True
                raise

        request = FakeRequest(disconnect_after=2)
        with pytest.raises(ClientDisconnected):
            await run_until_disconnected(request, slow_call(), poll_interval=0.01)
        await asyncio.sleep(0)
        return request

    request = asyncio.run(scenario())
    assert request.polls == 2
    assert state["cancelled"] is True


def test_errors_from_work_propagate():
    async def failing():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        asyncio.run(run_until_disconnected(FakeRequest(disconnect_after=1), failing(), poll_interval=0.01))


def test_mask_secret_and_redact_url():
    assert mask_secret("xai-abcdefgh") == "xai-abc..."
    assert mask_secret(None) == "none"
    assert redact_url("http://proxy.local:8080") == "http://proxy.local:8080"
    assert redact_url("https://bob:pw@proxy.local:8443/path") == "https://***@proxy.local:8443/path"
