"""Unit tests for ProgressSyncer push and the pull apply policy."""

from __future__ import annotations

import pytest

from readersync.errors import AuthRejected, TransportFailure
from readersync.models import DeviceIdentity, ProgressRecord
from readersync.sync.progress import ProgressSyncer, PullOutcome
from readersync.transport.models import Credentials
from tests.conftest import DOC


async def _seed(server, credentials, *, position="42", percentage=0.5, device_id="device-other"):
    await server.update_progress(
        credentials,
        ProgressRecord(
            document=DOC,
            position=position,
            percentage=percentage,
            device_model="Kindle",
            device_id=device_id,
        ),
    )


@pytest.fixture
def syncer(server, doc_store, device, ui) -> ProgressSyncer:
    return ProgressSyncer(server, doc_store, device, ui)


class TestPushProgress:
    """Uploading the local position."""

    async def test_push_stamps_device_identity(self, syncer, server, credentials) -> None:
        await syncer.push_progress(credentials, DOC, "17", 0.25)

        record = await server.get_progress(credentials, DOC)
        assert record is not None
        assert record.position == "17"
        assert record.percentage == 0.25
        assert record.device_model == "Kobo"
        assert record.device_id == "device-local"

    async def test_interactive_push_notifies(self, syncer, credentials, ui) -> None:
        await syncer.push_progress(credentials, DOC, "17", 0.25, interactive=True)

        assert ui.messages == ["Progress pushed."]

    async def test_background_push_is_silent(self, syncer, credentials, ui) -> None:
        await syncer.push_progress(credentials, DOC, "17", 0.25)

        assert ui.messages == []

    async def test_push_propagates_failure(self, syncer, server, credentials) -> None:
        server.fail_with = TransportFailure("boom")

        with pytest.raises(TransportFailure):
            await syncer.push_progress(credentials, DOC, "17", 0.25)

    async def test_bad_credentials_rejected(self, syncer) -> None:
        with pytest.raises(AuthRejected):
            await syncer.push_progress(Credentials("reader", "wrong"), DOC, "1", 0.1)


class TestPullProgress:
    """Each branch of the apply policy."""

    async def test_not_found(self, syncer, credentials, ui) -> None:
        result = await syncer.pull_progress(credentials, DOC, interactive=True)

        assert result.outcome is PullOutcome.NOT_FOUND
        assert result.record is None
        assert ui.messages == ["No progress found on server."]

    async def test_self_authored_is_skipped(
        self, syncer, server, credentials, doc_store, ui
    ) -> None:
        """A record written by this device is never applied, whatever its position."""
        await _seed(server, credentials, percentage=0.9, device_id="device-local")

        result = await syncer.pull_progress(credentials, DOC)

        assert result.outcome is PullOutcome.SELF_AUTHORED
        assert doc_store.gotos == []
        assert ui.prompts == []

    async def test_already_current(self, syncer, server, credentials, doc_store) -> None:
        doc_store.percentage = 0.5004
        await _seed(server, credentials, percentage=0.5)

        result = await syncer.pull_progress(credentials, DOC, interactive=True)

        assert result.outcome is PullOutcome.ALREADY_CURRENT
        assert doc_store.gotos == []

    async def test_interactive_applies_without_asking(
        self, syncer, server, credentials, doc_store, ui
    ) -> None:
        await _seed(server, credentials, position="42", percentage=0.5)

        result = await syncer.pull_progress(credentials, DOC, interactive=True)

        assert result.outcome is PullOutcome.APPLIED
        assert doc_store.gotos == ["42"]
        assert ui.prompts == []
        assert ui.messages == ["Progress synced."]

    async def test_background_asks_before_applying(
        self, syncer, server, credentials, doc_store, ui
    ) -> None:
        await _seed(server, credentials, position="42", percentage=0.5)

        result = await syncer.pull_progress(credentials, DOC)

        assert result.outcome is PullOutcome.APPLIED
        assert ui.prompts == ["Sync to 50% from device 'Kindle'?"]
        assert doc_store.gotos == ["42"]

    async def test_background_declined(
        self, syncer, server, credentials, doc_store, ui
    ) -> None:
        ui.answer = False
        await _seed(server, credentials, position="42", percentage=0.5)

        result = await syncer.pull_progress(credentials, DOC)

        assert result.outcome is PullOutcome.DECLINED
        assert doc_store.gotos == []

    async def test_deferred_prompt(self, syncer, server, credentials, doc_store, ui) -> None:
        """``ask=False`` hands the decision back without prompting."""
        await _seed(server, credentials, position="42", percentage=0.5)

        result = await syncer.pull_progress(credentials, DOC, ask=False)

        assert result.outcome is PullOutcome.NEEDS_CONFIRM
        assert ui.prompts == []
        assert doc_store.gotos == []

        assert result.record is not None
        applied = await syncer.confirm_and_apply(DOC, result.record)
        assert applied.outcome is PullOutcome.APPLIED
        assert doc_store.gotos == ["42"]

    async def test_unknown_device_model_in_prompt(
        self, server, credentials, doc_store, ui
    ) -> None:
        syncer = ProgressSyncer(server, doc_store, DeviceIdentity("Kobo", "x"), ui)
        await server.update_progress(
            credentials, ProgressRecord(document=DOC, position="9", percentage=0.3)
        )

        await syncer.pull_progress(credentials, DOC)

        assert ui.prompts == ["Sync to 30% from device 'unknown'?"]
