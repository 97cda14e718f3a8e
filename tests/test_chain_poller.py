"""Unit tests for the background chain poller."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from app.services.chain_poller import poll_chain, run_sync_round, start_background_jobs
from app.services.event_service import SyncReport


class TestChainPoller:
    @pytest.mark.asyncio
    async def test_round_syncs_events_then_reservations(self):
        database = MagicMock()
        service = MagicMock()
        service.sync_recent_events = AsyncMock(return_value=SyncReport(synced=["e"]))
        service.sync_seat_reservations = AsyncMock(return_value=SyncReport())

        with patch("app.services.chain_poller.EventService", return_value=service):
            events, reservations = await run_sync_round(database, MagicMock(), limit=25)

        service.sync_recent_events.assert_awaited_once_with(25)
        service.sync_seat_reservations.assert_awaited_once_with(25)
        database.session.return_value.close.assert_called_once()
        assert events.synced == ["e"]

    @pytest.mark.asyncio
    async def test_session_closed_when_round_fails(self):
        database = MagicMock()
        service = MagicMock()
        service.sync_recent_events = AsyncMock(side_effect=RuntimeError("rpc down"))

        with patch("app.services.chain_poller.EventService", return_value=service):
            with pytest.raises(RuntimeError):
                await run_sync_round(database, MagicMock(), limit=10)

        database.session.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_poll_survives_failed_round(self):
        rounds = AsyncMock(side_effect=[RuntimeError("rpc down"), (SyncReport(), SyncReport())])
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)
            if len(sleeps) == 2:
                raise asyncio.CancelledError

        with patch("app.services.chain_poller.run_sync_round", rounds), \
             patch("app.services.chain_poller.asyncio.sleep", fake_sleep):
            with pytest.raises(asyncio.CancelledError):
                await poll_chain(MagicMock(), MagicMock(), interval=5, limit=10)

        assert rounds.await_count == 2
        assert sleeps == [10, 5]

    def test_no_jobs_when_disabled(self):
        settings = MagicMock(SYNC_INTERVAL_SECONDS=0, AUTO_OPTIMIZE=False)
        assert start_background_jobs(MagicMock(), MagicMock(), settings) == []
