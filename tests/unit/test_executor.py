"""
Unit tests for directive execution.

Tests cover:
- Order preservation
- Continuing after failures
- Skip and dry-run handling
"""

import pytest

from surf.errors import ProviderTimeoutError
from surf.execute import ActionExecutor
from surf.provider import InMemoryProvider
from surf.rotation import CreateSnapshot, DeleteSnapshot, PowerOff, PowerOn, SkipInstance


class TestActionExecutor:
    """Tests for ActionExecutor."""

    @pytest.fixture
    def provider(self):
        return InMemoryProvider()

    @pytest.mark.asyncio
    async def test_executes_in_order(self, provider):
        droplet = provider.add_droplet("web-1")
        old = provider.add_snapshot(droplet.id, "daily-old", "2020-01-01T00:00:00Z")
        await provider.connect()

        outcomes = await ActionExecutor(provider).execute(
            droplet,
            [
                DeleteSnapshot(snapshot_id=old.id),
                PowerOff(),
                CreateSnapshot(name="surf: daily at now", label="daily"),
                PowerOn(),
            ],
        )

        assert all(o.success for o in outcomes)
        assert provider.calls == [
            ("delete_snapshot", old.id),
            ("power_off", droplet.id),
            ("create_snapshot", "surf: daily at now"),
            ("power_on", droplet.id),
        ]
        assert [s.name for s in provider.snapshots_of(droplet.id)] == ["surf: daily at now"]

    @pytest.mark.asyncio
    async def test_failed_delete_does_not_block_create(self, provider):
        droplet = provider.add_droplet("web-1")
        provider.fail_on("delete_snapshot", "42")
        await provider.connect()

        outcomes = await ActionExecutor(provider).execute(
            droplet,
            [DeleteSnapshot(snapshot_id="42"), CreateSnapshot(name="surf: x", label="x")],
        )

        assert [o.success for o in outcomes] == [False, True]
        assert "injected delete_snapshot failure" in outcomes[0].error
        assert provider.calls == [("create_snapshot", "surf: x")]

    @pytest.mark.asyncio
    async def test_failed_power_off_still_snapshots_and_powers_on(self, provider):
        droplet = provider.add_droplet("web-1")
        provider.fail_on("power_off", droplet.id, ProviderTimeoutError("timed out"))
        await provider.connect()

        outcomes = await ActionExecutor(provider).execute(
            droplet,
            [PowerOff(), CreateSnapshot(name="surf: x", label="x"), PowerOn()],
        )

        assert [o.success for o in outcomes] == [False, True, True]
        assert [c[0] for c in provider.calls] == ["create_snapshot", "power_on"]

    @pytest.mark.asyncio
    async def test_skip_instance_not_sent(self, provider):
        droplet = provider.add_droplet("web-1")
        await provider.connect()

        outcomes = await ActionExecutor(provider).execute(
            droplet, [SkipInstance(reason="snapshot action in progress")]
        )

        assert outcomes[0].success and outcomes[0].skipped
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_dry_run_touches_nothing(self, provider):
        droplet = provider.add_droplet("web-1")
        await provider.connect()

        outcomes = await ActionExecutor(provider, dry_run=True).execute(
            droplet,
            [DeleteSnapshot(snapshot_id="1"), CreateSnapshot(name="surf: x", label="x")],
        )

        assert all(o.skipped for o in outcomes)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_empty_directives(self, provider):
        droplet = provider.add_droplet("web-1")
        await provider.connect()

        assert await ActionExecutor(provider).execute(droplet, []) == []
