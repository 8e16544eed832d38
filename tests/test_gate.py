"""Tests for EnforcementGate cooldown behaviour."""

import asyncio

from zenbot.zen.gate import EnforcementGate

from conftest import T0, make_session


def make_gate(registry, sink, clock, cooldown_s=10.0):
    return EnforcementGate(registry=registry, sink=sink, cooldown_s=cooldown_s, clock=clock)


class TestReportActivity:
    def test_no_session_is_noop(self, registry, sink, clock):
        gate = make_gate(registry, sink, clock)
        assert asyncio.run(gate.report_activity("U1", "typing")) is None
        assert sink.sent == []

    def test_violation_message(self, registry, sink, clock):
        registry.create(make_session(reason="focus", channel_id="C9"))
        gate = make_gate(registry, sink, clock)

        hit = asyncio.run(gate.report_activity("U1", "typing"))

        assert hit is not None
        assert sink.sent == [("<@U1>-- for typing during your zen period (focus).", "C9", "slack")]

    def test_cooldown_window_edges(self, registry, sink, clock):
        registry.create(make_session())
        gate = make_gate(registry, sink, clock, cooldown_s=10)

        async def scenario():
            fired_at = T0 + 10
            assert await gate.report_activity("U1", "typing", now=fired_at) is not None
            assert await gate.report_activity("U1", "typing", now=fired_at + 10 - 0.5) is None
            assert await gate.report_activity("U1", "typing", now=fired_at + 10 + 0.5) is not None

        asyncio.run(scenario())
        assert len(sink.sent) == 2

    def test_uses_clock_by_default(self, registry, sink, clock):
        registry.create(make_session())
        gate = make_gate(registry, sink, clock, cooldown_s=10)

        async def scenario():
            await gate.report_activity("U1", "typing")
            clock.advance(5)
            await gate.report_activity("U1", "typing")
            clock.advance(6)
            await gate.report_activity("U1", "typing")

        asyncio.run(scenario())
        assert len(sink.sent) == 2

    def test_concurrent_signals_fire_once(self, registry, sink, clock):
        registry.create(make_session())
        gate = make_gate(registry, sink, clock)

        async def burst():
            return await asyncio.gather(*[
                gate.report_activity("U1", label)
                for label in ["typing", "using reactjis", "pinning messages"] * 20
            ])

        results = asyncio.run(burst())

        assert sum(r is not None for r in results) == 1
        assert len(sink.sent) == 1

    def test_only_earliest_session_is_enforced(self, registry, sink, clock):
        registry.create(make_session(reason="first", channel_id="C1"))
        registry.create(make_session(reason="second", channel_id="C2"))
        gate = make_gate(registry, sink, clock)

        asyncio.run(gate.report_activity("U1", "typing"))
        asyncio.run(gate.report_activity("U1", "typing"))

        assert sink.sent == [("<@U1>-- for typing during your zen period (first).", "C1", "slack")]

    def test_delivery_failure_still_starts_cooldown(self, registry, sink, clock):
        registry.create(make_session())
        sink.fail = True
        gate = make_gate(registry, sink, clock)

        assert asyncio.run(gate.report_activity("U1", "typing")) is not None
        assert registry.find_active("U1").cooldown_until == T0 + 10
