"""Tests for SlackChannel event classification and whitelist (no network)."""

import asyncio

import pytest

from zenbot.bus import ActivitySignal, MessageBus, MessageCommand, OutboundMessage
from zenbot.channels.slack import SlackChannel
from zenbot.config.schema import SlackConfig
from zenbot.zen.errors import ResolutionError


class FakeWebClient:
    def __init__(self, channels=None, users=None):
        self.channels = channels or {}
        self.users = users or {}
        self.channel_lookups = 0

    async def conversations_info(self, channel):
        self.channel_lookups += 1
        return {"channel": {"name": self.channels[channel]}}

    async def users_info(self, user):
        return {"user": {"name": self.users[user]}}


def make_channel(whitelist=None, web_client=None):
    bus = MessageBus()
    channel = SlackChannel(SlackConfig(enabled=True, channel_whitelist=whitelist or []), bus)
    channel.web_client = web_client or FakeWebClient()
    channel._bot_user_id = "BOT"
    return channel, bus


async def drain_inbound(bus):
    events = []
    while bus.inbound_size:
        events.append(await bus.consume_inbound())
    return events


class TestEventClassification:
    def test_activity_events(self):
        async def scenario():
            channel, bus = make_channel()
            await channel._dispatch_event({"type": "reaction_added", "user": "U1"})
            await channel._dispatch_event({"type": "pin_removed", "user": "U2"})
            await channel._dispatch_event({"type": "user_typing", "user": "BOT"})
            await channel._dispatch_event({"type": "channel_created"})
            return await drain_inbound(bus)

        events = asyncio.run(scenario())
        assert all(isinstance(e, ActivitySignal) for e in events)
        assert [(e.user_id, e.label) for e in events] == [
            ("U1", "using reactjis"),
            ("U2", "pinning messages"),
        ]

    def test_only_zen_messages_are_forwarded(self):
        async def scenario():
            channel, bus = make_channel()
            await channel._dispatch_event({"type": "message", "user": "U1", "channel": "C1", "text": "./zen 1h"})
            await channel._dispatch_event({"type": "message", "user": "U1", "channel": "C1", "text": "lunch?"})
            await channel._dispatch_event({"type": "message", "bot_id": "B1", "channel": "C1", "text": "./zen 1h"})
            return await drain_inbound(bus)

        events = asyncio.run(scenario())
        assert len(events) == 1
        assert isinstance(events[0], MessageCommand)
        assert (events[0].sender_id, events[0].chat_id, events[0].content) == ("U1", "C1", "./zen 1h")


class TestWhitelist:
    def test_non_whitelisted_channel_is_dropped(self):
        async def scenario():
            web = FakeWebClient(channels={"C1": "general", "C2": "focus"})
            channel, bus = make_channel(whitelist=["focus"], web_client=web)
            await channel._dispatch_event({"type": "message", "user": "U1", "channel": "C1", "text": "./zen 1h"})
            await channel._dispatch_event({"type": "message", "user": "U1", "channel": "C2", "text": "./zen 1h"})
            await channel._dispatch_event({"type": "message", "user": "U1", "channel": "C2", "text": "./zen cancel"})
            return await drain_inbound(bus), web

        events, web = asyncio.run(scenario())
        assert [e.chat_id for e in events] == ["C2", "C2"]
        assert web.channel_lookups == 2

    def test_activity_is_not_whitelisted(self):
        async def scenario():
            channel, bus = make_channel(whitelist=["focus"])
            await channel._dispatch_event({"type": "star_added", "user": "U1"})
            return await drain_inbound(bus)

        assert len(asyncio.run(scenario())) == 1

    def test_resolve_user(self):
        channel, _ = make_channel(web_client=FakeWebClient(users={"U1": "ann"}))
        assert asyncio.run(channel.resolve_user("U1")) == "ann"


class UnreachableWebClient:
    """Web client whose every lookup times out."""

    async def conversations_info(self, channel):
        raise asyncio.TimeoutError()

    async def users_info(self, user):
        raise asyncio.TimeoutError()


class RecordingWebClient:
    def __init__(self):
        self.posted = []

    async def chat_postMessage(self, **kwargs):
        self.posted.append(kwargs)
        return {"ok": True}


class TestLookupFailures:
    def test_user_lookup_timeout_is_resolution_error(self):
        channel, _ = make_channel(web_client=UnreachableWebClient())
        with pytest.raises(ResolutionError, match="U1"):
            asyncio.run(channel.resolve_user("U1"))

    def test_channel_lookup_timeout_drops_command(self):
        async def scenario():
            channel, bus = make_channel(whitelist=["focus"], web_client=UnreachableWebClient())
            await channel._dispatch_event({"type": "message", "user": "U1", "channel": "C1", "text": "./zen 1h"})
            return await drain_inbound(bus)

        assert asyncio.run(scenario()) == []


class TestSend:
    def test_posts_channel_and_text_only(self):
        web = RecordingWebClient()
        channel, _ = make_channel(web_client=web)
        channel._running = True

        asyncio.run(channel.send(OutboundMessage(channel="slack", chat_id="C1", content="you're free")))

        assert web.posted == [{"channel": "C1", "text": "you're free"}]

    def test_not_running_sends_nothing(self):
        web = RecordingWebClient()
        channel, _ = make_channel(web_client=web)

        asyncio.run(channel.send(OutboundMessage(channel="slack", chat_id="C1", content="hi")))

        assert web.posted == []
