"""Slack Channel 实现。

使用 slack-sdk 库的 Socket Mode（无需公网 IP）接收事件：
- message 事件 → MessageCommand
- user_typing / reaction_* / star_* / pin_* → ActivitySignal
"""

import asyncio
import logging
from typing import Any, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.web.async_client import AsyncWebClient

from zenbot.bus.events import OutboundMessage
from zenbot.bus.queue import MessageBus
from zenbot.channels.base import BaseChannel
from zenbot.channels.manager import register_channel
from zenbot.config.schema import SlackConfig
from zenbot.zen.errors import ResolutionError


logger = logging.getLogger(__name__)


# Slack 事件类型 → 活动描述
ACTIVITY_LABELS: dict[str, str] = {
    "user_typing": "typing",
    "reaction_added": "using reactjis",
    "reaction_removed": "using reactjis",
    "star_added": "starring messages",
    "star_removed": "starring messages",
    "pin_added": "pinning messages",
    "pin_removed": "pinning messages",
}

# 这些错误码说明 token 无效，进程应退出
AUTH_ERRORS = {"invalid_auth", "not_authed", "account_inactive", "token_revoked"}


@register_channel("slack")
class SlackChannel(BaseChannel):
    """Slack Channel 实现。

    支持：
    - 频道消息中的 ./zen 命令
    - 用户活动事件（输入、表情回应、星标、置顶）
    - 按频道名称的白名单 (channel_whitelist)
    - 用户名 / 频道名查询（频道名缓存）

    Attributes:
        name: 渠道名称 ("slack")
        config: Slack 配置对象
        bus: 消息总线实例
        client: Socket Mode 客户端
        web_client: Web API 客户端
    """

    name = "slack"

    def __init__(self, config: SlackConfig, bus: MessageBus):
        super().__init__(config, bus)
        self.config: SlackConfig = config
        self.client: Optional[SocketModeClient] = None
        self.web_client: Optional[AsyncWebClient] = None
        self._bot_user_id: Optional[str] = None
        self._channel_names: dict[str, str] = {}
        self._channel_names_lock = asyncio.Lock()

    async def start(self) -> None:
        """启动 Slack Bot。

        先用 auth.test 校验 token，失败时发布 AuthError；
        成功后建立 Socket Mode 连接并发布 ConnectionEvent。
        """
        if not self.config.bot_token or not self.config.app_token:
            logger.error("Slack bot_token or app_token not configured")
            return

        self.web_client = AsyncWebClient(token=self.config.bot_token)

        logger.info(f"[{self.name}] Starting Slack bot (Socket Mode)...")

        try:
            auth_result = await self.web_client.auth_test()
        except SlackApiError as e:
            error = e.response.get("error", "") if e.response is not None else ""
            logger.error(f"[{self.name}] Slack auth failed: {error or e}")
            if error in AUTH_ERRORS:
                await self._handle_auth_error(error)
            return
        except Exception as e:
            logger.error(f"[{self.name}] Failed to get bot info: {e}")
            return

        self._bot_user_id = auth_result["user_id"]
        logger.info(
            f"[{self.name}] Logged in as {auth_result['user']} "
            f"(Bot ID: {self._bot_user_id})"
        )

        self.client = SocketModeClient(
            app_token=self.config.app_token,
            web_client=self.web_client,
        )
        self.client.socket_mode_request_listeners.append(self._on_socket_mode_request)

        try:
            await self.client.connect()
        except Exception as e:
            logger.error(f"[{self.name}] Failed to connect to Slack: {e}")
            return

        self._running = True
        await self._handle_connected({
            "user": auth_result.get("user"),
            "user_id": self._bot_user_id,
            "team": auth_result.get("team"),
        })
        logger.info(f"[{self.name}] Slack bot started successfully")

    async def stop(self) -> None:
        """停止 Slack Bot。"""
        logger.info(f"[{self.name}] Stopping Slack bot...")
        self._running = False

        if self.client:
            await self.client.close()
            self.client = None

        self.web_client = None
        logger.info(f"[{self.name}] Slack bot stopped")

    async def send(self, msg: OutboundMessage) -> None:
        """发送消息到 Slack 频道。

        Args:
            msg: 出站消息对象 (chat_id 为频道 ID)
        """
        if not self.web_client or not self._running:
            logger.warning(f"[{self.name}] Client not ready, cannot send message")
            return

        await self.web_client.chat_postMessage(channel=msg.chat_id, text=msg.content)
        logger.debug(f"[{self.name}] Message sent to {msg.chat_id}")

    async def resolve_user(self, user_id: str) -> str:
        """通过 users.info 查询用户名。

        Raises:
            ResolutionError: 查询失败
        """
        if not self.web_client:
            raise ResolutionError(f"[{self.name}] client not ready")
        try:
            user_info = await self.web_client.users_info(user=user_id)
        except SlackApiError as e:
            raise ResolutionError(f"could not look up user {user_id}: {e.response.get('error', e)}") from e
        except Exception as e:
            raise ResolutionError(f"could not look up user {user_id}: {e!r}") from e

        name = user_info.get("user", {}).get("name", "")
        if not name:
            raise ResolutionError(f"user {user_id} has no name")
        return name

    async def resolve_channel_name(self, channel_id: str) -> str:
        """通过 conversations.info 查询频道名称，结果按进程缓存。

        Raises:
            ResolutionError: 查询失败
        """
        async with self._channel_names_lock:
            if channel_id in self._channel_names:
                return self._channel_names[channel_id]

        if not self.web_client:
            raise ResolutionError(f"[{self.name}] client not ready")
        try:
            info = await self.web_client.conversations_info(channel=channel_id)
        except SlackApiError as e:
            raise ResolutionError(f"could not look up channel {channel_id}: {e.response.get('error', e)}") from e
        except Exception as e:
            raise ResolutionError(f"could not look up channel {channel_id}: {e!r}") from e

        name = info.get("channel", {}).get("name", "")
        async with self._channel_names_lock:
            self._channel_names[channel_id] = name
        return name

    async def is_chat_allowed(self, chat_id: str) -> bool:
        """按频道名称检查白名单。白名单为空时允许所有频道。"""
        whitelist = self.config.channel_whitelist
        if not whitelist:
            return True

        try:
            name = await self.resolve_channel_name(chat_id)
        except ResolutionError as e:
            logger.error(f"[{self.name}] {e}")
            return False

        allowed = name in whitelist
        if not allowed:
            logger.debug(f"[{self.name}] Channel {name} is not whitelisted, command ignored")
        return allowed

    async def _on_socket_mode_request(
        self, client: SocketModeClient, request: SocketModeRequest
    ) -> None:
        """处理 Socket Mode 请求：先确认，再分类事件。"""
        response = SocketModeResponse(envelope_id=request.envelope_id)
        await client.send_socket_mode_response(response)

        if request.type != "events_api":
            return

        event = request.payload.get("event", {})
        await self._dispatch_event(event)

    async def _dispatch_event(self, event: dict[str, Any]) -> None:
        event_type = event.get("type")

        if event_type == "message":
            await self._handle_message_event(event)
            return

        label = ACTIVITY_LABELS.get(event_type or "")
        if label is None:
            return

        user_id = event.get("user")
        if user_id and user_id != self._bot_user_id:
            await self._handle_activity(user_id, label)

    async def _handle_message_event(self, event: dict[str, Any]) -> None:
        """处理消息事件，只转发可能是 ./zen 命令的普通用户消息。"""
        if event.get("bot_id") or event.get("subtype"):
            return

        user_id = event.get("user")
        channel_id = event.get("channel")
        text = (event.get("text") or "").strip()
        if not user_id or not channel_id or not text.startswith("./zen"):
            return

        await self._handle_message(
            sender_id=user_id,
            chat_id=channel_id,
            content=text,
        )
