"""Channel 管理器模块。

负责管理所有 Channel 的生命周期，包括注册、启动、停止和消息路由。
同时作为 zen 核心的用户目录 (UserDirectory)。
"""

import asyncio
import logging
from typing import Optional, Type

from zenbot.bus.events import OutboundMessage
from zenbot.bus.queue import MessageBus
from zenbot.config.schema import Config
from zenbot.zen.errors import ResolutionError
from zenbot.zen.notify import UserDirectory

from .base import BaseChannel


logger = logging.getLogger(__name__)


# Channel 注册表 - 存储渠道名称到 Channel 类的映射
_CHANNEL_REGISTRY: dict[str, Type[BaseChannel]] = {}


def register_channel(name: str):
    """Channel 注册装饰器。

    Args:
        name: 渠道名称

    Example:
        @register_channel("slack")
        class SlackChannel(BaseChannel):
            ...
    """
    def decorator(cls: Type[BaseChannel]) -> Type[BaseChannel]:
        _CHANNEL_REGISTRY[name] = cls
        cls.name = name
        return cls
    return decorator


def get_channel_class(name: str) -> Optional[Type[BaseChannel]]:
    """获取已注册的 Channel 类，未注册则返回 None。"""
    return _CHANNEL_REGISTRY.get(name)


class ChannelManager(UserDirectory):
    """Channel 管理器 - 管理所有 Channel 的生命周期。

    主要职责：
    1. 根据配置创建 Channel 实例
    2. 启动/停止所有已启用的 Channel
    3. 监听出站消息队列并路由到对应的 Channel
    4. 通过对应 Channel 查询用户显示名称

    Attributes:
        config: 全局配置对象
        bus: 消息总线实例
        _channels: 已创建的 Channel 实例字典
        _outbound_task: 出站消息监听任务
    """

    def __init__(self, config: Config, bus: MessageBus):
        self.config = config
        self.bus = bus
        self._channels: dict[str, BaseChannel] = {}
        self._outbound_task: Optional[asyncio.Task] = None

    @property
    def enabled_channels(self) -> list[str]:
        """获取已启用的渠道列表。"""
        return self.config.get_enabled_channels()

    @property
    def channels(self) -> dict[str, BaseChannel]:
        """获取所有已创建的 Channel 实例。"""
        return self._channels.copy()

    def get_channel(self, name: str) -> Optional[BaseChannel]:
        return self._channels.get(name)

    def add_channel(self, channel: BaseChannel) -> None:
        """直接注册一个 Channel 实例（不经过配置创建）。"""
        self._channels[channel.name] = channel

    def _create_channel(self, name: str) -> Optional[BaseChannel]:
        """创建指定名称的 Channel 实例。

        Returns:
            Channel 实例，如果渠道未注册或配置不存在则返回 None
        """
        channel_cls = get_channel_class(name)
        if channel_cls is None:
            logger.warning(f"Channel '{name}' is not registered")
            return None

        channel_config = getattr(self.config.channels, name, None)
        if channel_config is None:
            logger.warning(f"Channel '{name}' has no configuration")
            return None

        return channel_cls(config=channel_config, bus=self.bus)

    async def start_all(self) -> None:
        """启动所有已启用的 Channel，然后启动出站消息监听任务。"""
        enabled = self.enabled_channels
        logger.info(f"Starting channels: {enabled}")

        for name in enabled:
            try:
                channel = self._create_channel(name)
                if channel is None:
                    continue
                await channel.start()
                if not channel.is_running:
                    logger.error(f"Channel '{name}' failed to start")
                    continue
                self._channels[name] = channel
                logger.info(f"Channel '{name}' started")
            except Exception as e:
                logger.error(f"Failed to start channel '{name}': {e}")

        self.start_outbound()

    def start_outbound(self) -> None:
        """启动出站消息监听任务。"""
        if self._outbound_task is None and self._channels:
            self._outbound_task = asyncio.create_task(self._listen_outbound())
            logger.debug("Outbound message listener started")

    async def stop_all(self) -> None:
        """停止出站消息监听任务，然后依次停止每个 Channel。"""
        if self._outbound_task:
            self._outbound_task.cancel()
            try:
                await self._outbound_task
            except asyncio.CancelledError:
                pass
            self._outbound_task = None
            logger.debug("Outbound message listener stopped")

        for name, channel in self._channels.items():
            try:
                await channel.stop()
                logger.info(f"Channel '{name}' stopped")
            except Exception as e:
                logger.error(f"Error stopping channel '{name}': {e}")

        self._channels.clear()

    async def resolve_user(self, user_id: str, transport: str = "slack") -> str:
        """通过对应渠道查询用户显示名称。

        Raises:
            ResolutionError: 渠道不存在或查询失败
        """
        channel = self._channels.get(transport)
        if channel is None:
            raise ResolutionError(f"Channel '{transport}' not found")
        return await channel.resolve_user(user_id)

    async def _listen_outbound(self) -> None:
        """后台任务：持续消费出站队列并按 channel 字段路由。

        发送失败只记录日志，不影响后续消息。
        """
        logger.debug("Outbound listener started")

        while True:
            try:
                msg = await self.bus.consume_outbound()

                channel = self._channels.get(msg.channel)
                if channel is None:
                    logger.warning(f"Outbound message for unknown channel '{msg.channel}'")
                    self.bus.task_done_outbound()
                    continue

                if not channel.is_running:
                    logger.warning(f"Channel '{msg.channel}' is not running, message dropped")
                    self.bus.task_done_outbound()
                    continue

                try:
                    await channel.send(msg)
                    logger.debug(f"Message sent to channel '{msg.channel}' chat '{msg.chat_id}'")
                except Exception as e:
                    logger.error(f"Failed to send message to channel '{msg.channel}': {e}")

                self.bus.task_done_outbound()

            except asyncio.CancelledError:
                logger.debug("Outbound listener cancelled")
                break
            except Exception as e:
                logger.error(f"Error in outbound listener: {e}")

    def __repr__(self) -> str:
        channels_status = {
            name: "running" if ch.is_running else "stopped"
            for name, ch in self._channels.items()
        }
        return f"<ChannelManager channels={channels_status}>"
