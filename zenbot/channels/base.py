"""Channel 基类定义模块。

提供所有 Channel 的抽象基类，定义了统一的接口和通用功能。
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from zenbot.bus.events import (
    ActivitySignal,
    AuthError,
    ConnectionEvent,
    MessageCommand,
    OutboundMessage,
)
from zenbot.bus.queue import MessageBus
from zenbot.zen.errors import ResolutionError


logger = logging.getLogger(__name__)


class BaseChannel(ABC):
    """Channel 基类 - 所有渠道实现的抽象基类。

    定义了 Channel 的核心接口：
    - start(): 启动 Channel，开始监听事件
    - stop(): 停止 Channel
    - send(): 发送消息到渠道

    提供了通用功能：
    - 频道白名单检查 (is_chat_allowed)
    - 将渠道事件分类后发布到总线 (_handle_message / _handle_activity)

    Attributes:
        name: Channel 名称标识
        config: Channel 配置对象
        bus: 消息总线实例
        _running: 运行状态标志
    """

    name: str = "base"

    def __init__(self, config: Any, bus: MessageBus):
        """初始化 Channel。

        Args:
            config: Channel 配置对象
            bus: 消息总线实例
        """
        self.config = config
        self.bus = bus
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """启动 Channel，开始监听事件。

        启动成功后应将 _running 设置为 True。
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """停止 Channel。"""
        pass

    @abstractmethod
    async def send(self, msg: OutboundMessage) -> None:
        """发送消息到渠道。

        Args:
            msg: 出站消息对象
        """
        pass

    async def resolve_user(self, user_id: str) -> str:
        """查询用户显示名称。

        Raises:
            ResolutionError: 渠道不支持查询或用户不存在
        """
        raise ResolutionError(f"[{self.name}] cannot look up user {user_id}")

    async def is_chat_allowed(self, chat_id: str) -> bool:
        """检查聊天/频道是否允许使用 ./zen 命令。

        默认允许所有频道，子类可根据白名单覆盖。
        """
        return True

    async def _handle_message(
        self,
        sender_id: str,
        chat_id: str,
        content: str,
    ) -> None:
        """处理入站消息，发布到消息总线。

        1. 检查频道白名单
        2. 构造 MessageCommand 对象
        3. 发布到消息总线的入站队列

        Args:
            sender_id: 发送者 ID
            chat_id: 聊天/频道 ID
            content: 消息内容
        """
        if not await self.is_chat_allowed(chat_id):
            logger.debug(f"[{self.name}] Message in {chat_id} blocked by channel whitelist")
            return

        await self.bus.publish_inbound(MessageCommand(
            channel=self.name,
            sender_id=str(sender_id),
            chat_id=str(chat_id),
            content=content,
        ))

    async def _handle_activity(self, user_id: str, label: str) -> None:
        """发布用户活动信号（输入中、表情回应、星标、置顶等）。"""
        await self.bus.publish_inbound(ActivitySignal(
            channel=self.name,
            user_id=str(user_id),
            label=label,
        ))

    async def _handle_connected(self, info: Optional[dict[str, Any]] = None) -> None:
        await self.bus.publish_inbound(ConnectionEvent(channel=self.name, info=info or {}))

    async def _handle_auth_error(self, reason: str) -> None:
        await self.bus.publish_inbound(AuthError(channel=self.name, reason=reason))

    @property
    def is_running(self) -> bool:
        """Channel 是否正在运行。"""
        return self._running

    def __repr__(self) -> str:
        """返回 Channel 的字符串表示。"""
        status = "running" if self._running else "stopped"
        return f"<{self.__class__.__name__} name={self.name} status={status}>"
