"""Error types raised by the zen core and its collaborators."""


class ZenError(Exception):
    """Base class for zenbot errors."""


class UsageError(ZenError):
    """Malformed command or duration. The message is shown to the user verbatim."""


class ResolutionError(ZenError):
    """A user or channel lookup failed."""


class DeliveryError(ZenError):
    """An outbound notification could not be delivered."""


class FatalAuthError(ZenError):
    """The transport rejected our credentials. The process should exit."""
