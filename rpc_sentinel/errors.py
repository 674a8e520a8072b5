"""
Defines project-specific exception classes.
"""

from typing import Optional


class SentinelError(Exception):
    """Base class for all custom exceptions in RPC Sentinel."""

    pass


class ConfigurationError(SentinelError):
    """Raised when loading or validating the configuration file fails."""

    pass


class ProbeError(SentinelError):
    """
    Raised when a single probe of an RPC endpoint fails.

    Subclasses classify the failure; the health checker never lets one
    escape a probe.
    """

    kind = "probe"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        orig_exc: Optional[BaseException] = None,
    ):
        self.url = url
        self.orig_exc = orig_exc

        full_msg = message
        if orig_exc is not None:
            full_msg += f" ({type(orig_exc).__name__}: {orig_exc})"
        super().__init__(full_msg)


class ConnectError(ProbeError):
    """The transport connection or handshake could not be established."""

    kind = "connect"


class CallError(ProbeError):
    """The remote call failed, returned an error, or ran past its deadline."""

    kind = "call"


class DecodeError(ProbeError):
    """The call result was not a well-formed hexadecimal quantity."""

    kind = "decode"
