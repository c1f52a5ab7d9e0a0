"""Domain-specific errors for inputmodule."""


class InputModuleError(Exception):
    """Base error for inputmodule."""


class ProfileValidationError(InputModuleError):
    """Raised when a discovery profile does not conform to schema or semantics."""


class ProfileLoadError(InputModuleError):
    """Raised when loading profile sources fails."""


class DeviceDiscoveryError(InputModuleError):
    """Raised when the host serial port enumeration fails."""


class DeviceSelectionError(InputModuleError):
    """Raised when no usable module exists for a requested type and index."""


class InvalidModuleError(InputModuleError, AssertionError):
    """Raised when a command is issued against a module that is not valid.

    This is a programming error: validity is established at discovery time and
    callers are expected to check ``is_valid()`` before talking to a module.
    """


class ProtocolError(InputModuleError):
    """Base wire codec error."""


class PayloadEncodeError(ProtocolError):
    """Raised when a payload field does not fit its packed layout."""


class FrameDecodeError(ProtocolError):
    """Raised when a frame is too short or carries the wrong magic bytes."""


class TransportError(InputModuleError):
    """Base transport error."""


class TransportSendError(TransportError):
    """Raised when a frame could not be written."""


class TransportTimeoutError(TransportError):
    """Raised when a reply does not arrive within the configured read timeout."""
