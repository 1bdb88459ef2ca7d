from __future__ import annotations


class FormhookError(Exception):
    pass


class ParseError(FormhookError):
    """Request body is not a JSON object."""


class EmptyPayloadError(FormhookError):
    """Submission has no usable fields after unwrapping."""


class ChannelDeliveryError(FormhookError):
    def __init__(self, channel: str, message: str) -> None:
        super().__init__(message)
        self.channel = channel


class MappingLoadError(FormhookError):
    pass
