"""Error taxonomy shared by the device toolkit and the shell."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Type


class OcaError(RuntimeError):
    """Base class for device and session errors."""

    status = "processing_failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.status.replace("_", " "))


class TransportError(OcaError):
    """Raised when the transport cannot complete an operation."""

    status = "transport_error"


class ParameterError(OcaError):
    status = "parameter_error"


class ParameterOutOfRange(OcaError):
    status = "parameter_out_of_range"


class ObjectClassMismatch(OcaError):
    status = "object_class_mismatch"


class ObjectNotPresent(OcaError):
    status = "object_not_present"


class BadHandle(ObjectNotPresent):
    status = "bad_handle"


class NotConnected(OcaError):
    status = "not_connected"


class NoInitialValue(OcaError):
    """An optional value (cached listing, stack entry) has not been set yet."""

    status = "no_initial_value"


class NotImplementedByDevice(OcaError):
    """The device does not implement the requested capability."""

    status = "not_implemented"


class DeviceError(OcaError):
    """Generic processing failure reported by the device."""


_STATUS_ERRORS: Dict[str, Type[OcaError]] = {
    cls.status: cls
    for cls in (
        ParameterError,
        ParameterOutOfRange,
        ObjectClassMismatch,
        ObjectNotPresent,
        BadHandle,
        NotConnected,
        NoInitialValue,
        NotImplementedByDevice,
    )
}


def error_for_status(response: Mapping[str, Any]) -> OcaError:
    """Build the exception matching an error response from the device."""
    code = str(response.get("error") or "processing_failed")
    message = response.get("message")
    cls = _STATUS_ERRORS.get(code, DeviceError)
    if message:
        return cls(f"{code}: {message}")
    return cls(code.replace("_", " "))


__all__ = [
    "OcaError",
    "TransportError",
    "ParameterError",
    "ParameterOutOfRange",
    "ObjectClassMismatch",
    "ObjectNotPresent",
    "BadHandle",
    "NotConnected",
    "NoInitialValue",
    "NotImplementedByDevice",
    "DeviceError",
    "error_for_status",
]
