"""
Requisite faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Two kinds of faults
- Validation faults (unknown command, missing or malformed values, leftovers) are
  never raised while typing: conversions carry a status, a message and a FaultCode,
  and Requisition.faults() turns them into fault objects on demand.
- Precondition faults (querying markup before any input, executing without a
  command) are raised right away; there is nothing sensible to render instead.

Integration
- In non-shell mode, exceptions are raised and warnings go through warnings.warn;
  in shell mode, both are rendered via rich on stderr.
"""
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the requisition engine (stable identifiers).

    grouping (by high-level domain)
    - routing (111xx)
      • UNKNOWN_COMMAND, INCOMPLETE_COMMAND
    - values (112xx)
      • MISSING_VALUE, INVALID_VALUE, OUT_OF_RANGE, INVALID_CHOICE,
        INCOMPLETE_VALUE, UNASSIGNED_TOKENS
    - api usage (113xx)
      • NO_INPUT, NOT_EXECUTABLE, DELEGATED_ERROR, DUPLICATED_COMMAND

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- routing errors (111xx) ---
    UNKNOWN_COMMAND             = 11101
    INCOMPLETE_COMMAND          = 11102

    # --- value errors (112xx) ---
    MISSING_VALUE               = 11201
    INVALID_VALUE               = 11202
    OUT_OF_RANGE                = 11203
    INVALID_CHOICE              = 11204
    INCOMPLETE_VALUE            = 11205
    UNASSIGNED_TOKENS           = 11206

    # --- api usage errors (113xx) ---
    NO_INPUT                    = 11301
    NOT_EXECUTABLE              = 11302
    DELEGATED_ERROR             = 11303
    DUPLICATED_COMMAND          = 11304

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _renderer(fault, defaults):
    # shared styling closure for exceptions and warnings
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)

    styles = defaultdict(str, defaults | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    return text


def _program(fault):
    main = __import__("__main__")
    requisition = fault.options.get("requisition")
    command = getattr(requisition, "command", None)
    return getattr(main, "__prog__", getattr(command, "name", None) or "requisite")


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        text = _renderer(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(_program(self), "prog-name"),
            " — ",
            text(code.normalize() if code else "", "code"),
            " | ",
            text(str(self.options.get("title", "error")).title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.options.get("hint"), "hint"))

        if self.options.get("fancy", False):
            width = self.options.get("width")
            return Panel(Group(message, hint), title=header, title_align="left", width=width)

        return Group(header, message, hint)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownCommandError(CommandException): ...
class IncompleteCommandError(CommandException): ...
class MissingValueError(CommandException): ...
class InvalidValueError(CommandException): ...
class OutOfRangeError(CommandException): ...
class InvalidChoiceError(CommandException): ...
class UnassignedTokensError(CommandException): ...
class NoInputError(CommandException): ...
class NotExecutableError(CommandException): ...
class DelegatedCommandError(CommandException): ...
class DuplicatedCommandError(CommandException): ...


class CommandWarning(ABC, Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        text = _renderer(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(_program(self), "prog-name"),
            " — ",
            text(code.normalize() if code else "", "code"),
            " | ",
            text(str(self.options.get("title", "warning")).title(), "warning-title"),
            " ]"
        )
        message = text(self.message, "warning-message")
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.options.get("hint"), "hint"))

        if self.options.get("fancy", False):
            return Panel(Group(message, hint), title=header, title_align="left", width=self.options.get("width"))

        return Group(header, message, hint)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class IncompleteInputWarning(CommandWarning): ...


class CommandExit(ExceptionGroup):
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad input", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad input", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        text = _renderer(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "title": "bold #FF4DA6",  # friendly pinky group title
        })

        header = Text.assemble("[ ", text(_program(self), "prog-name"), " — ", text(self.message.title(), "title"), " ]")
        renders = [exception.__replace__(**{**self.options, "fancy": False}) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


# Validation codes → fault types used by Requisition.faults()
_FAULTS = MappingProxyType({
    FaultCode.UNKNOWN_COMMAND: UnknownCommandError,
    FaultCode.INCOMPLETE_COMMAND: IncompleteCommandError,
    FaultCode.MISSING_VALUE: MissingValueError,
    FaultCode.INVALID_VALUE: InvalidValueError,
    FaultCode.OUT_OF_RANGE: OutOfRangeError,
    FaultCode.INVALID_CHOICE: InvalidChoiceError,
    FaultCode.INCOMPLETE_VALUE: InvalidValueError,
    FaultCode.UNASSIGNED_TOKENS: UnassignedTokensError,
})


def faultof(code, /):
    """
    return the exception type that represents a validation code.

    unknown or missing codes fall back to InvalidValueError, the most generic
    value fault.
    """
    return _FAULTS.get(code, InvalidValueError)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are
      raised and warnings are emitted through the warnings module.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "UnknownCommandError",
    "IncompleteCommandError",
    "MissingValueError",
    "InvalidValueError",
    "OutOfRangeError",
    "InvalidChoiceError",
    "UnassignedTokensError",
    "NoInputError",
    "NotExecutableError",
    "DelegatedCommandError",
    "DuplicatedCommandError",
    "CommandWarning",
    "IncompleteInputWarning",
    "CommandExit",
    "FaultCode",
    "faultof",
    "trigger",
    "getdoc",
)
