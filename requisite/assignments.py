"""
Requisite assignments: the live pairing of one parameter with its conversion.

An Assignment exists per declared parameter of the current command, plus two
reserved ones owned by every requisition: the command slot (COMMAND_INDEX) and
the leftover bucket for tokens nothing claimed (UNASSIGNED_INDEX). The Role
discriminant tells them apart.

Conversions are swapped, never edited. set_conversion() re-binds the new
conversion's tokens to the assignment and notifies listeners with an
AssignmentChange unless the value is unchanged.
"""
from collections import namedtuple
from enum import Enum

from .canon import Command, Parameter
from .faults import FaultCode
from .tokens import MergedToken, Token, BooleanNamedToken
from .types import Capability, Conversion, Status
from .utils import *

COMMAND_INDEX = -1
UNASSIGNED_INDEX = -2


class Role(Enum):
    NORMAL = "normal"
    COMMAND = "command"
    UNASSIGNED = "unassigned"


AssignmentChange = namedtuple("AssignmentChange", (
    "assignment",
    "conversion",
    "old_conversion",
    "old_value",
    "new_value",
    "old_token",
    "new_token",
))


class Assignment:
    """
    One parameter and its current conversion.

    contract
    - param_index is >= 0 for parameters, COMMAND_INDEX for the command slot and
      UNASSIGNED_INDEX for the leftover bucket.
    - status: ERROR when a required parameter has no value and no typed text,
      INCOMPLETE when the command slot holds a namespace, else the conversion's
      own status. typed text that does not convert keeps its own status.
    - complete(), increment() and decrement() re-parse a token begotten from the
      current one, so whitespace and quoting around the value survive.
    """

    def __init__(self, param, param_index, role=Role.NORMAL):
        if not isinstance(param, Parameter):
            raise TypeError("assignment 'param' must be a parameter")
        if not isinstance(param_index, int):
            raise TypeError("assignment 'param_index' must be an integer")

        match role:
            case Role.NORMAL if param_index < 0:
                raise ValueError("assignment 'param_index' must be positive for a parameter")
            case Role.COMMAND if param_index != COMMAND_INDEX:
                raise ValueError("command assignment 'param_index' must be %d" % COMMAND_INDEX)
            case Role.UNASSIGNED if param_index != UNASSIGNED_INDEX:
                raise ValueError("unassigned assignment 'param_index' must be %d" % UNASSIGNED_INDEX)

        self._param = param
        self._param_index = param_index
        self._role = role
        self._listeners = []
        self._conversion = param.default_conversion()
        self._conversion.assign(self)

    param = mirror("param")
    param_index = mirror("param_index")
    role = mirror("role")
    conversion = mirror("conversion")

    @property
    def value(self):
        return self._conversion.value

    @property
    def token(self):
        return self._conversion.token

    @property
    def predictions(self):
        return self._conversion.predictions

    @property
    def missing(self):
        return self._param.required and not self._conversion.provided and self._conversion.token.blank

    @property
    def status(self):
        if self.missing:
            return Status.ERROR
        if self._role is Role.COMMAND and isinstance(self.value, Command) and not self.value.executable:
            return Status.INCOMPLETE
        return self._conversion.status

    @property
    def message(self):
        if self._conversion.message:
            return self._conversion.message
        if self.missing:
            return "missing value for %r" % self._param.name
        return ""

    @property
    def code(self):
        if self._conversion.code is not None:
            return self._conversion.code
        if self.missing:
            return FaultCode.MISSING_VALUE
        return None

    def add_listener(self, listener, /):
        if not callable(listener):
            raise TypeError("add_listener() argument must be callable")
        self._listeners.append(listener)

    def remove_listener(self, listener, /):
        try:
            self._listeners.remove(listener)
        except ValueError:
            raise ValueError("remove_listener() argument is not a listener") from None

    def set_conversion(self, conversion, /):
        if not isinstance(conversion, Conversion):
            raise TypeError("set_conversion() argument must be a conversion")

        old = self._conversion
        self._conversion = conversion
        conversion.assign(self)

        if conversion.value_equals(old):
            return

        event = AssignmentChange(self, conversion, old, old.value, conversion.value, old.token, conversion.token)
        for listener in tuple(self._listeners):
            listener(event)

    def reset(self):
        self.set_conversion(self._param.default_conversion())

    def ensure_token(self):
        """
        give a blank assignment a real token holding its place.

        used while backfilling the parameters in front of an edited one; no event
        is sent since the caller is in the middle of patching the tokens itself.
        returns whether a token was synthesized.
        """
        if not self.token.blank:
            return False
        type = self._param.type
        # a boolean slot is held by its value, anything else by an empty token
        text = type.stringify(self.value) if type.has(Capability.BOOLEAN) else ""
        token = self.token.beget(text, prefix_space=self._role is not Role.COMMAND)
        self._conversion = type.parse(token)
        self._conversion.assign(self)
        return True

    def _replace(self, value):
        """
        swap in a conversion of value; returns whether the value changed.

        a boolean typed positionally keeps its position. otherwise true is written
        as the flag and false drops the flag, leaving the requisition to decide
        whether the slot needs a "false" to hold its place.
        """
        old = self._conversion
        type = self._param.type
        current = self.token

        if type.has(Capability.BOOLEAN) and (current.blank or isinstance(current, BooleanNamedToken)):
            if value is True:
                conversion = type.parse(BooleanNamedToken(Token(self._param.names[0], " ")))
            elif self._param.default_conversion().value is value:
                conversion = self._param.default_conversion()
            else:
                conversion = type.parse(Token().beget(type.stringify(value), prefix_space=True))
        else:
            token = current.beget(
                type.stringify(value),
                prefix_space=self._role is Role.NORMAL,
                quote=self._role is not Role.COMMAND
            )
            conversion = type.parse(token)

        self.set_conversion(conversion)
        return not conversion.value_equals(old)

    def complete(self):
        """
        accept the top prediction; returns False when there is none.
        """
        if not (predictions := self._conversion.predictions):
            return False
        self._replace(predictions[0])
        return True

    def increment(self):
        if (value := self._param.type.increment(self.value)) is None:
            return False
        return self._replace(value)

    def decrement(self):
        if (value := self._param.type.decrement(self.value)) is None:
            return False
        return self._replace(value)

    def set_unassigned(self, tokens, /):
        """
        route leftover tokens into the bucket (only valid on the unassigned role).
        """
        if self._role is not Role.UNASSIGNED:
            raise TypeError("set_unassigned() needs the unassigned assignment")

        tokens = tuple(tokens)
        if not tokens:
            return self.reset()

        texts = tuple(token.text for token in tokens)
        if len(texts) == 1:
            message = "unexpected token %r" % texts[0]
        else:
            message = "unexpected tokens %s" % ", ".join(map(repr, texts))
        self.set_conversion(Conversion(texts, MergedToken(tokens), Status.ERROR, message, code=FaultCode.UNASSIGNED_TOKENS))

    def __repr__(self):
        return "Assignment(%r, %d)" % (self._param.name, self._param_index)

    def __rich_repr__(self):
        yield self._param.name
        yield "value", self.value
        yield "status", self.status.name
        yield "message", self.message, ""
        yield "role", self._role.name, Role.NORMAL.name


__all__ = (
    "COMMAND_INDEX",
    "UNASSIGNED_INDEX",
    "Role",
    "AssignmentChange",
    "Assignment",
)
