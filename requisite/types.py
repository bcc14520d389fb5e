"""
Requisite types: text ↔ value conversion with validity status.

What this module provides
- Status: ordered validity classification (VALID < INCOMPLETE < ERROR).
- Capability: closed set of traits the binder asks about (ARRAY, BOOLEAN, TEXT).
- Conversion: the result of parsing a token; value, token, status, message,
  predictions and a FaultCode naming what is wrong (if anything).
- Type and its concrete kinds:
  • StringType    (TEXT)     free text, blank means “no value”.
  • NumberType               integers with optional bounds and a step for nudging.
  • SelectionType            one of a fixed set of names, prefix input predicts.
  • BooleanType   (BOOLEAN)  "true"/"false", or the bare presence of a flag.
  • ArrayType     (ARRAY)    every member of an ArrayToken through a subtype.
  • CommandType              names resolved through a Canon (multi-word paths).
- register()/lookup(): a small table so parameters can name their type
  ("string", "number", "boolean") instead of building one.

Contract
- parse() never raises for user input; problems come back as an ERROR or
  INCOMPLETE conversion with a lowercased, position-free message.
- value Unset means nothing was supplied; None is a supplied “absent” value.
- increment()/decrement() return the adjacent value or None when there is none.
"""
from enum import Enum, IntEnum

from .faults import FaultCode
from .tokens import Token, ArrayToken, NamedToken, BooleanNamedToken
from .utils import *


class Status(IntEnum):
    VALID = 0
    INCOMPLETE = 1
    ERROR = 2

    @classmethod
    def combine(cls, *statuses):
        """
        return the most severe of the given statuses (VALID when none are given).
        """
        return cls(max(statuses, default=cls.VALID))


class Capability(Enum):
    ARRAY = "array"
    BOOLEAN = "boolean"
    TEXT = "text"


class Conversion:
    """
    Outcome of parsing one token with one type.

    Conversions are values: an Assignment changes by swapping its conversion for
    another one, never by editing it. assign() records the owning assignment on
    the conversion's tokens so cursor queries can find it.
    """
    __slots__ = ("_value", "_token", "_status", "_message", "_predictions", "_code")

    def __init__(self, value=Unset, token=Unset, status=Status.VALID, message="", predictions=(), code=None):
        self._value = value
        self._token = coalesce(token, Token())
        self._status = Status(status)
        self._message = message
        self._predictions = tuple(predictions)
        self._code = code

    token = mirror("token")
    status = mirror("status")
    message = mirror("message")
    predictions = mirror("predictions")
    code = mirror("code")

    @property
    def value(self):
        # values are handed back untouched (array values stay lists)
        return self._value

    @property
    def provided(self):
        """
        True when a value was supplied (None counts as supplied).
        """
        return self._value is not Unset

    def value_equals(self, other):
        if other is None:
            return False
        if self._value is other.value:
            return True
        try:
            return bool(self._value == other.value)
        except (TypeError, ValueError):
            return False

    def token_equals(self, other):
        return other is not None and self._token == other.token

    def assign(self, assignment):
        self._token.assign(assignment)

    def __str__(self):
        return str(self._token)

    def __repr__(self):
        return "Conversion(%r, %r, status=%s)" % (self._value, self._token, self._status.name)

    def __rich_repr__(self):
        yield self._value
        yield "token", self._token
        yield "status", self._status.name
        yield "message", self._message, ""
        yield "predictions", self._predictions, ()


class Type:
    """
    Base type: the per-kind conversion contract used by assignments and the binder.

    Subclasses declare their traits in __capabilities__ and override parse();
    stringify(), increment() and decrement() have safe defaults.
    """
    __capabilities__ = frozenset()
    name = "type"

    def has(self, capability, /):
        return capability in self.__capabilities__

    def parse(self, token):
        raise NotImplementedError

    def stringify(self, value):
        if value is Unset or value is None:
            return ""
        return str(value)

    def default(self):
        return self.parse(Token())

    def increment(self, value):
        return None

    def decrement(self, value):
        return None

    def __repr__(self):
        return "%s()" % type(self).__name__


class StringType(Type):
    __capabilities__ = frozenset({Capability.TEXT})
    name = "string"

    def parse(self, token):
        if token.blank:
            return Conversion(Unset, token)
        return Conversion(token.text, token)


class NumberType(Type):
    """
    Whole numbers, optionally bounded.

    - "-" or "+" alone is INCOMPLETE (a sign typed before the digits).
    - malformed text is an ERROR (INVALID_VALUE); out-of-bounds values are kept but
      flagged as an ERROR (OUT_OF_RANGE).
    - increment/decrement move by step and clamp to the bounds; at a bound there is
      no adjacent value.
    """
    name = "number"

    def __init__(self, minimum=Unset, maximum=Unset, step=1):
        if not isinstance(step, int) or step < 1:
            raise ValueError("number type 'step' must be a positive integer")
        if minimum is not Unset and maximum is not Unset and minimum > maximum:
            raise ValueError("number type 'minimum' cannot exceed 'maximum'")
        self._minimum = minimum
        self._maximum = maximum
        self._step = step

    minimum = mirror("minimum")
    maximum = mirror("maximum")
    step = mirror("step")

    def parse(self, token):
        text = token.text.strip()
        if not text:
            return Conversion(Unset, token)
        if text in ("-", "+"):
            return Conversion(Unset, token, Status.INCOMPLETE, "sign %r needs digits" % text, code=FaultCode.INCOMPLETE_VALUE)

        try:
            value = int(text)
        except ValueError:
            return Conversion(Unset, token, Status.ERROR, "can't convert %r to a number" % text, code=FaultCode.INVALID_VALUE)

        if self._minimum is not Unset and value < self._minimum:
            return Conversion(
                value, token, Status.ERROR,
                "%d is smaller than the minimum %d" % (value, self._minimum),
                code=FaultCode.OUT_OF_RANGE
            )
        if self._maximum is not Unset and value > self._maximum:
            return Conversion(
                value, token, Status.ERROR,
                "%d is bigger than the maximum %d" % (value, self._maximum),
                code=FaultCode.OUT_OF_RANGE
            )
        return Conversion(value, token)

    def increment(self, value):
        if value is Unset or value is None:
            return coalesce(self._minimum, 0)
        if not isinstance(value, int):
            return None
        if self._maximum is not Unset and value >= self._maximum:
            return None
        replacement = value + self._step
        if self._maximum is not Unset:
            replacement = min(replacement, self._maximum)
        if self._minimum is not Unset:
            replacement = max(replacement, self._minimum)
        return replacement

    def decrement(self, value):
        if value is Unset or value is None:
            return coalesce(self._maximum, 0)
        if not isinstance(value, int):
            return None
        if self._minimum is not Unset and value <= self._minimum:
            return None
        replacement = value - self._step
        if self._minimum is not Unset:
            replacement = max(replacement, self._minimum)
        if self._maximum is not Unset:
            replacement = min(replacement, self._maximum)
        return replacement

    def __repr__(self):
        return "NumberType(minimum=%r, maximum=%r, step=%r)" % (self._minimum, self._maximum, self._step)


class SelectionType(Type):
    """
    One value out of a fixed, ordered set of names.

    choices is either a mapping of name → value or an iterable of names (each name
    is its own value). Typing a strict prefix of some names is INCOMPLETE and
    predicts them in declaration order; anything else is an invalid choice.
    """
    name = "selection"

    def __init__(self, choices):
        if isinstance(choices, str):
            raise TypeError("selection type 'choices' must be an iterable of names, not a string")
        if hasattr(choices, "items"):
            lookup = dict(choices.items())
        else:
            lookup = {}
            for choice in choices:
                if not isinstance(choice, str):
                    raise TypeError("selection type names must be strings")
                if choice in lookup:
                    raise ValueError("selection type 'choices' cannot contain duplicates")
                lookup[choice] = choice
        if not lookup:
            raise ValueError("selection type needs at least one choice")
        self._lookup = lookup

    @property
    def choices(self):
        return tuple(self._lookup)

    def parse(self, token):
        text = token.text
        if not text:
            return Conversion(Unset, token, predictions=self._lookup.values())

        try:
            return Conversion(self._lookup[text], token)
        except KeyError:
            pass

        predictions = [value for name, value in self._lookup.items() if name.startswith(text)]
        if predictions:
            return Conversion(
                Unset, token, Status.INCOMPLETE,
                "%r is not a complete choice" % text,
                predictions,
                code=FaultCode.INCOMPLETE_VALUE
            )
        return Conversion(
            Unset, token, Status.ERROR,
            "%r is not a valid choice, expected one of: %s" % (text, ", ".join(self._lookup)),
            code=FaultCode.INVALID_CHOICE
        )

    def stringify(self, value):
        if value is Unset or value is None:
            return ""
        for name, choice in self._lookup.items():
            if choice == value:
                return name
        return str(value)

    def _index(self, value):
        for index, choice in enumerate(self._lookup.values()):
            if choice == value:
                return index
        return None

    def increment(self, value):
        values = tuple(self._lookup.values())
        if value is Unset or (index := self._index(value)) is None:
            return values[0]
        return values[index + 1] if index + 1 < len(values) else None

    def decrement(self, value):
        values = tuple(self._lookup.values())
        if value is Unset or (index := self._index(value)) is None:
            return values[-1]
        return values[index - 1] if index > 0 else None

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.choices)


class BooleanType(SelectionType):
    """
    "false"/"true", or the bare presence of a flag (which reads as True).
    """
    __capabilities__ = frozenset({Capability.BOOLEAN})
    name = "boolean"

    def __init__(self):
        super().__init__({"false": False, "true": True})

    def parse(self, token):
        if isinstance(token, BooleanNamedToken):
            return Conversion(True, token)
        return super().parse(token)

    def default(self):
        return Conversion(False, Token())

    def __repr__(self):
        return "BooleanType()"


class ArrayType(Type):
    """
    A sequence of subtype values, one per member token.

    The status is the worst member status and the message/code come from the first
    member that is not valid. No members means no value was supplied. A flag
    with nothing after it contributes no value and leaves the array INCOMPLETE.
    """
    __capabilities__ = frozenset({Capability.ARRAY})
    name = "array"

    def __init__(self, subtype="string"):
        self._subtype = lookup(subtype)
        if self._subtype.has(Capability.ARRAY):
            raise TypeError("array type cannot nest another array type")

    subtype = mirror("subtype")

    def parse(self, token):
        if isinstance(token, ArrayToken):
            members = token.tokens
        elif token.blank:
            members = ()
        else:
            members = (token,)

        if not members:
            return Conversion(Unset, token)

        pending = [member for member in members if isinstance(member, NamedToken) and member.blank]
        conversions = [self._subtype.parse(member) for member in members if not any(member is flag for flag in pending)]
        status = Status.combine(*(conversion.status for conversion in conversions))
        message = ""
        code = None
        for conversion in conversions:
            if conversion.status is not Status.VALID:
                message = conversion.message
                code = conversion.code
                break

        # a flag still waiting for its value ("--tag" at the end)
        if pending and status is Status.VALID:
            status = Status.INCOMPLETE
            message = "%r needs a value" % pending[0].name.text
            code = FaultCode.INCOMPLETE_VALUE

        values = [conversion.value for conversion in conversions if conversion.provided]
        return Conversion(values if values else Unset, token, status, message, code=code)

    def stringify(self, value):
        if value is Unset or value is None:
            return ""
        return " ".join(map(self._subtype.stringify, value))

    def __repr__(self):
        return "ArrayType(%r)" % self._subtype


class CommandType(Type):
    """
    Command names resolved through a Canon.

    The token text is normalized (runs of whitespace collapse to one space) so a
    merged "git  commit" window looks up "git commit". Namespaces resolve like any
    command; whether they can run is the assignment's business.
    """
    name = "command"

    def __init__(self, canon):
        self._canon = canon

    canon = mirror("canon")

    def parse(self, token):
        text = " ".join(token.text.split())
        if not text:
            return Conversion(Unset, token, Status.INCOMPLETE, predictions=self._canon.predict(""))

        if (command := self._canon.get(text)) is not None:
            predictions = () if command.executable else self._canon.predict(text + " ")
            return Conversion(command, token, predictions=predictions)

        if predictions := self._canon.predict(text):
            return Conversion(
                Unset, token, Status.INCOMPLETE,
                "incomplete command %r" % text,
                predictions,
                code=FaultCode.INCOMPLETE_COMMAND
            )
        return Conversion(Unset, token, Status.ERROR, "unknown command %r" % text, code=FaultCode.UNKNOWN_COMMAND)

    def stringify(self, value):
        if value is Unset or value is None:
            return ""
        return value.name

    def __repr__(self):
        return "CommandType(%r)" % self._canon


_types = {}


def register(name, type, /):
    """
    make a type available by name to Parameter(type="name").

    re-registering a name replaces the previous type.
    """
    if not isinstance(name, str) or not (name := name.strip()):
        raise ValueError("register() name must be a non-empty string")
    if not isinstance(type, Type):
        raise TypeError("register() second argument must be a type instance")
    _types[name] = type
    return type


def lookup(type, /):
    """
    resolve a registered type name, or pass a Type instance through.
    """
    if isinstance(type, Type):
        return type
    if not isinstance(type, str):
        raise TypeError("lookup() argument must be a type name or a type instance")
    try:
        return _types[type]
    except KeyError:
        raise ValueError("unknown type %r" % type) from None


register("string", StringType())
register("number", NumberType())
register("boolean", BooleanType())


__all__ = (
    "Status",
    "Capability",
    "Conversion",
    "Type",
    "StringType",
    "NumberType",
    "SelectionType",
    "BooleanType",
    "ArrayType",
    "CommandType",
    "register",
    "lookup",
)
