"""
Requisite requisition: the live state behind one command input.

What this module provides
- Requisition: owns the command slot, one Assignment per parameter of the current
  command, the bucket for leftover tokens and the live token list.
- CommandChange / InputChange: events sent next to the AssignmentChange events
  forwarded from the assignments.
- Phase: the structural state machine guarding re-entrant updates.

The update pipeline
    typed ──tokenize──▶ tokens ──_split──▶ (command, remaining) ──_assign──▶ assignments

- _split grows a window of leading tokens while it resolves to a namespace and
  stops at a leaf command or a failure; it never consumes tokens that did not
  resolve. A window that is a strict prefix of some command and ends the input
  is still claimed, since that is the command being typed.
- _assign binds what is left: greedy capture for a lone text parameter, else a
  named pass, a positional pass and an array pass. Unclaimed tokens land in the
  unassigned bucket.

Edits in the other direction
- When an assignment changes outside update() (complete, increment, decrement,
  reset, set_conversion), the requisition rewrites its live tokens: blank
  positional parameters in front of the edited one get a quoted empty token (a
  boolean gets its value), and the new token replaces exactly the span of the old
  one. A flag traded for a positional value moves to its parameter's slot. A
  programmatic command change splices the command token and re-binds the whole
  text.

Re-entrancy
- While a phase other than IDLE runs, assignment events are forwarded but cause
  no token surgery, and update() only records one pending run (the latest wins)
  that executes as soon as the requisition is IDLE again.
"""
import logging
from collections import namedtuple
from enum import Enum

from rich.text import Text

from .assignments import *
from .canon import Canon, Parameter
from .faults import *
from .markup import status_markup, assignment_at
from .tokens import *
from .types import Capability, Status
from .utils import *

logger = logging.getLogger(__name__)

CommandChange = namedtuple("CommandChange", ("requisition", "old_value", "new_value"))
InputChange = namedtuple("InputChange", ("requisition", "text"))


class Phase(Enum):
    IDLE = "idle"
    TOKENIZING = "tokenizing"
    RESOLVING = "resolving"
    BINDING = "binding"
    SPLICING = "splicing"


def _positional(assignment):
    return not assignment.param.type.has(Capability.ARRAY)


def _flag(token):
    return isinstance(token, NamedToken | BooleanNamedToken)


def _quote(text):
    if text and not any(char.isspace() or char in "'\"\\" for char in text):
        return text
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


class Requisition:
    """
    Live requisition of one command input.

    options
    - env: opaque host object handed to command handlers.
    - shell, fancy, colorful, deferred: fault surfacing switches (see faults.trigger).
    """

    def __init__(self, canon, env=None, *, shell=False, fancy=False, colorful=False, deferred=False):
        if not isinstance(canon, Canon):
            raise TypeError("requisition 'canon' must be a canon")

        self._canon = canon
        self._env = env
        self._options = {"shell": shell, "fancy": fancy, "colorful": colorful, "deferred": deferred}
        self._listeners = {CommandChange: [], AssignmentChange: [], InputChange: []}
        self._phase = Phase.IDLE
        self._pending = None
        self._tokens = None
        self._cursor = 0
        self._assignments = []
        self._indices = {}

        self._command = Assignment(Parameter("__command", canon.type, default=None, is_command=True), COMMAND_INDEX, Role.COMMAND)
        self._command.add_listener(self._on_command_change)
        self._unassigned = Assignment(
            Parameter("__unassigned", default=None, is_command=True),
            UNASSIGNED_INDEX,
            Role.UNASSIGNED
        )
        self._unassigned.add_listener(self._on_assignment_change)

    canon = mirror("canon")
    env = mirror("env")
    options = mirror("options")
    phase = mirror("phase")
    cursor = mirror("cursor")

    @property
    def command(self):
        return coalesce(self._command.value, None)

    @property
    def command_assignment(self):
        return self._command

    @property
    def unassigned(self):
        return self._unassigned

    @property
    def count(self):
        return len(self._assignments)

    @property
    def tokens(self):
        if self._tokens is None:
            raise NoInputError("no input was processed yet", code=FaultCode.NO_INPUT, hint="call update() first")
        return tuple(self._tokens)

    @property
    def status(self):
        """
        the most severe status over the parameter assignments.

        the command slot and the unassigned bucket are not part of it; check them
        separately (or use faults()).
        """
        return Status.combine(*(assignment.status for assignment in self._assignments))

    def assignments(self):
        return tuple(self._assignments)

    def assignment(self, key, /):
        """
        return an assignment by parameter name or position.

        COMMAND_INDEX and UNASSIGNED_INDEX address the two reserved assignments.
        """
        match key:
            case str():
                return self._assignments[self._indices[key]]
            case bool():
                raise TypeError("assignment() argument must be a string or an integer")
            case int() if key == COMMAND_INDEX:
                return self._command
            case int() if key == UNASSIGNED_INDEX:
                return self._unassigned
            case int() if key >= 0:
                return self._assignments[key]
            case int():
                raise IndexError("assignment index out of range")
            case _:
                raise TypeError("assignment() argument must be a string or an integer")

    def add_listener(self, event, callback, /):
        if event not in self._listeners:
            raise ValueError("add_listener() event must be CommandChange, AssignmentChange or InputChange")
        if not callable(callback):
            raise TypeError("add_listener() callback must be callable")
        self._listeners[event].append(callback)

    def remove_listener(self, event, callback, /):
        if event not in self._listeners:
            raise ValueError("remove_listener() event must be CommandChange, AssignmentChange or InputChange")
        try:
            self._listeners[event].remove(callback)
        except ValueError:
            raise ValueError("remove_listener() callback is not a listener") from None

    def _emit(self, event):
        for callback in tuple(self._listeners[type(event)]):
            callback(event)

    def update(self, typed, cursor=Unset):
        """
        re-derive everything from typed text and a cursor offset.

        returns False when called during structural work; the call is then
        remembered (only the latest) and runs once the current one is done.
        """
        if typed is None:
            typed = ""
        if not isinstance(typed, str):
            raise TypeError("update() typed input must be a string")
        cursor = coalesce(cursor, len(typed))
        if not isinstance(cursor, int) or isinstance(cursor, bool):
            raise TypeError("update() cursor must be an integer")
        cursor = max(0, min(cursor, len(typed)))

        if self._phase is not Phase.IDLE:
            logger.debug("update(%r) deferred during %s", typed, self._phase.name)
            self._pending = (typed, cursor)
            return False

        self._run(typed, cursor)
        self._drain()
        return True

    def _drain(self):
        while self._phase is Phase.IDLE and (pending := self._pending) is not None:
            self._pending = None
            logger.debug("running deferred update(%r)", pending[0])
            self._run(*pending)

    def _run(self, typed, cursor):
        logger.debug("update(%r, %d)", typed, cursor)
        try:
            self._phase = Phase.TOKENIZING
            tokens = tokenize(typed)
            self._tokens = list(tokens)
            self._cursor = cursor

            self._phase = Phase.RESOLVING
            remaining = self._split(tokens)

            self._phase = Phase.BINDING
            self._assign(remaining)
        finally:
            self._phase = Phase.IDLE
        self._emit(InputChange(self, str(self)))

    def _split(self, tokens):
        parse = self._command.param.type.parse
        chosen = None
        consumed = 0

        for end in range(1, len(tokens) + 1):
            window = tokens[0] if end == 1 else MergedToken(tokens[:end])
            conversion = parse(window)
            if conversion.provided:
                chosen, consumed = conversion, end
                if conversion.value.executable:
                    break
            elif conversion.status is Status.INCOMPLETE and end == len(tokens):
                chosen, consumed = conversion, end
                break
            else:
                if chosen is None:
                    chosen = conversion
                break

        logger.debug("resolved %r from %d token(s)", chosen.value, consumed)
        self._command.set_conversion(chosen)
        return tokens[consumed:]

    def _assign(self, tokens):
        if self.command is None:
            return self._unassigned.set_unassigned(tokens)

        if not tokens:
            for assignment in self._assignments:
                assignment.reset()
            return self._unassigned.reset()

        if not self._assignments:
            return self._unassigned.set_unassigned(tokens)

        if len(self._assignments) == 1 and (lone := self._assignments[0]).param.type.has(Capability.TEXT):
            lone.set_conversion(lone.param.type.parse(tokens[0] if len(tokens) == 1 else MergedToken(tokens)))
            return self._unassigned.reset()

        arrays = {}
        candidates, tokens = self._bind_named(tokens, arrays)
        tokens = self._bind_positional(candidates, tokens, arrays)
        self._bind_arrays(arrays)
        logger.debug("%d token(s) left unassigned", len(tokens))
        self._unassigned.set_unassigned(tokens)

    def _named(self, text):
        for assignment in self._assignments:
            if assignment.param.is_named(text):
                return assignment
        return None

    def _bind_named(self, tokens, arrays):
        candidates = list(self._assignments)
        remaining = []
        index = 0

        while index < len(tokens):
            token = tokens[index]
            if (assignment := self._named(token.text)) is None:
                remaining.append(token)
                index += 1
                continue

            type = assignment.param.type
            if type.has(Capability.BOOLEAN):
                named = BooleanNamedToken(token)
                index += 1
            elif index + 1 < len(tokens):
                named = NamedToken(token, tokens[index + 1])
                index += 2
            else:
                named = NamedToken(token)
                index += 1

            if type.has(Capability.ARRAY):
                arrays.setdefault(assignment, []).append(named)
            else:
                assignment.set_conversion(type.parse(named))

            if assignment in candidates:
                candidates.remove(assignment)

        return tuple(candidates), tuple(remaining)

    def _bind_positional(self, candidates, tokens, arrays):
        position = 0
        for assignment in candidates:
            type = assignment.param.type
            if type.has(Capability.ARRAY):
                arrays.setdefault(assignment, []).extend(tokens[position:])
                position = len(tokens)
            elif position < len(tokens):
                assignment.set_conversion(type.parse(tokens[position]))
                position += 1
            else:
                assignment.reset()
        return tokens[position:]

    def _bind_arrays(self, arrays):
        for assignment, tokens in arrays.items():
            assignment.set_conversion(assignment.param.type.parse(ArrayToken(tokens)))

    def _on_command_change(self, event):
        for assignment in self._assignments:
            assignment.remove_listener(self._on_assignment_change)

        command = coalesce(event.new_value, None)
        params = command.params if command is not None else ()
        self._assignments = [Assignment(param, index) for index, param in enumerate(params)]
        self._indices = {assignment.param.name: index for index, assignment in enumerate(self._assignments)}
        for assignment in self._assignments:
            assignment.add_listener(self._on_assignment_change)

        logger.debug("command changed to %r (%d parameters)", command, len(params))
        self._emit(CommandChange(self, coalesce(event.old_value, None), command))

        if self._phase is not Phase.IDLE or self._tokens is None:
            return
        if event.conversion is not self._command.conversion:
            return

        self._phase = Phase.SPLICING
        try:
            end = self._splice(event.old_token, event.new_token, self._command)
        finally:
            self._phase = Phase.IDLE
        self.update(str(self), len("".join(map(str, self._tokens[:end]))))

    def _on_assignment_change(self, event):
        self._emit(event)

        if self._phase is not Phase.IDLE or self._tokens is None:
            return
        if event.conversion.token_equals(event.old_conversion):
            return
        if event.conversion is not event.assignment.conversion:
            return

        assignment = event.assignment
        new_token = event.new_token
        self._phase = Phase.SPLICING
        try:
            if (
                new_token.blank and
                assignment.role is Role.NORMAL and
                assignment.param.type.has(Capability.BOOLEAN) and
                self._crowded(assignment) and
                assignment.ensure_token()
            ):
                # a dropped flag would let a later positional token shift into the slot
                new_token = assignment.token
            if assignment.role is Role.NORMAL and not new_token.blank and not _flag(new_token):
                for preceding in self._assignments[:assignment.param_index]:
                    if _positional(preceding) and not self._live(preceding.token) and preceding.ensure_token():
                        at = self._insertion_point(preceding)
                        self._tokens[at:at] = preceding.token.members()
            self._splice(event.old_token, new_token, assignment)
        finally:
            self._phase = Phase.IDLE

        self._emit(InputChange(self, str(self)))
        self._drain()

    def _live(self, token):
        return all(any(live is member for live in self._tokens) for member in token.members())

    def _crowded(self, assignment):
        # is a positional token bound after this parameter, or left over?
        for token in self._tokens:
            if (owner := token.assignment) is None or owner.role is Role.COMMAND:
                continue
            if owner.role is Role.UNASSIGNED:
                return True
            if owner.param_index <= assignment.param_index:
                continue
            bound = owner.token
            if bound is token or (isinstance(bound, ArrayToken) and any(member is token for member in bound.tokens)):
                return True
        return False

    def _insertion_point(self, assignment):
        # right after the last live token of the command or of an earlier parameter
        point = 0
        for position, token in enumerate(self._tokens):
            if (owner := token.assignment) is None:
                continue
            if owner.role is Role.COMMAND or (owner.role is Role.NORMAL and owner.param_index < assignment.param_index):
                point = position + 1
        return point

    def _splice(self, old, new, assignment):
        members = old.members()
        positions = [
            position for position, token in enumerate(self._tokens)
            if any(token is member for member in members)
        ]
        replacement = list(new.members())

        for position in reversed(positions):
            del self._tokens[position]
        if positions and (_flag(new) or not _flag(old)):
            point = positions[0]
        else:
            # new, or a flag given up for a positional value
            point = self._insertion_point(assignment)

        self._tokens[point:point] = replacement
        return point + len(replacement)

    def __str__(self):
        if self._tokens is None:
            return ""
        return "".join(map(str, self._tokens))

    def canonical(self):
        """
        re-serialize the requisition from its values.

        parameters holding their default are skipped; once one is skipped, later
        parameters are written in their named form so positions stay unambiguous.
        a non-default false after such a skip has no named form and is left out.
        """
        if (command := self.command) is None:
            return ""

        parts = [command.name]
        named = False
        for assignment in self._assignments:
            param = assignment.param
            type = param.type
            value = assignment.value

            if type.has(Capability.BOOLEAN):
                # true is the flag; false holds a position since a flag cannot say it
                if value is Unset or assignment.conversion.value_equals(param.default_conversion()):
                    named = True
                elif value is True:
                    parts.append(param.names[0])
                elif not named:
                    parts.append(type.stringify(value))
                continue
            if value is Unset or assignment.conversion.value_equals(param.default_conversion()):
                named = True
                continue

            if type.has(Capability.ARRAY):
                values = [_quote(type.subtype.stringify(member)) for member in value]
                if named:
                    parts.extend("%s %s" % (param.names[0], member) for member in values)
                else:
                    parts.extend(values)
                named = True
                continue

            text = _quote(type.stringify(value))
            parts.append("%s %s" % (param.names[0], text) if named else text)

        return " ".join(parts)

    def args(self):
        """
        parameter name → value, with defaults standing in for missing values.
        """
        return {
            assignment.param.name: coalesce(assignment.value, coalesce(assignment.param.default, None))
            for assignment in self._assignments
        }

    def markup(self):
        return status_markup(self.tokens, self._cursor)

    def _successor(self, assignment):
        match assignment.role:
            case Role.COMMAND if self._assignments:
                return self._assignments[0]
            case Role.NORMAL if assignment.param_index + 1 < len(self._assignments):
                return self._assignments[assignment.param_index + 1]
        return assignment

    def assignment_at(self, offset, /):
        return assignment_at(self.tokens, offset, self._command, self._successor)

    def _fault(self, assignment, message, code, escalate):
        options = {**self._options, "requisition": self, "code": code}
        if assignment.status is Status.ERROR or escalate:
            if assignment.missing and assignment.role is Role.NORMAL:
                options["hint"] = "give a value, or use %s" % assignment.param.names[0]
            return faultof(code)(message, **options)
        return IncompleteInputWarning(message, **options)

    def faults(self, *, escalate=False):
        """
        materialize the validation problems of the current input.

        behavior
        - ERROR statuses become CommandException subclasses (picked by fault code),
          INCOMPLETE statuses become IncompleteInputWarnings, or errors as well
          when escalate is set.
        - messages are position-first ("second parameter 'count': ...").
        - leftovers are only reported when a command was resolved.
        """
        faults = []

        command = self._command
        if command.status is not Status.VALID:
            if self.command is None and command.token.blank:
                message, code = "no command given", FaultCode.MISSING_VALUE
            elif command.conversion.provided:
                message = "command %r needs a subcommand" % command.value.name
                code = FaultCode.INCOMPLETE_COMMAND
            else:
                message, code = command.message, command.code or FaultCode.UNKNOWN_COMMAND
            faults.append(self._fault(command, message, code, escalate))

        for assignment in self._assignments:
            if assignment.status is Status.VALID:
                continue
            message = "%s parameter %r: %s" % (
                ordinal(assignment.param_index + 1),
                assignment.param.name,
                assignment.message
            )
            code = assignment.code or (
                FaultCode.MISSING_VALUE if assignment.status is Status.ERROR else FaultCode.INCOMPLETE_VALUE
            )
            faults.append(self._fault(assignment, message, code, escalate))

        if self.command is not None and self._unassigned.status is not Status.VALID:
            faults.append(self._fault(self._unassigned, self._unassigned.message, self._unassigned.code, escalate))

        return faults

    def exec(self):
        """
        run the current command through the canon.

        incomplete input counts as an error here. any fault is surfaced as one
        CommandExit through trigger() (raised, or printed in shell mode); otherwise
        the handler's result is returned.
        """
        if self._tokens is None:
            raise NoInputError("no input was processed yet", code=FaultCode.NO_INPUT, hint="call update() first")

        if faults := self.faults(escalate=True):
            trigger(CommandExit(faults), **self._options, requisition=self)
            return None

        if (command := self.command) is None or not command.executable:
            raise NotExecutableError("nothing to execute", code=FaultCode.NOT_EXECUTABLE)
        return self._canon.exec(command, self._env, "cli", self.args(), self.canonical())

    def __rich__(self):
        if self._tokens is None:
            return Text("")
        if not self._options["colorful"]:
            return Text(str(self))

        styles = {
            "valid": "",
            "incomplete": "#FFB400",  # amber while typing
            "error": "underline #FF4DA6",  # pinky underline
        } | getattr(__import__("__main__"), "__styles__", {})

        text = Text()
        for char, status in zip(str(self), self.markup()):
            text.append(char, styles.get(status.name.lower(), ""))
        return text

    def __repr__(self):
        return "Requisition(%r)" % str(self)

    def __rich_repr__(self):
        yield str(self)
        yield "command", self.command
        yield "status", self.status.name
        yield "assignments", self.assignments(), ()


__all__ = (
    "CommandChange",
    "InputChange",
    "Phase",
    "Requisition",
)
