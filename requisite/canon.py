"""
Requisite canon: the registry of commands a requisition resolves against.

What this module provides
- Parameter: one declared input of a command (name, type, default, flag spellings).
- Command: a named node with ordered parameters and an optional handler. A
  command without a handler is a namespace: it only groups deeper commands
  ("git" groups "git commit" and "git push").
- Canon: the registry itself, keyed by normalized multi-word names, with prefix
  prediction and a dispatch entry point.
- Request: the record handed to a handler next to env and args.

Core ideas
- Names are paths: "git commit" is the child of "git"; adding a command creates
  its missing parents as namespaces.
- Flag spellings are explicit: a parameter answers is_named() for "--<name>" and
  for any extra spelling it declares (e.g. "-v").
- Dispatch is the host's: Canon.exec() calls the handler and wraps whatever it
  raises; nothing here interprets what a command means.

Example
    canon = Canon()

    @canon.command("echo", Parameter("message"))
    def echo(env, args, request):
        return args["message"]
"""
import logging
from collections import namedtuple

from .faults import *
from .types import Conversion, CommandType, lookup
from .tokens import Token
from .utils import *

logger = logging.getLogger(__name__)


def _normalize(name):
    if not isinstance(name, str):
        raise TypeError("command name must be a string")
    if not (name := " ".join(name.split())):
        raise ValueError("command name cannot be empty")
    return name


class Parameter:
    """
    One declared input of a command.

    - default Unset makes the parameter required.
    - names lists extra flag spellings; "--<name>" is always recognized.
    - is_command marks slots whose value is a command (the requisition's own
      command slot); incompleteness there is never escalated to an error.
    """

    def __init__(self, name, type="string", description=Unset, default=Unset, names=(), *, is_command=False):
        if not isinstance(name, str):
            raise TypeError("parameter 'name' must be a string")
        if not name or any(char.isspace() for char in name):
            raise ValueError("parameter 'name' must be a non-empty word")
        if description is not Unset and not isinstance(description, str):
            raise TypeError("parameter 'description' must be a string")
        if isinstance(names, str):
            names = (names,)

        spellings = ["--" + name]
        for spelling in names:
            if not isinstance(spelling, str):
                raise TypeError("parameter 'names' must be an iterable of strings")
            if not spelling.startswith("-") or any(char.isspace() for char in spelling):
                raise ValueError("parameter flag spelling %r must start with '-' and contain no spaces" % spelling)
            if spelling in spellings:
                raise ValueError("parameter 'names' cannot contain duplicates")
            spellings.append(spelling)

        self._name = name
        self._type = lookup(type)
        self._description = description
        self._default = default
        self._names = tuple(spellings)
        self._is_command = bool(is_command)

    name = mirror("name")
    type = mirror("type")
    description = mirror("description")
    names = mirror("names")
    is_command = mirror("is_command")

    @property
    def default(self):
        return self._default

    @property
    def required(self):
        return self._default is Unset

    def is_named(self, text, /):
        return text in self._names

    def default_conversion(self):
        """
        the conversion an untouched assignment starts from.

        a declared default wins; otherwise the type decides (blank for most types,
        False for booleans).
        """
        if self._default is not Unset:
            return Conversion(self._default, Token())
        return self._type.default()

    def __repr__(self):
        return "Parameter(%r, %r)" % (self._name, self._type)

    def __rich_repr__(self):
        yield self._name
        yield "type", self._type
        yield "default", self._default, Unset
        yield "names", self._names, ("--" + self._name,)
        yield "is_command", self._is_command, False


class Command:
    """
    A named node of the canon; a command without a handler is a namespace.
    """

    def __init__(self, name, params=(), handler=Unset, description=Unset):
        self._name = _normalize(name)
        if handler is not Unset and not callable(handler):
            raise TypeError("command 'handler' must be callable")
        if description is not Unset and not isinstance(description, str):
            raise TypeError("command 'description' must be a string")

        params = tuple(params)
        seen = set()
        for param in params:
            if not isinstance(param, Parameter):
                raise TypeError("command 'params' must be an iterable of parameters")
            if param.name in seen:
                raise ValueError("command parameter name %r is already in use" % param.name)
            seen.add(param.name)
            for spelling in param.names:
                if spelling in seen:
                    raise ValueError("command flag spelling %r is already in use" % spelling)
                seen.add(spelling)

        self._params = params
        self._handler = handler
        self._description = description

    name = mirror("name")
    params = mirror("params")
    handler = mirror("handler")
    description = mirror("description")

    @property
    def executable(self):
        return self._handler is not Unset

    def parameter(self, name, /):
        for param in self._params:
            if param.name == name:
                return param
        raise KeyError(name)

    def __repr__(self):
        return "Command(%r)" % self._name

    def __rich_repr__(self):
        yield self._name
        yield "params", self._params, ()
        yield "executable", self.executable


Request = namedtuple("Request", ("command", "env", "kind", "args", "text"))


class Canon:
    """
    The command registry.

    behavior
    - add() registers a command and creates its missing parent namespaces; adding
      an executable command over an auto-created namespace replaces it.
    - get() resolves a normalized name, predict() lists every command whose name
      starts with a prefix (sorted, namespaces included).
    - exec() runs a command's handler as handler(env, args, request).
    """

    def __init__(self, commands=()):
        self._commands = {}
        for command in commands:
            self.add(command)

    @property
    def type(self):
        """
        a CommandType resolving names through this canon.
        """
        return CommandType(self)

    def add(self, command, /):
        if not isinstance(command, Command):
            raise TypeError("add() argument must be a command")

        if (existing := self._commands.get(command.name)) is not None:
            if existing.executable or not command.executable:
                raise DuplicatedCommandError(
                    "command %r is already registered" % command.name,
                    code=FaultCode.DUPLICATED_COMMAND,
                    hint="remove the existing command first"
                )

        words = command.name.split(" ")
        for index in range(1, len(words)):
            parent = " ".join(words[:index])
            if parent not in self._commands:
                self._commands[parent] = Command(parent)
                logger.debug("created namespace %r", parent)

        self._commands[command.name] = command
        logger.info("registered command %r", command.name)
        return command

    def command(self, name, /, *params, description=Unset):
        """
        decorator form of add(): the decorated callable becomes the handler.
        """
        def wrapper(handler):
            self.add(Command(name, params, handler, description))
            return handler

        return rename(wrapper, "command")

    def remove(self, name, /):
        """
        unregister a command and everything below it.
        """
        name = _normalize(name)
        if name not in self._commands:
            raise KeyError(name)
        for key in [key for key in self._commands if key == name or key.startswith(name + " ")]:
            del self._commands[key]
        logger.info("removed command %r", name)

    def get(self, name, /):
        try:
            return self._commands.get(" ".join(name.split()))
        except AttributeError:
            raise TypeError("get() argument must be a string") from None

    def predict(self, prefix, /):
        return tuple(
            self._commands[name] for name in sorted(self._commands)
            if name.startswith(prefix) and name != prefix
        )

    def exec(self, command, env, kind, args, text):
        """
        dispatch a resolved command to its handler.

        purpose
        - single entry point through which a requisition runs what the user typed.

        behavior
        - namespaces (no handler) raise NotExecutableError.
        - whatever the handler raises (other than a CommandException, which is
          already user-facing) is wrapped in a DelegatedCommandError, chained to the
          original error.
        - the handler's return value is returned as is.
        """
        if not command.executable:
            raise NotExecutableError(
                "command %r cannot be executed" % command.name,
                code=FaultCode.NOT_EXECUTABLE,
                hint="pick one of its subcommands"
            )

        request = Request(command, env, kind, args, text)
        logger.info("executing %r (%s)", command.name, kind)
        try:
            return command.handler(env, args, request)
        except CommandException:
            raise
        except Exception as error:
            logger.debug("command %r failed", command.name, exc_info=True)
            raise DelegatedCommandError(
                "command %r failed: %s" % (command.name, error),
                code=FaultCode.DELEGATED_ERROR
            ) from error

    def __contains__(self, name):
        return isinstance(name, str) and " ".join(name.split()) in self._commands

    def __iter__(self):
        return iter(self._commands.values())

    def __len__(self):
        return len(self._commands)

    def __repr__(self):
        return "Canon(%d commands)" % len(self._commands)

    def __rich_repr__(self):
        yield from self._commands


__all__ = (
    "Parameter",
    "Command",
    "Request",
    "Canon",
)
