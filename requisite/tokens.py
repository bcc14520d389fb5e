r"""
Requisite tokens: raw-text spans and the tokenizer that produces them.

Overview
- Token: one span of typed input, split in three zones.
  • prefix: whitespace (and an opening quote) before the text.
  • text:   the decoded token body (escapes resolved, quotes removed).
  • suffix: a closing quote and, for the last token, trailing whitespace.
  • source: the raw, still-escaped characters of the text zone.
  str(token) == prefix + source + suffix, so joining the tokens of one
  tokenize() run gives back the typed input exactly.

- Composites (built by the binder, never by tokenize())
  • MergedToken: several adjacent tokens read as one (multi-word command paths,
    greedy string capture, leftovers).
  • NamedToken: a flag name token followed by its value token ("--name value").
  • BooleanNamedToken: a presence-only flag ("--verbose"), text "true".
  • ArrayToken: every token bound to one array-valued parameter.
  Each composite exposes members(), the live tokens it covers, so a requisition
  can splice replacements over exactly those spans.

- tokenize(typed): the quote- and escape-aware splitter.

Back-references
- Token.assignment points at the Assignment the token was last bound to. It is a
  non-owning link used for cursor projection; the live token list of the
  Requisition owns the tokens.

Examples
    >>> [token.text for token in tokenize("git commit -m 'first words'")]
    ['git', 'commit', '-m', 'first words']
    >>> tokenize("a\\ b")[0].text
    'a b'
"""
from enum import Enum

from .utils import *


class Token:
    """
    A span of raw input: prefix, text and suffix.

    Tokens are immutable by convention; derive a new one with beget() instead of
    editing the fields. The only mutable field is the assignment back-reference.
    """
    __slots__ = ("_text", "_prefix", "_suffix", "_source", "assignment")

    def __init__(self, text="", prefix="", suffix="", source=Unset):
        if not isinstance(text, str) or not isinstance(prefix, str) or not isinstance(suffix, str):
            raise TypeError("token text, prefix and suffix must be strings")
        self._text = text
        self._prefix = prefix
        self._suffix = suffix
        self._source = coalesce(source, text)
        self.assignment = None

    text = mirror("text")
    prefix = mirror("prefix")
    suffix = mirror("suffix")
    source = mirror("source")

    @property
    def blank(self):
        """
        True when the token carries no text (whitespace around it does not count).
        """
        return not self.text

    def members(self):
        """
        return the live tokens covered by this token (itself for plain tokens).
        """
        return (self,)

    def assign(self, assignment):
        for member in self.members():
            member.assignment = assignment

    def beget(self, text, *, prefix_space=False, quote=True):
        """
        derive a token holding new text at the same place as this one.

        behavior
        - prefix and suffix are preserved, so replacing a value does not disturb the
          whitespace and quoting around it.
        - empty text, and text containing whitespace, is quoted with "'" unless the
          token already sits inside quotes or quote is False (multi-word command
          paths). an empty token has to be quoted to survive re-tokenization.
        - prefix_space makes sure the new token is separated from whatever precedes it
          (used when synthesizing tokens for skipped parameters).
        """
        prefix = self.prefix
        suffix = self.suffix

        if quote and (not text or any(char.isspace() for char in text)) and not prefix.endswith(("'", '"')):
            prefix += "'"
            suffix = "'" + suffix

        if prefix_space and not prefix[:1].isspace():
            prefix = " " + prefix

        return Token(text, prefix, suffix)

    def __str__(self):
        return self.prefix + self.source + self.suffix

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return type(self) is type(other) and str(self) == str(other) and self.text == other.text

    def __hash__(self):
        return hash((type(self), str(self), self.text))

    def __repr__(self):
        return "%s(%r, prefix=%r, suffix=%r)" % (type(self).__name__, self.text, self.prefix, self.suffix)

    def __rich_repr__(self):
        yield self.text
        yield "prefix", self.prefix, ""
        yield "suffix", self.suffix, ""


class MergedToken(Token):
    """
    Adjacent tokens read as one.

    The text joins the members' texts with the raw separators found between them,
    so "git  commit" keeps its double space and a command lookup sees the natural
    multi-word name. The prefix of the first member and the suffix of the last one
    become the merged prefix/suffix.
    """
    __slots__ = ("_tokens",)

    def __init__(self, tokens):
        tokens = tuple(tokens)
        if not tokens:
            super().__init__()
            self._tokens = ()
            return

        text = source = ""
        for index, token in enumerate(tokens):
            if index:
                separator = tokens[index - 1].suffix + token.prefix
                text += separator
                source += separator
            text += token.text
            source += token.source

        super().__init__(text, tokens[0].prefix, tokens[-1].suffix, source)
        self._tokens = tokens

    tokens = mirror("tokens")

    def members(self):
        return tuple(member for token in self._tokens for member in token.members())

    def __str__(self):
        return "".join(map(str, self._tokens))


class NamedToken(Token):
    """
    A flag name followed by its value ("--name value").

    The text is the value's text; a missing value (the flag was the last token)
    leaves the text empty so the type reports “no value supplied”.
    """
    __slots__ = ("_name", "_value")

    def __init__(self, name, value=None):
        self._name = name
        self._value = value
        if value is None:
            super().__init__("", "", "")
        else:
            super().__init__(value.text, value.prefix, value.suffix, value.source)

    name = mirror("name")
    value = mirror("value")

    def members(self):
        if self._value is None:
            return self._name.members()
        return self._name.members() + self._value.members()

    def beget(self, text, *, prefix_space=False, quote=True):
        # keep the flag, replace the value only
        if self._value is None:
            spacing = "" if self._name.suffix[-1:].isspace() else " "
            return NamedToken(self._name, Token("", spacing).beget(text, quote=quote))
        return NamedToken(self._name, self._value.beget(text, prefix_space=prefix_space, quote=quote))

    def __str__(self):
        return str(self._name) + (str(self._value) if self._value is not None else "")


class BooleanNamedToken(Token):
    """
    A presence-only flag ("--verbose"). Its text reads "true".
    """
    __slots__ = ("_name",)

    def __init__(self, name):
        super().__init__("true", name.prefix, name.suffix, name.source)
        self._name = name

    name = mirror("name")

    def members(self):
        return self._name.members()

    def beget(self, text, *, prefix_space=False, quote=True):
        # a flag cannot carry text; it stays as typed
        return self

    def __str__(self):
        return str(self._name)


class ArrayToken(Token):
    """
    Every token bound to one array-valued parameter, in encounter order.

    Members need not be adjacent (repeated named occurrences may be spread over
    the input); the text is the members' texts joined by single spaces.
    """
    __slots__ = ("_tokens",)

    def __init__(self, tokens=()):
        self._tokens = tuple(tokens)
        super().__init__(" ".join(token.text for token in self._tokens))

    tokens = mirror("tokens")

    def members(self):
        return tuple(member for token in self._tokens for member in token.members())

    @property
    def blank(self):
        return not self._tokens

    def beget(self, text, *, prefix_space=False, quote=True):
        if not self._tokens:
            return Token(text, " " if prefix_space else "")
        first = self._tokens[0]
        return Token(text, first.prefix, self._tokens[-1].suffix)

    def __str__(self):
        return "".join(map(str, self._tokens))


class _Mode(Enum):
    OUTSIDE = 1  # the last character was whitespace
    IN_PLAIN = 2  # the last character was part of an unquoted token
    IN_SINGLE_QUOTE = 3  # inside '...'
    IN_DOUBLE_QUOTE = 4  # inside "..."


_ESCAPES = {
    "\\": "\\",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    " ": " ",
    "'": "'",
    '"': '"',
}


def _unescape(source):
    # unknown escapes are kept verbatim, backslash included
    text = []
    index = 0
    while index < len(source):
        char = source[index]
        if char == "\\" and index + 1 < len(source) and source[index + 1] in _ESCAPES:
            text.append(_ESCAPES[source[index + 1]])
            index += 2
            continue
        text.append(char)
        index += 1
    return "".join(text)


def _token(typed, start, end, prefix, suffix=""):
    source = typed[start:end]
    return Token(_unescape(source), prefix, suffix, source)


def tokenize(typed):
    r"""
    split typed input into tokens, honouring quotes and backslash escapes.

    purpose
    - produce the token list a requisition edits structurally: the concatenation
      of str(token) over the result reproduces the input exactly.

    behavior
    - empty or None input gives exactly one blank token.
    - whitespace outside quotes separates tokens and is kept as the next token's
      prefix; trailing whitespace becomes the last token's suffix.
    - an opening quote (' or ") starts a quoted token and joins the prefix; the
      matching quote closes it and becomes the suffix.
    - a quote inside an unquoted token (xx'xx) is plain text.
    - an unterminated quote still yields a final token with an empty suffix.
    - escapes: \\ \b \f \n \r \t \v decode to their characters; "\ ", "\'" and
      '\"' decode to a space and quotes and never act as delimiters.

    returns
    - tuple[Token, ...] in input order.
    """
    if not typed:
        return (Token(),)

    mode = _Mode.OUTSIDE
    tokens = []
    prefix = ""
    start = 0  # where the pending run (whitespace or token body) started
    index = 0

    while index < len(typed):
        char = typed[index]

        match mode:
            case _Mode.OUTSIDE:
                if char == "'" or char == '"':
                    prefix = typed[start:index + 1]
                    mode = _Mode.IN_SINGLE_QUOTE if char == "'" else _Mode.IN_DOUBLE_QUOTE
                    start = index + 1
                elif not char.isspace():
                    prefix = typed[start:index]
                    mode = _Mode.IN_PLAIN
                    start = index
                    continue  # re-read this character as part of the token body

            case _Mode.IN_PLAIN:
                if char.isspace():
                    tokens.append(_token(typed, start, index, prefix))
                    mode = _Mode.OUTSIDE
                    start = index
                    prefix = ""

            case _Mode.IN_SINGLE_QUOTE | _Mode.IN_DOUBLE_QUOTE:
                quote = "'" if mode is _Mode.IN_SINGLE_QUOTE else '"'
                if char == quote:
                    tokens.append(_token(typed, start, index, prefix, quote))
                    mode = _Mode.OUTSIDE
                    start = index + 1
                    prefix = ""

        # an escape pair is consumed whole so the escaped character is never structural
        if char == "\\" and mode is not _Mode.OUTSIDE and index + 1 < len(typed):
            index += 2
        else:
            index += 1

    if mode is not _Mode.OUTSIDE:
        tokens.append(_token(typed, start, len(typed), prefix))
    elif start < len(typed):
        extra = typed[start:]
        if tokens:
            last = tokens[-1]
            tokens[-1] = Token(last.text, last.prefix, last.suffix + extra, last.source)
        else:
            tokens.append(Token("", extra))

    return tuple(tokens)


__all__ = (
    "Token",
    "MergedToken",
    "NamedToken",
    "BooleanNamedToken",
    "ArrayToken",
    "tokenize",
)
