"""
Tokenizer and token classifier.

tokenize() turns a raw command line into tokens (quote-aware), join() is its
inverse, and scan() classifies a token list with the option grammar shared by
CommandMessage.parse and Command.parse:

    --key=value     long option, inline value
    --key value     long option, the next token is its value unless it starts with '-'
    --key           long option, boolean True
    -k value / -k   short option, same value-or-boolean rule
    -abc            cluster of boolean short flags a, b, c (never takes a value)
    word            bare token (command name, argument or subcommand)
"""
from collections import namedtuple
from collections.abc import Iterable
from enum import Enum

from .faults import UnmatchedQuoteError

QUOTES = ("'", '"')


class TokenKind(Enum):
    LONG = "long"
    SHORT = "short"
    CLUSTER = "cluster"
    BARE = "bare"


Token = namedtuple("Token", ("index", "kind", "key", "value"))
Token.__doc__ = """
One classified token.

- index: position of the token in the scanned list.
- kind: TokenKind.
- key: option key (without dashes), a single flag letter for clusters, None for bare tokens.
- value: option value (str or True), or the bare token itself.
"""


def tokenize(source, /):
    """
    Split a command line into tokens.

    Strings are scanned left to right; whitespace separates tokens. A token
    opening with a quote runs to the matching quote, keeps its inner
    whitespace and loses its quotes; a backslash escapes the active quote
    character. Quotes met inside an unquoted token are kept literally.
    Iterables of strings are returned unchanged as a list.

    Raises
    - UnmatchedQuoteError when the string ends inside a quoted span.
    - TypeError when the source is neither a string nor an iterable of strings.
    """
    if isinstance(source, str):
        return list(_split(source))
    if not isinstance(source, Iterable):
        raise TypeError("tokenize() argument must be a string or an iterable of strings")
    tokens = list(source)
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("tokenize() argument must be a string or an iterable of strings")
    return tokens


def _split(source):
    index = 0
    length = len(source)

    while index < length:
        while index < length and source[index].isspace():
            index += 1
        if index >= length:
            return

        token = []
        if source[index] in QUOTES:
            quote = source[index]
            start = index
            index += 1
            while index < length and source[index] != quote:
                # \" inside "..." (or \' inside '...') is a literal quote
                if source[index] == "\\" and index + 1 < length and source[index + 1] == quote:
                    index += 1
                token.append(source[index])
                index += 1
            if index >= length:
                raise UnmatchedQuoteError(
                    f"Unmatched quote in argument: {source}",
                    {"source": source, "position": start},
                    hint="close the quote opened at offset %d" % start,
                )
            index += 1
        else:
            # quotes inside an unquoted run are literal: it's stays one token
            while index < length and not source[index].isspace():
                token.append(source[index])
                index += 1
        yield "".join(token)


def quote(token, /):
    """
    Quote a single token so tokenize() reads it back unchanged.
    """
    token = str(token)
    if token and token[0] not in QUOTES and not any(character.isspace() for character in token):
        return token
    quote = "'" if '"' in token and "'" not in token else '"'
    return quote + token.replace(quote, "\\" + quote) + quote


def join(tokens, /):
    """
    Inverse of tokenize(): render tokens as a single command line.
    """
    return " ".join(map(quote, tokens))


def scan(tokens, /):
    """
    Classify tokens left to right, yielding Token records.

    Option values are consumed here, so the records of a token list never
    overlap: a token used as a value does not produce its own record.
    """
    index = 0
    while index < len(tokens):
        token = tokens[index]

        if token.startswith("--"):
            key, separator, value = token[2:].partition("=")
            if separator:
                yield Token(index, TokenKind.LONG, key, value)
            elif index + 1 < len(tokens) and not tokens[index + 1].startswith("-"):
                index += 1
                yield Token(index - 1, TokenKind.LONG, key, tokens[index])
            else:
                yield Token(index, TokenKind.LONG, key, True)
        elif token.startswith("-") and len(token) > 2:
            for key in token[1:]:
                yield Token(index, TokenKind.CLUSTER, key, True)
        elif token.startswith("-"):
            key = token[1:]
            if index + 1 < len(tokens) and not tokens[index + 1].startswith("-"):
                index += 1
                yield Token(index - 1, TokenKind.SHORT, key, tokens[index])
            else:
                yield Token(index, TokenKind.SHORT, key, True)
        else:
            yield Token(index, TokenKind.BARE, None, token)

        index += 1


__all__ = (
    "TokenKind",
    "Token",
    "tokenize",
    "quote",
    "join",
    "scan",
)
