"""
Tokens module behavioral tests (tokenizer and token composites).

Scope
- Validate losslessness of tokenize() over plain, quoted, escaped and odd input.
- Validate the blank-input invariant and the tolerated malformations.
- Validate beget() (re-based copies) and the composites' members()/str().

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (tokenize, Token and composites).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from requisite import tokenize, Token, MergedToken, NamedToken, BooleanNamedToken, ArrayToken


def spans(tokens):
    return [(token.prefix, token.text, token.suffix) for token in tokens]


class TestTokenize(TestCase):
    """Behavioral tests for the quote- and escape-aware tokenizer."""

    def testLosslessOverVariedInput(self):
        samples = [
            "",
            " ",
            "a",
            "git commit -m 'first words'",
            "  leading and trailing  ",
            "echo \"double quoted\" 'single'",
            "unterminated 'quote here",
            "stray xx'xx quote",
            "tab\tseparated\ttokens",
            "a\\ b 'it\\'s' \"say \\\"hi\\\"\"",
            "''",
            "a '' b",
            "end\\",
        ]
        for sample in samples:
            with self.subTest(sample=sample):
                self.assertEqual("".join(map(str, tokenize(sample))), sample)

    def testBlankInputYieldsOneBlankToken(self):
        for typed in ("", None):
            with self.subTest(typed=typed):
                tokens = tokenize(typed)
                self.assertEqual(len(tokens), 1)
                self.assertEqual(spans(tokens), [("", "", "")])

    def testWhitespaceOnlyInputYieldsOneBlankToken(self):
        tokens = tokenize("   ")
        self.assertEqual(spans(tokens), [("   ", "", "")])

    def testPlainTokensKeepWhitespaceAsPrefix(self):
        tokens = tokenize("a  bc d")
        self.assertEqual(spans(tokens), [("", "a", ""), ("  ", "bc", ""), (" ", "d", "")])

    def testTrailingWhitespaceBecomesSuffix(self):
        tokens = tokenize("a b  ")
        self.assertEqual(spans(tokens), [("", "a", ""), (" ", "b", "  ")])

    def testQuotedTokenCarriesQuotes(self):
        tokens = tokenize("say 'hello world'")
        self.assertEqual(spans(tokens), [("", "say", ""), (" '", "hello world", "'")])

    def testDoubleQuotesAllowSingleInside(self):
        tokens = tokenize("\"it's\"")
        self.assertEqual(spans(tokens), [("\"", "it's", "\"")])

    def testEscapedSpaceDoesNotSplit(self):
        tokens = tokenize("a\\ b")
        self.assertEqual(len(tokens), 1)
        self.assertEqual(tokens[0].text, "a b")
        self.assertEqual(tokens[0].source, "a\\ b")

    def testEscapedQuoteInsideQuotes(self):
        tokens = tokenize("'it\\'s'")
        self.assertEqual(spans(tokens), [("'", "it's", "'")])

    def testControlEscapesAreDecoded(self):
        tokens = tokenize("a\\tb c\\nd")
        self.assertEqual([token.text for token in tokens], ["a\tb", "c\nd"])

    def testUnknownEscapeIsKept(self):
        tokens = tokenize("a\\qb")
        self.assertEqual(tokens[0].text, "a\\qb")

    def testUnterminatedQuoteHasEmptySuffix(self):
        tokens = tokenize("say 'open")
        self.assertEqual(spans(tokens)[-1], (" '", "open", ""))

    def testQuoteInsidePlainTokenIsText(self):
        tokens = tokenize("xx'xx yy")
        self.assertEqual([token.text for token in tokens], ["xx'xx", "yy"])

    def testEmptyQuotedTokenIsBlank(self):
        tokens = tokenize("a '' b")
        self.assertEqual(spans(tokens), [("", "a", ""), (" '", "", "'"), (" ", "b", "")])
        self.assertTrue(tokens[1].blank)

    def testTokenizeReturnsTuple(self):
        self.assertIsInstance(tokenize("a b"), tuple)


class TestToken(TestCase):
    """Behavioral tests for Token and beget()."""

    def testStrJoinsZones(self):
        self.assertEqual(str(Token("b", " '", "'")), " 'b'")

    def testNonStringSpansRejected(self):
        with self.assertRaises(TypeError):
            Token(1)

    def testEqualityOnSpans(self):
        self.assertEqual(Token("a", " "), Token("a", " "))
        self.assertNotEqual(Token("a", " "), Token("a", ""))
        self.assertEqual(len({Token("a"), Token("a")}), 1)

    def testBegetKeepsPrefixAndSuffix(self):
        token = Token("old", "  ", " ").beget("new")
        self.assertEqual(spans([token]), [("  ", "new", " ")])

    def testBegetQuotesWhitespace(self):
        token = Token("old", " ").beget("two words")
        self.assertEqual(str(token), " 'two words'")

    def testBegetQuotesEmptyText(self):
        token = Token().beget("", prefix_space=True)
        self.assertEqual(str(token), " ''")
        self.assertEqual(spans(tokenize("a" + str(token)))[1], (" '", "", "'"))

    def testBegetWithoutQuoting(self):
        token = Token("gi").beget("git commit", quote=False)
        self.assertEqual(str(token), "git commit")

    def testBegetInsideQuotesDoesNotRequote(self):
        token = Token("a", " '", "'").beget("b c")
        self.assertEqual(str(token), " 'b c'")

    def testBegetPrefixSpace(self):
        self.assertEqual(str(Token("").beget("x", prefix_space=True)), " x")
        self.assertEqual(str(Token("a", " ").beget("x", prefix_space=True)), " x")

    def testAssignSetsBackReference(self):
        token = Token("a")
        marker = object()
        token.assign(marker)
        self.assertIs(token.assignment, marker)


class TestComposites(TestCase):
    """Behavioral tests for MergedToken, NamedToken, BooleanNamedToken and ArrayToken."""

    def testMergedTokenJoinsWithSeparators(self):
        tokens = tokenize("git  commit x")
        merged = MergedToken(tokens[:2])
        self.assertEqual(merged.text, "git  commit")
        self.assertEqual(str(merged), "git  commit")
        self.assertEqual(merged.members(), tokens[:2])

    def testMergedTokenAssignReachesMembers(self):
        tokens = tokenize("a b")
        marker = object()
        MergedToken(tokens).assign(marker)
        self.assertTrue(all(token.assignment is marker for token in tokens))

    def testNamedTokenTextIsValue(self):
        name, value = tokenize("--message hi")
        named = NamedToken(name, value)
        self.assertEqual(named.text, "hi")
        self.assertEqual(str(named), "--message hi")
        self.assertEqual(named.members(), (name, value))

    def testNamedTokenWithoutValueIsBlank(self):
        name, = tokenize("--message")
        named = NamedToken(name)
        self.assertTrue(named.blank)
        self.assertEqual(named.members(), (name,))

    def testNamedTokenBegetKeepsName(self):
        name, value = tokenize("--message hi")
        named = NamedToken(name, value).beget("hello there")
        self.assertIsInstance(named, NamedToken)
        self.assertEqual(str(named), "--message 'hello there'")

    def testNamedTokenBegetAddsMissingValue(self):
        name, = tokenize("--count")
        self.assertEqual(str(NamedToken(name).beget("3")), "--count 3")

    def testBooleanNamedTokenReadsTrue(self):
        name, = tokenize(" --verbose")
        flag = BooleanNamedToken(name)
        self.assertEqual(flag.text, "true")
        self.assertEqual(str(flag), " --verbose")
        self.assertIs(flag.beget("false"), flag)

    def testArrayTokenJoinsTexts(self):
        tokens = tokenize("a b c")
        array = ArrayToken(tokens)
        self.assertEqual(array.text, "a b c")
        self.assertEqual(array.members(), tokens)

    def testEmptyArrayTokenIsBlank(self):
        self.assertTrue(ArrayToken().blank)
        self.assertEqual(str(ArrayToken().beget("x", prefix_space=True)), " x")


if __name__ == "__main__":
    unittest.main()
