import io
import unittest

from toyc.LexicalAnalysis.Lexer import Lexer
from toyc.LexicalAnalysis.Tokens import TokenType


class TestLexer(unittest.TestCase):
    def lex(self, code):
        return [(token.token_type, token.token_metadata) for token in Lexer(code).lex()]

    def test_keywords_and_identifiers(self):
        self.assertEqual(self.lex("def extern if then else define x1"), [
            (TokenType.KwDef, "def"),
            (TokenType.KwExtern, "extern"),
            (TokenType.KwIf, "if"),
            (TokenType.KwThen, "then"),
            (TokenType.KwElse, "else"),
            (TokenType.LxIdentifier, "define"),
            (TokenType.LxIdentifier, "x1"),
            (TokenType.TkEOF, "")])

    def test_numbers_have_no_fraction(self):
        tokens = Lexer("12.5").lex()
        self.assertEqual([t.token_metadata for t in tokens], ["12", ".", "5", ""])
        self.assertEqual(tokens[0].value, 12.0)
        self.assertIsInstance(tokens[0].value, float)

    def test_punctuation_is_one_token_per_character(self):
        self.assertEqual(self.lex("(a,b);<="), [
            (TokenType.TkCharacter, "("),
            (TokenType.LxIdentifier, "a"),
            (TokenType.TkCharacter, ","),
            (TokenType.LxIdentifier, "b"),
            (TokenType.TkCharacter, ")"),
            (TokenType.TkCharacter, ";"),
            (TokenType.TkCharacter, "<"),
            (TokenType.TkCharacter, "="),
            (TokenType.TkEOF, "")])

    def test_identifiers_cannot_start_with_underscore(self):
        self.assertEqual(self.lex("_x"), [
            (TokenType.TkCharacter, "_"),
            (TokenType.LxIdentifier, "x"),
            (TokenType.TkEOF, "")])

    def test_comments_are_whitespace(self):
        self.assertEqual(self.lex("# a comment\n1 # trailing\n# another\r2"), [
            (TokenType.LxNumber, "1"),
            (TokenType.LxNumber, "2"),
            (TokenType.TkEOF, "")])

    def test_comment_at_end_of_input(self):
        self.assertEqual(self.lex("x # no newline"), [
            (TokenType.LxIdentifier, "x"),
            (TokenType.TkEOF, "")])

    def test_eof_is_repeated(self):
        lexer = Lexer("x")
        self.assertEqual(lexer.next_token().token_type, TokenType.LxIdentifier)
        for _ in range(3):
            self.assertEqual(lexer.next_token().token_type, TokenType.TkEOF)

    def test_empty_input(self):
        self.assertEqual(self.lex(""), [(TokenType.TkEOF, "")])
        self.assertEqual(self.lex("  \n\t "), [(TokenType.TkEOF, "")])

    def test_stream_input(self):
        self.assertEqual(self.lex(io.StringIO("1+x")), [
            (TokenType.LxNumber, "1"),
            (TokenType.TkCharacter, "+"),
            (TokenType.LxIdentifier, "x"),
            (TokenType.TkEOF, "")])

    def test_positions(self):
        tokens = Lexer("def foo(a)\n  a+1").lex()
        self.assertEqual((tokens[0].line, tokens[0].column), (1, 1))
        self.assertEqual((tokens[1].line, tokens[1].column), (1, 5))
        self.assertEqual(tokens[5].token_metadata, "a")
        self.assertEqual((tokens[5].line, tokens[5].column), (2, 3))

    def test_source_lines(self):
        lexer = Lexer("def foo(a)\n  a+1")
        lexer.lex()
        self.assertEqual(lexer.source_line(1), "def foo(a)")
        self.assertEqual(lexer.source_line(2), "  a+1")
        self.assertEqual(lexer.source_line(3), "")

    def test_lexing_is_lazy(self):
        stream = io.StringIO("a b c")
        iterator = iter(Lexer(stream))
        self.assertEqual(next(iterator).token_metadata, "a")
        self.assertEqual(stream.read(), "b c")


if __name__ == "__main__":
    unittest.main()
