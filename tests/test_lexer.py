import pytest

from trusskit.svcparse.lexer import SvcLexer, new_token_group
from trusskit.svcparse.scanner import SvcScanner
from trusskit.svcparse.tokens import Token

SINGLE_LINE = "service testing\n // comment1\n//comment2\n\n//comment 3 \n what"
SINGLE_LINE_VALUES = [
    "service",
    " ",
    "testing",
    "\n ",
    "// comment1\n//comment2\n",
    "\n",
    "//comment 3 \n",
    " ",
    "what",
    "",
]


def read_values(lex, count):
    out = []
    for _ in range(count):
        tok, val = lex.get_token()
        assert tok != Token.ILLEGAL
        out.append(val)
    return out


def test_single_line_comments():
    lex = SvcLexer(SINGLE_LINE)
    assert read_values(lex, len(SINGLE_LINE_VALUES)) == SINGLE_LINE_VALUES
    assert lex.get_token() == (Token.EOF, "")


def test_multi_line_comments():
    lex = SvcLexer(
        "service testing\n /* comment1 */ /* thing */\n/*comment2 */\n\n/*comment 3 */\n what"
    )
    expected = [
        "service",
        " ",
        "testing",
        "\n ",
        "/* comment1 */ /* thing */",
        "\n",
        "/*comment2 */",
        "\n\n",
        "/*comment 3 */",
        "\n ",
        "what",
        "",
    ]
    assert read_values(lex, len(expected)) == expected


def test_comment_token_kind():
    lex = SvcLexer(SINGLE_LINE)
    kinds = [lex.get_token()[0] for _ in range(5)]
    assert kinds == [
        Token.IDENT,
        Token.WHITESPACE,
        Token.IDENT,
        Token.WHITESPACE,
        Token.COMMENT,
    ]


def test_unget_token_replays_same_tokens():
    lex = SvcLexer(SINGLE_LINE)
    assert read_values(lex, len(SINGLE_LINE_VALUES)) == SINGLE_LINE_VALUES
    for _ in range(len(SINGLE_LINE_VALUES) - 1):
        lex.unget_token()
    with pytest.raises(ValueError):
        lex.unget_token()
    assert lex.position == 0
    assert read_values(lex, len(SINGLE_LINE_VALUES)) == SINGLE_LINE_VALUES


def test_newlines_and_line_numbers():
    lex = SvcLexer("service 1\n//2\n//3\n4\n5\n6")
    good = [
        ("service", 1),
        (" ", 1),
        ("1", 1),
        ("\n", 2),
        ("//2\n//3\n", 4),
        ("4", 4),
        ("\n", 5),
        ("5", 5),
        ("\n", 6),
        ("6", 6),
    ]
    for value, line in good:
        tok, val = lex.get_token()
        assert tok != Token.ILLEGAL
        assert val == value
        assert lex.line_number == line
    for _ in range(7):
        lex.unget_token()
    for value, line in good[-7:]:
        tok, val = lex.get_token()
        assert val == value
        assert lex.line_number == line


def test_text_before_service_is_skipped():
    lex = SvcLexer("foo bar service baz")
    assert lex.get_token() == (Token.IDENT, "service")
    assert lex.get_token_ignore_whitespace() == (Token.IDENT, "baz")


def test_no_service_gives_only_eof():
    lex = SvcLexer("message Foo { int64 a = 1; }")
    assert lex.groups == []
    assert lex.get_token() == (Token.EOF, "")


def test_ignore_helpers():
    lex = SvcLexer("service S { // note\n rpc }")
    assert lex.get_token_ignore_whitespace() == (Token.IDENT, "service")
    assert lex.get_token_ignore_whitespace() == (Token.IDENT, "S")
    assert lex.get_token_ignore_whitespace() == (Token.OPEN_BRACE, "{")
    tok, _ = lex.get_token_ignore_whitespace()
    assert tok == Token.COMMENT
    lex.unget_token()
    assert lex.get_token_ignore_comment_and_whitespace() == (Token.IDENT, "rpc")
    assert lex.get_token_ignore_comment_and_whitespace() == (Token.CLOSE_BRACE, "}")


def test_unget_to_position():
    lex = SvcLexer("service S { }")
    lex.get_token()
    mark = lex.position
    lex.get_token_ignore_whitespace()
    lex.get_token_ignore_whitespace()
    lex.unget_to_position(mark)
    assert lex.position == mark
    assert lex.get_token_ignore_whitespace() == (Token.IDENT, "S")


def test_symbols_and_strings():
    lex = SvcLexer('service S { get: "/x" ; }')
    tokens = []
    while True:
        tok, val = lex.get_token_ignore_whitespace()
        if tok == Token.EOF:
            break
        tokens.append((tok, val))
    assert (Token.SYMBOL, ":") in tokens
    assert (Token.STRING_LITERAL, '"/x"') in tokens
    assert (Token.SYMBOL, ";") in tokens


def test_new_token_group_at_end_is_eof():
    scn = SvcScanner("")
    assert new_token_group(scn).token == Token.EOF