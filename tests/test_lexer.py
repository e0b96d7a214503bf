from i18n_lint.scanners.lexer import Dialect, Lexer, TokenType, match_brackets


def _tokens(text, dialect=Dialect.ECMASCRIPT):
    return list(Lexer(text, dialect).tokenize())


def test_ecmascript_strings_comments_and_templates():
    tokens = _tokens("const a = 'it\\'s'; // note 'x'\nconst b = `hi ${name + '}'} there`;\n")

    assert [(token.type.name, token.value) for token in tokens] == [
        ("IDENT", "const"),
        ("IDENT", "a"),
        ("PUNCT", "="),
        ("STRING", "'it\\'s'"),
        ("PUNCT", ";"),
        ("IDENT", "const"),
        ("IDENT", "b"),
        ("PUNCT", "="),
        ("STRING", "`hi ${name + '}'} there`"),
        ("PUNCT", ";"),
        ("EOF", ""),
    ]
    assert tokens[3].literal == "it's"
    assert not tokens[3].interpolated
    assert tokens[8].interpolated
    assert tokens[5].first_on_line
    assert tokens[5].line == 2
    assert not tokens[6].first_on_line


def test_python_prefixed_and_triple_quoted_strings():
    text = 'x = f"{n} items"\ny = r"\\d+"\nz = """multi\nline"""  # trailing\nw = f"{{literal}}"\n'
    tokens = _tokens(text, Dialect.PYTHON)
    strings = [token for token in tokens if token.type is TokenType.STRING]

    assert strings[0].value == 'f"{n} items"'
    assert strings[0].interpolated
    assert strings[1].literal == "\\d+"
    assert strings[2].literal == "multi\nline"
    assert strings[2].terminated
    assert not strings[3].interpolated
    assert not any(token.is_ident("trailing") for token in tokens)


def test_unterminated_string_stops_at_line_end():
    tokens = _tokens("a = 'oops\nb = 1\n")

    assert tokens[2].type is TokenType.STRING
    assert tokens[2].value == "'oops"
    assert not tokens[2].terminated
    assert tokens[3].is_ident("b")
    assert tokens[3].first_on_line
    assert tokens[5].type is TokenType.NUMBER


def test_positions_are_one_based():
    tokens = _tokens("\n  foo(bar)")

    assert (tokens[0].line, tokens[0].column) == (2, 3)
    assert tokens[-1].type is TokenType.EOF


def test_multi_character_punctuators():
    tokens = _tokens("a !== b ?? c?.d => e")

    assert [token.value for token in tokens if token.type is TokenType.PUNCT] == ["!==", "??", "?.", "=>"]


def test_python_floor_division_is_not_a_comment():
    tokens = _tokens("a = b // 2  # half", Dialect.PYTHON)

    assert [token.value for token in tokens] == ["a", "=", "b", "//", "2", ""]


def test_match_brackets_pairs_nested_delimiters():
    tokens = _tokens("f(a[1], {b: 2})")
    matches = match_brackets(tokens)

    assert matches[1] == 12
    assert matches[12] == 1
    assert matches[3] == 5
    assert matches[7] == 11


def test_dialect_for_path():
    assert Dialect.for_path("pkg/module.py") is Dialect.PYTHON
    assert Dialect.for_path("web/app.tsx") is Dialect.ECMASCRIPT
    assert Dialect.for_path("<string>") is Dialect.ECMASCRIPT


def test_template_and_fstring_substitution_offsets():
    js = "`Total: ${sum(a, b)}`"
    py = 'f"{{x}} {value!r:>4} left"'
    template = _tokens(js)[0]
    fstring = _tokens(py, Dialect.PYTHON)[0]

    assert [js[start:end] for start, end in template.substitutions] == ["sum(a, b)"]
    assert template.surrounding_text
    assert [py[start:end] for start, end in fstring.substitutions] == ["value!r:>4"]
    assert fstring.surrounding_text


def test_bounded_lexer_keeps_absolute_positions():
    text = "a = `${i18n(key)}`"
    tokens = list(Lexer(text, Dialect.ECMASCRIPT, start=7, end=16).tokenize())

    assert [token.value for token in tokens] == ["i18n", "(", "key", ")", ""]
    assert tokens[0].column == 8
    assert not tokens[0].first_on_line
