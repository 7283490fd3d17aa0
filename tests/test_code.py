"""
Code block tests

Tests code directive binding, dedenting, line specs, lexer lookup and the
Pygments-rendered block, including the matcha lexer.
"""

from pygments.lexers import TextLexer
from pygments.token import Generic, Keyword, Name

from matcha.lib.code import code_dedent, code_render, codeConfigs_extract, highlightLines_parse, lexer_get
from matcha.lib.lexer import MatchaLexer


class TestCodeConfigs:
    """Test codeConfigs_extract()"""

    def test_binds_to_following_fence(self):
        """A directive configures the next fence, counted from zero"""
        text, configs = codeConfigs_extract("```\na\n```\n<!-- code: title=two -->\n```\nb\n```")

        assert configs == {1: {"title": "two"}}
        assert "<!--" not in text

    def test_no_fence_after(self):
        """A directive with no fence after it is dropped"""
        text, configs = codeConfigs_extract("```\na\n```\n<!-- code: title=late -->")
        assert configs == {}
        assert text == "```\na\n```\n"


class TestHelpers:
    """Test dedent, line specs and lexer lookup"""

    def test_dedent(self):
        """Blank edges and the common margin are removed"""
        assert code_dedent("\n    a\n      b\n\n") == "a\n  b"

    def test_highlight_lines(self):
        """Ranges expand, junk is ignored"""
        assert highlightLines_parse("2,5-7") == [2, 5, 6, 7]
        assert highlightLines_parse("x, 3") == [3]
        assert highlightLines_parse(None) == []

    def test_lexer_lookup(self):
        """Known names resolve, unknown ones fall back to plain text"""
        assert isinstance(lexer_get("matcha"), MatchaLexer)
        assert isinstance(lexer_get("no-such-language"), TextLexer)
        assert lexer_get("python").name == "Python"


class TestCodeRender:
    """Test code_render()"""

    def test_header_and_copy(self):
        """The header carries the language; copy is on by default"""
        html = code_render("x = 1", "python")

        assert '<span class="matcha-code-lang">python</span>' in html
        assert '<button class="matcha-code-copy">Copy</button>' in html
        assert '<div class="matcha-code-content">' in html

    def test_lang_override(self):
        """lang= in the directive wins over the fence label"""
        html = code_render("x", "python", {"lang": "text"})
        assert '<span class="matcha-code-lang">text</span>' in html

    def test_max_height(self):
        """maxHeight switches the height classes"""
        assert "no-height-limit" in code_render("x", "", {"maxHeight": "none"})
        custom = code_render("x", "", {"maxHeight": "300px"})
        assert "has-custom-height" in custom
        assert "--code-max-height: 300px" in custom

    def test_inline_styles(self):
        """Highlighting uses inline styles, no stylesheet classes"""
        html = code_render("def f():\n    return 1", "python")
        assert 'style="' in html
        assert 'class="k"' not in html


class TestMatchaLexer:
    """Test the lexer used for matcha source in fences"""

    def tokens_get(self, text):
        return list(MatchaLexer().get_tokens(text))

    def test_step_marker(self):
        """Structural names are declarations"""
        tokens = self.tokens_get("<!-- step: zoom, duration=300 -->\n")
        assert (Keyword.Declaration, "step") in tokens
        assert (Name.Attribute, "duration") in tokens

    def test_separator_and_usage(self):
        """Separators are headings, usages are declarations"""
        tokens = self.tokens_get("---\n<!-- @footer -->\n")
        assert (Generic.Heading, "---") in tokens
        assert (Keyword.Declaration, "@footer") in tokens

    def test_highlight_and_template(self):
        """Highlight spans and template tags have their own tokens"""
        tokens = self.tokens_get("a <b> {{name}}\n")
        assert (Generic.Emph, "<b>") in tokens
        assert (Name.Variable, "{{name}}") in tokens
