"""
Template interpreter tests

Tests variables, conditionals, comparisons, loops and nesting.
"""

import pytest

from matcha.config import appsettings
from matcha.lib.diagnostics import Diagnostics
from matcha.lib.template import TemplateInterpreter, template_expand


class TestVariables:
    """Test plain {{name}} substitution"""

    def test_known_variable(self):
        """Known variables are substituted"""
        assert template_expand("Hi {{name}}!", {"name": "Ada"}) == "Hi Ada!"

    def test_unknown_variable_kept(self):
        """Unknown variables stay as literal placeholders"""
        assert template_expand("Hi {{name}}!", {}) == "Hi {{name}}!"

    def test_unknown_variable_reported(self):
        """With diagnostics attached, an unknown variable is reported as unresolved"""
        diagnostics = Diagnostics()
        text = TemplateInterpreter(diagnostics).expand("a {{who}}", {}, source="component 'x'", slide_index=1)

        assert text == "a {{who}}"
        (record,) = diagnostics.of_kind("unresolved")
        assert record.message == "Unknown variable 'who' in component 'x'"
        assert record.slide_index == 1

    def test_substituted_text_not_reinterpreted(self):
        """Variable values are never read as template syntax"""
        assert template_expand("{{a}}", {"a": "{{b}}", "b": "no"}) == "{{b}}"

    def test_boolean_values(self):
        """Booleans render as true/false"""
        assert template_expand("{{flag}}", {"flag": True}) == "true"


class TestRepeat:
    """Test {{#repeat}}"""

    def test_literal_count(self):
        """Body repeats with 1-based $i"""
        assert template_expand("{{#repeat 3}}#{{$i}} {{/repeat}}", {}) == "#1 #2 #3 "

    def test_zero_based_binding(self):
        """$i0 counts from zero"""
        assert template_expand("{{#repeat 2}}{{$i0}}{{/repeat}}", {}) == "01"

    def test_variable_count(self):
        """The count may come from a variable"""
        assert template_expand("{{#repeat n}}x{{/repeat}}", {"n": "3"}) == "xxx"

    @pytest.mark.parametrize("count", ["0", "-2", "many"])
    def test_nonpositive_or_unresolvable(self, count):
        """N <= 0 or unresolvable gives nothing"""
        assert template_expand("{{#repeat n}}x{{/repeat}}", {"n": count}) == ""

    def test_count_above_limit_skipped(self):
        """A count above the configured limit expands to nothing and is reported"""
        diagnostics = Diagnostics()
        interpreter = TemplateInterpreter(diagnostics)

        assert interpreter.expand("{{#repeat n}}x{{/repeat}}", {"n": "5000"}) == ""
        assert len(diagnostics.of_kind("malformed")) == 1
        assert interpreter.expand("{{#repeat 3}}x{{/repeat}}", {}) == "xxx"
        assert len(diagnostics) == 1

    def test_limit_from_settings(self, monkeypatch):
        """The limit is read from appsettings"""
        monkeypatch.setattr(appsettings, "template_repeat_limit", 2)
        assert template_expand("{{#repeat 3}}x{{/repeat}}", {}) == ""
        assert template_expand("{{#repeat 2}}x{{/repeat}}", {}) == "xx"

    def test_nested_loops_reset_bindings(self):
        """Inner loop bindings restart for every outer iteration"""
        template = "{{#repeat 2}}[{{#repeat 2}}{{$i}}{{/repeat}}]{{/repeat}}"
        assert template_expand(template, {}) == "[12][12]"


class TestConditionals:
    """Test {{#if}}, {{#eq}} and {{#neq}}"""

    def test_if_else_false_string(self):
        """'false' is falsy"""
        assert template_expand("{{#if active}}Y{{#else}}N{{/if}}", {"active": "false"}) == "N"

    @pytest.mark.parametrize("value, expected", [("yes", "Y"), ("", "N"), ("0", "N"), (False, "N")])
    def test_if_truthiness(self, value, expected):
        """Present and not '', '0' or 'false' is truthy"""
        assert template_expand("{{#if a}}Y{{#else}}N{{/if}}", {"a": value}) == expected

    def test_if_missing_without_else(self):
        """A missing key with no else branch gives nothing"""
        assert template_expand("[{{#if a}}Y{{/if}}]", {}) == "[]"

    def test_eq_and_neq(self):
        """String equality against an unquoted literal"""
        variables = {"theme": "dark"}
        assert template_expand('{{#eq theme "dark"}}D{{/eq}}', variables) == "D"
        assert template_expand("{{#neq theme dark}}L{{/neq}}", variables) == ""

    def test_eq_missing_key_is_empty_string(self):
        """A missing key compares as the empty string"""
        assert template_expand('{{#eq x ""}}empty{{/eq}}', {}) == "empty"

    def test_eq_on_loop_binding(self):
        """Conditions see loop bindings"""
        assert template_expand("{{#repeat 3}}{{#eq $i 2}}two{{/eq}}{{/repeat}}", {}) == "two"


class TestComparisons:
    """Test {{#gt}} and {{#lt}}"""

    def test_gt(self):
        """Numeric comparison"""
        assert template_expand("{{#gt n 3}}big{{/gt}}", {"n": "10"}) == "big"
        assert template_expand("{{#gt n 30}}big{{/gt}}", {"n": "10"}) == ""

    def test_missing_key_is_zero(self):
        """A missing key compares as 0"""
        assert template_expand("{{#lt n 1}}small{{/lt}}", {}) == "small"

    def test_non_numeric_is_false(self):
        """A non-numeric comparator never holds"""
        assert template_expand("{{#gt n abc}}Y{{/gt}}", {"n": "5"}) == ""
        assert template_expand("{{#lt n abc}}Y{{/lt}}", {"n": "5"}) == ""


class TestMalformed:
    """Test unclosed and stray tags"""

    def test_unclosed_block_literal(self):
        """An unclosed block is kept as text"""
        assert template_expand("{{#if a}}x", {"a": "1"}) == "{{#if a}}x"

    def test_stray_closer_literal(self):
        """A closer with no opener is kept as text"""
        assert template_expand("x{{/if}}", {}) == "x{{/if}}"

    def test_deterministic(self):
        """Expansion is a pure function of template and variables"""
        interpreter = TemplateInterpreter()
        template = "{{#repeat 2}}{{$i}}{{#if a}}!{{/if}}{{/repeat}}"
        assert interpreter.expand(template, {"a": "1"}) == interpreter.expand(template, {"a": "1"}) == "1!2!"
