"""
Custom Pygments lexer for matcha markup

Highlights deck source shown inside a deck (```matcha fences).

Token types:
- Keyword.Declaration: Structural markers (step, define, enddefine, @usage)
- Name.Decorator: Slide markers (layout, transition, theme, style, ...)
- Name.Function: Content markers (card, video, image, code, ...)
- Name.Attribute / Literal.String: key=value parameters
- Generic.Emph: <highlight> spans
- Name.Variable: {{template}} tags
- Generic.Heading: separators (---, ---global, +++, ===) and headings
"""

from pygments.lexer import RegexLexer, bygroups
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Keyword,
    Literal,
    Comment,
    Generic,
)


STRUCTURAL = r"step|define|enddefine"
SLIDE = r"layout|align|valign|transition|theme|style|global-style"
CONTENT = r"card|endcard|video|audio|image|iframe|code"


class MatchaLexer(RegexLexer):
    """
    Lexer for matcha deck markup

    Example:
        <!-- step: zoom, duration=300 -->

    Tokens:
        <!-- → Punctuation
        step → Keyword.Declaration
        duration → Name.Attribute
        300 → Literal.String
        --> → Punctuation
    """

    name = 'Matcha'
    aliases = ['matcha']
    filenames = ['*.matcha']

    tokens = {
        'root': [
            # Slide and region separators
            (r'^\s*---global\s*$', Generic.Heading),
            (r'^\s*(---|\+\+\+|===)\s*$', Generic.Heading),

            # Markdown headings
            (r'^#{1,6}\s.*$', Generic.Subheading),

            # Directive markers
            (r'(<!--)(\s*)(@[\w-]+)', bygroups(Punctuation, Text, Keyword.Declaration), 'marker'),
            (r'(<!--)(\s*)(' + STRUCTURAL + r')\b', bygroups(Punctuation, Text, Keyword.Declaration), 'marker'),
            (r'(<!--)(\s*)(' + SLIDE + r')\b', bygroups(Punctuation, Text, Name.Decorator), 'marker'),
            (r'(<!--)(\s*)(' + CONTENT + r')\b', bygroups(Punctuation, Text, Name.Function), 'marker'),

            # Any other HTML comment
            (r'<!--[\s\S]*?-->', Comment),

            # Template tags
            (r'\{\{[^{}]*\}\}', Name.Variable),

            # Closing HTML tags pass through
            (r'</[^>]+>', Name.Builtin),

            # Highlight spans
            (r'<(?!/|!--)[^<>]+>', Generic.Emph),

            # Math
            (r'\$\$[\s\S]*?\$\$', Literal),
            (r'\$[^$\n]+?\$', Literal),

            # Everything else is text
            (r'[^<{$\n#-]+', Text),
            (r'\n', Text),
            (r'.', Text),
        ],

        'marker': [
            (r'\s*-->', Punctuation, '#pop'),
            (r'[:,]', Punctuation),
            (r'([A-Za-z0-9_-]+)(\s*=\s*)("[^"]*"|\'[^\']*\'|(?:\\,|[^,\s])+?)(?=\s*(?:,|-->))',
             bygroups(Name.Attribute, Punctuation, Literal.String)),
            (r'[A-Za-z0-9_-]+', String),
            (r'\s+', Text),
            (r'.', Text),
        ],
    }
