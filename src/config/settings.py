"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use MATCHA_ prefix (e.g., MATCHA_DEFAULT_EFFECT=slide-up).

Settings can also be loaded from a .env file in the project root.
"""

import re

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use MATCHA_ prefix.

    Examples:
        MATCHA_DEFAULT_EFFECT=zoom
        MATCHA_DEFAULT_DURATION_MS=300
        MATCHA_DEFAULT_POSITION=top-right
    """

    model_config = SettingsConfigDict(
        env_prefix="MATCHA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Protection passes
    placeholder_prefix: str = Field(
        default="\x00",
        description="Prefix for opaque placeholders (uses null byte to avoid collisions)",
    )

    placeholder_suffix: str = Field(
        default="\x00",
        description="Suffix for opaque placeholders (uses null byte to avoid collisions)",
    )

    # Progressive disclosure
    default_effect: str = Field(
        default="fade",
        description="Reveal effect for a step marker that names none",
    )

    default_duration_ms: int = Field(
        default=500,
        description="Reveal duration for a step marker without duration=",
    )

    # Components
    default_position: str = Field(
        default="bottom-right",
        description="Anchor used when a component definition names no position",
    )

    # Slide directives
    default_layout: str = Field(default="center", description="Layout for slides without a layout directive")
    default_theme: str = Field(default="matcha", description="Theme for slides without a theme directive")
    transition_type: str = Field(default="fade", description="Slide transition type")
    transition_duration_ms: int = Field(default=700, description="Slide transition duration")
    transition_easing: str = Field(
        default="cubic-bezier(0.4, 0, 0.2, 1)",
        description="Slide transition easing function",
    )

    # Code blocks
    code_style: str = Field(default="monokai", description="Pygments style for fenced code")
    code_line_numbers: bool = Field(default=False, description="Show line numbers unless a code directive says otherwise")
    code_copy: bool = Field(default=True, description="Emit a copy button marker on code blocks")

    # Templates
    template_repeat_limit: int = Field(
        default=1000,
        description="Largest {{#repeat N}} count expanded; larger counts expand to nothing",
    )

    def placeHolder_make(self, kind: str, index: int) -> str:
        """
        Opaque token standing for the index-th protected span of a kind.

            >>> AppSettings().placeHolder_make("MATH", 0)
            '\\x00MATH-0\\x00'
        """
        return f"{self.placeholder_prefix}{kind}-{index}{self.placeholder_suffix}"

    def placeHolder_pattern(self, kind: str | None = None) -> "re.Pattern[str]":
        """
        Compiled pattern for placeholders.

        Args:
            kind: Kind to match; None matches any upper-case kind

        Returns:
            Pattern with groups "kind" and "index"
        """
        kind_re = r"[A-Z]+" if kind is None else re.escape(kind)
        return re.compile(
            re.escape(self.placeholder_prefix)
            + rf"(?P<kind>{kind_re})-(?P<index>\d+)"
            + re.escape(self.placeholder_suffix)
        )

    def placeHolder_extract(self, placeholder: str) -> tuple[str, int] | None:
        """
        (kind, index) of a placeholder, None when the text is not exactly one.

            >>> AppSettings().placeHolder_extract('\\x00MATH-3\\x00')
            ('MATH', 3)
        """
        match = self.placeHolder_pattern().fullmatch(placeholder)
        if match is None:
            return None
        return match.group("kind"), int(match.group("index"))


appsettings = AppSettings()
