"""
Content blocks: cards and media

Applied to one chunk after highlight marking and before line rendering.

    <!-- card: bg=glass, shadow=lg -->
    ...
    <!-- endcard -->

    <!-- video: src=intro.mp4, autoplay=true, muted=true -->
    <!-- audio: src=theme.mp3 -->
    <!-- iframe: src="https://example.org", height=500px -->
    <!-- image: src="a.png", size=6, round=lg, shadow=md -->

Every builder takes the parsed parameter mapping and returns one line of
markup. A media marker without src becomes an HTML comment.
"""

import html
import re
from typing import Callable, Dict, List, Mapping, Optional

from ..models.directives import Directive
from .diagnostics import Diagnostics
from .directives import DirectiveRegistry
from .params import integer_get, params_parse
from .scanner import scan


CARD_DEFAULTS = {
    "padding": "30px",
    "radius": "16px",
    "bg": "rgba(255, 255, 255, 0.05)",
}

IMAGE_ROUND = {
    "sm": "4px",
    "md": "8px",
    "lg": "16px",
    "full": "50%",
}

IFRAME_ALLOW = "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"

ANIMATED_IMAGE = re.compile(r"\.(?:gif|webp)(?:\?.*)?$", re.IGNORECASE)


def cardClass_build(params: Mapping[str, str]) -> str:
    classes = ["matcha-card"]
    if params.get("shadow"):
        classes.append(f"shadow-{params['shadow']}")
    if params.get("bg") == "glass":
        classes.append("glass")
    return " ".join(classes)


def cardStyle_build(params: Mapping[str, str]) -> str:
    """Inline style of a card, in a fixed property order"""
    styles: List[str] = []
    if params.get("bg") and params["bg"] != "glass":
        styles.append(f"background: {params['bg']}")
    elif not params.get("bg") and "glass" not in params:
        styles.append(f"background: {CARD_DEFAULTS['bg']}")

    if params.get("color"):
        styles.append(f"color: {params['color']}")
    if params.get("border"):
        styles.append(f"border: {params['border']}")

    styles.append(f"border-radius: {params.get('radius') or CARD_DEFAULTS['radius']}")
    styles.append(f"padding: {params.get('padding') or CARD_DEFAULTS['padding']}")

    if params.get("width"):
        styles.append(f"width: {params['width']}")
        styles.append("max-width: 100%")
    if params.get("align"):
        styles.append(f"text-align: {params['align']}")
    return "; ".join(styles)


class CardBuilder:
    """
    Turns card/endcard markers of one chunk into nested div boundaries

    A new card closes the open one, a stray endcard is dropped, and a card
    still open at the end of the chunk is closed there.
    """

    def __init__(
        self,
        registry: Optional[DirectiveRegistry] = None,
        diagnostics: Optional[Diagnostics] = None,
        slide_index: Optional[int] = None,
    ) -> None:
        registry = registry or DirectiveRegistry()
        self.grammars = [
            registry.grammar_get("card").replace_with(self.marker_replace),
            registry.grammar_get("endcard").replace_with(self.marker_replace),
        ]
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.slide_index = slide_index
        self.open = False

    def marker_replace(self, directive: Directive) -> str:
        if directive.name == "endcard":
            if not self.open:
                self.diagnostics.report("structural", "endcard without card, removed", self.slide_index)
                return ""
            self.open = False
            return "</div>"

        params = params_parse(directive.raw_params)
        opening = f'<div class="{cardClass_build(params)}" style="{cardStyle_build(params)}">'
        if self.open:
            return "</div>\n" + opening
        self.open = True
        return opening

    def render(self, text: str) -> str:
        """Replace card markers in text, closing a card left open"""
        self.open = False
        result = scan(text, self.grammars).text
        if self.open:
            self.open = False
            result += "\n</div>"
        return result


def attribute_escape(value: str) -> str:
    """Author-supplied value made safe inside a double-quoted attribute"""
    return html.escape(value, quote=True)


def video_build(params: Mapping[str, str]) -> str:
    if not params.get("src"):
        return "<!-- Invalid Video: Missing src -->"

    width = params.get("width") or "100%"
    height = params.get("height") or "auto"
    attrs = f'src="{attribute_escape(params["src"])}" class="matcha-video"'
    if params.get("controls") != "false":
        attrs += " controls"
    for flag in ("autoplay", "loop", "muted"):
        if params.get(flag) == "true":
            attrs += f" {flag}"
    return (
        f'<div class="matcha-video-container">'
        f'<video {attrs} style="width: {width}; height: {height};"></video></div>'
    )


def audio_build(params: Mapping[str, str]) -> str:
    if not params.get("src"):
        return "<!-- Invalid Audio: Missing src -->"

    width = params.get("width") or "100%"
    attrs = f'src="{attribute_escape(params["src"])}" class="matcha-audio"'
    if params.get("controls") != "false":
        attrs += " controls"
    for flag in ("autoplay", "loop", "muted"):
        if params.get(flag) == "true":
            attrs += f" {flag}"
    return (
        f'<div class="matcha-audio-container">'
        f'<audio {attrs} style="width: {width};"></audio></div>'
    )


def iframe_build(params: Mapping[str, str]) -> str:
    if not params.get("src"):
        return "<!-- Invalid Iframe: Missing src -->"

    width = params.get("width") or "100%"
    height = params.get("height") or "400px"
    attrs = (
        f'src="{attribute_escape(params["src"])}" class="matcha-iframe"'
        f' scrolling="{params.get("scrolling") or "no"}"'
        f' frameborder="{params.get("border") or "0"}"'
        f' allow="{params.get("allow") or IFRAME_ALLOW}"'
        " allowfullscreen"
    )
    return (
        f'<div class="matcha-iframe-container">'
        f'<iframe {attrs} style="width: {width}; height: {height};"></iframe></div>'
    )


def image_build(params: Mapping[str, str]) -> str:
    """
    Image tag with size, rounding, shadow and alignment options.

    Underscores in the source are entity-escaped so the line renderer
    cannot read them as emphasis; animated formats skip lazy loading.
    """
    src = (params.get("src") or "").strip().strip("\"'")
    if not src:
        return "<!-- Invalid Image: Missing src -->"

    classes = ["matcha-image"]
    if params.get("shadow") and params["shadow"] != "none":
        classes.append(f"shadow-{params['shadow']}")
    if params.get("class"):
        classes.append(attribute_escape(params["class"]))

    width = params.get("width")
    size = integer_get(params, "size")
    if size is not None and 1 <= size <= 10:
        width = f"{size * 10}%"

    styles: List[str] = []
    if width:
        styles.append(f"width: {width}")
    if params.get("height"):
        styles.append(f"height: {params['height']}")
    round_value = params.get("round")
    styles.append(f"border-radius: {IMAGE_ROUND.get(round_value, round_value) if round_value else '8px'}")
    if params.get("opacity"):
        styles.append(f"opacity: {params['opacity']}")
    if params.get("fit"):
        styles.append(f"object-fit: {params['fit']}")

    loading = "" if ANIMATED_IMAGE.search(src) else ' loading="lazy"'
    align = params.get("align") or "center"
    safe_src = attribute_escape(src).replace("_", "&#95;")
    return (
        f'<div class="matcha-image-container align-{align}">'
        f'<img src="{safe_src}"{loading} class="{" ".join(classes)}" '
        f'style="{"; ".join(styles)}" alt="image" /></div>'
    )


MEDIA_BUILDERS: Dict[str, Callable[[Mapping[str, str]], str]] = {
    "video": video_build,
    "audio": audio_build,
    "image": image_build,
    "iframe": iframe_build,
}


def media_render(
    text: str,
    kind: str,
    registry: Optional[DirectiveRegistry] = None,
    diagnostics: Optional[Diagnostics] = None,
    slide_index: Optional[int] = None,
) -> str:
    """
    Replace every marker of one media kind with its markup.

    Args:
        text: Chunk text
        kind: "video", "audio", "image" or "iframe"
        registry: Directive grammars
        diagnostics: Receives a "malformed" record for markers without src
        slide_index: Slide being built, for diagnostics

    Returns:
        Text with the markers replaced
    """
    registry = registry or DirectiveRegistry()
    build = MEDIA_BUILDERS[kind]

    def marker_replace(directive: Directive) -> str:
        params = params_parse(directive.raw_params)
        if not params.get("src") and diagnostics is not None:
            diagnostics.report("malformed", f"{kind} without src", slide_index)
        return build(params)

    return scan(text, registry.grammar_get(kind).replace_with(marker_replace)).text


def blocks_render(
    text: str,
    registry: Optional[DirectiveRegistry] = None,
    diagnostics: Optional[Diagnostics] = None,
    slide_index: Optional[int] = None,
) -> str:
    """Cards, then video, audio, image and iframe markers of one chunk"""
    registry = registry or DirectiveRegistry()
    text = CardBuilder(registry, diagnostics, slide_index).render(text)
    for kind in ("video", "audio", "image", "iframe"):
        text = media_render(text, kind, registry, diagnostics, slide_index)
    return text
