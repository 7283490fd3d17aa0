"""
Template interpreter for component bodies

Supported constructs:

    {{name}}                         variable (left literal when unknown)
    {{#repeat N}}...{{/repeat}}      N times, binding $i (1-based) and $i0 (0-based)
    {{#eq key value}}...{{/eq}}      when str(vars[key]) == value
    {{#neq key value}}...{{/neq}}    when str(vars[key]) != value
    {{#if key}}a{{#else}}b{{/if}}    truthiness: present and not "", "0", "false"
    {{#gt key N}}...{{/gt}}          numeric, missing key counts as 0
    {{#lt key N}}...{{/lt}}

The template is parsed once into a small construct tree and evaluated
recursively; bodies are evaluated against the (possibly loop-extended)
variable context. Text produced by a variable is never re-read as template
syntax. Unclosed or stray tags are kept as literal text.

With a Diagnostics attached, unknown variables are reported as
"unresolved" and repeat counts above appsettings.template_repeat_limit
as "malformed" (such a repeat expands to nothing).

Example:
    >>> TemplateInterpreter().expand("{{#repeat 3}}#{{$i}} {{/repeat}}", {})
    '#1 #2 #3 '
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Union

from ..config import appsettings
from .diagnostics import Diagnostics


TAG = re.compile(r"\{\{([^{}]*)\}\}")
VARIABLE = re.compile(r"\$?[\w-]+")
_KEY = r"(?P<key>\$?[\w-]+)"
OPENERS = {
    "repeat": re.compile(r"#repeat\s+(?P<arg>\$?[\w-]+)"),
    "eq": re.compile(r"#eq\s+" + _KEY + r"\s+(?P<arg>.+)"),
    "neq": re.compile(r"#neq\s+" + _KEY + r"\s+(?P<arg>.+)"),
    "if": re.compile(r"#if\s+" + _KEY),
    "gt": re.compile(r"#gt\s+" + _KEY + r"\s+(?P<arg>.+)"),
    "lt": re.compile(r"#lt\s+" + _KEY + r"\s+(?P<arg>.+)"),
}
CLOSER = re.compile(r"/(?P<kind>repeat|eq|neq|if|gt|lt)")
ELSE = "#else"
FALSY = ("", "0", "false")


@dataclass
class TextNode:
    text: str


@dataclass
class VariableNode:
    name: str
    raw: str


@dataclass
class BlockNode:
    """One {{#kind ...}} ... {{/kind}} construct"""
    kind: str
    key: str
    arg: str
    raw_open: str
    body: List["Node"] = field(default_factory=list)
    orelse: Optional[List["Node"]] = None
    raw_else: str = ""


Node = Union[TextNode, VariableNode, BlockNode]

# (kind, message) -> None
Report = Callable[[str, str], None]


def value_stringify(value: Any) -> str:
    """String form of a template value (booleans as true/false)"""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def integer_parseLeading(value: str) -> Optional[int]:
    """Leading integer of value ("3abc" -> 3), None when there is none"""
    match = re.match(r"\s*([+-]?\d+)", value)
    return int(match.group(1)) if match else None


def number_parse(value: str) -> Optional[float]:
    """Whole-string numeric value ("" -> 0), None when not numeric"""
    text = value.strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return None


def literal_unquote(value: str) -> str:
    """Trim, then drop one quote character from each end"""
    return re.sub(r"^[\"']|[\"']$", "", value.strip())


class TemplateInterpreter:
    """
    Recursive-descent interpreter for component templates

    The output of expand() is a pure function of (template, vars); the
    optional diagnostics only receive reports.
    """

    def __init__(self, diagnostics: Optional[Diagnostics] = None) -> None:
        self.diagnostics = diagnostics

    def parse(self, template: str) -> List[Node]:
        """
        Parse a template into a construct tree.

        Args:
            template: Template source

        Returns:
            Top-level node list
        """
        root: List[Node] = []
        # Each frame: (open block or None for root, list currently appended to)
        stack: List[tuple] = [(None, root)]
        position = 0

        for match in TAG.finditer(template):
            if match.start() > position:
                stack[-1][1].append(TextNode(template[position:match.start()]))
            position = match.end()
            raw = match.group(0)
            content = match.group(1).strip()

            opener = self.opener_match(content)
            if opener is not None:
                kind, parsed = opener
                block = BlockNode(
                    kind=kind,
                    key=parsed.groupdict().get("key") or "",
                    arg=parsed.groupdict().get("arg") or "",
                    raw_open=raw,
                )
                stack[-1][1].append(block)
                stack.append((block, block.body))
                continue

            if content == ELSE:
                block = stack[-1][0]
                if block is not None and block.kind == "if" and block.orelse is None:
                    block.orelse = []
                    block.raw_else = raw
                    stack[-1] = (block, block.orelse)
                else:
                    stack[-1][1].append(TextNode(raw))
                continue

            closer = CLOSER.fullmatch(content)
            if closer is not None:
                self.block_close(stack, closer.group("kind"), raw)
                continue

            if VARIABLE.fullmatch(match.group(1)):
                stack[-1][1].append(VariableNode(name=match.group(1), raw=raw))
            else:
                stack[-1][1].append(TextNode(raw))

        if position < len(template):
            stack[-1][1].append(TextNode(template[position:]))

        while len(stack) > 1:
            self.frame_flatten(stack)
        return root

    def opener_match(self, content: str) -> Optional[tuple]:
        for kind, pattern in OPENERS.items():
            parsed = pattern.fullmatch(content)
            if parsed is not None:
                return kind, parsed
        return None

    def block_close(self, stack: List[tuple], kind: str, raw: str) -> None:
        """Close the innermost open block of this kind; stray closers stay literal"""
        depth = None
        for index in range(len(stack) - 1, 0, -1):
            if stack[index][0].kind == kind:
                depth = index
                break
        if depth is None:
            stack[-1][1].append(TextNode(raw))
            return
        # Blocks opened inside the one being closed were never closed
        while len(stack) - 1 > depth:
            self.frame_flatten(stack)
        stack.pop()

    def frame_flatten(self, stack: List[tuple]) -> None:
        """Turn the innermost unclosed block back into literal text"""
        block, _ = stack.pop()
        parent = stack[-1][1]
        # An open block is always the last node of its parent
        parent.pop()
        parent.append(TextNode(block.raw_open))
        parent.extend(block.body)
        if block.orelse is not None:
            parent.append(TextNode(block.raw_else))
            parent.extend(block.orelse)

    def expand(
        self,
        template: str,
        variables: Mapping[str, Any],
        source: str = "template",
        slide_index: Optional[int] = None,
    ) -> str:
        """
        Expand a template against a variable context.

        Args:
            template: Template source
            variables: Variable context (values are stringified on use)
            source: What is being expanded, for diagnostics (e.g. "component 'footer'")
            slide_index: Slide being rendered, for diagnostics

        Returns:
            Expanded text
        """

        def problem_report(kind: str, message: str) -> None:
            if self.diagnostics is not None:
                self.diagnostics.report(kind, f"{message} in {source}", slide_index)

        return self.nodes_render(self.parse(template), variables, problem_report)

    def nodes_render(
        self, nodes: List[Node], variables: Mapping[str, Any], report: Optional[Report] = None
    ) -> str:
        return "".join(self.node_render(node, variables, report) for node in nodes)

    def node_render(self, node: Node, variables: Mapping[str, Any], report: Optional[Report] = None) -> str:
        if isinstance(node, TextNode):
            return node.text
        if isinstance(node, VariableNode):
            if node.name in variables:
                return value_stringify(variables[node.name])
            if report is not None:
                report("unresolved", f"Unknown variable '{node.name}'")
            return node.raw

        if node.kind == "repeat":
            return self.repeat_render(node, variables, report)
        if node.kind in ("eq", "neq"):
            actual = value_stringify(variables[node.key]) if node.key in variables else ""
            equal = actual == literal_unquote(node.arg)
            if equal == (node.kind == "eq"):
                return self.nodes_render(node.body, variables, report)
            return ""
        if node.kind == "if":
            if self.condition_isTrue(node.key, variables):
                return self.nodes_render(node.body, variables, report)
            return self.nodes_render(node.orelse or [], variables, report)
        if node.kind in ("gt", "lt"):
            if self.comparison_holds(node, variables):
                return self.nodes_render(node.body, variables, report)
            return ""
        return ""

    def repeat_render(
        self, node: BlockNode, variables: Mapping[str, Any], report: Optional[Report] = None
    ) -> str:
        count = integer_parseLeading(node.arg)
        if count is None and node.arg in variables:
            count = integer_parseLeading(value_stringify(variables[node.arg]))
        if count is None or count <= 0:
            return ""
        if count > appsettings.template_repeat_limit:
            if report is not None:
                report(
                    "malformed",
                    f"repeat count {count} above limit {appsettings.template_repeat_limit}, skipped",
                )
            return ""

        parts = []
        for index in range(count):
            scope = dict(variables)
            scope["$i"] = index + 1
            scope["$i0"] = index
            parts.append(self.nodes_render(node.body, scope, report))
        return "".join(parts)

    def condition_isTrue(self, key: str, variables: Mapping[str, Any]) -> bool:
        if key not in variables:
            return False
        return value_stringify(variables[key]) not in FALSY

    def comparison_holds(self, node: BlockNode, variables: Mapping[str, Any]) -> bool:
        if node.key in variables:
            actual = number_parse(value_stringify(variables[node.key]))
        else:
            actual = 0.0
        compare = number_parse(node.arg) if node.arg.strip() else None
        if actual is None or compare is None:
            return False
        return actual > compare if node.kind == "gt" else actual < compare


def template_expand(template: str, variables: Mapping[str, Any]) -> str:
    """Module-level shortcut for TemplateInterpreter().expand()"""
    return TemplateInterpreter().expand(template, variables)
