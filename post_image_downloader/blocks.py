"""Pattern based reading and editing of comment-delimited content blocks.

Blocks look like::

    <!-- wp:image {"id":2,"sizeSlug":"large"} -->
    <figure class="wp-block-image"><img src="..." class="wp-image-2"/></figure>
    <!-- /wp:image -->

Only the JSON object on the opening line is ever rewritten; everything else
in a block is left byte for byte as it was. This is a textual matcher, not a
block grammar parser, so nested blocks of the same name are not supported.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import BlockMatch

BLOCK_PATTERN = r"""
    <!--\s+%(name)s(?![\w:/-])  # opening comment with the block name
    .*?-->                      # attributes, end of the opening tag
    .*?                         # inner HTML
    <!--\s+/%(name)s\s+-->      # closing comment
"""


def find_blocks(block_name: str, content: str) -> List[BlockMatch]:
    """Return every `block_name` block in `content`, in document order."""
    pattern = re.compile(
        BLOCK_PATTERN % {"name": re.escape(block_name)},
        re.IGNORECASE | re.DOTALL | re.VERBOSE,
    )
    return [
        BlockMatch(name=block_name, html=match.group(0), start=match.start(), end=match.end())
        for match in pattern.finditer(content)
    ]


def _attributes_span(block_html: str) -> Optional[Tuple[int, int]]:
    """Locate the JSON object inside the opening comment on the first line."""
    first_line = block_html.split("\n", 1)[0]
    closing = first_line.find("-->")
    opening_tag = first_line if closing == -1 else first_line[:closing]
    start = opening_tag.find("{")
    end = opening_tag.rfind("}")
    if start == -1 or end < start:
        return None
    return start, end + 1


def _decode(json_part: str) -> Dict[str, Any]:
    decoded = json.loads(json_part)
    if not isinstance(decoded, dict):
        raise ValueError(f"Block attributes are not a JSON object: {json_part}")
    return decoded


# The block editor writes `--`, `<`, `>`, `&` and quotes inside attribute
# values as unicode escapes.
ESCAPED_QUOTE_PATTERN = re.compile(r'(?<!\\)((?:\\\\)*)\\"')


def _encode(attributes: Dict[str, Any]) -> str:
    encoded = json.dumps(attributes, separators=(",", ":"), ensure_ascii=False)
    encoded = (
        encoded.replace("--", "\\u002d\\u002d")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )
    return ESCAPED_QUOTE_PATTERN.sub(r"\1\\u0022", encoded)


def read_attributes(block_html: str) -> Optional[Dict[str, Any]]:
    """Decode the block's attribute object, or None if it has none."""
    span = _attributes_span(block_html)
    if span is None:
        return None
    try:
        return _decode(block_html[span[0] : span[1]])
    except ValueError:
        return None


def get_attribute(block_html: str, name: str) -> Any:
    attributes = read_attributes(block_html)
    if attributes is None:
        return None
    return attributes.get(name)


def set_attribute(block_html: str, name: str, value: Any) -> str:
    """Set one attribute on the block's opening line and return the new block.

    Existing keys keep their order and new keys are appended. When the block
    has no attribute object yet, one is inserted right before the `-->` of
    the opening comment.
    """
    span = _attributes_span(block_html)
    if span is not None:
        start, end = span
        attributes = _decode(block_html[start:end])
        attributes[name] = value
        return block_html[:start] + _encode(attributes) + block_html[end:]

    first_line, separator, rest = block_html.partition("\n")
    closing = first_line.find("-->")
    if closing == -1:
        raise ValueError("Block opening comment is not closed on its first line")
    patched = first_line[:closing].rstrip() + " " + _encode({name: value}) + " " + first_line[closing:]
    return patched + separator + rest


def splice_blocks(content: str, replacements: Iterable[Tuple[BlockMatch, str]]) -> str:
    """Write updated block HTML back into `content` at the matched offsets."""
    updated = content
    for block, new_html in sorted(replacements, key=lambda item: item[0].start, reverse=True):
        updated = updated[: block.start] + new_html + updated[block.end :]
    return updated
