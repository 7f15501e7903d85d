"""Info box markdown block helpers.

An info box is a one-column markdown table at the top of an article:

    | Info Box |
    |-|
    | **Title** |
    | ![description](url) |
    | *attribution* |
    | **Key**: value |
"""

from __future__ import annotations

import re
from typing import Any

INFOBOX_HEADER = "| Info Box |"
INFOBOX_DIVIDER = "|-|"

INFOBOX_TEMPLATE = (
    "| Info Box |\n"
    "|-|\n"
    "| **Article Title** |\n"
    "| ![Image Description](image_url) |\n"
    "| *Image Attribution* |\n"
    "| **Born**: [Birth Date] |\n"
    "| **Occupation**: [Occupation] |\n"
    "| **Known For**: [Notable Achievements] |\n"
    "| **Education**: [Education Details] |\n"
    "\n"
)

_KEY_FACT = re.compile(r"^\*\*([^*]+)\*\*:\s*(.+)$")


def has_infobox(content: str) -> bool:
    return INFOBOX_HEADER in content and INFOBOX_DIVIDER in content


def insert_infobox_template(content: str) -> str:
    """Prepend the blank info box template to article content."""
    return f"{INFOBOX_TEMPLATE}{content}"


def format_infobox_markdown(infobox: dict[str, Any] | None, images: list[dict[str, Any]]) -> str:
    """Render a structured info box as its markdown block (empty when absent)."""
    if not infobox:
        return ""

    lines = [INFOBOX_HEADER, INFOBOX_DIVIDER, f"| **{infobox.get('title', '')}** |"]
    image_index = infobox.get("image")
    if isinstance(image_index, int) and 0 <= image_index < len(images):
        image = images[image_index]
        lines.append(f"| ![{image.get('description', '')}]({image.get('url', '')}) |")
        lines.append(f"| *{image.get('attribution', '')}* |")
    for key, value in (infobox.get("key_facts") or {}).items():
        lines.append(f"| **{key}**: {value} |")
    return "\n".join(lines) + "\n\n"


def _infobox_lines(content: str) -> list[str]:
    collected: list[str] = []
    inside = False
    for line in content.split("\n"):
        if INFOBOX_HEADER in line:
            inside = True
            collected.append(line)
            continue
        if inside:
            if not line.strip():
                break
            collected.append(line)
    return collected


def parse_infobox_from_markdown(content: str) -> dict[str, Any] | None:
    """Recover `{title, image, key_facts}` from the first info box block.

    The image row always points at the article's first image. Returns None
    when the block has no title row.
    """
    lines = _infobox_lines(content)
    if len(lines) < 3:
        return None

    title = ""
    image_index = -1
    key_facts: dict[str, str] = {}
    for raw in lines[2:]:
        line = raw.strip()
        if not line or line == INFOBOX_DIVIDER:
            continue
        cell = line.removeprefix("|").removesuffix("|").strip()
        if cell.startswith("**") and cell.endswith("**") and len(cell) > 4:
            title = cell[2:-2]
        elif cell.startswith("!["):
            image_index = 0
        elif cell.startswith("**"):
            match = _KEY_FACT.match(cell)
            if match:
                key_facts[match.group(1)] = match.group(2)

    if not title:
        return None
    return {"title": title, "image": image_index, "key_facts": key_facts}


def strip_infobox(content: str) -> str:
    """Return content with the leading info box block removed."""
    lines = content.split("\n")
    start = next((index for index, line in enumerate(lines) if INFOBOX_HEADER in line), None)
    if start is None:
        return content.strip()
    end = next(
        (index for index in range(start + 1, len(lines)) if not lines[index].strip()),
        len(lines),
    )
    return "\n".join(lines[:start] + lines[end:]).strip()
