"""
Render detections as a positioned HTML skeleton of the page.

Each region becomes an absolutely positioned element whose tag follows the
region class (`doc_title` -> h1, `table` -> table, ...), in reading order.
"""

from __future__ import annotations

from html import escape
from typing import Dict, List, Optional

from .reading_order import sort_by_reading_order
from .types import DetectionResult

TAG_MAPPING: Dict[str, str] = {
    "doc_title": "h1",
    "paragraph_title": "h2",
    "text": "p",
    "abstract": "blockquote",
    "content": "section",
    "image": "figure",
    "figure_title": "figcaption",
    "table": "table",
    "table_title": "caption",
    "chart": "figure",
    "chart_title": "figcaption",
    "formula": "div",
    "formula_number": "span",
    "algorithm": "pre",
    "reference": "cite",
    "footnote": "footer",
    "header": "header",
    "footer": "footer",
    "header_image": "figure",
    "footer_image": "figure",
    "number": "span",
    "seal": "figure",
    "aside_text": "aside",
}

# CSS class -> border colour
CLASS_COLORS: Dict[str, str] = {
    "doc-title": "#e74c3c",
    "paragraph-title": "#e67e22",
    "text-block": "#3498db",
    "abstract": "#9b59b6",
    "content": "#1abc9c",
    "image": "#2ecc71",
    "figure-title": "#27ae60",
    "table": "#8e44ad",
    "table-title": "#9b59b6",
    "chart": "#16a085",
    "chart-title": "#1abc9c",
    "formula": "#f39c12",
    "formula-number": "#f1c40f",
    "algorithm": "#34495e",
    "reference": "#7f8c8d",
    "footnote": "#95a5a6",
    "header": "#2c3e50",
    "footer": "#34495e",
    "header-image": "#1e3a5f",
    "footer-image": "#2c3e50",
    "number": "#e74c3c",
    "seal": "#c0392b",
    "aside-text": "#bdc3c7",
    "unknown": "#95a5a6",
}

_BASE_CSS = """\
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f5f5f5; padding: 20px; }
    .document-container { position: relative; width: 100%; max-width: 800px; margin: 0 auto; background: white; box-shadow: 0 2px 10px rgba(0,0,0,0.1); min-height: 600px; }
    .layout-element { position: absolute; border: 2px solid; border-radius: 4px; font-size: 12px; color: #666; }
    .layout-element::before { content: attr(data-class); position: absolute; top: -20px; left: 0; font-size: 10px; padding: 2px 6px; border-radius: 3px; color: white; white-space: nowrap; }
"""


def css_class_for(class_name: str) -> str:
    if class_name == "text":
        return "text-block"
    css = class_name.replace("_", "-")
    return css if css in CLASS_COLORS else "unknown"


def _hex_to_rgba(color: str, alpha: float) -> str:
    r, g, b = (int(color[i : i + 2], 16) for i in (1, 3, 5))
    return f"rgba({r},{g},{b},{alpha})"


def generate_css() -> str:
    lines = [_BASE_CSS]
    for css, color in CLASS_COLORS.items():
        lines.append(f"    .{css} {{ border-color: {color}; background: {_hex_to_rgba(color, 0.1)}; }}")
        lines.append(f"    .{css}::before {{ background: {color}; }}")
    return "\n".join(lines)


def _generate_elements(result: DetectionResult) -> str:
    img_w = float(result.image_width) or 1.0
    img_h = float(result.image_height) or 1.0
    out: List[str] = []
    for i, box in enumerate(sort_by_reading_order(result.detections)):
        tag = TAG_MAPPING.get(box.class_name, "div")
        css = css_class_for(box.class_name)
        style = (
            f"left: {box.x1 / img_w * 100:.2f}%; top: {box.y1 / img_h * 100:.2f}%; "
            f"width: {box.width / img_w * 100:.2f}%; height: {box.height / img_h * 100:.2f}%;"
        )
        name = escape(box.class_name)
        out.append(f'    <{tag} class="layout-element {css}"')
        out.append(f'         style="{style}"')
        out.append(f'         data-box="{int(box.x1)},{int(box.y1)},{int(box.x2)},{int(box.y2)}"')
        out.append(f'         data-score="{box.score:.4f}"')
        out.append(f'         data-class="{name}"')
        out.append(f'         data-index="{i}">')
        out.append(f"      <!-- {name} -->")
        out.append(f"    </{tag}>")
    return "\n".join(out)


def generate_body(result: DetectionResult) -> str:
    if not result.ok or not result.detections:
        return '<article class="document-container"></article>'
    return (
        f'<article class="document-container" data-width="{result.image_width}" data-height="{result.image_height}">\n'
        f"{_generate_elements(result)}\n"
        "</article>"
    )


def generate_html(result: DetectionResult, title: Optional[str] = None) -> str:
    page_title = escape(title or "Document Layout")
    head = (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>{page_title}</title>\n"
    )
    if not result.ok or not result.detections:
        return head + (
            "</head>\n<body>\n"
            '  <article class="document-container">\n'
            "    <p>No detections available</p>\n"
            "  </article>\n"
            "</body>\n</html>"
        )
    return head + (
        f"  <style>\n{generate_css()}\n  </style>\n"
        "</head>\n<body>\n"
        f"{generate_body(result)}\n"
        "</body>\n</html>"
    )
