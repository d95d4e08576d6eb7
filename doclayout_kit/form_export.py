"""
Turn detections into an editable form overlay of the scanned page.

Text-like regions become `contenteditable` fields positioned over the page;
visual regions (images, tables, seals, ...) are kept as inert placeholders.
With ghost mode on, the scan itself is embedded as a base64 background so the
fields line up with the printed text.

`generate_filled_html` renders the same layout as static text for export,
filled from `{field index: text}`.
"""

from __future__ import annotations

import base64
from html import escape
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Union

from .reading_order import sort_by_reading_order
from .types import DetectionBox, DetectionResult

PathLike = Union[str, Path]

# Band height used to group regions into rows for tab order.
FORM_ROW_TOLERANCE = 30.0

EDITABLE_CLASSES: FrozenSet[str] = frozenset(
    {
        "doc_title",
        "paragraph_title",
        "text",
        "abstract",
        "content",
        "figure_title",
        "table_title",
        "chart_title",
        "reference",
        "footnote",
        "header",
        "footer",
        "number",
        "formula_number",
        "aside_text",
    }
)

VISUAL_CLASSES: FrozenSet[str] = frozenset(
    {
        "image",
        "table",
        "chart",
        "formula",
        "algorithm",
        "seal",
        "header_image",
        "footer_image",
    }
)

DEFAULT_FONT_SIZE = "14px"

FONT_SIZES: Dict[str, str] = {
    "doc_title": "24px",
    "paragraph_title": "18px",
    "text": "14px",
    "abstract": "14px",
    "content": "14px",
    "figure_title": "12px",
    "table_title": "12px",
    "chart_title": "12px",
    "reference": "12px",
    "footnote": "11px",
    "header": "12px",
    "footer": "12px",
    "number": "14px",
    "formula_number": "12px",
    "aside_text": "12px",
}

PLACEHOLDERS: Dict[str, str] = {
    "doc_title": "Document Title",
    "paragraph_title": "Section Title",
    "text": "Text content...",
    "abstract": "Abstract...",
    "content": "Content...",
    "figure_title": "Figure caption",
    "table_title": "Table caption",
    "chart_title": "Chart caption",
    "reference": "Reference",
    "footnote": "Footnote",
    "header": "Header",
    "footer": "Footer",
    "number": "#",
    "formula_number": "(#)",
    "aside_text": "Note...",
}

_FONT_STACK = "-apple-system, BlinkMacSystemFont, 'Segoe UI', 'PingFang TC', 'Microsoft JhengHei', sans-serif"

_TYPE_CSS = """\
    .doc-title { font-weight: bold; text-align: center; }
    .paragraph-title { font-weight: 600; }
    .text, .content, .abstract { text-align: justify; }
    .figure-title, .table-title, .chart-title { text-align: center; font-style: italic; }
    .header, .footer { text-align: center; color: #666; }
"""

_FORM_CSS = """\
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    html, body {{ width: 100%; height: 100%; overflow: hidden; }}
    body {{ font-family: {font_stack}; background: #e0e0e0; display: flex; justify-content: center; align-items: flex-start; }}
    .document-container {{ position: relative; width: 100%; height: 100%; {background} }}
    .form-element {{ position: absolute; overflow: hidden; word-wrap: break-word; line-height: 1.4; }}
    .editable-field {{ background: rgba(255, 255, 255, 0.7); border: 1px dashed rgba(0, 120, 215, 0.5); border-radius: 2px; padding: 2px 4px; cursor: text; outline: none; }}
    .editable-field:hover {{ background: rgba(255, 255, 255, 0.85); border-color: rgba(0, 120, 215, 0.8); }}
    .editable-field:focus, .editable-field.focused {{ background: rgba(255, 255, 255, 0.95); border: 2px solid #0078d7; box-shadow: 0 0 0 3px rgba(0, 120, 215, 0.3); z-index: 100; }}
    .editable-field:empty::before {{ content: attr(placeholder); color: #999; font-style: italic; pointer-events: none; }}
    .visual-element {{ pointer-events: none; border: 1px dashed rgba(100, 100, 100, 0.3); background: rgba(200, 200, 200, 0.1); }}
{type_css}    .footnote, .reference {{ font-size: 11px; }}
    .number, .formula-number {{ text-align: center; }}
    @media print {{
      body {{ background: none; }}
      .document-container {{ background: none !important; height: auto; }}
      .form-element {{ border: none !important; background: none !important; box-shadow: none !important; }}
      .editable-field:empty::before, .visual-element {{ display: none; }}
    }}
    .document-container.export-mode {{ background: #fff !important; }}
    .export-mode .form-element {{ border: none !important; background: none !important; }}
    .export-mode .visual-element {{ display: none; }}
"""

_EXPORT_CSS = """\
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{ font-family: {font_stack}; background: #fff; }}
    .document-container {{ position: relative; width: 100%; padding-bottom: 141.4%; {background} }}
    .text-element {{ position: absolute; overflow: hidden; word-wrap: break-word; line-height: 1.3; padding: 2px; background: #fff; {border} }}
{type_css}    @media print {{
      body {{ background: none; }}
      .document-container {{ background-image: none !important; padding-bottom: 0; height: auto; }}
    }}
"""

_FORM_SCRIPT = """\
    var editableFields = document.querySelectorAll('.editable-field');
    var fieldArray = Array.from(editableFields);
    var currentFieldIndex = -1;

    function focusField(index) {
      if (index >= 0 && index < fieldArray.length) {
        fieldArray[index].focus();
      }
    }
    function focusNextField() { focusField(currentFieldIndex + 1); }
    function focusPrevField() { focusField(currentFieldIndex - 1); }

    fieldArray.forEach(function(el, index) {
      el.dataset.fieldIndex = index;
      el.addEventListener('input', function() {
        this.classList.toggle('has-content', this.textContent.trim().length > 0);
      });
      el.addEventListener('focus', function() {
        currentFieldIndex = parseInt(this.dataset.fieldIndex);
        this.classList.add('focused');
      });
      el.addEventListener('blur', function() { this.classList.remove('focused'); });
      el.addEventListener('keydown', function(e) {
        if (e.key === 'Tab' || e.key === 'Enter') {
          e.preventDefault();
          focusField(e.shiftKey ? currentFieldIndex - 1 : currentFieldIndex + 1);
        } else if (e.key === 'ArrowDown' && e.ctrlKey) {
          e.preventDefault();
          focusNextField();
        } else if (e.key === 'ArrowUp' && e.ctrlKey) {
          e.preventDefault();
          focusPrevField();
        }
      });
    });

    function getFormData() {
      var data = [];
      document.querySelectorAll('.form-element').forEach(function(el) {
        data.push({
          type: el.dataset.type,
          index: parseInt(el.dataset.index),
          content: el.textContent || '',
          isEditable: el.classList.contains('editable-field')
        });
      });
      return JSON.stringify(data);
    }

    function setFormData(jsonData) {
      JSON.parse(jsonData).forEach(function(item) {
        var el = document.querySelector('[data-index="' + item.index + '"]');
        if (el && item.content) {
          el.textContent = item.content;
          el.classList.toggle('has-content', item.content.trim().length > 0);
        }
      });
    }

    function setExportMode(enabled) {
      document.querySelector('.document-container').classList.toggle('export-mode', enabled);
    }

    function getExportHtml() {
      setExportMode(true);
      var html = document.documentElement.outerHTML;
      setExportMode(false);
      return html;
    }
"""


def is_editable(class_name: str) -> bool:
    return class_name in EDITABLE_CLASSES


def is_visual(class_name: str) -> bool:
    return class_name in VISUAL_CLASSES


def detect_mime_type(data: bytes) -> str:
    """
    Sniff the image type from its magic bytes; unknown data is assumed to be JPEG.
    """

    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:4] == b"\x89PNG":
        return "image/png"
    if data[:3] == b"GIF":
        return "image/gif"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def image_data_url(data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{detect_mime_type(data)};base64,{encoded}"


def _background_css(data_url: Optional[str], fallback: str) -> str:
    if data_url is None:
        return fallback
    return (
        f"background-image: url('{data_url}'); background-size: 100% 100%; "
        "background-position: center; background-repeat: no-repeat;"
    )


def _position_style(box: DetectionBox, img_w: float, img_h: float) -> str:
    font_size = FONT_SIZES.get(box.class_name, DEFAULT_FONT_SIZE)
    return (
        f"left: {box.x1 / img_w * 100:.3f}%; top: {box.y1 / img_h * 100:.3f}%; "
        f"width: {box.width / img_w * 100:.3f}%; height: {box.height / img_h * 100:.3f}%; "
        f"font-size: {font_size};"
    )


def _type_class(class_name: str) -> str:
    return class_name.replace("_", "-")


def _generate_form_elements(boxes: List[DetectionBox], result: DetectionResult) -> str:
    img_w = float(result.image_width) or 1.0
    img_h = float(result.image_height) or 1.0
    out: List[str] = []
    for i, box in enumerate(boxes):
        editable = is_editable(box.class_name)
        role = "editable-field" if editable else "visual-element"
        name = escape(box.class_name)
        out.append(f'    <div class="form-element {role} {escape(_type_class(box.class_name))}"')
        if editable:
            out.append('         contenteditable="true"')
        out.append(f'         style="{_position_style(box, img_w, img_h)}"')
        out.append(f'         data-type="{name}"')
        out.append(f'         data-index="{i}"')
        out.append(f'         data-score="{box.score:.4f}"')
        if editable:
            out.append(f'         placeholder="{escape(PLACEHOLDERS.get(box.class_name, ""))}"')
        out.append("    ></div>")
    return "\n".join(out)


def _generate_filled_elements(
    boxes: List[DetectionBox],
    result: DetectionResult,
    field_contents: Mapping[int, str],
) -> str:
    img_w = float(result.image_width) or 1.0
    img_h = float(result.image_height) or 1.0
    out: List[str] = []
    for i, box in enumerate(boxes):
        if not is_editable(box.class_name):
            continue
        out.append(f'    <div class="text-element {escape(_type_class(box.class_name))}"')
        out.append(f'         style="{_position_style(box, img_w, img_h)}">')
        out.append(f"      {escape(field_contents.get(i, ''))}")
        out.append("    </div>")
    return "\n".join(out)


def _page(title: str, css: str, body: str, *, viewport: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        f'  <meta name="viewport" content="{viewport}">\n'
        f"  <title>{escape(title)}</title>\n"
        f"  <style>\n{css}  </style>\n"
        "</head>\n"
        "<body>\n"
        f"{body}"
        "</body>\n"
        "</html>"
    )


def generate_error_html(message: str) -> str:
    css = (
        "    body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; display: flex; "
        "justify-content: center; align-items: center; height: 100vh; background: #f5f5f5; }\n"
        "    .error { background: #fff; padding: 20px 40px; border-radius: 8px; "
        "box-shadow: 0 2px 10px rgba(0,0,0,0.1); color: #e74c3c; }\n"
    )
    body = f'  <div class="error">\n    <h2>Error</h2>\n    <p>{escape(message)}</p>\n  </div>\n'
    return _page("Error", css, body, viewport="width=device-width, initial-scale=1.0")


def _failure_message(result: DetectionResult) -> str:
    return str(result.error) if result.error is not None else "Unknown error"


def _read_background(image_bytes: Optional[bytes], image_path: Optional[PathLike]) -> Optional[str]:
    if image_bytes is not None:
        return image_data_url(image_bytes)
    if image_path is not None:
        return image_data_url(Path(image_path).read_bytes())
    return None


def generate_form_html(
    result: DetectionResult,
    *,
    image_bytes: Optional[bytes] = None,
    image_path: Optional[PathLike] = None,
    title: Optional[str] = None,
    show_ghost_image: bool = True,
) -> str:
    """
    Build the editable form page for `result`.

    Fields are emitted in reading order and `data-index` numbers them in that
    order; `generate_filled_html` keys its contents by the same index. The scan
    is embedded as the page background only when `show_ghost_image` is set and
    `image_bytes` or `image_path` is given (bytes win over the path).

    A failed result renders an error page instead.
    """

    if not result.ok:
        return generate_error_html(_failure_message(result))

    data_url = _read_background(image_bytes, image_path) if show_ghost_image else None
    boxes = sort_by_reading_order(result.detections, row_tolerance=FORM_ROW_TOLERANCE)
    css = _FORM_CSS.format(
        font_stack=_FONT_STACK,
        background=_background_css(data_url, "background: #fff;"),
        type_css=_TYPE_CSS,
    )
    body = (
        f'  <div class="document-container" data-width="{result.image_width}" data-height="{result.image_height}">\n'
        f"{_generate_form_elements(boxes, result)}\n"
        "  </div>\n"
        f"  <script>\n{_FORM_SCRIPT}  </script>\n"
    )
    return _page(
        title or "Document Form",
        css,
        body,
        viewport="width=device-width, initial-scale=1.0, maximum-scale=1.0, user-scalable=no",
    )


def generate_filled_html(
    result: DetectionResult,
    field_contents: Mapping[int, str],
    *,
    image_bytes: Optional[bytes] = None,
    title: Optional[str] = None,
    show_background_image: bool = False,
    show_border: bool = False,
    background_opacity: float = 0.3,
) -> str:
    """
    Static export of a filled form: editable regions only, with their text.

    Without a background image the page is tinted blue at `background_opacity`.
    """

    if not result.ok:
        return generate_error_html(_failure_message(result))
    if not 0.0 <= background_opacity <= 1.0:
        raise ValueError("background_opacity must be within [0, 1]")

    data_url = image_data_url(image_bytes) if show_background_image and image_bytes is not None else None
    boxes = sort_by_reading_order(result.detections, row_tolerance=FORM_ROW_TOLERANCE)
    css = _EXPORT_CSS.format(
        font_stack=_FONT_STACK,
        background=_background_css(data_url, f"background: rgba(0, 120, 215, {background_opacity:.2f});"),
        border="border: 1px solid #ccc; border-radius: 2px;" if show_border else "",
        type_css=_TYPE_CSS,
    )
    body = (
        '  <div class="document-container">\n'
        f"{_generate_filled_elements(boxes, result, field_contents)}\n"
        "  </div>\n"
    )
    return _page(title or "Document", css, body, viewport="width=device-width, initial-scale=1.0")
