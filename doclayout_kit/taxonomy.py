from __future__ import annotations

from typing import Dict, Sequence, Tuple

# PP-DocLayout class order. Must match the order the model was trained with.
DOC_CLASSES: Tuple[str, ...] = (
    "paragraph_title",
    "image",
    "text",
    "number",
    "abstract",
    "content",
    "figure_title",
    "formula",
    "table",
    "table_title",
    "reference",
    "doc_title",
    "footnote",
    "header",
    "algorithm",
    "footer",
    "seal",
    "chart_title",
    "chart",
    "formula_number",
    "header_image",
    "footer_image",
    "aside_text",
)


def class_name_for(class_id: int, class_names: Sequence[str] = DOC_CLASSES) -> str:
    if not 0 <= class_id < len(class_names):
        raise IndexError(f"class_id {class_id} outside taxonomy of size {len(class_names)}")
    return class_names[class_id]


def class_id_for(name: str, class_names: Sequence[str] = DOC_CLASSES) -> int:
    try:
        return list(class_names).index(name)
    except ValueError:
        raise KeyError(f"Unknown class name: {name!r}") from None


def load_class_names(metadata_path: str) -> Tuple[str, ...]:
    """
    Load an ordered class taxonomy from a lightweight `metadata.yaml` file:

        names:
          0: paragraph_title
          1: image
          ...

    Ids must be dense (0..K-1); a gap would shift every label after it.
    """

    names: Dict[int, str] = {}
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue

            # Parse "id: label"
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    if not names:
        raise ValueError(f"No class names found in {metadata_path}")
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Class ids in {metadata_path} must be dense 0..{len(names) - 1}, got {sorted(names)}")
    return tuple(names[i] for i in expected)
