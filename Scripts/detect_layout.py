from __future__ import annotations

import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import cv2

from doclayout_kit import (
    DetectionResult,
    DetectorConfig,
    DocLayoutError,
    DocLayoutService,
    InvalidInputError,
    draw_detections,
    error_to_json,
    load_detector_config,
    result_to_json,
)
from doclayout_kit.form_export import generate_form_html
from doclayout_kit.html_export import generate_html
from doclayout_kit.logging_utils import setup_logging

logger = logging.getLogger("detect_layout")


@dataclass(frozen=True)
class ImageOutcome:
    path: Path
    payload: str
    result: Optional[DetectionResult]


def _build_config(args: argparse.Namespace) -> DetectorConfig:
    if args.config:
        cfg = load_detector_config(Path(args.config))
        if args.model:
            cfg = DetectorConfig(
                model_path=args.model,
                input_size=cfg.input_size,
                conf_threshold=cfg.conf_threshold,
                providers=cfg.providers,
                serialize_runs=cfg.serialize_runs,
                metadata_path=cfg.metadata_path,
            )
        return cfg

    providers = None
    if args.onnx_providers:
        providers = tuple(p.strip() for p in str(args.onnx_providers).split(",") if p.strip())
    return DetectorConfig(
        model_path=args.model or "models/pp_doclayout_m.onnx",
        input_size=(int(args.imgsz), int(args.imgsz)),
        conf_threshold=0.3 if args.conf is None else float(args.conf),
        providers=providers,
        metadata_path=args.metadata,
    )


def _process(service: DocLayoutService, path: Path, conf: Optional[float]) -> ImageOutcome:
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        return ImageOutcome(path=path, payload=error_to_json("Could not load image", InvalidInputError.code), result=None)
    result = service.run(img, conf)
    return ImageOutcome(path=path, payload=result_to_json(result), result=result)


def _write_artifacts(outcome: ImageOutcome, args: argparse.Namespace) -> None:
    stem = outcome.path.stem
    if args.json_out:
        out_dir = Path(args.json_out)
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / f"{stem}.json").write_text(outcome.payload, encoding="utf-8")

    if outcome.result is None:
        return

    if args.vis_out:
        out_dir = Path(args.vis_out)
        out_dir.mkdir(parents=True, exist_ok=True)
        img = cv2.imread(str(outcome.path), cv2.IMREAD_COLOR)
        vis = draw_detections(img, outcome.result.detections, show_score=True)
        out_path = out_dir / f"{stem}_layout.jpg"
        if not cv2.imwrite(str(out_path), vis):
            raise RuntimeError(f"Failed to write visualization: {out_path}")

    if args.html_out:
        out_dir = Path(args.html_out)
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / f"{stem}.html").write_text(generate_html(outcome.result, title=stem), encoding="utf-8")

    if args.form_out:
        out_dir = Path(args.form_out)
        out_dir.mkdir(parents=True, exist_ok=True)
        form = generate_form_html(outcome.result, image_path=outcome.path, title=stem, show_ghost_image=not args.no_ghost)
        (out_dir / f"{stem}_form.html").write_text(form, encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Detect document layout regions (PP-DocLayout ONNX).")
    parser.add_argument("images", nargs="+", help="Input image path(s).")
    parser.add_argument("--config", default=None, help="Detector config JSON (model_path, conf_threshold, ...).")
    parser.add_argument("--model", default=None, help="Path to a PP-DocLayout .onnx export (2- or 3-input).")
    parser.add_argument("--metadata", default=None, help="Optional class metadata yaml overriding the built-in taxonomy.")
    parser.add_argument("--imgsz", type=int, default=640, help="Network input size (e.g., 640).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold (default: config value or 0.3).")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--workers", type=int, default=1, help="Images processed concurrently (shared session).")
    parser.add_argument("--json-out", default=None, help="Directory for per-image JSON results.")
    parser.add_argument("--vis-out", default=None, help="Directory for visualized images.")
    parser.add_argument("--html-out", default=None, help="Directory for HTML layout previews.")
    parser.add_argument("--form-out", default=None, help="Directory for editable form overlays.")
    parser.add_argument("--no-ghost", action="store_true", help="Do not embed the page image behind form fields.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    parser.add_argument("--log-file", default=None, help="Optional log file path.")
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)
    if args.imgsz < 32:
        raise ValueError("--imgsz must be >= 32")
    if args.workers < 1:
        raise ValueError("--workers must be >= 1")

    service = DocLayoutService(_build_config(args))
    try:
        service.warm_up()
    except DocLayoutError as e:
        print(error_to_json(str(e), e.code))
        return 2

    paths = [Path(p) for p in args.images]
    with ThreadPoolExecutor(max_workers=args.workers) as pool:
        outcomes = list(pool.map(lambda p: _process(service, p, args.conf), paths))

    failed = 0
    for outcome in outcomes:
        print(f"{outcome.path}: {outcome.payload}")
        _write_artifacts(outcome, args)
        if outcome.result is None or not outcome.result.ok:
            failed += 1

    if failed:
        logger.warning("%d of %d images failed", failed, len(outcomes))
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
