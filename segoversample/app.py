import argparse
import json
import logging
import math
from typing import Any, Dict, Optional, Sequence

import SimpleITK as sitk
import numpy as np

from .calculator import OversamplingFactorCalculator
from .engine import determine_oversampling_factor, is_valid_measure
from .geometry import oversampled_extent_and_spacing, oversampled_origin
from .mesh import MeshBuilder

log = logging.getLogger("segoversample")
if not log.handlers:
    # Minimal default handler; feel free to configure elsewhere.
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s] %(message)s")
    handler.setFormatter(formatter)
    log.addHandler(handler)
log.setLevel(logging.INFO)

# ---- Report helpers ----------------------------------------------------------

def _json_number(value: float) -> Optional[float]:
    """Non-finite values have no JSON representation; report them as null."""
    return value if math.isfinite(value) else None


def _oversampled_reference(reference: sitk.Image, factor: float) -> Dict[str, Any]:
    """Geometry the reference grid would get at the given factor (no voxels are allocated)."""
    size = reference.GetSize()
    extent = []
    for n in size[:3]:
        extent.extend((0, int(n) - 1))
    spacing = reference.GetSpacing()[:3]
    direction = np.asarray(reference.GetDirection(), dtype=np.float64).reshape(3, 3)

    new_extent, new_spacing = oversampled_extent_and_spacing(extent, spacing, factor)
    new_origin = oversampled_origin(reference.GetOrigin(), spacing, new_spacing, direction)
    return {
        "extent": list(new_extent),
        "size": [new_extent[2 * a + 1] - new_extent[2 * a] + 1 for a in range(3)],
        "spacing": list(new_spacing),
        "origin": list(new_origin),
    }


def compute_report(
    labelmap_path: Optional[str] = None,
    *,
    label: Optional[int] = None,
    reference_path: Optional[str] = None,
    measures: Optional[Sequence[float]] = None,
    log_speed: bool = False,
) -> Dict[str, Any]:
    """
    Oversampling factor for a structure, either from a label image (meshed with
    discrete marching cubes) or from precomputed (size, complexity) measures.
    The reference defaults to the label image's own grid.
    """
    reference = sitk.ReadImage(reference_path) if reference_path else None

    if measures is not None:
        size_measure, complexity_measure = (float(v) for v in measures)
        factor = determine_oversampling_factor(size_measure, complexity_measure)
        success = is_valid_measure(size_measure) and is_valid_measure(complexity_measure)
    else:
        mask = sitk.ReadImage(labelmap_path)
        if reference is None:
            reference = mask
        polydata = MeshBuilder().mask_to_polydata(mask, label=label)
        log.info("[mesh] %s: %d points, %d triangles",
                 labelmap_path, polydata.GetNumberOfPoints(), polydata.GetNumberOfPolys())

        calculator = OversamplingFactorCalculator(polydata, reference, log_speed_measurements=log_speed)
        success = calculator.calculate()
        size_measure = calculator.size_measure
        complexity_measure = calculator.complexity_measure
        factor = calculator.output_oversampling_factor

    report: Dict[str, Any] = {
        "success": bool(success),
        "size_measure": _json_number(size_measure),
        "complexity_measure": _json_number(complexity_measure),
        "oversampling_factor": factor,
    }
    if labelmap_path:
        report["labelmap"] = labelmap_path
    if reference is not None:
        report["oversampled_reference"] = _oversampled_reference(reference, factor)
    return report

# ---- CLI ---------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Compute the automatic oversampling factor for rasterizing a segmented structure."
    )
    p.add_argument("labelmap", nargs="?", default=None, help="Label or binary mask image (e.g. NIfTI).")
    p.add_argument("--label", type=int, default=None, help="Label value of the structure (default: any non-zero voxel).")
    p.add_argument("--reference", default=None, help="Reference image defining the rasterization grid (default: the labelmap).")
    p.add_argument(
        "--measures",
        nargs=2,
        type=float,
        metavar=("SIZE", "COMPLEXITY"),
        default=None,
        help="Evaluate precomputed size and complexity measures instead of meshing a labelmap.",
    )
    p.add_argument("--log-speed", action="store_true", help="Log timing of the calculation steps.")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.labelmap is None and args.measures is None:
        parser.error("either a labelmap or --measures is required")
    if args.verbose:
        log.setLevel(logging.DEBUG)

    try:
        report = compute_report(
            args.labelmap,
            label=args.label,
            reference_path=args.reference,
            measures=args.measures,
            log_speed=args.log_speed,
        )
    except (RuntimeError, ValueError) as exc:
        log.error("[pipeline] %s", exc)
        raise SystemExit(1) from exc

    print(json.dumps(report, indent=2, allow_nan=False))


if __name__ == "__main__":
    main()
