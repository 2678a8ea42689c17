"""
pixeltrack/eval_counts.py
-------------------------
Compare ground-truth object counts with the tracker's counts.

Usage
-----
python -m pixeltrack.eval_counts  --gt ground_truth.json  --pred counts.json
"""
from __future__ import annotations
import argparse, json, re, logging, pathlib, statistics
from typing import Dict, List, Mapping, Tuple

log = logging.getLogger(__name__)

Row = Tuple[str, int, int, int, float]


# --------------------------------------------------------------------------- #
def load_counts(p: pathlib.Path) -> Dict[str, int] | None:
    """Read a ``{filename: count}`` JSON file; tolerates missing braces and a trailing comma."""
    try:
        txt = p.read_text().strip()
        if not txt:
            return {}  # An empty file is not an error, but results in an empty dict.
        if not txt.startswith("{"):
            txt = "{\n" + txt + "\n}"
        txt = re.sub(r",\s*}", "}", txt)  # kill final trailing comma
        return json.loads(txt)
    except json.JSONDecodeError as e:
        log.error("Failed to parse JSON from %s: %s", p.name, e)
        return None
    except OSError as e:
        log.error("Failed to read %s: %s", p, e)
        return None


def evaluate(gt: Mapping[str, int], pred: Mapping[str, int]) -> Tuple[List[Row], float, float]:
    """
    Returns (rows, MAE, MAPE). Each row is
    ``(name, true, predicted, error, |error| %)``; missing predictions count as 0.
    """
    rows: List[Row] = []
    abs_errs, pct_errs = [], []
    for fname, true_cnt in gt.items():
        cv_cnt = pred.get(fname, 0)
        err = cv_cnt - true_cnt
        abs_errs.append(abs(err))
        pct_err = abs(err) / true_cnt * 100 if true_cnt > 0 else 0.0
        pct_errs.append(pct_err)
        rows.append((fname, true_cnt, cv_cnt, err, pct_err))

    mae = statistics.mean(abs_errs) if abs_errs else 0.0
    mape = statistics.mean(pct_errs) if pct_errs else 0.0
    return sorted(rows), mae, mape


def run_evaluation(
    gt_path: pathlib.Path, pred: pathlib.Path | Mapping[str, int]
) -> Tuple[float, float] | None:
    """
    Print a comparison report; *pred* is a counts JSON path or an in-memory
    ``{filename: count}`` mapping. Returns (MAE, MAPE), or None on bad input.
    """
    gt = load_counts(gt_path)
    if gt is None:
        return None  # Error already logged by load_counts

    if isinstance(pred, pathlib.Path):
        pred_name = pred.name
        pred = load_counts(pred)
        if pred is None:
            return None
    else:
        pred_name = "current run"

    rows, mae, mape = evaluate(gt, pred)

    # ------------------------------------------------------------------ #
    print(f"\nComparison  (GT = {gt_path.name},  Pred = {pred_name})\n")
    print(f"{'image':35s}  {'GT':>5s}  {'CV':>5s}  {'Δ':>5s}  {'|Δ|%':>7s}")
    print("-"*62)
    for r in rows:
        print(f"{r[0]:35s}  {r[1]:5d}  {r[2]:5d}  {r[3]:5d}  {r[4]:6.1f}%")
    print("-"*62)
    print(f"MAE  = {mae:.2f}   |   MAPE = {mape:.2f}%   (n={len(rows)})\n")
    return mae, mape


def main() -> None:
    """Entry point for command-line execution."""
    ap = argparse.ArgumentParser(description="Compare GT vs tracker counts")
    ap.add_argument("--gt",  required=True, help="Ground-truth JSON file")
    ap.add_argument("--pred", required=True, help="Counts JSON file")
    args = ap.parse_args()

    run_evaluation(pathlib.Path(args.gt), pathlib.Path(args.pred))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO,
                        format="%(levelname)-7s | %(message)s")
    main()
