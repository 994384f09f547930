from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so we can import survey_crosstab
ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from survey_crosstab.config import OUTPUT_DIR, DEFAULT_OUTPUT_NAME  # type: ignore


def export_report(output: Path) -> None:
    """Headless run: build the report from the environment config and write the workbook."""
    from survey_crosstab.core.export import write_workbook
    from survey_crosstab.core.report import build_dataset

    dataset = build_dataset()
    write_workbook(dataset.sections(), output)
    logging.getLogger(__name__).info("Report written to %s", output)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Survey crosstab report")
    parser.add_argument(
        "--export",
        nargs="?",
        const=str(OUTPUT_DIR / DEFAULT_OUTPUT_NAME),
        default=None,
        help="write the workbook instead of starting the UI (streamlit run main.py)",
    )
    args, _ = parser.parse_known_args()

    if args.export:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        export_report(Path(args.export))
    else:
        from survey_crosstab.ui.app import run_app  # type: ignore

        run_app()
