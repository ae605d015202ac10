"""Theme screenshot pipeline CLI.

Subcommands (each reads the catalog from <themes_dir>/theme-list.json):
    render    Render <screenshots_dir>/<slug>.png for every theme
    sheets    Build comparison-grid.png and dark-light-comparison.png
    compare   Diff screenshots against baselines, write comparison-report.txt
    audit     Validate theme documents and schemes, write audit-report.txt
    all       render → sheets → compare → audit

Exit codes:
    0  every theme passed the stages that ran
    1  any theme failed (render error, DIFF/FAIL/ERROR result, audit finding)
       or the config/catalog could not be loaded

CLI:
    python scripts/run_pipeline.py all
    python scripts/run_pipeline.py compare --config configs/pipeline.v1.yaml --verbose
    python scripts/run_pipeline.py render --workers 1

Creating baselines:
    Run `render`, review build/screenshots/*.png, then copy them into the
    baselines directory.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from themeshot.pipeline import Pipeline
from themeshot.utils import validators
from themeshot.utils.logging_config import install_excepthook, setup_logging, shutdown

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("configs/pipeline.v1.yaml")
COMMANDS = ("render", "sheets", "compare", "audit", "all")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render, compare and audit IDE theme screenshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full run with the default config
  python scripts/run_pipeline.py all

  # Only re-check screenshots against baselines
  python scripts/run_pipeline.py compare --verbose
""",
    )
    parser.add_argument("command", choices=COMMANDS, help="Pipeline stage to run")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Pipeline config (default: {DEFAULT_CONFIG}; built-in defaults if missing)",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Base directory for relative config paths (default: current directory)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Override config workers (1 = serial)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="DEBUG logging",
    )
    return parser


def _load_config(path: Path) -> validators.PipelineConfigV1:
    if path.exists():
        return validators.load_pipeline_config(path)
    if path != DEFAULT_CONFIG:
        raise FileNotFoundError(f"Config not found: {path}")
    return validators.PipelineConfigV1()


def run(pipeline: Pipeline, command: str) -> int:
    """Run one subcommand; returns the number of failed themes."""
    catalog = pipeline.load_catalog()
    failures = 0

    if command in ("render", "all"):
        summary = pipeline.render_catalog(catalog)
        failures += len(summary.failed)

    if command in ("sheets", "all"):
        pipeline.build_contact_sheets(catalog)

    if command in ("compare", "all"):
        report = pipeline.run_regression(catalog)
        print(report.format_text())
        failures += report.failures

    if command in ("audit", "all"):
        audits = pipeline.run_audit(catalog)
        failures += sum(1 for a in audits if not a.passed)

    return failures


def main() -> int:
    """CLI entrypoint."""
    parser = _build_parser()
    args = parser.parse_args()

    try:
        cfg = _load_config(args.config)
    except (FileNotFoundError, validators.ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.workers is not None:
        if args.workers < 1:
            print("Error: --workers must be >= 1", file=sys.stderr)
            return 1
        cfg = cfg.model_copy(update={"workers": args.workers})

    setup_logging(
        log_level="DEBUG" if args.verbose else cfg.logging.log_level,
        log_file=cfg.logging.log_file,
        json=cfg.logging.json_lines,
        color=cfg.logging.color,
        context={"command": args.command},
    )
    install_excepthook()

    try:
        pipeline = Pipeline(cfg, root=args.root)
        failures = run(pipeline, args.command)
    except (FileNotFoundError, validators.ConfigError) as e:
        logger.error("%s", e)
        failures = 1
    else:
        if failures:
            logger.warning("%d failure(s)", failures)

    shutdown()
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
