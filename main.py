"""
main.py — MSPCC Weekly Business Report — CLI Entry Point.

Provides a command-line interface for running any combination of
pipeline stages. Stages share data in memory (no intermediate disk reads).

Usage:
    python main.py --full-run                   # sample data -> PDF -> dashboard
    python main.py --generate-data              # Refresh synthetic product file
    python main.py --report --dashboard         # Rebuild outputs only
    python main.py --report --products week42.csv --content week42.json
    python main.py --dashboard --goal 7500 --log-level DEBUG

Outputs (data/output/):
    MSPCC_Report_{YYYY-MM-DD}.pdf        — multi-page PDF report
    MSPCC_Dashboard_{YYYY-MM-DD}.html    — interactive Plotly dashboard
"""

import argparse
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path

import yaml


def _configure_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    """Configure rotating file handler + stream handler.

    Args:
        log_dir: Directory for log files.
        level: Log level string.
    """
    effective_level = os.environ.get("LOG_LEVEL", level).upper()
    numeric = getattr(logging, effective_level, logging.INFO)

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_file = Path(log_dir) / f"report_{datetime.today().strftime('%Y%m%d')}.log"

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    fh = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10 * 1024 * 1024, backupCount=7, encoding="utf-8"
    )
    fh.setFormatter(fmt)
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(numeric)
    root.addHandler(fh)
    root.addHandler(sh)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mspcc-report",
        description="MSPCC Weekly Business Report — PDF report + goal dashboard pipeline.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --full-run
  python main.py --generate-data
  python main.py --report --dashboard
  python main.py --report --products week42.csv --content week42.json
  python main.py --full-run --config custom.yaml --log-level DEBUG
        """,
    )
    parser.add_argument("--config", default="config.yaml",
                        help="Path to config.yaml (default: config.yaml)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--products", default=None,
                        help="Product CSV (default: paths.products_file)")
    parser.add_argument("--content", default=None,
                        help="Narrative JSON/YAML (default: paths.content_file, "
                             "template text when missing)")
    parser.add_argument("--goal", type=float, default=None,
                        help="Weekly profit goal for the dashboard (default: dashboard.profit_goal)")

    stages = parser.add_argument_group("Pipeline Stages")
    stages.add_argument("--generate-data", action="store_true",
                        help="Generate a synthetic product catalogue")
    stages.add_argument("--report", action="store_true",
                        help="Generate PDF report")
    stages.add_argument("--dashboard", action="store_true",
                        help="Generate interactive HTML dashboard")
    stages.add_argument("--full-run", action="store_true",
                        help="Run all stages: generate -> report -> dashboard")
    return parser.parse_args(argv)


def _load_cfg(config_path: str) -> dict:
    with open(config_path, "r") as fh:
        return yaml.safe_load(fh)


def run_pipeline(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the requested pipeline stages.

    Args:
        args: Parsed CLI arguments.
        logger: Configured root logger.

    Returns:
        0 on success, 1 on error.
    """
    from mspcc_report.dashboard import generate_dashboard
    from mspcc_report.data_simulator import generate_products
    from mspcc_report.metrics import compute_metrics, load_products
    from mspcc_report.narrative import generate_report_content, load_report_content
    from mspcc_report.pdf_builder import ReportData, generate_pdf

    config_path = args.config
    do_all = args.full_run

    try:
        cfg = _load_cfg(config_path)
    except Exception as exc:
        logger.error("Cannot read config %s: %s", config_path, exc)
        return 1
    paths = cfg.get("paths", {})

    products = None
    metrics = None

    # -------------------------------------------------------------------------
    # Stage 1: Data generation
    # -------------------------------------------------------------------------
    if do_all or args.generate_data:
        logger.info("=" * 65)
        logger.info("STAGE 1: Data Generation")
        logger.info("=" * 65)
        try:
            df = generate_products(config_path)
            logger.info("Data generation complete -- %d products", len(df))
        except Exception as exc:
            logger.error("Data generation failed: %s", exc, exc_info=True)
            return 1

    # -------------------------------------------------------------------------
    # Stage 2: Metrics computation (needed for every output)
    # -------------------------------------------------------------------------
    if do_all or args.report or args.dashboard:
        logger.info("=" * 65)
        logger.info("STAGE 2: KPI Computation")
        logger.info("=" * 65)
        products_file = args.products or paths.get("products_file", "data/raw/products.csv")
        try:
            products = load_products(products_file)
            metrics = compute_metrics(products)
        except FileNotFoundError as exc:
            logger.error("Product file missing. Run --generate-data first.\n%s", exc)
            return 1
        except Exception as exc:
            logger.error("Metrics computation failed: %s", exc, exc_info=True)
            return 1

    # -------------------------------------------------------------------------
    # Stage 3: PDF report (narrative content + assembly)
    # -------------------------------------------------------------------------
    if (do_all or args.report) and metrics is not None:
        logger.info("=" * 65)
        logger.info("STAGE 3: PDF Report")
        logger.info("=" * 65)
        content_file = args.content or paths.get("content_file")
        try:
            if content_file and Path(content_file).exists():
                content = load_report_content(content_file)
            else:
                if args.content:
                    raise FileNotFoundError(f"Content file not found: {args.content}")
                logger.warning("No narrative content file -- using template text")
                content = generate_report_content(
                    metrics, products, paths.get("templates_dir", "templates"))

            pdf_path = generate_pdf(ReportData(metrics, content, products), config_path)
            logger.info("PDF report generated: %s", pdf_path)
        except Exception as exc:
            logger.error("PDF generation failed: %s", exc, exc_info=True)
            return 1

    # -------------------------------------------------------------------------
    # Stage 4: Interactive dashboard
    # -------------------------------------------------------------------------
    if (do_all or args.dashboard) and metrics is not None:
        logger.info("=" * 65)
        logger.info("STAGE 4: Interactive Dashboard")
        logger.info("=" * 65)
        try:
            dash_path = generate_dashboard(metrics, products, args.goal, config_path)
            logger.info("Dashboard generated: %s", dash_path)
        except Exception as exc:
            logger.error("Dashboard generation failed: %s", exc, exc_info=True)
            return 1

    # Final summary
    logger.info("=" * 65)
    logger.info("PIPELINE COMPLETE")
    if metrics is not None:
        top = metrics.top_product_by_profit
        logger.info("  Weekly profit:  $%.2f", metrics.total_weekly_profit)
        logger.info("  Weekly revenue: $%.2f", metrics.total_weekly_revenue)
        logger.info("  Avg margin:     %.1f%%", metrics.average_margin)
        logger.info("  Top product:    %s", top.name if top else "N/A")
    logger.info("=" * 65)
    return 0


def main(argv=None) -> None:
    """Parse args, configure logging, and run pipeline."""
    args = _parse_args(argv)

    try:
        cfg = _load_cfg(args.config)
        log_dir = cfg.get("paths", {}).get("log_dir", "logs")
    except Exception:
        log_dir = "logs"

    _configure_logging(log_dir=log_dir, level=args.log_level)
    logger = logging.getLogger(__name__)

    no_stage = not any([args.full_run, args.generate_data, args.report, args.dashboard])
    if no_stage:
        import subprocess
        subprocess.run([sys.executable, __file__, "--help"])
        sys.exit(0)

    logger.info(
        "MSPCC Weekly Business Report v1.0 | %s",
        datetime.today().strftime("%Y-%m-%d %H:%M:%S"),
    )
    sys.exit(run_pipeline(args, logger))


if __name__ == "__main__":
    main()
