"""Command-line interface for the pain-point analysis and consumption charts."""

import argparse
import logging
import sys
from pathlib import Path

from consumption.aggregate import daily_totals, filter_years, monthly_totals, readings_per_day
from consumption.charts import plot_daily, plot_monthly
from consumption.config import ConsumptionConfig
from consumption.loader import ConsumptionLoader
from painpoint.api.analyze import analyze, load_inputs
from painpoint.core.config import AnalysisConfig
from painpoint.core.models import AnalysisReport
from painpoint.reporting.charts import plot_cluster_candidates, plot_pain_points

logging.basicConfig(
    level=logging.INFO,
    format='%(message)s',
    stream=sys.stdout
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='painpoint',
        description='Survey pain-point analysis and electricity consumption charts'
    )

    # Add global options
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    # Create subcommands
    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        required=True
    )

    # Analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Run the survey pain-point analysis')
    analyze_parser.add_argument('survey', type=str, help='Path to the survey workbook (.xlsx)')
    analyze_parser.add_argument('--labels', type=str, default=None, help='Workbook with the label sheets (default: the survey workbook)')
    analyze_parser.add_argument('--rules', type=str, default=None, help='Path to analysis rules YAML/JSON file')
    analyze_parser.add_argument('-o', '--output', type=str, default='./output', help='Output directory (default: ./output)')

    # Consumption command
    consumption_parser = subparsers.add_parser('consumption', help='Plot electricity consumption per year')
    consumption_parser.add_argument('readings', type=str, help='Path to the semicolon-separated readings CSV')
    consumption_parser.add_argument('--years', type=int, nargs='+', default=None, help='Years to compare (default: 2021 2023)')
    consumption_parser.add_argument('-o', '--output', type=str, default='./output', help='Output directory (default: ./output)')

    return parser.parse_args(argv)


def write_report(report: AnalysisReport, path: Path) -> Path:
    """Write the report as strict JSON; NaN ratios become null."""
    path.write_text(report.model_dump_json(indent=2), encoding='utf-8')
    return path


def cmd_analyze(args):
    """Handle 'analyze' command - full pain-point pipeline."""

    if args.rules:
        logger.info(f"Loading rules from {args.rules}")
        config = AnalysisConfig.from_file(args.rules)
    else:
        logger.info("Using default rules")
        config = AnalysisConfig.default()

    survey, metric_labels, profiling_labels = load_inputs(args.survey, config, args.labels)
    analyzer = analyze(survey, metric_labels, config, profiling_labels)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    report = analyzer.report

    logger.info("\nTop pain points:")
    for i, metric in enumerate(report.selection.metrics, 1):
        logger.info(
            f"  {i:>2}. [{metric.metric_id}] {metric.label}: "
            f"difference {metric.mean_difference:.2f}, importance {metric.mean_importance:.2f}")

    logger.info("\nPredictors of the top pain points:")
    for prediction in report.predictions:
        weights = ", ".join(f"{p.label} ({p.coefficient:+.3f})" for p in prediction.top_predictors)
        logger.info(
            f"  [{prediction.metric_id}] {prediction.label}: dev ratio "
            f"mean {prediction.dev_ratio_mean:.3f} / max {prediction.dev_ratio_max:.3f} "
            f"/ sd {prediction.dev_ratio_std:.3f}; {weights}")

    report_path = write_report(report, output_dir / 'report.json')
    logger.info(f"Wrote report: {report_path}")

    if report.selection.metrics:
        plot_pain_points(report.selection, output_dir / 'pain_points.png')
    plot_cluster_candidates(report.cluster_candidates, report.clusters.k, output_dir / 'cluster_scores.png')

    logger.info("Done")


def cmd_consumption(args):
    """Handle 'consumption' command - daily and monthly consumption charts."""

    config = ConsumptionConfig(compare_years=args.years) if args.years else ConsumptionConfig()

    logger.info(f"Loading readings from {args.readings}")
    readings = ConsumptionLoader(args.readings, config).load()
    logger.info(f"Loaded {len(readings)} readings ({readings_per_day(readings):.1f} per day)")

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    daily = daily_totals(readings)
    plot_daily(daily, output_dir / 'daily_consumption.png')
    plot_monthly(monthly_totals(readings), output_dir / 'monthly_consumption.png')
    plot_daily(
        filter_years(daily, config.compare_years),
        output_dir / 'daily_consumption_compare.png',
        title=f"Daily consumption {' vs '.join(str(y) for y in config.compare_years)}")

    logger.info("Done")


def main(argv=None):
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Route to command handlers
    if args.command == 'analyze':
        cmd_analyze(args)
    elif args.command == 'consumption':
        cmd_consumption(args)
    else:
        logger.error(f"Unknown command: {args.command}")
        sys.exit(1)


if __name__ == '__main__':
    main()
