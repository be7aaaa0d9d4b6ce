"""
DFAC Pulse - Dining Facility Feedback Survey and Dashboard

CLI entry point for submitting surveys and viewing the admin dashboard.
"""

import argparse
import json
import logging
import math
import sys

from dfac_pulse.analytics.aggregation import WINDOWS, DailyTrendExporter, MetricsAggregator
from dfac_pulse.analytics.themes import ThemeExtractor
from dfac_pulse.analytics.vocabulary import ThemeVocabulary
from dfac_pulse.controllers.dashboard import TABS, DashboardController
from dfac_pulse.controllers.survey import SurveyForm, SurveyFormController
from dfac_pulse.models.feedback import MEALS, RECOMMEND_CHOICES, STATIONS
from dfac_pulse.utils.storage import StoreError, create_record_store
import config.settings as settings

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DFAC Pulse - Dining Facility Feedback Survey and Dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Submit a survey response
  python main.py submit --satisfaction 5 --food 4 --cleanliness 5 \\
                        --meal lunch --station grill --station deli \\
                        --recommend yes --likes "Friendly staff at the grill"

  # View this week's overview (requires DFAC_ADMIN_PASSWORD)
  python main.py dashboard --window current-week --tab overview

  # Export per-day averages for this month
  python main.py export-trends --window current-month

Note: Set DFAC_STORE_BACKEND=firebase and FIREBASE_DATABASE_URL to use the
hosted store, and GOOGLE_API_KEY to enable theme summaries.
        """
    )

    parser.add_argument(
        "--data-root",
        default=str(settings.DATA_ROOT),
        help=f"Data directory for the JSON store (default: {settings.DATA_ROOT})"
    )

    parser.add_argument(
        "--backend",
        default=settings.STORE_BACKEND,
        choices=["json", "firebase"],
        help=f"Record store backend (default: {settings.STORE_BACKEND})"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # submit
    submit = subparsers.add_parser("submit", help="Submit a survey response")
    submit.add_argument("--satisfaction", type=int, required=True, help="Customer satisfaction (1-5)")
    submit.add_argument("--food", type=int, required=True, help="Food quality (1-5)")
    submit.add_argument("--cleanliness", type=int, required=True, help="Cleanliness (1-5)")
    submit.add_argument("--meal", choices=MEALS, help="Meal being rated")
    submit.add_argument("--station", action="append", default=[], choices=STATIONS,
                        help="Station visited (repeatable)")
    submit.add_argument("--recommend", choices=RECOMMEND_CHOICES, help="Would you recommend the DFAC?")
    submit.add_argument("--likes", default="", help="What do you like?")
    submit.add_argument("--improvements", default="", help="What improvements would you like to see?")
    submit.add_argument("--frequency", help="How often do you eat here?")
    submit.add_argument("--meal-card", help="Meal card holder?")

    # dashboard
    dashboard = subparsers.add_parser("dashboard", help="View the admin dashboard")
    dashboard.add_argument("--password", help="Admin password (prompted if omitted)")
    dashboard.add_argument("--window", default=settings.DEFAULT_WINDOW, choices=WINDOWS,
                           help=f"Time window (default: {settings.DEFAULT_WINDOW})")
    dashboard.add_argument("--tab", default="overview", choices=TABS, help="Dashboard tab (default: overview)")
    dashboard.add_argument("--summarize", action="store_true",
                           help="Summarize themes with Gemini (needs GOOGLE_API_KEY)")
    dashboard.add_argument("--json", action="store_true", help="Print the raw view as JSON")

    # export-trends
    export = subparsers.add_parser("export-trends", help="Export per-day averages to CSV")
    export.add_argument("--window", default=settings.DEFAULT_WINDOW, choices=WINDOWS,
                        help=f"Time window (default: {settings.DEFAULT_WINDOW})")
    export.add_argument("--output-dir", default=str(settings.OUTPUT_ROOT),
                        help=f"Output directory (default: {settings.OUTPUT_ROOT})")

    return parser


def build_store(args):
    return create_record_store(
        backend=args.backend,
        data_root=args.data_root,
        database_url=settings.FIREBASE_DATABASE_URL,
        auth_token=settings.FIREBASE_AUTH_TOKEN,
        timeout=settings.FIREBASE_TIMEOUT_SECONDS
    )


def build_extractor() -> ThemeExtractor:
    return ThemeExtractor(
        vocabulary=ThemeVocabulary.load(str(settings.THEME_VOCABULARY_PATH)),
        min_characters=settings.THEME_MIN_CHARACTERS,
        min_token_length=settings.THEME_MIN_TOKEN_LENGTH,
        max_themes=settings.MAX_THEMES
    )


def run_submit(args) -> int:
    form = SurveyForm()
    form = form.with_rating("customer_satisfaction", args.satisfaction)
    form = form.with_rating("food_quality", args.food)
    form = form.with_rating("cleanliness", args.cleanliness)
    form = form.with_meal(args.meal)
    for station in args.station:
        if station not in form.stations:
            form = form.toggle_station(station)
    form = form.with_recommend(args.recommend)
    form = form.with_text("likes", args.likes)
    form = form.with_text("improvements", args.improvements)
    form = form.with_frequency(args.frequency)
    form = form.with_meal_card(args.meal_card)

    controller = SurveyFormController(build_store(args), require_meal=settings.REQUIRE_MEAL)
    result = controller.submit(form)

    print(result.message)
    if result.success:
        print(f"Response ID: {result.record_id}")
        return 0
    return 1


def run_dashboard(args) -> int:
    password = args.password
    if password is None:
        import getpass
        password = getpass.getpass("Admin password: ")

    summarizer = None
    if args.summarize:
        if settings.GOOGLE_API_KEY:
            from dfac_pulse.analytics.summarization import ThemeSummaryAgent
            summarizer = ThemeSummaryAgent(
                api_key=settings.GOOGLE_API_KEY,
                model_name=settings.SUMMARY_MODEL,
                temperature=settings.LLM_TEMPERATURE,
                max_retries=settings.SUMMARY_MAX_RETRIES,
                max_comments=settings.SUMMARY_MAX_COMMENTS
            )
        else:
            logger.warning("GOOGLE_API_KEY not set, showing themes without summaries")

    controller = DashboardController(
        store=build_store(args),
        admin_password=settings.ADMIN_PASSWORD,
        aggregator=MetricsAggregator(best_worst_k=settings.BEST_WORST_DAYS),
        extractor=build_extractor(),
        summarizer=summarizer
    )

    if not controller.authenticate(password):
        print("Incorrect password")
        return 1

    if not controller.load():
        print(f"Could not load responses: {controller.last_error}")

    view = controller.view(tab=args.tab, window=args.window)

    if args.json:
        print(json.dumps(view, indent=2))
    else:
        print_view(view)
    return 0


def run_export(args) -> int:
    store = build_store(args)
    records = store.fetch_all()
    exporter = DailyTrendExporter(output_dir=args.output_dir)
    output_path = exporter.export(records, window=args.window)

    print(f"Daily trend table: {output_path}")
    print(f"Metadata: {output_path.replace('.csv', '_metadata.json')}")
    return 0


def _stars(value: float) -> str:
    return "★" * int(math.floor(value + 0.5))


def print_view(view: dict) -> None:
    """Render a dashboard view as plain text."""
    print("=" * 60)
    print(f"Survey Analytics Dashboard - {view['tab']} ({view['window']})")
    print("=" * 60)

    if view.get("error"):
        print(f"⚠️  Showing last loaded data: {view['error']}")

    tab = view["tab"]
    if tab == "overview":
        print(f"Total Responses: {view['total_responses']} ({view['response_trend']:+.1f}%)")
        labels = {
            "customer_satisfaction": "Avg Customer Satisfaction",
            "food_quality": "Avg Food Quality",
            "cleanliness": "Avg Cleanliness",
        }
        for field, label in labels.items():
            avg = view["averages"][field]
            print(f"{label}: {avg:.2f} / 5 {_stars(avg)} ({view['trends'][field]:+.1f}%)")
        recommend = view["recommend"]
        print(f"Would recommend: {recommend['percentage']}% ({recommend['yes']} yes / {recommend['no']} no)")
        print("Rating distribution:")
        for bucket, count in sorted(view["rating_distribution"].items(), reverse=True):
            print(f"  {bucket}★ {count}")

    elif tab == "schedule":
        for day in view["day_of_week"]:
            print(f"{day['name']:<10} {day['count']:>4} responses  avg {day['overall']:.2f}")
        print("Best days: " + ", ".join(d["name"] for d in view["best_days"]))
        print("Needs improvement: " + ", ".join(d["name"] for d in view["worst_days"]))
        print("Meals: " + ", ".join(f"{k} {v}" for k, v in view["meal_breakdown"].items()))
        print("Stations: " + ", ".join(f"{k} {v}" for k, v in view["station_breakdown"].items()))

    elif tab == "feedback":
        for field, themes in view["themes"].items():
            print(f"\nTop themes - {field}:")
            if not themes:
                print("  No feedback yet.")
            for theme in themes:
                print(f"  {theme['label']} ({theme['count']})")
                if theme.get("summary"):
                    print(f"    {theme['summary']}")
                for comment in theme["comments"][:3]:
                    print(f"    - {comment}")

    else:
        if not view["responses"]:
            print("No responses yet.")
        for number, response in enumerate(view["responses"]):
            print(f"\nResponse #{len(view['responses']) - number}  {response.get('timestamp', '')}")
            print(
                f"  Satisfaction: {response.get('customerSatisfaction')}  "
                f"Food: {response.get('foodQuality')}  "
                f"Cleanliness: {response.get('cleanliness')}"
            )
            if response.get("improvements"):
                print(f"  Improvements: {response['improvements']}")
            if response.get("likes"):
                print(f"  What they like: {response['likes']}")

    print("=" * 60)


def main():
    """Main CLI entry point."""
    args = build_parser().parse_args()

    setup_logging(args.log_level)

    commands = {
        "submit": run_submit,
        "dashboard": run_dashboard,
        "export-trends": run_export,
    }

    try:
        sys.exit(commands[args.command](args))

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\n⚠️  Interrupted")
        sys.exit(1)

    except StoreError as e:
        logger.error(f"Record store error: {e}", exc_info=True)
        print(f"\n❌ Record store error: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"\n❌ Command failed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
