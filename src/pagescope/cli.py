"""Command-line interface for the page analyzer."""

import json
import logging
import sys
from dataclasses import replace

from pagescope.analyzer import analyze_sync
from pagescope.config import AnalysisConfig, settings
from pagescope.exceptions import PageScopeError
from pagescope.logging_config import setup_logging

logger = logging.getLogger(__name__)


def print_analysis(result):
    """Print an analysis result in a readable form.

    Args:
        result: AnalysisResult object
    """
    metrics = result.metrics
    security = result.security

    print(f"\n{'=' * 60}")
    print(f"Page Analysis for: {result.url}")
    print(f"{'=' * 60}")
    print(f"\nStatus: {result.status_code}  |  Response time: {result.response_time_ms:.0f}ms"
          f"  |  Size: {result.page_size_kb:.1f} KB")
    print(f"\nTitle: {result.title}")
    print(f"Description: {result.description}")

    print(f"\n📊 Content:")
    print(f"  • Words: {metrics.word_count} ({metrics.reading_time_minutes:.1f} min read)")
    print(f"  • Readability: {metrics.readability_score:.1f} ({metrics.readability_grade})")
    print(f"  • Language: {metrics.language}")
    print(f"  • Headings: {len(result.headings)}")
    external = sum(1 for link in result.links if link.is_external)
    print(f"  • Links: {len(result.links)} ({external} external)")
    print(f"  • Images: {len(result.content.images)}")

    content = result.content
    print(f"\n🧱 Structure:")
    print(f"  • Forms: {len(content.forms)} ({sum(f.field_count for f in content.forms)} fields)")
    print(f"  • Scripts: {len(content.scripts)}  |  Stylesheets: {len(content.stylesheets)}"
          f"  |  Iframes: {len(content.iframes)}")
    print(f"  • Inputs: {len(content.inputs)}  |  Buttons: {len(content.buttons)}")
    if content.structured_data:
        print(f"  • Structured data blocks: {len(content.structured_data)}")

    top_words = sorted(metrics.word_frequency.items(), key=lambda item: -item[1])[:10]
    if top_words:
        print(f"  • Top words: " + ", ".join(f"{w} ({c})" for w, c in top_words))

    if result.social_media_links:
        print(f"\n🔗 Social media links:")
        for link in result.social_media_links:
            print(f"  • {link.href}")

    print(f"\n🔒 Security:")
    print(f"  • HTTPS: {'yes' if security.is_https else 'no'}")
    print(f"  • Mixed content: {'yes' if security.mixed_content else 'no'}")
    print(f"  • Insecure cookies: {'yes' if security.insecure_cookies else 'no'}")
    if security.missing_security_headers:
        print(f"  • Missing headers: {', '.join(security.missing_security_headers)}")

    if security.notes:
        print(f"\n⚠️  Notes:")
        for note in security.notes:
            print(f"  • {note}")

    if result.render is not None:
        render = result.render
        print(f"\n🖥️  Rendered:")
        print(f"  • Network resources: {len(render.network_resources)}")
        print(f"  • Console messages: {len(render.console_logs)}")
        if render.failed_requests:
            print(f"  • Failed requests: {len(render.failed_requests)}")
        print(f"  • Cookies: {len(render.cookies)}  |  Storage keys: "
              f"{len(render.local_storage)} local, {len(render.session_storage)} session")
        if render.screenshot:
            print(f"  • Screenshot captured ({len(render.screenshot)} base64 chars)")

    print(f"\n{'=' * 60}\n")


def analyze_command(args):
    """Analyze a single URL."""
    try:
        if args.config:
            config = AnalysisConfig.from_file(args.config)
        else:
            config = AnalysisConfig.from_env()

        if args.render or settings.ENABLE_DYNAMIC_RENDER:
            config = replace(config, enable_dynamic_render=True)
        if args.degrade:
            config = replace(config, render_failure_policy="degrade")
    except (OSError, TypeError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        source = args.config or "environment"
        logger.error(f"Invalid configuration from {source}: {e}")
        if args.output == "json":
            print(json.dumps({"error": "ConfigError", "message": str(e), "source": source}, indent=2))
        else:
            print(f"\n❌ Invalid configuration ({source}): {e}")
        sys.exit(1)

    try:
        result = analyze_sync(args.url, config)
    except PageScopeError as e:
        if args.output == "json":
            print(json.dumps(e.to_dict(), indent=2))
        else:
            print(f"\n❌ Failed to analyze {args.url}: {e.message}")
        sys.exit(1)

    if args.output == "json":
        data = result.to_dict()
        if args.output_file:
            with open(args.output_file, "w") as f:
                json.dump(data, f, indent=2)
            print(f"Results written to {args.output_file}")
        else:
            print(json.dumps(data, indent=2))
    else:
        print_analysis(result)


def main():
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="PageScope - Analyze a web page's content, readability and security"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=settings.LOG_FILE,
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze a single URL."
    )
    analyze_parser.add_argument("url", help="URL to analyze")
    analyze_parser.add_argument(
        "--render",
        action="store_true",
        help="Also render the page in a headless browser",
    )
    analyze_parser.add_argument(
        "--degrade",
        action="store_true",
        help="Keep static results when rendering fails instead of failing",
    )
    analyze_parser.add_argument(
        "--config",
        help="Load analysis options from a JSON file",
    )
    analyze_parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    analyze_parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file (only for json format)",
    )
    analyze_parser.set_defaults(func=analyze_command)

    args = parser.parse_args()

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
