"""
Command-line interface for ParcelScope

Usage:
    parcelscope report --pnu 1168010100100010000 --output report.json --diagnose
    parcelscope road --pnu 1168010100100010000
    parcelscope search --query "테헤란로 152"
    parcelscope serve --port 8000
"""

import sys
import json
import argparse
from datetime import datetime

from loguru import logger

from .analysis import RoadConnectivityAnalyzer
from .collectors.vworld import AddressSearcher
from .errors import InvalidIdentifier, ParcelScopeError
from .pipeline import ReportAggregator


def setup_logging(verbose: bool = False):
    """Configure logging"""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=level
    )


def cmd_report(args):
    """Build the aggregated report for one parcel"""
    output_path = args.output or f"report_{args.pnu}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    aggregator = ReportAggregator()

    try:
        result = aggregator.run(args.pnu, diagnose=args.diagnose)
    except InvalidIdentifier as e:
        logger.error(f"Invalid PNU: {e}")
        return 1

    aggregator.save(result, output_path)
    logger.info(f"✓ Generated: {output_path}")

    fallback = sorted(d for d, p in result["provenance"].items() if p == "fallback")
    if fallback:
        logger.warning(f"  Fallback data: {', '.join(fallback)}")
    if args.diagnose:
        diagnosis = result["diagnosis"]
        logger.info(f"  Diagnosis: {diagnosis['level']} ({diagnosis['score']})")
    return 0


def cmd_road(args):
    """Road connectivity for one parcel"""
    try:
        result = RoadConnectivityAnalyzer().analyze(args.pnu)
    except ParcelScopeError as e:
        logger.error(f"Road analysis failed: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    print(json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_search(args):
    """Address search"""
    try:
        results = AddressSearcher().search(args.query)
    except ParcelScopeError as e:
        logger.error(f"Search failed: {e}")
        return 1

    print(json.dumps([r.to_json_dict() for r in results], indent=2, ensure_ascii=False))
    return 0


def cmd_serve(args):
    """Run the HTTP API"""
    import uvicorn

    uvicorn.run("parcelscope.api:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="ParcelScope CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Build a report with diagnosis:
    parcelscope report --pnu 1168010100100010000 --output report.json --diagnose

  Check road access:
    parcelscope road --pnu 1168010100100010000

  Run the API server:
    parcelscope serve --port 8000
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Report command
    report_parser = subparsers.add_parser("report", help="Build the parcel report")
    report_parser.add_argument("--pnu", required=True, help="19-digit parcel number")
    report_parser.add_argument("--output", "-o", help="Output JSON file")
    report_parser.add_argument("--diagnose", "-d", action="store_true", help="Include risk diagnosis")
    report_parser.set_defaults(func=cmd_report)

    # Road command
    road_parser = subparsers.add_parser("road", help="Analyze road connectivity")
    road_parser.add_argument("--pnu", required=True, help="19-digit parcel number")
    road_parser.set_defaults(func=cmd_road)

    # Search command
    search_parser = subparsers.add_parser("search", help="Search addresses")
    search_parser.add_argument("--query", "-q", required=True, help="Address text")
    search_parser.set_defaults(func=cmd_search)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", "-p", type=int, default=8000, help="Port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
