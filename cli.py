import argparse
import logging
import os
import sys
import uuid as _uuid

from config.settings import get_settings
from pipelines.runner import Pipeline, RunContext
from pipelines.steps import FetchPages, NormalizeRecords, PersistRecords, ResolveContent
from render.html import build_site
from services.image_cache import ImageCache
from services.page_content import PageContentResolver
from services.reporting import print_summary
from sources.notion_api import NotionClient
from utils.logging_setup import init_logging


def _run_id() -> str:
    if not os.getenv("RUN_ID"):
        os.environ["RUN_ID"] = _uuid.uuid4().hex
    return os.environ["RUN_ID"]


def cmd_fetch(args):
    settings = get_settings()
    # Fails fast with RuntimeError when no token is configured
    client = NotionClient(settings)
    output = args.output or settings.data_path

    steps = [FetchPages(client, settings.notion_database_id), NormalizeRecords()]
    image_cache = None
    if not args.skip_content:
        image_cache = ImageCache(settings.image_cache_dir, client.download)
        steps.append(ResolveContent(PageContentResolver(client, image_cache)))
    steps.append(PersistRecords(output))

    ctx = RunContext()
    ctx.meta["run_id"] = _run_id()
    logging.info("Fetching data from Notion...", extra={"run_id": ctx.meta["run_id"]})
    ctx = Pipeline(steps).run(ctx)

    api_usage = client.get_api_usage()
    if image_cache is not None:
        api_usage["images_downloaded"] = image_cache.downloaded
        api_usage["images_reused"] = image_cache.reused
    print_summary("fetch", {
        "pages_fetched": ctx.meta.get("pages_fetched", 0),
        "records_dropped": ctx.meta.get("records_dropped", 0),
        "records_with_content": ctx.meta.get("records_with_content", "skipped"),
        "records_written": ctx.meta.get("records_written", 0),
        "output_file": ctx.meta.get("output_path"),
    }, api_usage)


def cmd_render(args):
    settings = get_settings()
    stats = build_site(
        args.input or settings.data_path,
        args.output or settings.html_output_path,
        semester_category=settings.semester_category,
        title=settings.site_title,
        site_url=settings.notion_site_url,
        database_id=settings.notion_database_id,
        view_id=settings.notion_view_id,
    )
    print_summary("render", stats)


def cmd_build(args):
    fetch_args = argparse.Namespace(output=args.data, skip_content=args.skip_content)
    cmd_fetch(fetch_args)
    render_args = argparse.Namespace(input=args.data, output=args.output)
    cmd_render(render_args)


def main():
    settings = get_settings()
    init_logging(settings.log_level)
    parser = argparse.ArgumentParser(description="Build a static CV page from a Notion database")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_fetch = sub.add_parser("fetch", help="Query Notion and write the normalized JSON data file")
    p_fetch.add_argument("--output", "-o", default=None, help=f"JSON output path (default: {settings.data_path})")
    p_fetch.add_argument("--skip-content", action="store_true", help="Do not load page content or images")
    p_fetch.set_defaults(func=cmd_fetch)

    p_render = sub.add_parser("render", help="Render the JSON data file to HTML")
    p_render.add_argument("--input", "-i", default=None, help=f"JSON data file (default: {settings.data_path})")
    p_render.add_argument("--output", "-o", default=None, help=f"HTML output path (default: {settings.html_output_path})")
    p_render.set_defaults(func=cmd_render)

    p_build = sub.add_parser("build", help="Fetch, then render")
    p_build.add_argument("--data", default=None, help=f"Intermediate JSON path (default: {settings.data_path})")
    p_build.add_argument("--output", "-o", default=None, help=f"HTML output path (default: {settings.html_output_path})")
    p_build.add_argument("--skip-content", action="store_true", help="Do not load page content or images")
    p_build.set_defaults(func=cmd_build)

    args = parser.parse_args()
    try:
        args.func(args)
    except (RuntimeError, OSError, ValueError) as e:
        # NotionAPIError is a RuntimeError; partial results are never written
        logging.error(f"Error: {e}", extra={"status": "failed", "error": str(e)})
        sys.exit(1)


if __name__ == "__main__":
    main()
