import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from app.config.settings import Settings
from app.database.connection import close_pool, init_pool
from app.logging.logger import Log
from app.upload.commit import CommitOutcome
from app.upload.events import LogNotificationSink
from app.upload.models import LifecycleState, SourceFile
from app.upload.service import SmartUpload, build_smart_upload


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="leaddocs-upload",
        description="Queue, classify and commit documents for one lead.",
    )
    parser.add_argument("lead_id", help="Lead the documents belong to")
    parser.add_argument("files", nargs="+", type=Path, help="Files to upload")
    parser.add_argument("--slot", help="Document type id to pin as the target of every file")
    parser.add_argument("--applicant-name", help="Applicant name used for the ownership check")
    parser.add_argument("--co-applicant-name", help="Co-applicant name used for the ownership check")
    parser.add_argument(
        "--approve",
        action="store_true",
        help="Commit every classified file that resolved to a document type",
    )
    parser.add_argument(
        "--override",
        action="store_true",
        help="Commit files even when a name or type mismatch is detected",
    )
    return parser.parse_args(argv)


async def run(upload: SmartUpload, args: argparse.Namespace) -> int:
    """Drive one upload session. Returns the process exit code."""
    await upload.refresh_documents()
    if args.slot and not upload.select_slot(args.slot):
        Log.warning(f"Document type {args.slot} already has an accepted document; not pinning it")

    report = upload.add_files(SourceFile.from_path(path) for path in args.files)
    await upload.wait_idle()

    for entry in upload.entries:
        view = upload.describe(entry.id)
        Log.info(f"{view.filename}: {view.headline}")
        for line in view.details:
            Log.info(f"  {line}")

    failed = bool(report.rejections)
    if args.approve:
        results = await upload.upload_all(skip_confirmation=args.override)
        for entry_id, result in results.items():
            if result.outcome is CommitOutcome.NEEDS_CONFIRMATION:
                Log.warning(f"{upload.entry(entry_id).source_file.filename}: {result.message}")
            failed = failed or result.outcome is not CommitOutcome.COMMITTED
        unresolved = [
            entry.source_file.filename
            for entry in upload.entries
            if entry.state is LifecycleState.CLASSIFIED and entry.target_document_type_id is None
        ]
        if unresolved:
            Log.warning(f"No document type resolved for: {', '.join(unresolved)}")
            failed = True

    summary = upload.summary()
    Log.info(f"Queue: {summary.ready} ready, {summary.failed} failed, {summary.total} total")
    return 1 if failed else 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: settings -> logging -> pool -> build upload session -> run."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        return asyncio.run(_main(settings, args))
    finally:
        close_pool()


async def _main(settings: Settings, args: argparse.Namespace) -> int:
    upload = build_smart_upload(
        settings,
        args.lead_id,
        applicant_name=args.applicant_name,
        co_applicant_name=args.co_applicant_name,
    )
    sink = LogNotificationSink(upload.bus)
    try:
        return await run(upload, args)
    finally:
        await upload.aclose()
        sink.close()


if __name__ == "__main__":
    raise SystemExit(main())
