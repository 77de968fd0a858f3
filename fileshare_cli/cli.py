"""fileshare CLI - Download files from cloud file shares.

The CLI is a thin wrapper around the Python API (see download.py).
All business logic lives in the library; the CLI handles user interaction.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, NoReturn

import click

from fileshare_cli.config import get_setting, list_settings, set_setting, unset_setting
from fileshare_cli.download import (
    DownloadOutcome,
    DownloadRequest,
    DownloadSession,
    DownloadStatus,
    run_download,
)
from fileshare_cli.errors import FileShareError
from fileshare_cli.jobs import Job, JobState, get_job_registry
from fileshare_cli.json_output import ErrorDetail, error_envelope, success_envelope
from fileshare_cli.output import detail, error, info, success
from fileshare_cli.platform_options import supports_extended_attributes
from fileshare_cli.progress import NullProgressSink, OutputProgressSink
from fileshare_cli.resolve import ByDirectory, ByFile, ByShare, ByShareName, FileAddress
from fileshare_cli.store import StorageContext
from fileshare_cli.transfer import DEFAULT_CHUNK_SIZE

GET_CONTENT_COMMAND = "get-content"


def should_output_json(ctx: click.Context, json_flag: bool = False) -> bool:
    """Determine if JSON output should be used.

    Global --format=json takes precedence, but per-command --json flags also work.
    """
    obj = ctx.find_root().obj or {}
    global_format = obj.get("format", "text")
    return global_format == "json" or json_flag


def output_json_envelope(envelope: Any) -> None:
    """Output a JSON envelope to stdout."""
    click.echo(envelope.to_json())


@click.group()
@click.version_option(package_name="fileshare-cli")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format (json for machine parsing, text for humans).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, output_format: str, verbose: bool) -> None:
    """fileshare - Download files from cloud file shares (Azure, S3, GCS)."""
    ctx.ensure_object(dict)
    ctx.obj["format"] = output_format
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# =============================================================================
# get-content
# =============================================================================


def _confirm_download(target: str, action: str) -> bool:
    return click.confirm(
        f'Are you sure you want to perform "{action}" on target "{target}"?',
        default=False,
        err=True,
    )


def _notify_stderr(message: str) -> None:
    info(message, file=sys.stderr, dry_run=True)


def _resolve_chunk_size(cli_value: int | None) -> int:
    """Chunk size from --chunk-size, FILESHARE_CHUNK_SIZE or the config file."""
    raw = get_setting("chunk_size", cli_value=cli_value)
    if raw is None or raw == "":
        return DEFAULT_CHUNK_SIZE
    try:
        value = int(raw)
    except (TypeError, ValueError) as err:
        raise click.BadParameter(
            f"expected a positive integer, got {raw!r}", param_hint="chunk_size"
        ) from err
    if value < 1:
        raise click.BadParameter(
            f"expected a positive integer, got {raw!r}", param_hint="chunk_size"
        )
    return value


def _build_address(
    context: StorageContext,
    *,
    share_name: str | None,
    share_url: str | None,
    directory_url: str | None,
    file_url: str | None,
    path: str | None,
) -> FileAddress:
    """Build the addressing mode from exactly one of the four mode options."""
    if share_name is not None:
        return ByShareName(share_name=share_name, path=path or "")
    if share_url is not None:
        return ByShare(share=context.share_from_url(share_url), path=path or "")
    if directory_url is not None:
        return ByDirectory(directory=context.directory_from_url(directory_url), path=path or "")
    if file_url is None:
        raise click.UsageError(
            "Specify exactly one of --share-name, --share-url, --directory-url, --file-url."
        )
    return ByFile(file=context.file_from_url(file_url))


def _report_failure(err: FileShareError, use_json: bool) -> NoReturn:
    if use_json:
        output_json_envelope(
            error_envelope(GET_CONTENT_COMMAND, [ErrorDetail.from_exception(err)])
        )
    else:
        error(f"{err.message} ({err.code})")
    raise SystemExit(1) from err


def _report_outcome(outcome: DownloadOutcome, use_json: bool, *, what_if: bool = False) -> None:
    if outcome.error is not None:
        _report_failure(outcome.error, use_json)

    if use_json:
        output_json_envelope(
            success_envelope(
                GET_CONTENT_COMMAND,
                {
                    "status": outcome.status.value,
                    "what_if": what_if,
                    "target": str(outcome.target) if outcome.target else None,
                    "file": outcome.descriptor.to_dict() if outcome.descriptor else None,
                },
            )
        )
        return

    if outcome.descriptor is not None:
        descriptor = outcome.descriptor
        info(f"{descriptor.full_path} -> {descriptor.local_path}")
        detail(f"Length: {descriptor.length}")
        if descriptor.last_modified:
            detail(f"Last modified: {descriptor.last_modified}")
        if descriptor.e_tag:
            detail(f"ETag: {descriptor.e_tag}")


def _stop_job(job: Job) -> None:
    """Cancel a background job and wait for its worker to unwind."""
    registry = get_job_registry()
    registry.cancel(job.job_id)
    registry.wait(job.job_id)
    if job.finished:
        registry.remove(job.job_id)


def _outcome_from_job(job: Job) -> DownloadOutcome:
    if job.state is JobState.COMPLETED:
        outcome: DownloadOutcome = job.result
        return outcome
    if isinstance(job.error, FileShareError):
        return DownloadOutcome(status=DownloadStatus.FAILED, error=job.error)
    if job.error is not None:
        raise job.error
    return DownloadOutcome(status=DownloadStatus.DECLINED)


@cli.command(GET_CONTENT_COMMAND)
@click.argument("path", required=False)
@click.argument("destination", required=False)
@click.option("--share-name", help="Name of the file share to download from.")
@click.option("--share-url", help="Share URL (e.g., az://account/share, s3://bucket).")
@click.option("--directory-url", help="Directory URL (e.g., az://account/share/dir).")
@click.option("--file-url", help="URL of the file itself (PATH is then the destination).")
@click.option("--check-md5", is_flag=True, help="Verify the content MD5 after download.")
@click.option("--force", is_flag=True, help="Overwrite an existing local file.")
@click.option("--pass-thru", is_flag=True, help="Output a description of the downloaded file.")
@click.option("--as-job", is_flag=True, help="Run the download as a background job.")
@click.option("--what-if", is_flag=True, help="Show what would be downloaded, then stop.")
@click.option("--confirm", is_flag=True, help="Ask before writing the local file.")
@click.option(
    "--preserve-attributes",
    is_flag=True,
    hidden=not supports_extended_attributes(),
    help="Keep the remote last-modified time and read-only flag (Windows only).",
)
@click.option("--account-url", help="Account URL share names resolve under (az://account).")
@click.option("--s3-endpoint", help="Custom S3-compatible endpoint (host:port).")
@click.option("--s3-region", help="S3 region.")
@click.option("--chunk-size", type=click.IntRange(min=1), help="Streamed chunk size in bytes.")
@click.pass_context
def get_content(
    ctx: click.Context,
    path: str | None,
    destination: str | None,
    share_name: str | None,
    share_url: str | None,
    directory_url: str | None,
    file_url: str | None,
    check_md5: bool,
    force: bool,
    pass_thru: bool,
    as_job: bool,
    what_if: bool,
    confirm: bool,
    preserve_attributes: bool,
    account_url: str | None,
    s3_endpoint: str | None,
    s3_region: str | None,
    chunk_size: int | None,
) -> None:
    """Download a file from a file share.

    PATH is the file path inside the share or directory. DESTINATION is a local
    file or an existing directory (default: current directory). With --file-url
    there is no PATH; the only positional argument is DESTINATION.

    Examples:

        fileshare get-content --share-name docs a/b/report.pdf downloads/

        fileshare get-content --file-url s3://bucket/a/report.pdf report.pdf --check-md5
    """
    use_json = should_output_json(ctx)

    modes = [m for m in (share_name, share_url, directory_url, file_url) if m is not None]
    if len(modes) != 1:
        raise click.UsageError(
            "Specify exactly one of --share-name, --share-url, --directory-url, --file-url."
        )
    if file_url is not None:
        if destination is not None:
            raise click.UsageError("PATH is not used with --file-url; pass only DESTINATION.")
        path, destination = None, path
    elif path is None:
        raise click.UsageError("Missing argument 'PATH'.")

    context = StorageContext(
        account_url=get_setting("account_url", cli_value=account_url),
        s3_endpoint=get_setting("s3_endpoint", cli_value=s3_endpoint),
        s3_region=get_setting("s3_region", cli_value=s3_region),
    )
    resolved_chunk_size = _resolve_chunk_size(chunk_size)

    try:
        address = _build_address(
            context,
            share_name=share_name,
            share_url=share_url,
            directory_url=directory_url,
            file_url=file_url,
            path=path,
        )
    except FileShareError as err:
        _report_failure(err, use_json)

    session = DownloadSession(
        context=context,
        confirm=_confirm_download if confirm else None,
        what_if=what_if,
        notify=_notify_stderr if use_json else None,
        sink=NullProgressSink() if use_json else OutputProgressSink(),
    )
    request = DownloadRequest(
        address=address,
        destination=destination,
        check_md5=check_md5,
        force=force,
        pass_thru=pass_thru,
        as_job=as_job,
        preserve_attributes=preserve_attributes,
        chunk_size=resolved_chunk_size,
    )

    job: Job | None = None
    try:
        result = run_download(request, session)
        if isinstance(result, Job):
            job = result
            if not use_json:
                info(f"Started job {job.job_id}: {job.name}")
            registry = get_job_registry()
            outcome = _outcome_from_job(registry.wait(job.job_id))
            registry.remove(job.job_id)
        else:
            outcome = result
    except KeyboardInterrupt as err:
        if job is not None and not job.finished:
            _stop_job(job)
        else:
            session.token.cancel()
        error("Download cancelled")
        raise SystemExit(130) from err

    _report_outcome(outcome, use_json, what_if=what_if)


# =============================================================================
# config
# =============================================================================


@cli.group()
def config() -> None:
    """Manage fileshare settings (account_url, s3_endpoint, s3_region, chunk_size)."""


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY to VALUE in the config file."""
    set_setting(key, value)
    if should_output_json(ctx):
        output_json_envelope(success_envelope("config set", {"key": key, "value": value}))
    else:
        success(f"Set {key} = {value}")


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Show the resolved value of KEY."""
    value = get_setting(key)
    if should_output_json(ctx):
        output_json_envelope(success_envelope("config get", {"key": key, "value": value}))
    elif value is None:
        info(f"{key} is not set")
    else:
        click.echo(f"{key} = {value}")


@config.command("unset")
@click.argument("key")
@click.pass_context
def config_unset(ctx: click.Context, key: str) -> None:
    """Remove KEY from the config file."""
    removed = unset_setting(key)
    if should_output_json(ctx):
        output_json_envelope(success_envelope("config unset", {"key": key, "removed": removed}))
    elif removed:
        success(f"Removed {key}")
    else:
        info(f"{key} was not set")


@config.command("list")
@click.pass_context
def config_list(ctx: click.Context) -> None:
    """List settings and where each value comes from."""
    settings = list_settings()
    if should_output_json(ctx):
        output_json_envelope(success_envelope("config list", {"settings": settings}))
        return
    if not settings:
        info("No settings configured")
        return
    for key, entry in settings.items():
        click.echo(f"{key} = {entry['value']} ({entry['source']})")
