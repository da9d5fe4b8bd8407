#!/usr/bin/env python3
"""
Command-line interface for SyncAI.

This module provides the CLI commands for syncing AI coding tool
configurations between this machine and a private Git repository.
"""

import difflib
import json
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt, Confirm
from rich.syntax import Syntax
from rich.table import Table

from . import __version__
from .core.backup import BackupManager
from .core.context import AppContext
from .core.git_handler import GitHandler, GitError
from .core.github import GitHubCLI
from .core.ignore import IgnoreMatcher
from .core.scanner import ToolScanner, detect_current_tool
from .core.security import sensitive_warning
from .core.sync import (
    SyncEngine,
    SyncOptions,
    SyncOutcome,
    SyncState,
    DifferenceKind,
    ConflictRecord,
    ConflictResolution,
    FileChoice,
    resolve_conflicts,
)
from .core.tools import ToolDefinitionError
from .core.watcher import ConfigWatcher
from .utils.fs import collapse_home, read_text_or_empty
from .utils.logger import get_logger, setup_logging
from .utils.platform import platform_detector

# Rich console for formatted output
console = Console()
logger = get_logger(__name__)

PREVIEW_LINES = 5
SUMMARY_LIMIT = 5


def get_app(ctx) -> AppContext:
    return ctx.obj['app']


def require_initialized(app: AppContext):
    if not app.config.get_value('initialized', False):
        console.print("[red]SyncAI is not initialized. Run 'syncai init' first.[/red]")
        sys.exit(1)


def git_handler_for(app: AppContext) -> GitHandler:
    return GitHandler(app.config.repo_dir, branch=app.config.get_value('github.branch', 'main'))


def parse_tool_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [name.strip() for name in value.split(',') if name.strip()]


def select_tools(app: AppContext, only: Optional[str], all_tools: bool,
                 fallback_to_installed: bool = False) -> List[str]:
    """
    Resolve the tools a command operates on.

    ``--only`` wins over ``--all``; without either the tool hosting this
    process is used, or every installed tool when ``fallback_to_installed``.
    """
    tools = parse_tool_list(only)
    if tools:
        return tools

    installed = app.config.installed_tools()
    if all_tools:
        return installed

    detection = detect_current_tool(app.registry)
    if detection:
        logger.debug(f"Detected {detection.tool} via ${detection.env_var}")
        return [detection.tool]
    if fallback_to_installed:
        return installed

    console.print("[yellow]Could not detect the current tool. Use --all or --only <tool>.[/yellow]")
    sys.exit(1)


def print_outcome(outcome: SyncOutcome, verbose: bool = False):
    """Display the result of one sync run."""
    if not outcome.success:
        console.print(f"  [red]✗ {outcome.error.message} ({outcome.error.value})[/red]")
        return

    for warning in outcome.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")

    comparison = outcome.comparison
    for path in comparison.added:
        console.print(f"  [green]+ {path}[/green]")
    for path in comparison.modified:
        console.print(f"  [yellow]~ {path}[/yellow]")

    for sensitive in comparison.sensitive:
        warning = sensitive_warning(list(sensitive.matches))
        console.print(f"  [red]! {sensitive.path}[/red] [dim]{warning}[/dim]")
        if verbose:
            for match in sensitive.matches:
                console.print(f"      [dim]{match.type}: {match.preview}[/dim]")

    if verbose:
        for skipped in comparison.skipped:
            console.print(f"  [dim]- {skipped.path} ({skipped.reason.value})[/dim]")

    total = len(comparison.changed)
    if total == 0:
        console.print("  [green]✓ Already up to date[/green]")
    else:
        verb = "Would sync" if outcome.dry_run else "Synced"
        console.print(f"  [green]✓ {verb} {total} file(s)[/green]")

    if comparison.sensitive:
        console.print(
            f"  [yellow]{len(comparison.sensitive)} file(s) skipped because they may contain secrets. "
            f"Add them to the ignore list or use --force.[/yellow]"
        )


def show_conflict_preview(conflict: ConflictRecord):
    for label, content in (("Local", conflict.local_content), ("Remote", conflict.remote_content)):
        console.print(f"  [dim]{label}:[/dim]")
        lines = content.splitlines()
        for line in lines[:PREVIEW_LINES]:
            console.print(f"    {line}", markup=False, highlight=False)
        if len(lines) > PREVIEW_LINES:
            console.print("    ...")


def ask_conflict_resolution(conflicts: List[ConflictRecord]):
    """Prompt for a conflict strategy. Returns the paths to keep local, or None to abort."""
    console.print("[red]  Conflicting files:[/red]")
    for conflict in conflicts:
        console.print(f"    ! {conflict.path}")

    choice = Prompt.ask(
        "How should conflicts be handled?",
        choices=[s.value for s in ConflictResolution],
        default=ConflictResolution.USE_REMOTE.value,
        console=console,
    )
    strategy = ConflictResolution(choice)

    choices: Dict[str, FileChoice] = {}
    if strategy == ConflictResolution.PER_FILE:
        for conflict in conflicts:
            console.print(f"\n[yellow]  File: {conflict.path}[/yellow]")
            show_conflict_preview(conflict)
            file_choice = Prompt.ask(
                f"Keep which version of {conflict.path}?",
                choices=[c.value for c in FileChoice],
                default=FileChoice.REMOTE.value,
                console=console,
            )
            choices[conflict.path] = FileChoice(file_choice)

    return resolve_conflicts(conflicts, strategy, choices)


# Main CLI group
@click.group()
@click.version_option(__version__, prog_name='syncai')
@click.option('--home', type=click.Path(path_type=Path), envvar='SYNCAI_HOME',
              help='SyncAI home directory (default: ~/.config/syncai)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--log-file', type=click.Path(path_type=Path), help='Log file path')
@click.option('--plain', is_flag=True, help='Plain colored log output instead of rich')
@click.pass_context
def cli(ctx, home: Optional[Path], verbose: bool, log_file: Optional[Path], plain: bool):
    """SyncAI - Sync AI coding tool configurations across machines."""
    ctx.ensure_object(dict)

    # Setup logging
    setup_logging(
        level='DEBUG' if verbose else 'INFO',
        log_file=log_file,
        verbose=verbose,
        plain=plain,
        home=home
    )

    ctx.obj['app'] = AppContext.create(home)
    ctx.obj['verbose'] = verbose


# Initialize command
@cli.command()
@click.option('--repo', 'repo_name', type=str, help='GitHub repository name (default: syai)')
@click.option('--remote-url', type=str, help='Use this Git remote instead of creating one with gh')
@click.option('--local', 'local_only', is_flag=True, help='Only create the local repository')
@click.option('--yes', '-y', is_flag=True, help='Answer yes to all prompts')
@click.pass_context
def init(ctx, repo_name: Optional[str], remote_url: Optional[str], local_only: bool, yes: bool):
    """Set up the sync repository and scan installed tools."""
    app = get_app(ctx)
    config = app.config
    config.setup_directories()

    repo_name = repo_name or config.get_value('github.repo', 'syai')
    username = config.get_value('github.username')
    remote_exists = bool(remote_url)

    if not remote_url and not local_only:
        gh = GitHubCLI(timeout=config.get_value('exec.timeout', 30))
        if not gh.is_installed():
            console.print("[red]GitHub CLI (gh) not found. Install it from https://cli.github.com "
                          "or use --remote-url / --local.[/red]")
            sys.exit(1)
        if not gh.is_authenticated():
            console.print("[red]Not logged in to GitHub. Run 'gh auth login' and try again.[/red]")
            sys.exit(1)

        username = gh.username()
        console.print(f"[green]✓ Logged in as[/green] [cyan]{username}[/cyan]")

        remote_exists = gh.repo_exists(repo_name)
        if remote_exists:
            console.print(f"[green]✓ Found repository[/green] [cyan]{username}/{repo_name}[/cyan]")
        else:
            if not yes and not Confirm.ask(f"Create private repository {repo_name}?", default=True):
                console.print("Initialization cancelled.")
                return
            if not gh.create_private_repo(repo_name):
                console.print(f"[red]✗ Failed to create repository {repo_name}[/red]")
                sys.exit(1)
            console.print(f"[green]✓ Created private repository[/green] [cyan]{username}/{repo_name}[/cyan]")

        remote_url = gh.repo_url(repo_name)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Preparing sync repository...", total=None)

            git_handler = git_handler_for(app)
            if not git_handler.is_valid_repo and remote_exists and remote_url:
                try:
                    git_handler = GitHandler.clone(remote_url, config.repo_dir, branch=git_handler.branch)
                except GitError as e:
                    logger.warning(f"{e}; starting with an empty repository")
                    git_handler = git_handler_for(app)

            if not git_handler.ensure_initialized(remote_url):
                console.print("[red]✗ Failed to initialize the sync repository[/red]")
                sys.exit(1)

            progress.update(task, description="Scanning installed tools...")
            mappings = ToolScanner(app).scan_and_save()

    except GitError as e:
        console.print(f"[red]Failed to initialize repository: {e}[/red]")
        sys.exit(1)

    config.update_config({
        'github': {'username': username, 'repo': repo_name},
        'initialized': True,
    })
    if not config.ignore_file.exists():
        config.save_ignore()

    installed = [name for name, mapping in mappings.items() if mapping.installed]
    console.print(Panel(
        f"[green]✓ Sync repository ready at:[/green]\n"
        f"[cyan]{config.repo_dir}[/cyan]\n\n"
        f"[cyan]Remote:[/cyan] {remote_url or 'None'}\n"
        f"[cyan]Installed tools:[/cyan] {', '.join(installed) if installed else 'None'}\n\n"
        f"[dim]Device: {config.get_value('device.name')} ({platform_detector.os_type.value})[/dim]",
        title="Initialization Complete"
    ))
    console.print("Run [yellow]syncai push[/yellow] to upload configurations, "
                  "[yellow]syncai pull[/yellow] to apply them here.")


# Scan command
@cli.command()
@click.pass_context
def scan(ctx):
    """Detect installed AI tools and refresh the tool mappings."""
    app = get_app(ctx)
    mappings = ToolScanner(app).scan_and_save()

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Installed", style="green")
    table.add_column("Method", style="yellow")
    table.add_column("Config Directory", style="magenta")

    for name, mapping in mappings.items():
        definition = app.registry.get(name)
        label = definition.display_name if definition else name
        config_dir = mapping.effective_config_directory or ''
        if config_dir and not mapping.config_dir_exists:
            config_dir += " [dim](missing)[/dim]"
        table.add_row(
            f"{label} [dim]({name})[/dim]",
            "[green]yes[/green]" if mapping.installed else "[dim]no[/dim]",
            mapping.install_method or '',
            config_dir,
        )

    console.print(table)


# Detect command
@cli.command()
@click.pass_context
def detect(ctx):
    """Show which tool SyncAI is running inside."""
    app = get_app(ctx)
    detection = detect_current_tool(app.registry)
    if detection:
        console.print(f"[green]✓ Running inside[/green] [cyan]{detection.tool}[/cyan] "
                      f"[dim](via ${detection.env_var})[/dim]")
    else:
        console.print("[yellow]No AI tool environment detected[/yellow]")

    installed = app.config.installed_tools()
    console.print(f"[dim]Installed: {', '.join(installed) if installed else 'none (run syncai scan)'}[/dim]")


# Push command
@cli.command()
@click.option('--only', type=str, help='Comma-separated list of tools')
@click.option('--all', 'all_tools', is_flag=True, help='All installed tools')
@click.option('--dry-run', is_flag=True, help='Show what would be synced without writing')
@click.option('--force', '-f', is_flag=True, help='Skip the secret scan')
@click.option('--message', '-m', type=str, help='Commit message')
@click.option('--no-push', is_flag=True, help='Commit locally without pushing')
@click.pass_context
def push(ctx, only: Optional[str], all_tools: bool, dry_run: bool, force: bool,
         message: Optional[str], no_push: bool):
    """Copy local configurations into the sync repository and push them."""
    app = get_app(ctx)
    verbose = ctx.obj['verbose']
    require_initialized(app)

    tools = select_tools(app, only, all_tools)
    engine = SyncEngine(app)
    options = SyncOptions(dry_run=dry_run, force=force)

    if dry_run:
        console.print("[yellow][Dry Run] The following changes would be made:[/yellow]")

    outcomes = []
    for tool in tools:
        console.print(f"\n[bold cyan]{tool}[/bold cyan]")
        outcome = engine.sync_to_remote(tool, options)
        print_outcome(outcome, verbose)
        outcomes.append(outcome)

    failed = [o for o in outcomes if not o.success]
    synced = [o.tool for o in outcomes if o.success and o.comparison.changed]

    if not dry_run:
        git_handler = git_handler_for(app)
        if not git_handler.is_valid_repo:
            console.print("[red]Sync repository missing. Run 'syncai init' first.[/red]")
            sys.exit(1)

        device = app.config.get_value('device.name') or platform_detector.hostname
        commit_message = message or f"Update {', '.join(synced) or 'configurations'} from {device}"
        committed = git_handler.commit_all(commit_message)
        if committed is False:
            console.print("[red]✗ Failed to commit changes[/red]")
            sys.exit(1)

        if not no_push and 'origin' in git_handler.remotes:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console
            ) as progress:
                task = progress.add_task("Pushing to remote...", total=None)
                pushed = git_handler.push()
                progress.update(task, description="Pushed" if pushed else "Push failed")

            if not pushed:
                console.print("[red]✗ Push failed, see the log for details[/red]")
                sys.exit(1)
            console.print("\n[green]✓ Pushed to remote[/green]")
        elif committed:
            console.print("\n[green]✓ Committed to the sync repository[/green]")

    if failed:
        sys.exit(1)


# Pull command
@cli.command()
@click.option('--only', type=str, help='Comma-separated list of tools')
@click.option('--all', 'all_tools', is_flag=True, help='All installed tools')
@click.option('--dry-run', is_flag=True, help='Show what would be synced without writing')
@click.option('--force', '-f', is_flag=True, help='Overwrite conflicts and skip the secret scan')
@click.option('--no-interactive', is_flag=True, help='Do not prompt for conflict resolution')
@click.option('--no-backup', is_flag=True, help='Skip the pre-pull backup')
@click.option('--no-fetch', is_flag=True, help='Use the sync repository as is')
@click.pass_context
def pull(ctx, only: Optional[str], all_tools: bool, dry_run: bool, force: bool,
         no_interactive: bool, no_backup: bool, no_fetch: bool):
    """Fetch the sync repository and apply its configurations locally."""
    app = get_app(ctx)
    verbose = ctx.obj['verbose']
    require_initialized(app)

    git_handler = git_handler_for(app)
    if not no_fetch and 'origin' in git_handler.remotes:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Pulling from remote...", total=None)
            pulled = git_handler.pull()
            progress.update(task, description="Fetched latest configurations" if pulled else "Pull failed")

        if not pulled:
            console.print("[red]✗ Pull failed, see the log for details[/red]")
            sys.exit(1)

    tools = select_tools(app, only, all_tools)
    engine = SyncEngine(app)
    backup_before_pull = bool(app.config.get_value('sync.backup_before_pull', True)) and not no_backup

    if dry_run:
        console.print("[yellow][Dry Run] The following changes would be made:[/yellow]")

    failed = False
    for tool in tools:
        console.print(f"\n[bold cyan]{tool}[/bold cyan]")

        exclude_paths = frozenset()
        conflicts = engine.detect_conflicts(tool)
        if conflicts and not force and not no_interactive and not dry_run:
            keep_local = ask_conflict_resolution(conflicts)
            if keep_local is None:
                console.print("  [yellow]Skipped[/yellow]")
                continue
            exclude_paths = keep_local

        options = SyncOptions(
            dry_run=dry_run,
            force=force,
            backup_before_pull=backup_before_pull,
            exclude_paths=exclude_paths,
        )
        outcome = engine.sync_from_remote(tool, options)
        print_outcome(outcome, verbose)
        if outcome.backup:
            console.print(f"  [dim]Backup: {outcome.backup.backup_id}[/dim]")
        failed = failed or not outcome.success

    if failed:
        sys.exit(1)


# Status command
@cli.command()
@click.option('--only', type=str, help='Comma-separated list of tools')
@click.option('--all', 'all_tools', is_flag=True, help='All installed tools')
@click.pass_context
def status(ctx, only: Optional[str], all_tools: bool):
    """Show differences between local configurations and the sync repository."""
    app = get_app(ctx)
    verbose = ctx.obj['verbose']
    require_initialized(app)

    git_handler = git_handler_for(app)
    console.print(Panel(
        f"[cyan]Path:[/cyan] {app.config.repo_dir}\n"
        f"[cyan]Branch:[/cyan] {git_handler.current_branch}\n"
        f"[cyan]Dirty:[/cyan] {'Yes' if git_handler.is_dirty else 'No'}\n"
        f"[cyan]Remotes:[/cyan] {', '.join(git_handler.remotes) if git_handler.remotes else 'None'}",
        title="Repository Status"
    ))

    engine = SyncEngine(app)
    labels = {
        DifferenceKind.LOCAL_ONLY: ("green", "+", "Local only"),
        DifferenceKind.REMOTE_ONLY: ("blue", "+", "Remote only"),
        DifferenceKind.MODIFIED: ("yellow", "~", "Modified"),
    }

    for tool in select_tools(app, only, all_tools, fallback_to_installed=True):
        report = engine.get_status(tool)
        console.print(f"\n[bold cyan]{tool}[/bold cyan]")

        if report.state == SyncState.SYNCED:
            console.print("  [green]✓ In sync[/green]")
            continue
        if report.state == SyncState.NO_LOCAL:
            console.print("  [yellow]⚠ No local configuration[/yellow]")
            continue
        if report.state == SyncState.NO_REMOTE:
            console.print("  [yellow]⚠ Not in the sync repository yet, run 'syncai push'[/yellow]")
            continue

        for kind, (color, marker, title) in labels.items():
            paths = report.paths(kind)
            if not paths:
                continue
            console.print(f"  [{color}]{title}:[/{color}]")
            shown = paths if verbose else paths[:SUMMARY_LIMIT]
            for path in shown:
                console.print(f"    {marker} {path}")
            if len(paths) > len(shown):
                console.print(f"    [dim]... and {len(paths) - len(shown)} more[/dim]")


# Diff command
@cli.command()
@click.argument('tool', required=False)
@click.option('--path', 'only_path', type=str, help='Only show this file')
@click.pass_context
def diff(ctx, tool: Optional[str], only_path: Optional[str]):
    """Show content differences of modified files (remote → local)."""
    app = get_app(ctx)
    require_initialized(app)

    if not tool:
        tools = select_tools(app, None, False, fallback_to_installed=True)
        if not tools:
            console.print("[yellow]No installed tools found[/yellow]")
            return
        tool = tools[0]

    engine = SyncEngine(app)
    report = engine.get_status(tool)
    if report.state in (SyncState.NO_LOCAL, SyncState.NO_REMOTE):
        console.print(f"[yellow]{tool}: {report.state.value}[/yellow]")
        return

    modified = report.paths(DifferenceKind.MODIFIED)
    if only_path:
        modified = [p for p in modified if p == only_path]
    if not modified:
        console.print(f"[green]✓ {tool}: no content differences[/green]")
        return

    local_root = engine.local_dir(tool)
    mirror_root = engine.mirror_dir(tool)
    for rel_path in modified:
        remote_lines = read_text_or_empty(mirror_root / rel_path).splitlines(keepends=True)
        local_lines = read_text_or_empty(local_root / rel_path).splitlines(keepends=True)
        patch = ''.join(difflib.unified_diff(
            remote_lines, local_lines,
            fromfile=f"remote/{rel_path}", tofile=f"local/{rel_path}"
        ))
        console.print(Syntax(patch, 'diff', theme='ansi_dark', background_color='default'))


# History command
@cli.command()
@click.option('--limit', '-n', type=int, default=10, show_default=True, help='Number of commits')
@click.option('--tool', type=str, help='Only commits touching this tool')
@click.pass_context
def history(ctx, limit: int, tool: Optional[str]):
    """Show the sync repository history."""
    app = get_app(ctx)
    require_initialized(app)

    commits = git_handler_for(app).get_commits(max_count=limit, path=tool)
    if not commits:
        console.print("[dim]No commits found.[/dim]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Commit", style="yellow", no_wrap=True)
    table.add_column("Date", style="dim")
    table.add_column("Author", style="green")
    table.add_column("Message", style="white")
    for commit in commits:
        table.add_row(commit['hash'], commit['date'][:19].replace('T', ' '), commit['author'], commit['message'])
    console.print(table)
    console.print("\n[dim]Use 'syncai rollback <commit>' to restore a version.[/dim]")


# Rollback command
@cli.command()
@click.argument('commit')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def rollback(ctx, commit: str, yes: bool):
    """Restore the sync repository to an earlier commit."""
    app = get_app(ctx)
    require_initialized(app)

    git_handler = git_handler_for(app)
    full_hash = git_handler.find_commit(commit)
    if not full_hash:
        console.print(f"[red]Commit not found: {commit}[/red]")
        console.print("[dim]Use 'syncai history' to list commits.[/dim]")
        sys.exit(1)

    console.print(f"Rolling back to [yellow]{full_hash[:8]}[/yellow]")
    if not yes and not Confirm.ask("Current repository contents will be replaced. Continue?", default=False):
        console.print("Rollback cancelled.")
        return

    backups = BackupManager(app)
    for tool in app.config.installed_tools():
        outcome = backups.create(tool, 'pre-rollback')
        if outcome.success:
            console.print(f"  [dim]Backed up {tool}: {outcome.record.backup_id}[/dim]")

    if not git_handler.checkout_path(full_hash, '.'):
        console.print("[red]✗ Rollback failed, see the log for details[/red]")
        sys.exit(1)

    git_handler.commit_all(f"Rollback to {full_hash[:8]}")
    console.print(f"[green]✓ Rolled back to {full_hash[:8]}[/green]")
    console.print("Run [yellow]syncai pull --all --no-fetch[/yellow] to apply it locally.")


# Watch command
@cli.command()
@click.option('--only', type=str, help='Comma-separated list of tools')
@click.option('--all', 'all_tools', is_flag=True, help='All installed tools')
@click.option('--interval', type=float, help='Seconds of quiet before syncing (default: 5)')
@click.option('--push', 'auto_push', is_flag=True, help='Commit and push after each sync')
@click.pass_context
def watch(ctx, only: Optional[str], all_tools: bool, interval: Optional[float], auto_push: bool):
    """Watch local configurations and sync changes automatically."""
    app = get_app(ctx)
    require_initialized(app)

    tools = select_tools(app, only, all_tools)
    interval = interval or float(app.config.get_value('watch.interval', 5))
    git_handler = git_handler_for(app)

    def on_result(outcome: SyncOutcome):
        print_outcome(outcome)
        if auto_push and outcome.success and outcome.comparison.changed:
            if git_handler.commit_all(f"Auto-sync {outcome.tool}") and 'origin' in git_handler.remotes:
                git_handler.push()

    watcher = ConfigWatcher(app, tools, interval=interval, on_result=on_result)
    watched = watcher.start()
    if not watched:
        console.print("[red]Nothing to watch[/red]")
        sys.exit(1)

    for tool, root in watched.items():
        console.print(f"[green]✓ Watching[/green] [cyan]{tool}[/cyan] [dim]({collapse_home(root)})[/dim]")
    console.print(f"[dim]Interval: {interval:g}s[/dim]")
    console.print("[yellow]Press Ctrl+C to stop[/yellow]")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("\nStopping...")
    finally:
        watcher.stop()


# Backup commands group
@cli.group()
def backup():
    """Manage configuration backups."""
    pass


@backup.command('create')
@click.argument('tool')
@click.option('--reason', default='manual', show_default=True, help='Label stored with the backup')
@click.pass_context
def backup_create(ctx, tool: str, reason: str):
    """Back up a tool's configuration directory."""
    outcome = BackupManager(get_app(ctx)).create(tool, reason)
    if not outcome.success:
        console.print(f"[red]✗ {outcome.error.message}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Created backup[/green] [cyan]{outcome.record.backup_id}[/cyan]")


@backup.command('list')
@click.argument('tool', required=False)
@click.pass_context
def backup_list(ctx, tool: Optional[str]):
    """List backups, newest first."""
    records = BackupManager(get_app(ctx)).list(tool)
    if not records:
        console.print("[dim]No backups found.[/dim]")
        return

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Tool", style="cyan")
    table.add_column("Backup ID", style="yellow")
    table.add_column("Reason", style="green")
    table.add_column("Created", style="dim")
    for record in records:
        table.add_row(record.tool, record.backup_id, record.reason, (record.created_at or '')[:19])
    console.print(table)


@backup.command('restore')
@click.argument('tool')
@click.argument('backup_id')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def backup_restore(ctx, tool: str, backup_id: str, yes: bool):
    """Replace a tool's configuration with a backup."""
    if not yes and not Confirm.ask(f"Replace the {tool} configuration with {backup_id}?", default=False):
        console.print("Restore cancelled.")
        return

    outcome = BackupManager(get_app(ctx)).restore(tool, backup_id)
    for warning in outcome.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")
    if not outcome.success:
        console.print(f"[red]✗ {outcome.error.message}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Restored {tool} from {backup_id}[/green]")
    if outcome.record:
        console.print(f"[dim]Previous state saved as {outcome.record.backup_id}[/dim]")


@backup.command('prune')
@click.argument('tool')
@click.option('--keep', type=int, help='Number of backups to keep (default: backup.max_backups)')
@click.pass_context
def backup_prune(ctx, tool: str, keep: Optional[int]):
    """Delete the oldest backups of a tool."""
    removed = BackupManager(get_app(ctx)).prune(tool, keep)
    console.print(f"[green]✓ Removed {removed} backup(s)[/green]")


@backup.command('delete')
@click.argument('tool')
@click.argument('backup_id')
@click.pass_context
def backup_delete(ctx, tool: str, backup_id: str):
    """Delete one backup."""
    outcome = BackupManager(get_app(ctx)).delete(tool, backup_id)
    if not outcome.success:
        console.print(f"[red]✗ {outcome.error.message}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Deleted {backup_id}[/green]")


# Plugin commands group
@cli.group()
def plugin():
    """Manage custom tool definitions."""
    pass


@plugin.command('list')
@click.pass_context
def plugin_list(ctx):
    """List built-in and custom tools."""
    registry = get_app(ctx).registry
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Display Name", style="white")
    table.add_column("Type", style="green")
    table.add_column("Config Directory", style="magenta")
    for name, definition in registry.all().items():
        kind = "built-in" if registry.is_builtin(name) else "[yellow]custom[/yellow]"
        table.add_row(name, definition.display_name, kind, definition.config_directory)
    console.print(table)


@plugin.command('add')
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def plugin_add(ctx, file: Path):
    """Register a custom tool from a JSON, YAML or TOML file."""
    app = get_app(ctx)
    try:
        definition = app.registry.install_plugin(file, app.config.plugins_dir)
    except ToolDefinitionError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Added tool[/green] [cyan]{definition.name}[/cyan]")
    console.print("[dim]Run 'syncai scan' to detect whether it is installed.[/dim]")


@plugin.command('remove')
@click.argument('name')
@click.pass_context
def plugin_remove(ctx, name: str):
    """Remove a custom tool."""
    app = get_app(ctx)
    try:
        removed = app.registry.remove_plugin(name, app.config.plugins_dir)
    except ToolDefinitionError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    if not removed:
        console.print(f"[red]✗ Custom tool not found: {name}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Removed tool[/green] [cyan]{name}[/cyan]")


@plugin.command('show')
@click.argument('name')
@click.pass_context
def plugin_show(ctx, name: str):
    """Show a tool definition."""
    definition = get_app(ctx).registry.get(name)
    if definition is None:
        console.print(f"[red]✗ Unknown tool: {name}[/red]")
        sys.exit(1)
    console.print_json(json.dumps(definition.to_dict()))


# Ignore commands group
@cli.group()
def ignore():
    """Manage ignore patterns."""
    pass


@ignore.command('list')
@click.option('--tool', type=str, help='Show patterns for this tool')
@click.pass_context
def ignore_list(ctx, tool: Optional[str]):
    """List ignore patterns."""
    app = get_app(ctx)
    if tool:
        definition = app.registry.get(tool)
        console.print(f"[cyan]Configured ({tool}):[/cyan]")
        for pattern in app.config.ignore_patterns_for(tool):
            console.print(f"  {pattern}")
        if definition and definition.ignore_patterns:
            console.print(f"[cyan]Built into {tool}:[/cyan]")
            for pattern in definition.ignore_patterns:
                console.print(f"  [dim]{pattern}[/dim]")
        return

    for key, patterns in app.config.load_ignore().items():
        console.print(f"[cyan]{key}:[/cyan]")
        for pattern in patterns:
            console.print(f"  {pattern}")


@ignore.command('add')
@click.argument('pattern')
@click.option('--tool', type=str, help='Add to this tool instead of the global list')
@click.pass_context
def ignore_add(ctx, pattern: str, tool: Optional[str]):
    """Add an ignore pattern."""
    if pattern.startswith('!') or not IgnoreMatcher([pattern]):
        console.print(f"[red]✗ Unsupported pattern: {pattern}[/red]")
        sys.exit(1)
    if get_app(ctx).config.add_ignore_pattern(pattern, tool):
        console.print(f"[green]✓ Added[/green] {pattern} [dim]({tool or 'global'})[/dim]")
    else:
        console.print(f"[yellow]Pattern already present: {pattern}[/yellow]")


@ignore.command('remove')
@click.argument('pattern')
@click.option('--tool', type=str, help='Remove from this tool instead of the global list')
@click.pass_context
def ignore_remove(ctx, pattern: str, tool: Optional[str]):
    """Remove an ignore pattern."""
    if get_app(ctx).config.remove_ignore_pattern(pattern, tool):
        console.print(f"[green]✓ Removed[/green] {pattern}")
    else:
        console.print(f"[red]✗ Pattern not found: {pattern}[/red]")
        sys.exit(1)


# Config commands group
@cli.group('config')
def config_group():
    """View or change SyncAI settings."""
    pass


@config_group.command('show')
@click.pass_context
def config_show(ctx):
    """Print the configuration."""
    console.print_json(json.dumps(get_app(ctx).config.load_config(), default=str))


@config_group.command('get')
@click.argument('key')
@click.pass_context
def config_get(ctx, key: str):
    """Print one setting, e.g. github.repo."""
    missing = object()
    value = get_app(ctx).config.get_value(key, missing)
    if value is missing:
        console.print(f"[red]✗ Unknown key: {key}[/red]")
        sys.exit(1)
    if isinstance(value, (dict, list)):
        console.print_json(json.dumps(value))
    else:
        click.echo(value)


@config_group.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def config_set(ctx, key: str, value: str):
    """Change one setting. VALUE is parsed as JSON when possible."""
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value
    try:
        get_app(ctx).config.set_value(key, parsed)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ {key} = {json.dumps(parsed)}[/green]")


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == '__main__':
    main()
