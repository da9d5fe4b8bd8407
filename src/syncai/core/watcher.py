#!/usr/bin/env python3
"""
Watch mode for SyncAI.

File system events in the tools' configuration directories are collected by
watchdog and coalesced per tool: a burst of changes results in a single sync
of that tool once the directory has been quiet for the debounce interval.
"""

import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .context import AppContext
from .ignore import IgnoreMatcher
from .sync import SyncEngine, SyncOutcome
from ..utils.logger import get_logger

DEFAULT_INTERVAL = 5.0
NOISE_DIRECTORIES = ('.git', 'node_modules')

logger = get_logger(__name__)


class SyncDebouncer:
    """Coalesces change notifications into one sync per tool per quiet interval."""

    def __init__(self, sync_callback: Callable[[str], object], interval: float = DEFAULT_INTERVAL):
        self.sync_callback = sync_callback
        self.interval = interval
        self._pending: Set[str] = set()
        self._lock = threading.Lock()
        # Held while callbacks run so a timer firing mid-sync waits its turn
        self._flush_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    @property
    def pending(self) -> Set[str]:
        with self._lock:
            return set(self._pending)

    def notify(self, tool: str):
        """Mark ``tool`` as changed and restart the quiet-interval timer."""
        with self._lock:
            self._pending.add(tool)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.interval, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> List[str]:
        """Sync every pending tool once. Returns the tools that were synced."""
        with self._flush_lock:
            with self._lock:
                tools = sorted(self._pending)
                self._pending.clear()
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None

            for tool in tools:
                try:
                    self.sync_callback(tool)
                except Exception as e:
                    logger.error(f"Sync of {tool} failed: {e}")
        return tools

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()


class ToolEventHandler(FileSystemEventHandler):
    """Forwards relevant changes under one tool's config directory to the debouncer."""

    def __init__(self, tool: str, root: Path, matcher: IgnoreMatcher, debouncer: SyncDebouncer):
        super().__init__()
        self.tool = tool
        self.root = Path(root)
        self.matcher = matcher
        self.debouncer = debouncer

    def is_relevant(self, path: str) -> bool:
        try:
            rel_path = Path(path).relative_to(self.root)
        except ValueError:
            return False
        if not rel_path.parts:
            return False
        if any(part in NOISE_DIRECTORIES for part in rel_path.parts):
            return False
        if rel_path.name.endswith('.log'):
            return False
        return not self.matcher.matches(rel_path.as_posix())

    def _forward(self, event: FileSystemEvent):
        if event.is_directory:
            return
        paths = [event.src_path, getattr(event, 'dest_path', '')]
        for path in paths:
            if isinstance(path, bytes):
                path = path.decode('utf-8', errors='replace')
            if path and self.is_relevant(path):
                logger.debug(f"[{self.tool}] {event.event_type}: {path}")
                self.debouncer.notify(self.tool)
                return

    # Opened and closed-without-write events are not changes
    def on_created(self, event: FileSystemEvent):
        self._forward(event)

    def on_modified(self, event: FileSystemEvent):
        self._forward(event)

    def on_deleted(self, event: FileSystemEvent):
        self._forward(event)

    def on_moved(self, event: FileSystemEvent):
        self._forward(event)


class ConfigWatcher:
    """Watches tool config directories and pushes changes to the mirror."""

    def __init__(self, context: AppContext, tools: List[str], interval: float = DEFAULT_INTERVAL,
                 on_result: Optional[Callable[[SyncOutcome], None]] = None):
        self.logger = get_logger(f"{__name__}.ConfigWatcher")
        self.context = context
        self.tools = list(tools)
        self.engine = SyncEngine(context)
        self.on_result = on_result
        self.debouncer = SyncDebouncer(self._sync_tool, interval)
        self.observer = Observer()
        self.watched: Dict[str, Path] = {}

    def _sync_tool(self, tool: str) -> SyncOutcome:
        outcome = self.engine.sync_to_remote(tool)
        if outcome.success:
            self.logger.info(f"{tool}: synced {len(outcome.comparison.changed)} file(s)")
        else:
            self.logger.error(f"{tool}: sync failed ({outcome.error.value})")
        if self.on_result:
            self.on_result(outcome)
        return outcome

    def start(self) -> Dict[str, Path]:
        """Schedule every tool whose config directory exists and start observing."""
        for tool in self.tools:
            root = self.engine.local_dir(tool)
            if root is None or not root.is_dir():
                self.logger.warning(f"Not watching {tool}: config directory not found")
                continue
            handler = ToolEventHandler(tool, root, self.engine.ignore_matcher(tool), self.debouncer)
            self.observer.schedule(handler, str(root), recursive=True)
            self.watched[tool] = root
            self.logger.debug(f"Watching {tool} at {root}")

        if self.watched:
            self.observer.start()
        return dict(self.watched)

    def stop(self, flush: bool = True):
        """Stop observing; by default sync whatever is still pending."""
        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join()
        if flush:
            self.debouncer.flush()
        else:
            self.debouncer.cancel()
