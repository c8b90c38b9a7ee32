"""
Log Cursor and Ingestor

Incremental, at-most-once ingestion of the table log:

    ingestor = LogIngestor(observer)
    processed = await ingestor.pull_and_process_logs(cursor.last_seen_id, cursor.first_fetch)
    new_events = cursor.apply(processed)

The watermark (last_seen_id) is session-scoped and only moves forward. The
accumulated events are hand-scoped: they are cleared by reset_for_next_hand()
and whenever a new "starting hand" event arrives.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from core.errors import IngestionError
from models.enums import LogEventKind
from models.log_events import LogEntry, LogEvent, created_at_sort_key, is_after, newest

from .log_parser import IdentityMaps, build_identity_maps, parse_entries

logger = logging.getLogger(__name__)


@dataclass
class ProcessedLogs:
    """Delta produced by one pull"""

    valid_events: list[LogEvent]
    last_seen_id: str
    first_fetch: bool


class LogIngestor:
    """
    Fetches log lines after a watermark and parses each new line once.

    The watermark advances to the newest fetched line even when that line
    fails to parse, so a permanently unparseable line never stalls the cursor.
    """

    def __init__(self, observer):
        """
        Args:
            observer: Observer providing fetch_log_lines_since()
        """
        self._observer = observer
        self.lines_parsed = 0

    async def pull_and_process_logs(self, last_seen_id: str, first_fetch: bool) -> ProcessedLogs:
        """
        Pull and parse every log line created after last_seen_id.

        Args:
            last_seen_id: Watermark (created_at of the newest consumed line)
            first_fetch: Fetch the full history regardless of the watermark

        Returns:
            ProcessedLogs with the parsed delta and the advanced watermark

        Raises:
            IngestionError: If the Observer fetch fails
        """
        cursor = None if first_fetch or not last_seen_id else last_seen_id
        try:
            entries = await self._observer.fetch_log_lines_since(cursor)
        except Exception as e:
            raise IngestionError(f"Failed to fetch log lines since {cursor!r}: {e}") from e

        new_entries = self._select_new(entries or [], "" if first_fetch else last_seen_id)
        events = parse_entries(new_entries)
        self.lines_parsed += len(new_entries)

        watermark = last_seen_id
        if new_entries:
            watermark = newest(last_seen_id, new_entries[-1].created_at)

        logger.debug(
            f"Pulled {len(new_entries)} new log lines ({len(events)} events), watermark {watermark}"
        )
        return ProcessedLogs(valid_events=events, last_seen_id=watermark, first_fetch=False)

    @staticmethod
    def _select_new(entries: Iterable[LogEntry], watermark: str) -> list[LogEntry]:
        """Sort by created_at, drop lines at or before the watermark and duplicate ids"""
        seen: dict[str, str] = {}
        selected = []
        for entry in sorted(entries, key=lambda e: created_at_sort_key(e.created_at)):
            if not is_after(entry.created_at, watermark):
                continue
            if entry.created_at in seen:
                if seen[entry.created_at] != entry.msg:
                    logger.warning(
                        f"Dropping log line {entry.msg!r}: id {entry.created_at} already used by "
                        f"{seen[entry.created_at]!r}"
                    )
                continue
            seen[entry.created_at] = entry.msg
            selected.append(entry)
        return selected


@dataclass
class LogCursor:
    """
    Ingestion state owned by the hand loop.

    Attributes:
        last_seen_id: Session-scoped watermark
        first_fetch: No pull has completed yet this session
        accumulated_valid_events: Events of the current hand, in log order
    """

    last_seen_id: str = ""
    first_fetch: bool = True
    accumulated_valid_events: list[LogEvent] = field(default_factory=list)
    _keys: set[tuple[str, int]] = field(default_factory=set, repr=False)

    def apply(self, processed: ProcessedLogs) -> list[LogEvent]:
        """
        Fold a pull delta into the hand accumulation.

        Events already accumulated (by key) are skipped. A "starting hand"
        event drops whatever was accumulated before it.

        Returns:
            Events that were newly accumulated
        """
        added = []
        for event in sorted(processed.valid_events, key=lambda e: e.sort_key):
            if event.key in self._keys:
                continue
            if event.kind == LogEventKind.HAND_STARTED and self.accumulated_valid_events:
                logger.debug(f"New hand #{event.hand_number} in log, dropping previous accumulation")
                self.accumulated_valid_events = []
                self._keys = set()
                added = []
            self.accumulated_valid_events.append(event)
            self._keys.add(event.key)
            added.append(event)

        self.advance(processed.last_seen_id)
        self.first_fetch = self.first_fetch and processed.first_fetch
        return added

    def advance(self, watermark: str) -> None:
        """Move the watermark forward (never backward)"""
        self.last_seen_id = newest(self.last_seen_id, watermark)

    def reset_for_next_hand(self) -> None:
        """Clear the hand accumulation, keeping the watermark"""
        self.accumulated_valid_events = []
        self._keys = set()

    def identity_maps(self) -> IdentityMaps:
        return build_identity_maps(self.accumulated_valid_events)


def slice_hand(events: list[LogEvent], hand_number: int | None = None) -> list[LogEvent]:
    """
    Events of one hand: from its "starting hand" event up to and including
    its "ending hand" event.

    Args:
        events: Events in log order
        hand_number: Hand to select (default: the last hand started)

    Returns:
        The hand's events, or the events as given if no start marker is present
    """
    starts = [
        i
        for i, e in enumerate(events)
        if e.kind == LogEventKind.HAND_STARTED
        and (hand_number is None or e.hand_number == hand_number)
    ]
    if not starts:
        return list(events)

    begin = starts[-1]
    result = []
    for event in events[begin:]:
        if event.kind == LogEventKind.HAND_STARTED and result:
            break
        result.append(event)
        if event.kind == LogEventKind.HAND_ENDED:
            break
    return result
