"""Practice answer log and the "yesterday's mistakes" carryover."""
from dataclasses import asdict

from loguru import logger

from jlpt_planner.clock import add_days_iso
from jlpt_planner.models import Carryover, PracticeEvent
from jlpt_planner.normalize import opt_str, str_list, unique

PRACTICE_LOG_KEY = "practice.log.v1"
CARRYOVER_KEY = "carryover.v1"
PRACTICE_LOG_LIMIT = 2000


def _event_from_dict(raw) -> PracticeEvent | None:
    if not isinstance(raw, dict) or not opt_str(raw.get("qid")) or not opt_str(raw.get("date_iso")):
        return None
    return PracticeEvent(
        date_iso=raw["date_iso"],
        qid=raw["qid"],
        correct=raw.get("correct") is True,
        skill=opt_str(raw.get("skill")),
        set_id=opt_str(raw.get("set_id")),
    )


def load_practice_log(store) -> list[PracticeEvent]:
    raw = store.read(PRACTICE_LOG_KEY)
    events = [_event_from_dict(e) for e in raw] if isinstance(raw, list) else []
    return [e for e in events if e is not None]


def log_practice_event(
    store, clock, qid: str, correct: bool, skill: str | None = None, set_id: str | None = None,
    limit: int = PRACTICE_LOG_LIMIT,
) -> PracticeEvent:
    """Append one answer to the practice log, keeping the newest ``limit`` events."""
    event = PracticeEvent(date_iso=clock.today_iso(), qid=qid, correct=bool(correct), skill=skill, set_id=set_id)
    events = load_practice_log(store) + [event]
    store.write(PRACTICE_LOG_KEY, [asdict(e) for e in events[-limit:]])
    return event


def _carryover_from_dict(raw) -> Carryover | None:
    if not isinstance(raw, dict) or not opt_str(raw.get("date_iso")):
        return None
    return Carryover(
        date_iso=raw["date_iso"],
        qids=unique(str_list(raw.get("qids"))),
        cleared=bool(raw.get("cleared")),
        updated_at=opt_str(raw.get("updated_at")) or "",
    )


def ensure_carryover_for_today(store, clock) -> Carryover:
    """Today's carryover, built from yesterday's wrong answers if not already saved.

    With no mistakes yesterday the carryover starts out cleared.
    """
    yesterday = add_days_iso(clock.today_iso(), -1)
    saved = _carryover_from_dict(store.read(CARRYOVER_KEY))
    if saved is not None and saved.date_iso == yesterday:
        return saved

    wrong = unique(e.qid for e in load_practice_log(store) if e.date_iso == yesterday and not e.correct)
    carryover = Carryover(date_iso=yesterday, qids=wrong, cleared=not wrong, updated_at=clock.now_iso())
    store.write(CARRYOVER_KEY, asdict(carryover))
    logger.debug("Carryover for {}: {} questions", yesterday, len(wrong))
    return carryover


def mark_carryover_cleared(store, clock) -> Carryover:
    carryover = ensure_carryover_for_today(store, clock)
    carryover.cleared = True
    carryover.updated_at = clock.now_iso()
    store.write(CARRYOVER_KEY, asdict(carryover))
    return carryover
