"""Per-set mastery bookkeeping."""
from loguru import logger

from jlpt_planner.models import SetProgress
from jlpt_planner.roadmap import find_set, load_roadmap, save_roadmap


def record_answer(progress: SetProgress, qid: str, correct: bool, now_iso: str | None = None) -> SetProgress:
    """Apply one answer to a set's progress in place and return it.

    A correct answer masters the question once. A wrong answer is remembered in
    ``wrong_ever`` for good and sends the question to the back of the queue.
    Ids that are not part of the set are ignored.
    """
    if qid not in progress.remaining and qid not in progress.mastered:
        logger.warning("Answer for {} ignored; not in this set", qid)
        return progress
    progress.attempts += 1
    if progress.started_at_iso is None:
        progress.started_at_iso = now_iso
    if correct:
        if qid not in progress.mastered:
            progress.mastered.append(qid)
        progress.remaining = [q for q in progress.remaining if q != qid]
    else:
        if qid not in progress.wrong_ever:
            progress.wrong_ever.append(qid)
        if qid not in progress.mastered:
            progress.remaining = [q for q in progress.remaining if q != qid] + [qid]
    if now_iso is not None and not progress.finished:
        finish_set(progress, now_iso)
    return progress


def finish_set(progress: SetProgress, now_iso: str) -> bool:
    """Stamp ``finished_at`` once every question is mastered. Returns finished state."""
    if progress.finished:
        return True
    if progress.total > 0 and len(progress.mastered) >= progress.total:
        progress.finished_at = now_iso
        return True
    return False


def mastery_percent(progress: SetProgress) -> int:
    if progress.total <= 0:
        return 0
    return round(len(progress.mastered) / progress.total * 100)


def record_set_answer(store, set_id: str, qid: str, correct: bool, clock, day_index: int | None = None):
    """Load the active roadmap, apply one answer to a set and write it back.

    Returns the updated progress, or None if the set is not in the roadmap.
    """
    roadmap = load_roadmap(store)
    practice_set = find_set(roadmap, set_id, day_index) if roadmap else None
    if practice_set is None:
        logger.warning("Answer for unknown set {} (day {}) ignored", set_id, day_index)
        return None
    record_answer(practice_set.progress, qid, correct, clock.now_iso())
    roadmap.updated_at = clock.now_iso()
    save_roadmap(store, roadmap)
    return practice_set.progress


def finish_roadmap_set(store, set_id: str, clock, day_index: int | None = None) -> bool:
    roadmap = load_roadmap(store)
    practice_set = find_set(roadmap, set_id, day_index) if roadmap else None
    if practice_set is None:
        logger.warning("Finish for unknown set {} (day {}) ignored", set_id, day_index)
        return False
    done = finish_set(practice_set.progress, clock.now_iso())
    if done:
        roadmap.updated_at = clock.now_iso()
        save_roadmap(store, roadmap)
    return done
