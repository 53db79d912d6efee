# tests/test_seed.py
from exam_coach.db import get_connection
from exam_coach.flashcards import get_flashcards
from exam_coach.seed import is_seeded, seed_all, seed_flashcards, seed_subjects
from exam_coach.study import get_subjects


def test_is_seeded_false_on_empty_db(ready_db):
    assert is_seeded(ready_db) is False


def test_seed_subjects(ready_db):
    seed_subjects(ready_db)
    subjects = get_subjects(ready_db)
    assert len(subjects) == 4
    assert all(1 <= s.weight <= 10 for s in subjects)
    assert all(s.topics for s in subjects)
    assert all(t.difficulty in ("easy", "medium", "hard") for s in subjects for t in s.topics)
    assert all(t.weight is None for s in subjects for t in s.topics)


def test_seed_flashcards_link_to_topics(ready_db):
    seed_subjects(ready_db)
    seed_flashcards(ready_db)
    cards = get_flashcards(ready_db)
    assert len(cards) >= 5
    topic_ids = {t.id for s in get_subjects(ready_db) for t in s.topics}
    assert {c.topic_id for c in cards} <= topic_ids


def test_seed_all_is_idempotent(ready_db):
    seed_all(ready_db)
    seed_all(ready_db)
    assert is_seeded(ready_db) is True
    conn = get_connection(ready_db)
    count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]
    conn.close()
    assert count == 4
