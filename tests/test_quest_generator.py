"""
Unit tests for tools/quest_generator.py — procedural quest creation.
"""

import random

from models.quests import AlertStage, SUBJECTS
from tools.quest_generator import (
    TITLE_POOLS,
    estimate_minutes,
    generate_quests,
)
from tools.rarity_table import get_tier

from conftest import NOW, FakeClock


class TestGenerateQuests:

    def test_zero_returns_empty(self):
        assert generate_quests(0) == []

    def test_negative_returns_empty(self):
        assert generate_quests(-3) == []

    def test_exact_count(self):
        assert len(generate_quests(7, rng=random.Random(1))) == 7

    def test_rewards_and_estimates_follow_tier(self):
        quests = generate_quests(300, rng=random.Random(5))
        for q in quests:
            low, high = get_tier(q.rarity).reward_range
            assert low <= q.reward_exp <= high
            assert q.est_mins >= 10
            assert q.est_mins == estimate_minutes(q.reward_exp)

    def test_repeat_is_false_only_for_highest_tier(self):
        quests = generate_quests(300, rng=random.Random(9))
        for q in quests:
            assert q.repeat is (q.rarity != "Epic")
        assert any(q.rarity == "Epic" for q in quests)

    def test_flags_start_cleared(self):
        for q in generate_quests(10, rng=random.Random(2)):
            assert q.completed is False
            assert q.pending_complete is False
            assert q.reminder_notified is False
            assert q.penalty_applied is False
            assert q.alert_stage == AlertStage.NOT_DUE
            assert q.due_at is None

    def test_preferred_subject_pins_subject_and_titles(self):
        quests = generate_quests(20, preferred_subject="Coding", rng=random.Random(4))
        assert {q.subject for q in quests} == {"Coding"}
        assert all(q.title in TITLE_POOLS["Coding"] for q in quests)

    def test_random_subjects_come_from_pool(self):
        quests = generate_quests(100, rng=random.Random(11))
        assert {q.subject for q in quests} <= set(SUBJECTS)

    def test_unknown_subject_uses_soft_skills_titles(self):
        quests = generate_quests(5, preferred_subject="Chemistry", rng=random.Random(3))
        assert all(q.title in TITLE_POOLS["Soft Skills"] for q in quests)

    def test_description_mentions_subject(self):
        q = generate_quests(1, preferred_subject="Soft Skills", rng=random.Random(8))[0]
        assert q.description == f"{q.title} — focused soft skills practice."

    def test_ids_unique_across_calls(self):
        ids = [q.id for _ in range(20) for q in generate_quests(5)]
        assert len(ids) == len(set(ids))
        assert all(i.startswith("q_") for i in ids)

    def test_created_at_uses_clock(self):
        q = generate_quests(1, clock=FakeClock())[0]
        assert q.created_at == NOW


class TestEstimateMinutes:

    def test_minimum_ten(self):
        assert estimate_minutes(12) == 10

    def test_half_rounds_up(self):
        assert estimate_minutes(25) == 13
        assert estimate_minutes(41) == 21
        assert estimate_minutes(160) == 80
