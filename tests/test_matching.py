from __future__ import annotations

import unittest

from pipeline.matching import (
    calc_age_score,
    calc_country_score,
    calc_engagement_score,
    calc_follower_fit_score,
    calc_gender_score,
    calc_hook_alignment_score,
    calc_niche_score,
    calc_penalties,
    calc_watch_time_score,
    score_campaign_against_roster,
    score_creator,
)
from pipeline.weights import WEIGHTS, round2
from schemas.records import Audience, BudgetRange, Campaign, Creator, GenderSplit


def _campaign(**overrides) -> Campaign:
    data = {
        "id": "cmp_test",
        "brand": "GlowLab",
        "objective": "awareness",
        "target_country": "US",
        "target_gender": "female",
        "target_age_range": "18-24",
        "niches": ["beauty", "skincare"],
        "preferred_hook_types": ["POV", "Transformation"],
        "min_avg_watch_time": 20,
        "budget_range": {"min_followers": 10000, "max_followers": 100000},
        "tone": "warm",
        "do_not_use_words": ["cheap"],
    }
    data.update(overrides)
    return Campaign.model_validate(data)


def _creator(**overrides) -> Creator:
    data = {
        "id": "crt_test",
        "username": "miaglows",
        "country": "US",
        "niches": ["beauty", "skincare", "lifestyle"],
        "followers": 50000,
        "engagement_rate": 0.10,
        "avg_watch_time": 25,
        "content_style": "soft-spoken GRWM",
        "primary_hook_type": "POV",
        "brand_safety_flags": [],
        "audience": {
            "top_countries": ["US", "CA", "GB"],
            "gender_split": {"female": 0.82, "male": 0.18},
            "top_age_range": "18-24",
        },
    }
    data.update(overrides)
    return Creator.model_validate(data)


def _audience(**overrides) -> Audience:
    data = {
        "top_countries": ["US", "CA"],
        "gender_split": {"female": 0.5, "male": 0.5},
        "top_age_range": "18-24",
    }
    data.update(overrides)
    return Audience.model_validate(data)


class WeightTableTests(unittest.TestCase):
    def test_weights_sum_to_one(self):
        self.assertAlmostEqual(sum(WEIGHTS.values()), 1.0, places=9)

    def test_weights_are_read_only(self):
        with self.assertRaises(TypeError):
            WEIGHTS["niche"] = 0.5  # type: ignore[index]

    def test_round2_rounds_half_up(self):
        self.assertEqual(round2(95.384615), 95.38)
        self.assertEqual(round2(0.125), 0.13)
        self.assertEqual(round2(0.0), 0.0)


class NicheScoreTests(unittest.TestCase):
    def test_full_overlap(self):
        self.assertEqual(calc_niche_score(_campaign(), _creator()), 100.0)

    def test_partial_overlap_case_insensitive(self):
        creator = _creator(niches=["BEAUTY", "gaming"])
        self.assertEqual(calc_niche_score(_campaign(), creator), 50.0)

    def test_no_overlap(self):
        creator = _creator(niches=["gaming"])
        self.assertEqual(calc_niche_score(_campaign(), creator), 0.0)

    def test_campaign_without_niches_scores_full(self):
        self.assertEqual(calc_niche_score(_campaign(niches=[]), _creator(niches=[])), 100.0)


class CountryScoreTests(unittest.TestCase):
    def test_primary_country(self):
        self.assertEqual(calc_country_score(_campaign(), _audience()), 100.0)

    def test_secondary_country(self):
        self.assertEqual(calc_country_score(_campaign(target_country="ca"), _audience()), 60.0)

    def test_absent_country(self):
        self.assertEqual(calc_country_score(_campaign(target_country="DE"), _audience()), 0.0)

    def test_empty_country_list(self):
        self.assertEqual(calc_country_score(_campaign(), _audience(top_countries=[])), 0.0)


class EngagementScoreTests(unittest.TestCase):
    def test_at_or_below_floor(self):
        self.assertEqual(calc_engagement_score(_creator(engagement_rate=0.02)), 0.0)
        self.assertEqual(calc_engagement_score(_creator(engagement_rate=0.0)), 0.0)

    def test_at_or_above_ceiling(self):
        self.assertEqual(calc_engagement_score(_creator(engagement_rate=0.15)), 100.0)
        self.assertEqual(calc_engagement_score(_creator(engagement_rate=0.4)), 100.0)

    def test_linear_between(self):
        score = calc_engagement_score(_creator(engagement_rate=0.10))
        self.assertAlmostEqual(score, 0.08 / 0.13 * 100, places=6)


class WatchTimeScoreTests(unittest.TestCase):
    def test_meets_minimum(self):
        self.assertEqual(calc_watch_time_score(_campaign(), _creator(avg_watch_time=20)), 100.0)

    def test_below_minimum_scales(self):
        self.assertEqual(calc_watch_time_score(_campaign(), _creator(avg_watch_time=10)), 50.0)

    def test_no_minimum_scores_full(self):
        campaign = _campaign(min_avg_watch_time=0)
        self.assertEqual(calc_watch_time_score(campaign, _creator(avg_watch_time=0)), 100.0)


class FollowerFitScoreTests(unittest.TestCase):
    band = BudgetRange(min_followers=10000, max_followers=100000)

    def test_inside_band_inclusive(self):
        for followers in (10000, 50000, 100000):
            self.assertEqual(calc_follower_fit_score(self.band, _creator(followers=followers)), 100.0)

    def test_just_below_floor_is_below_full(self):
        score = calc_follower_fit_score(self.band, _creator(followers=9999))
        self.assertAlmostEqual(score, 9999 / 10000 * 80, places=6)
        self.assertLess(score, 100.0)

    def test_below_floor_ramps_from_zero(self):
        self.assertEqual(calc_follower_fit_score(self.band, _creator(followers=0)), 0.0)
        self.assertEqual(calc_follower_fit_score(self.band, _creator(followers=5000)), 40.0)

    def test_over_band_decays(self):
        self.assertEqual(calc_follower_fit_score(self.band, _creator(followers=150000)), 75.0)
        self.assertEqual(calc_follower_fit_score(self.band, _creator(followers=200000)), 50.0)

    def test_far_over_band_floors_at_zero(self):
        self.assertEqual(calc_follower_fit_score(self.band, _creator(followers=1_000_000)), 0.0)

    def test_zero_max_band(self):
        band = BudgetRange(min_followers=0, max_followers=0)
        self.assertEqual(calc_follower_fit_score(band, _creator(followers=0)), 100.0)
        self.assertEqual(calc_follower_fit_score(band, _creator(followers=10)), 0.0)


class HookBrandAgeGenderTests(unittest.TestCase):
    def test_hook_match_case_insensitive(self):
        self.assertEqual(calc_hook_alignment_score(_campaign(), _creator(primary_hook_type="pov")), 100.0)

    def test_hook_mismatch(self):
        self.assertEqual(calc_hook_alignment_score(_campaign(), _creator(primary_hook_type="Listicle")), 0.0)

    def test_no_preferred_hooks_scores_full(self):
        campaign = _campaign(preferred_hook_types=[])
        self.assertEqual(calc_hook_alignment_score(campaign, _creator(primary_hook_type="Listicle")), 100.0)

    def test_penalties_per_flag(self):
        self.assertEqual(calc_penalties(_creator()), 0.0)
        self.assertEqual(calc_penalties(_creator(brand_safety_flags=["profanity", "gambling"])), 10.0)

    def test_age_exact_match_only(self):
        self.assertEqual(calc_age_score(_campaign(), _audience(top_age_range="18-24")), 100.0)
        self.assertEqual(calc_age_score(_campaign(), _audience(top_age_range="25-34")), 0.0)

    def test_gender_tiers(self):
        cases = [(0.82, 100.0), (0.7, 100.0), (0.55, 60.0), (0.45, 30.0), (0.2, 0.0)]
        for female, expected in cases:
            audience = _audience(gender_split=GenderSplit(female=female, male=1 - female))
            self.assertEqual(calc_gender_score(_campaign(), audience), expected, msg=female)

    def test_gender_all_scores_full(self):
        audience = _audience(gender_split=GenderSplit(female=0.0, male=0.0))
        self.assertEqual(calc_gender_score(_campaign(target_gender="all"), audience), 100.0)


class ScoreCreatorTests(unittest.TestCase):
    def test_reference_pairing_total(self):
        result = score_creator(_campaign(), _creator())
        b = result.breakdown
        self.assertEqual(b.niche_score, 100.0)
        self.assertEqual(b.country_score, 100.0)
        self.assertAlmostEqual(b.engagement_score, 61.538, places=3)
        self.assertEqual(b.watch_time_score, 100.0)
        self.assertEqual(b.follower_fit_score, 100.0)
        self.assertEqual(b.hook_alignment_score, 100.0)
        self.assertEqual(b.brand_safety_score, 100.0)
        self.assertEqual(b.gender_score, 100.0)
        self.assertEqual(b.age_score, 100.0)
        self.assertEqual(b.penalties, 0.0)
        self.assertEqual(result.total_score, 95.38)
        self.assertIsNone(result.reasons)

    def test_scoring_is_deterministic(self):
        first = score_creator(_campaign(), _creator())
        second = score_creator(_campaign(), _creator())
        self.assertEqual(first, second)

    def test_total_clamped_at_zero_with_many_flags(self):
        creator = _creator(
            niches=["gaming"],
            engagement_rate=0.01,
            avg_watch_time=0,
            followers=0,
            primary_hook_type="Listicle",
            brand_safety_flags=[f"flag{i}" for i in range(30)],
            audience={"top_countries": ["DE"], "gender_split": {"female": 0.1, "male": 0.9}, "top_age_range": "45+"},
        )
        result = score_creator(_campaign(), creator)
        self.assertEqual(result.total_score, 0.0)
        self.assertEqual(result.breakdown.penalties, 150.0)

    def test_flags_zero_brand_safety_and_subtract_penalty(self):
        clean = score_creator(_campaign(), _creator())
        flagged = score_creator(_campaign(), _creator(brand_safety_flags=["profanity"]))
        self.assertEqual(flagged.breakdown.brand_safety_score, 0.0)
        # 5 weighted points for the dimension plus 5 penalty points
        self.assertAlmostEqual(clean.total_score - flagged.total_score, 10.0, places=2)


class RosterRankingTests(unittest.TestCase):
    def test_sorted_descending_with_reasons(self):
        creators = [
            _creator(id="low", niches=["gaming"]),
            _creator(id="high"),
            _creator(id="mid", niches=["beauty"]),
        ]
        results = score_campaign_against_roster(_campaign(), creators)
        self.assertEqual([r.creator.id for r in results], ["high", "mid", "low"])
        for r in results:
            self.assertEqual(len(r.reasons), 9)

    def test_ties_keep_input_order(self):
        creators = [_creator(id=f"c{i}") for i in range(4)]
        results = score_campaign_against_roster(_campaign(), creators)
        self.assertEqual([r.creator.id for r in results], ["c0", "c1", "c2", "c3"])

    def test_limit_truncates(self):
        creators = [_creator(id=f"c{i}") for i in range(5)]
        results = score_campaign_against_roster(_campaign(), creators, limit=2)
        self.assertEqual(len(results), 2)

    def test_explain_false_omits_reasons(self):
        results = score_campaign_against_roster(_campaign(), [_creator()], explain=False)
        self.assertIsNone(results[0].reasons)

    def test_empty_roster(self):
        self.assertEqual(score_campaign_against_roster(_campaign(), []), [])


if __name__ == "__main__":
    unittest.main()
