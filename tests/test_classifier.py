"""Futures vs single-event classifier tests."""

from conftest import build_market

from weatheredge.intel.classifier import (
    classify,
    language_signal,
    metadata_signal,
    odds_signal,
    resolution_date_signal,
)


def test_championship_far_out_is_high_confidence_futures(now):
    m = build_market(title="Will the Chiefs win the Super Bowl?", days_out=150)
    result = classify(m, now)
    assert result.is_futures
    assert result.confidence == "HIGH"
    assert result.signal("resolution_date").score == 5
    assert result.signal("language").score == 3
    assert not result.conflicting_signals


def test_single_game_with_game_tag_is_single_event(now):
    m = build_market(title="Chiefs vs Bills", days_out=2, tags=[{"label": "Game"}])
    result = classify(m, now)
    assert not result.is_futures
    assert result.confidence == "LOW"
    assert result.total_score == -2
    assert result.reason.startswith("single event")


def test_date_signal_tiers(now):
    assert resolution_date_signal(build_market(days_out=120), now).score == 5
    assert resolution_date_signal(build_market(days_out=90), now).score == 3
    assert resolution_date_signal(build_market(days_out=45), now).score == 1
    assert resolution_date_signal(build_market(days_out=10), now).score == 0


def test_missing_resolution_date_contributes_nothing(now):
    s = resolution_date_signal(build_market(days_out=None), now)
    assert s.score == 0
    assert s.detail == "no resolution date"


def test_definitive_date_beats_single_event_tag_and_flags_conflict(now):
    m = build_market(title="Chiefs vs Bills", days_out=150, tags=["game"])
    result = classify(m, now)
    assert result.is_futures
    assert result.conflicting_signals
    assert result.confidence == "MEDIUM"


def test_long_shot_odds_plus_month_out_crosses_total_threshold(now):
    m = build_market(title="Will the Jets beat the Dolphins?", days_out=45, yes=0.03, no=0.97)
    result = classify(m, now)
    assert result.signal("odds").score == 2
    assert result.is_futures
    assert result.confidence == "MEDIUM"
    assert result.reason == "futures: combined signals 3"


def test_odds_tiers_use_highest_available_price(now):
    assert odds_signal(build_market(yes=0.04, no=0.96), now).score == 2
    assert odds_signal(build_market(yes=0.10, no=0.90), now).score == 1
    assert odds_signal(build_market(yes=0.04, no=0.96, best_ask=0.5), now).score == 0
    assert odds_signal(build_market(yes=None, no=None), now).score == 0


def test_zero_prices_give_no_odds_signal(now):
    s = odds_signal(build_market(yes=0.0, no=1.0), now)
    assert s.score == 0
    assert s.detail == "max price 0.0%"
    assert odds_signal(build_market(yes=0.0, no=0.0), now).score == 0


def test_language_only_first_pattern_counts(now):
    m = build_market(title="Will the Bills make the playoffs and go over 10.5 wins this season?")
    s = language_signal(m, now)
    assert s.score == 3
    assert "playoffs" in s.detail


def test_season_end_language_scores_two(now):
    s = language_signal(build_market(title="Will Mahomes lead the league in passing by end of season?"), now)
    assert s.score == 2


def test_metadata_futures_tag_wins_over_single_event_tag(now):
    m = build_market(tags=["NFL", "Futures", "Game"])
    assert metadata_signal(m, now).score == 3


def test_classify_is_pure_for_fixed_now(now):
    m = build_market(title="Will the Lakers win the NBA Finals?", days_out=200)
    assert classify(m, now) == classify(m, now)
