from school_portal.analysis import aggregate
from school_portal.models import CompetitorResult


def _school(name, rating=None, price_level=None):
    return CompetitorResult(place_id=name, name=name, rating=rating, price_level=price_level)


def test_average_rating_ignores_missing_ratings():
    analysis = aggregate.compute_analysis(
        [_school("a", rating=4.0), _school("b"), _school("c", rating=3.0), _school("d", rating=4.7)]
    )
    assert analysis.total_competitors == 4
    assert analysis.average_rating == 3.9
    assert analysis.high_rated_count == 1


def test_average_rating_is_rounded_to_two_places():
    analysis = aggregate.compute_analysis([_school("a", rating=4.0), _school("b", rating=4.1), _school("c", rating=4.1)])
    assert analysis.average_rating == 4.07


def test_price_distribution_buckets():
    analysis = aggregate.compute_analysis(
        [
            _school("a", price_level=0),
            _school("b", price_level=1),
            _school("c", price_level=2),
            _school("d", price_level=3),
            _school("e", price_level=4),
            _school("f"),
        ]
    )
    distribution = analysis.price_distribution
    assert (distribution.budget, distribution.moderate, distribution.expensive, distribution.luxury) == (2, 1, 1, 1)
    assert distribution.total() == 5 < analysis.total_competitors


def test_empty_market_fires_opportunity_and_low_competition():
    analysis = aggregate.compute_analysis([])
    assert analysis.total_competitors == 0
    assert analysis.average_rating == 0
    assert analysis.insights == [aggregate.INSIGHT_NO_COMPETITION, aggregate.INSIGHT_LOW_COMPETITION]


def test_no_ratings_means_no_rating_insights():
    analysis = aggregate.compute_analysis([_school(str(i)) for i in range(7)])
    assert analysis.average_rating == 0
    assert aggregate.INSIGHT_HIGH_QUALITY_BAR not in analysis.insights
    assert aggregate.INSIGHT_STAND_OUT not in analysis.insights


def test_crowded_unpriced_market():
    analysis = aggregate.compute_analysis([_school(str(i)) for i in range(25)])
    distribution = analysis.price_distribution
    assert (distribution.budget, distribution.moderate, distribution.expensive, distribution.luxury) == (0, 0, 0, 0)
    assert analysis.insights == [aggregate.INSIGHT_HIGH_COMPETITION]


def test_rules_can_co_fire():
    competitors = [_school("a", rating=4.8, price_level=4), _school("b", rating=4.4, price_level=3)]
    insights = aggregate.compute_analysis(competitors).insights
    assert insights == [
        aggregate.INSIGHT_LOW_COMPETITION,
        aggregate.INSIGHT_HIGH_QUALITY_BAR,
        aggregate.INSIGHT_PREMIUM,
    ]


def test_low_ratings_and_budget_market():
    competitors = [_school("a", rating=3.0, price_level=1), _school("b", rating=3.2, price_level=0)]
    insights = aggregate.compute_analysis(competitors).insights
    assert aggregate.INSIGHT_STAND_OUT in insights
    assert aggregate.INSIGHT_PRICE_SENSITIVE in insights
    assert aggregate.INSIGHT_PREMIUM not in insights
