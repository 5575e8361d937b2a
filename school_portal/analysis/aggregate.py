"""Aggregate statistics and threshold-based insights over a competitor list."""

from typing import List, Sequence

from school_portal.models import CompetitorResult, MarketAnalysis, PriceDistribution

HIGH_RATING_THRESHOLD = 4.5
LOW_COMPETITION_MAX = 5
HIGH_COMPETITION_MIN = 20
QUALITY_BAR_RATING = 4.0
STAND_OUT_RATING = 3.5

INSIGHT_NO_COMPETITION = (
    "Nenhuma escola particular encontrada na região - oportunidade única de mercado."
)
INSIGHT_LOW_COMPETITION = "Mercado com baixa concorrência - boa oportunidade para destacar-se."
INSIGHT_HIGH_COMPETITION = (
    "Mercado altamente competitivo - necessário estratégia robusta de diferenciação."
)
INSIGHT_HIGH_QUALITY_BAR = (
    "Concorrentes têm avaliações altas - a régua de qualidade na região é elevada."
)
INSIGHT_STAND_OUT = (
    "Concorrentes têm avaliações medianas - oportunidade de se destacar pela qualidade."
)
INSIGHT_PRICE_SENSITIVE = "Predominância de escolas econômicas - mercado sensível a preço."
INSIGHT_PREMIUM = "Predominância de escolas premium e de luxo - mercado de alto padrão."


def price_distribution(competitors: Sequence[CompetitorResult]) -> PriceDistribution:
    distribution = PriceDistribution()
    for competitor in competitors:
        level = competitor.price_level
        if level is None:
            continue
        if level <= 1:
            distribution.budget += 1
        elif level == 2:
            distribution.moderate += 1
        elif level == 3:
            distribution.expensive += 1
        elif level == 4:
            distribution.luxury += 1
    return distribution


def generate_insights(
    total_competitors: int,
    average_rating: float,
    rated_count: int,
    distribution: PriceDistribution,
) -> List[str]:
    # Rules are independent; several may fire for the same market.
    insights: List[str] = []
    if total_competitors == 0:
        insights.append(INSIGHT_NO_COMPETITION)
    if total_competitors < LOW_COMPETITION_MAX:
        insights.append(INSIGHT_LOW_COMPETITION)
    if total_competitors > HIGH_COMPETITION_MIN:
        insights.append(INSIGHT_HIGH_COMPETITION)
    if rated_count and average_rating > QUALITY_BAR_RATING:
        insights.append(INSIGHT_HIGH_QUALITY_BAR)
    if rated_count and average_rating < STAND_OUT_RATING:
        insights.append(INSIGHT_STAND_OUT)

    premium = distribution.expensive + distribution.luxury
    if distribution.budget > premium:
        insights.append(INSIGHT_PRICE_SENSITIVE)
    elif premium > distribution.budget:
        insights.append(INSIGHT_PREMIUM)
    return insights


def compute_analysis(competitors: Sequence[CompetitorResult]) -> MarketAnalysis:
    ratings = [c.rating for c in competitors if c.rating is not None]
    average_rating = round(sum(ratings) / len(ratings), 2) if ratings else 0
    high_rated_count = sum(1 for rating in ratings if rating >= HIGH_RATING_THRESHOLD)
    distribution = price_distribution(competitors)

    return MarketAnalysis(
        total_competitors=len(competitors),
        average_rating=average_rating,
        high_rated_count=high_rated_count,
        price_distribution=distribution,
        insights=generate_insights(len(competitors), average_rating, len(ratings), distribution),
    )
