"""Keyword filter that keeps private schools out of a nearby-search result list."""

import logging
import re
import unicodedata
from typing import Iterable, List, Optional, Tuple

from school_portal.models import CompetitorResult

logger = logging.getLogger(__name__)

# Lowercase substrings that mark public or government-run institutions.
PUBLIC_SCHOOL_KEYWORDS: Tuple[str, ...] = (
    "emef",
    "emei",
    "emeif",
    "cemei",
    "municipal",
    "estadual",
    "federal",
    "pública",
    "publica",
    "governo",
    "prefeitura",
    "sec.",
    "secretaria",
    "e.m.",
    "e.e.",
    "e.m.e.f",
    "e.m.e.i",
    "e.e.e.i",
    "e.e.e.f",
    "c.e.",
    "c.e.m.",
    "ciep",
    "caic",
    "sesi",
    "senai",
    "senac",
    "sesc",
    "etec",
    "fatec",
    "e.t.e.c",
    "f.a.t.e.c",
    "ifsp",
    "if-",
    "instituto federal",
    "i.f.",
    "cefet",
    "creche conveniada",
    "centro de educação",
    "núcleo de ensino",
    "polo educacional",
    "casa da criança",
    "lar infantil",
    "unidade escolar",
    "u.e.",
    "delegacia de ensino",
    "diretoria de ensino",
)

# Short abbreviations (CEU, CEM, CME, UE) that are also substrings of private school
# names such as "Liceu"; these only count as whole words.
PUBLIC_SCHOOL_WORDS: Tuple[str, ...] = ("ceu", "cem", "cme", "ue")

_PUBLIC_WORD_PATTERN = re.compile(r"\b(" + "|".join(map(re.escape, PUBLIC_SCHOOL_WORDS)) + r")\b")


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def matched_public_keyword(name: str, keywords: Iterable[str] = PUBLIC_SCHOOL_KEYWORDS) -> Optional[str]:
    lowered = name.lower()
    folded = strip_accents(lowered)
    for keyword in keywords:
        if keyword in lowered or strip_accents(keyword) in folded:
            return keyword
    match = _PUBLIC_WORD_PATTERN.search(lowered)
    return match.group(1) if match else None


def split_public_schools(
    competitors: Iterable[CompetitorResult],
) -> Tuple[List[CompetitorResult], List[CompetitorResult]]:
    """Partition competitors into (kept, removed), preserving input order."""
    kept: List[CompetitorResult] = []
    removed: List[CompetitorResult] = []
    for competitor in competitors:
        keyword = matched_public_keyword(competitor.name)
        if keyword:
            logger.debug("Dropping %r (matched %r)", competitor.name, keyword)
            removed.append(competitor)
        else:
            kept.append(competitor)
    return kept, removed


def filter_private_schools(competitors: Iterable[CompetitorResult]) -> List[CompetitorResult]:
    kept, _ = split_public_schools(competitors)
    return kept
