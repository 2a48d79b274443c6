"""
Resolution of external feed teams to canonical catalog teams.

Feeds identify teams by their own ids and display names:

  ESPN:    {"id": "150", "name": "Duke Blue Devils", "abbreviation": "DUKE"}
  Catalog: {"id": "…", "name": "Duke", "short_name": "DUKE"}

``TeamResolver`` scores every catalog team against the external record with
``match_score`` and accepts the best one above a threshold.  High-confidence
matches are written back to the catalog as ``external_ids[source]`` so the
next import of the same team is an exact id hit.

"No match" is a normal outcome: ``resolve`` returns ``None`` and the caller
decides what to do (the importer reports it and skips the game).
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..models.team import CanonicalTeam, ExternalTeamRecord, MatchResult
from .normalize import match_score

logger = logging.getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.75
CACHE_CONFIDENCE = 0.9

Scorer = Callable[[ExternalTeamRecord, CanonicalTeam, str], float]


class TeamResolver:
    """
    Matches external team records against the team catalog for one source.

    Args:
        catalog: TeamCatalog collaborator (``list_teams``, ``set_external_id``)
        source: external source key, e.g. "espn"
        threshold: minimum score to accept a match
        cache_threshold: minimum score to persist the external id mapping
        scorer: scoring function, ``match_score`` unless injected
        dry_run: when True no mapping is ever written to the catalog

    Not thread-safe: the candidate list is cached and mutated in place so
    that mappings written earlier in a batch are visible later in it.
    """

    def __init__(
        self,
        catalog,
        source: str,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        cache_threshold: float = CACHE_CONFIDENCE,
        scorer: Scorer = match_score,
        dry_run: bool = False,
    ):
        self.catalog = catalog
        self.source = source
        self.threshold = threshold
        self.cache_threshold = cache_threshold
        self.scorer = scorer
        self.dry_run = dry_run
        self._teams: Optional[List[CanonicalTeam]] = None

    @property
    def teams(self) -> List[CanonicalTeam]:
        """Catalog teams, loaded once per resolver."""
        if self._teams is None:
            self._teams = list(self.catalog.list_teams())
            logger.debug("Loaded %d catalog teams for source %s", len(self._teams), self.source)
        return self._teams

    def _score_all(
        self, external: ExternalTeamRecord, candidates: Sequence[CanonicalTeam]
    ) -> List[MatchResult]:
        return [
            MatchResult(team.id, self.scorer(external, team, self.source), team.name)
            for team in candidates
        ]

    def resolve(
        self,
        external: ExternalTeamRecord,
        candidates: Optional[Sequence[CanonicalTeam]] = None,
        threshold: Optional[float] = None,
    ) -> Optional[MatchResult]:
        """
        Resolve one external team to a catalog team.

        Returns:
            The best MatchResult if its confidence reaches the threshold,
            otherwise None.
        """
        pool = self.teams if candidates is None else candidates
        threshold = self.threshold if threshold is None else threshold

        best: Optional[MatchResult] = None
        best_team: Optional[CanonicalTeam] = None
        for team, result in zip(pool, self._score_all(external, pool)):
            if best is None or result.confidence > best.confidence:
                best, best_team = result, team

        if best is None or best.confidence < threshold:
            logger.debug(
                "No match for %r (best=%.3f, threshold=%.2f)",
                external.label,
                best.confidence if best else 0.0,
                threshold,
            )
            return None

        if best.confidence >= self.cache_threshold:
            self._remember(external, best_team)
        return best

    def _remember(self, external: ExternalTeamRecord, team: CanonicalTeam) -> None:
        if not external.external_id or self.dry_run:
            return
        if team.external_ids.get(self.source) == external.external_id:
            return
        self.catalog.set_external_id(team.id, self.source, external.external_id)
        team.external_ids[self.source] = external.external_id
        logger.debug(
            "Cached %s id %s -> team %s (%s)",
            self.source,
            external.external_id,
            team.id,
            team.name,
        )

    def resolve_batch(
        self,
        externals: Sequence[ExternalTeamRecord],
        candidates: Optional[Sequence[CanonicalTeam]] = None,
        threshold: Optional[float] = None,
    ) -> Dict[str, MatchResult]:
        """Resolve sequentially; unmatched external ids are absent from the result."""
        matches: Dict[str, MatchResult] = {}
        for external in externals:
            result = self.resolve(external, candidates, threshold)
            if result is not None:
                matches[external.external_id] = result
        return matches

    def suggest(
        self,
        external: ExternalTeamRecord,
        candidates: Optional[Sequence[CanonicalTeam]] = None,
        top_n: int = 3,
    ) -> List[MatchResult]:
        """Top ``top_n`` candidates by score for manual review (never filtered)."""
        pool = self.teams if candidates is None else candidates
        scored = self._score_all(external, pool)
        scored.sort(key=lambda r: -r.confidence)
        return scored[:top_n]

    def suggest_batch(
        self,
        externals: Sequence[ExternalTeamRecord],
        top_n: int = 3,
    ) -> List[Dict]:
        """Suggestions for every external team not already mapped by id."""
        mapped = {t.external_ids.get(self.source) for t in self.teams}
        out = []
        for external in externals:
            if external.external_id and external.external_id in mapped:
                continue
            out.append(
                {
                    "external": external.to_dict(),
                    "suggestions": [r.to_dict() for r in self.suggest(external, top_n=top_n)],
                }
            )
        return out
