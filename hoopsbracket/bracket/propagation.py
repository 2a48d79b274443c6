"""Propagate a user's picks into the not-yet-played slots of a bracket.

Each pick moves its winner (and, for consolation brackets, its loser) into
the slot its game points at.  Everything is recomputed from scratch on every
call; there is no cached state, and the input games are never mutated.

Advancement pointers are assumed acyclic.  Propagation is a single pass over
the picks followed by a single pass over the games, so a cycle cannot make
it loop; use ``progression.find_advancement_cycles`` to check bracket data.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..models.bracket import AdvancementEntry, BracketRound
from ..models.game import AWAY, HOME, SLOTS, TournamentGame, UserPick
from .assembler import assemble
from .rounds import DEFAULT_ROUND_ORDER, RoundOrder

PickValue = Union[str, UserPick, Mapping]
SlotKey = Tuple[str, str]


def _winner_id(pick: PickValue) -> Optional[str]:
    if isinstance(pick, UserPick):
        return pick.winner_team_id
    if isinstance(pick, Mapping):
        return pick.get("winner_team_id")
    return pick


def build_advancements(
    games: Sequence[TournamentGame],
    picks: Mapping[str, PickValue],
) -> Dict[SlotKey, AdvancementEntry]:
    """Map ``(target_game_id, slot)`` to the team a pick sends there."""
    game_by_id = {g.id: g for g in games}
    advancements: Dict[SlotKey, AdvancementEntry] = {}

    for game_id, pick in picks.items():
        game = game_by_id.get(game_id)
        winner_team_id = _winner_id(pick)
        if game is None or winner_team_id is None:
            continue

        # A pick that isn't the away team is treated as the home team.
        if game.away_team_id is not None and game.away_team_id == winner_team_id:
            winner_slot, loser_slot = AWAY, HOME
        else:
            winner_slot, loser_slot = HOME, AWAY

        # The picked id advances even when the stored slot is still TBD.
        if game.next_game_id and game.winner_advances_to_slot in SLOTS:
            key = (game.next_game_id, game.winner_advances_to_slot)
            seed = game.seed_for_slot(winner_slot) if game.team_for_slot(winner_slot) == winner_team_id else None
            advancements[key] = AdvancementEntry(key[0], key[1], winner_team_id, seed)

        # Losers come from the stored slots only, so a placeholder game sends TBD.
        if game.loser_next_game_id and game.loser_advances_to_slot in SLOTS:
            key = (game.loser_next_game_id, game.loser_advances_to_slot)
            advancements[key] = AdvancementEntry(
                key[0], key[1], game.team_for_slot(loser_slot), game.seed_for_slot(loser_slot)
            )

    return advancements


def propagate(
    games: Sequence[TournamentGame],
    picks: Mapping[str, PickValue],
) -> List[TournamentGame]:
    """
    Return the games with picked teams filled into future slots.

    Per slot the displayed team is the advanced team when a pick feeds that
    slot; otherwise ``None`` ("TBD") for placeholder games and the stored
    team for everything else.

    Args:
        games: all games of the tournament
        picks: ``{game_id: winner_team_id}`` (``UserPick`` values also accepted)
    """
    advancements = build_advancements(games, picks)

    out: List[TournamentGame] = []
    for game in games:
        home = advancements.get((game.id, HOME))
        away = advancements.get((game.id, AWAY))
        if home is None and away is None and not game.is_placeholder:
            out.append(game)
            continue

        def pick_slot(entry: Optional[AdvancementEntry], team_id, seed):
            if entry is not None:
                return entry.team_id, entry.seed if entry.seed is not None else seed
            if game.is_placeholder:
                return None, seed
            return team_id, seed

        home_team_id, seed_home = pick_slot(home, game.home_team_id, game.seed_home)
        away_team_id, seed_away = pick_slot(away, game.away_team_id, game.seed_away)
        out.append(
            game.with_changes(
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                seed_home=seed_home,
                seed_away=seed_away,
            )
        )
    return out


def round_columns(
    games: Sequence[TournamentGame],
    round_order: RoundOrder = DEFAULT_ROUND_ORDER,
) -> List[BracketRound]:
    """Group (propagated) games by round only, in left-to-right display order."""
    return assemble(games, tournament_type="bracket", round_order=round_order).rounds
