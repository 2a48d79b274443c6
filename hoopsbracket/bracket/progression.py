"""Bracket progression: build and check the advancement pointer graph.

``link_progression`` fills in ``next_game_id`` / ``winner_advances_to_slot``
(and the loser pointers into a consolation game) for brackets whose rounds
halve in size.  ``find_advancement_cycles`` and ``validate_advancement_graph``
check hand-authored bracket metadata before it is trusted by the propagator.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..models.bracket import BracketRound
from ..models.game import AWAY, HOME, SLOTS, TournamentGame
from .assembler import assemble
from .rounds import DEFAULT_ROUND_ORDER, RoundOrder

CONSOLATION_ROUNDS = ("consolation",)


def _slot_for_index(idx: int) -> str:
    return HOME if idx % 2 == 0 else AWAY


def _link_rounds(
    feeders: Sequence[TournamentGame],
    targets: Sequence[TournamentGame],
    links: Dict[str, Dict[str, str]],
) -> None:
    if not targets or len(feeders) != 2 * len(targets):
        return
    for idx, game in enumerate(feeders):
        links.setdefault(game.id, {}).update(
            next_game_id=targets[idx // 2].id,
            winner_advances_to_slot=_slot_for_index(idx),
        )


def _link_losers(
    feeders: Sequence[TournamentGame],
    consolation: Optional[BracketRound],
    links: Dict[str, Dict[str, str]],
) -> None:
    if consolation is None or len(feeders) != 2 * len(consolation.games):
        return
    for idx, game in enumerate(feeders):
        links.setdefault(game.id, {}).update(
            loser_next_game_id=consolation.games[idx // 2].id,
            loser_advances_to_slot=_slot_for_index(idx),
        )


def _link_chain(rounds: Sequence[BracketRound], links: Dict[str, Dict[str, str]]) -> None:
    chain = [r for r in rounds if r.round not in CONSOLATION_ROUNDS]
    consolation = next((r for r in rounds if r.round in CONSOLATION_ROUNDS), None)
    for current, following in zip(chain, chain[1:]):
        _link_rounds(current.games, following.games, links)
    # Losers of the round feeding the final play the consolation game.
    if len(chain) >= 2 and len(chain[-1].games) == 1:
        _link_losers(chain[-2].games, consolation, links)


def link_progression(
    games: Sequence[TournamentGame],
    tournament_type: str = "ncaa",
    round_order: RoundOrder = DEFAULT_ROUND_ORDER,
) -> List[TournamentGame]:
    """
    Return copies of ``games`` with advancement pointers filled in.

    Within each region, game ``i`` of a round feeds game ``i // 2`` of the
    next round (even ``i`` to the home slot, odd to away) whenever the next
    round is exactly half the size.  For NCAA brackets the last game of each
    region feeds the region-less national rounds in region order.  Pointers
    already present on a game are kept.
    """
    bracket = assemble(games, tournament_type, round_order)
    links: Dict[str, Dict[str, str]] = {}

    region_rounds: Dict[Optional[str], List[BracketRound]] = {}
    for rnd in bracket.rounds:
        if round_order.rank(rnd.round) == round_order.rank("first_four"):
            continue
        region_rounds.setdefault(rnd.region, []).append(rnd)

    for region, rounds in region_rounds.items():
        _link_chain(rounds, links)

    national = [r for r in region_rounds.get(None, []) if r.round not in CONSOLATION_ROUNDS]
    if tournament_type == "ncaa" and national and bracket.regions:
        regional_finals = []
        for region in bracket.regions:
            rounds = region_rounds.get(region, [])
            if rounds and len(rounds[-1].games) == 1:
                regional_finals.append(rounds[-1].games[0])
        _link_rounds(regional_finals, national[0].games, links)

    out: List[TournamentGame] = []
    for game in games:
        changes = links.get(game.id, {})
        if game.next_game_id:
            changes = {k: v for k, v in changes.items() if not k.startswith(("next_", "winner_"))}
        if game.loser_next_game_id:
            changes = {k: v for k, v in changes.items() if not k.startswith("loser_")}
        out.append(game.with_changes(**changes) if changes else game)
    return out


def _edges(game: TournamentGame) -> List[str]:
    return [g for g in (game.next_game_id, game.loser_next_game_id) if g]


def find_advancement_cycles(games: Sequence[TournamentGame]) -> List[List[str]]:
    """Return every cycle in the advancement graph as a list of game ids."""
    by_id = {g.id: g for g in games}
    state: Dict[str, int] = {}  # 1 = on stack, 2 = done
    cycles: List[List[str]] = []

    for start in by_id:
        if state.get(start):
            continue
        stack = [(start, iter(_edges(by_id[start])))]
        path = [start]
        state[start] = 1
        while stack:
            node, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                path.pop()
                state[node] = 2
                continue
            if child not in by_id:
                continue
            if state.get(child) == 1:
                cycles.append(path[path.index(child):] + [child])
            elif not state.get(child):
                state[child] = 1
                path.append(child)
                stack.append((child, iter(_edges(by_id[child]))))
    return cycles


def validate_advancement_graph(games: Sequence[TournamentGame]) -> List[str]:
    """Human-readable problems with a tournament's advancement metadata."""
    errors: List[str] = []
    ids = {g.id for g in games}
    for game in games:
        for target, slot, label in (
            (game.next_game_id, game.winner_advances_to_slot, "winner"),
            (game.loser_next_game_id, game.loser_advances_to_slot, "loser"),
        ):
            if not target:
                continue
            if target not in ids:
                errors.append(f"game {game.id}: {label} advances to unknown game {target}")
            if slot is None:
                errors.append(f"game {game.id}: {label} pointer has no slot")
            elif slot not in SLOTS:
                errors.append(f"game {game.id}: invalid {label} slot '{slot}'")
    for cycle in find_advancement_cycles(games):
        errors.append("advancement cycle: " + " -> ".join(cycle))
    return errors
