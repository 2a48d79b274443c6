"""Team name normalization and similarity scoring.

Every team-name comparison in the package goes through this module so that
external feeds and the canonical catalog are normalized identically.  All
functions here are pure and total: they never raise on odd input and
``normalize`` is idempotent.

The word lists below are the regression surface of the matcher.  When a real
feed name fails to match, add the case to ``tests/test_normalize.py`` before
touching these tables.
"""

from __future__ import annotations

import html as _html
import re
import unicodedata
from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from ..models.team import CanonicalTeam, ExternalTeamRecord

# "X St" means "X State" only for these schools; elsewhere "St" is Saint.
STATE_ABBREVIATION_SCHOOLS = frozenset(
    {
        "alabama", "alcorn", "appalachian", "arizona", "arkansas", "ball",
        "boise", "chicago", "cleveland", "colorado", "coppin", "delaware",
        "florida", "fresno", "georgia", "grambling", "idaho", "illinois",
        "indiana", "iowa", "jackson", "jacksonville", "kansas", "kennesaw",
        "kent", "long beach", "mcneese", "michigan", "mississippi", "missouri",
        "montana", "morehead", "morgan", "murray", "nc", "new mexico",
        "nicholls", "norfolk", "north dakota", "northwestern", "ohio",
        "oklahoma", "oregon", "penn", "portland", "sacramento", "sam houston",
        "san diego", "san jose", "south carolina", "south dakota", "tarleton",
        "tennessee", "texas", "utah", "washington", "weber", "wichita",
        "wright", "youngstown",
    }
)

PARENTHETICAL_EXPANSIONS = {
    "chi": "chicago",
    "md": "maryland",
    "pa": "pennsylvania",
    "mn": "minnesota",
    "oh": "ohio",
    "fl": "florida",
    "ny": "new york",
    "il": "illinois",
}

MASCOT_WORDS = frozenset(
    {
        "49ers", "aggies", "anteaters", "aztecs", "badgers", "bearcats",
        "bears", "beavers", "billikens", "bison", "black bears",
        "black knights", "blue demons", "blue devils", "blue hens",
        "blue jays", "bluejays", "bobcats", "boilermakers", "bonnies",
        "braves", "broncos", "bruins", "buccaneers", "buckeyes", "buffaloes",
        "bulldogs", "bulls", "cardinals", "catamounts", "chanticleers",
        "chippewas", "colonels", "colonials", "commodores", "cornhuskers",
        "cougars", "cowboys", "crimson tide", "crusaders", "cyclones",
        "demon deacons", "dolphins", "dons", "ducks", "dukes", "eagles",
        "explorers", "falcons", "fighting illini", "fighting irish",
        "flames", "flyers", "friars", "gaels", "gamecocks", "gators",
        "golden eagles", "golden flashes", "golden gophers",
        "golden grizzlies", "golden hurricane", "governors", "great danes",
        "green wave", "greyhounds", "grizzlies", "hawkeyes", "hilltoppers",
        "hokies", "hoosiers", "horned frogs", "hornets", "hurricanes",
        "huskies", "jackrabbits", "jaguars", "jayhawks", "knights",
        "lancers", "leathernecks", "lions", "lobos", "longhorns",
        "lumberjacks", "mastodons", "mavericks", "midshipmen", "miners",
        "minutemen", "mocs", "mountaineers", "musketeers", "mustangs",
        "nittany lions", "norse", "owls", "paladins", "panthers", "patriots",
        "penguins", "phoenix", "pilots", "pirates", "purple aces", "racers",
        "ragin cajuns", "rainbow warriors", "ramblers", "rams",
        "razorbacks", "rebels", "red raiders", "red storm", "redbirds",
        "redhawks", "retrievers", "roadrunners", "rockets", "salukis",
        "scarlet knights", "seahawks", "seawolves", "seminoles", "shockers",
        "sooners", "spartans", "spiders", "sun devils", "sycamores",
        "tar heels", "terrapins", "terriers", "thundering herd", "tigers",
        "titans", "toreros", "tritons", "trojans", "utes", "vandals",
        "volunteers", "wildcats", "wolf pack", "wolfpack", "wolverines",
        "yellow jackets", "zips",
    }
)

# Longest phrases first so "golden eagles" wins over "eagles".
_MASCOT_PHRASES = sorted(
    (tuple(m.split()) for m in MASCOT_WORDS), key=lambda p: -len(p)
)

_PAREN_RE = re.compile(r"\(([^)]*)\)")
_APOSTROPHE_RE = re.compile(r"['’‘`]")


def _strip_accents(s: str) -> str:
    s = unicodedata.normalize("NFKD", s)
    return "".join(ch for ch in s if not unicodedata.combining(ch))


def _expand_parenthetical(match: "re.Match") -> str:
    inner = match.group(1).strip()
    expanded = PARENTHETICAL_EXPANSIONS.get(inner.lower().replace(".", ""))
    return f" {expanded or inner} "


def _expand_abbreviations(tokens: List[str]) -> List[str]:
    out: List[str] = []
    for idx, token in enumerate(tokens):
        if token == "univ":
            token = "university"
        elif token == "se" and idx == 0:
            token = "southeastern"
        elif token == "st" and out and " ".join(out) in STATE_ABBREVIATION_SCHOOLS:
            token = "state"
        out.append(token)
    return out


def _strip_mascots(tokens: List[str]) -> List[str]:
    stripped = True
    while stripped:
        stripped = False
        for phrase in _MASCOT_PHRASES:
            n = len(phrase)
            if len(tokens) > n and tuple(tokens[-n:]) == phrase:
                tokens = tokens[:-n]
                stripped = True
                break
    return tokens


def normalize(name: Optional[str]) -> str:
    """Normalize a team name for matching.

    Examples::

        >>> normalize("Duke Blue Devils")
        'duke'
        >>> normalize("Loyola (Chi) Ramblers")
        'loyola chicago'
        >>> normalize("Michigan St Spartans")
        'michigan state'
        >>> normalize("St. John's Red Storm")
        'st johns'
    """
    if not name:
        return ""
    s = _strip_accents(_html.unescape(str(name)))
    s = _PAREN_RE.sub(_expand_parenthetical, s)
    s = s.lower().replace("&", " and ")
    s = _APOSTROPHE_RE.sub("", s)
    s = re.sub(r"[^a-z0-9 ]", " ", s)
    tokens = s.split()
    tokens = _expand_abbreviations(tokens)
    tokens = _strip_mascots(tokens)
    return " ".join(tokens)


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance; insert, delete and substitute all cost 1."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """Similarity of two names in [0, 1] after normalization."""
    na, nb = normalize(a), normalize(b)
    if not na and not nb:
        ra = (a or "").strip().lower()
        rb = (b or "").strip().lower()
        return 1.0 if ra and ra == rb else 0.0
    if na == nb:
        return 1.0
    longest = max(len(na), len(nb))
    return max(0.0, 1.0 - levenshtein(na, nb) / longest)


def _best_similarity(candidates: Iterable[str], targets: Iterable[str]) -> float:
    targets = [t for t in targets if t]
    best = 0.0
    for name in candidates:
        if not name:
            continue
        for target in targets:
            best = max(best, similarity(name, target))
    return best


def shared_words(a: str, b: str) -> List[str]:
    """Words longer than two characters present in both normalized names."""
    b_words = set(normalize(b).split())
    seen: List[str] = []
    for word in normalize(a).split():
        if len(word) > 2 and word in b_words and word not in seen:
            seen.append(word)
    return seen


def match_score(
    external: "ExternalTeamRecord",
    candidate: "CanonicalTeam",
    source: str,
) -> float:
    """Score how well an external feed team matches a catalog team.

    A previously cached external id for ``source`` is an exact match.
    Otherwise the best name similarity is boosted by 0.1 for each shared
    word and capped at 1.0.
    """
    if external.external_id and candidate.external_ids.get(source) == external.external_id:
        return 1.0

    names = [external.display_name, external.abbreviation or external.display_name]
    targets = [candidate.name, candidate.short_name, candidate.abbreviation]
    score = _best_similarity(names, targets)
    score += 0.1 * len(shared_words(external.display_name, candidate.name))
    return min(score, 1.0)
