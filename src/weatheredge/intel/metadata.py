"""Metadata extraction from free-text titles and provider tags: venue, participants, category."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from weatheredge.models.market import Market, Participant, normalize_tags

# Sports the UI offers as filters / counts
SUPPORTED_SPORTS = ("Soccer", "NFL", "NBA", "F1", "MLB", "NHL", "Tennis", "Cricket", "Golf")
SPORT_CATEGORIES = frozenset(SUPPORTED_SPORTS + ("Rugby", "Marathon"))

CITIES = [
    "New York", "Los Angeles", "Chicago", "Houston", "Phoenix", "Philadelphia", "San Antonio",
    "San Diego", "Dallas", "San Jose", "Austin", "Jacksonville", "Fort Worth", "Columbus",
    "Charlotte", "San Francisco", "Indianapolis", "Seattle", "Denver", "Boston", "El Paso",
    "Nashville", "Detroit", "Oklahoma City", "Portland", "Las Vegas", "Memphis", "Louisville",
    "Baltimore", "Milwaukee", "Albuquerque", "Tucson", "Sacramento", "Kansas City", "Atlanta",
    "Raleigh", "Miami", "Omaha", "Oakland", "Minneapolis", "Tulsa", "Arlington", "Tampa",
    "New Orleans", "Cleveland", "Honolulu", "St. Louis", "Pittsburgh", "Cincinnati", "Anchorage",
    "Orlando", "Buffalo", "Green Bay", "Foxborough", "East Rutherford", "Glendale", "Inglewood",
    "Santa Clara", "Landover", "Salt Lake City", "Toronto", "Montreal", "Vancouver", "Calgary",
    "Edmonton", "Ottawa", "Winnipeg", "Mexico City", "London", "Manchester", "Liverpool",
    "Birmingham", "Newcastle", "Madrid", "Barcelona", "Seville", "Paris", "Marseille", "Munich",
    "Dortmund", "Berlin", "Milan", "Turin", "Rome", "Naples", "Amsterdam", "Lisbon", "Porto",
    "Monaco", "Silverstone", "Monza", "Melbourne", "Sydney", "Mumbai", "Kolkata", "Chennai",
    "Delhi", "Dubai", "Doha", "Sao Paulo", "Buenos Aires", "Tokyo", "Shanghai", "Singapore",
    "Augusta", "St Andrews", "Pebble Beach", "Wimbledon",
]

STATES = [
    "Alabama", "Alaska", "Arizona", "Arkansas", "California", "Colorado", "Connecticut",
    "Delaware", "Florida", "Georgia", "Hawaii", "Idaho", "Illinois", "Indiana", "Iowa", "Kansas",
    "Kentucky", "Louisiana", "Maine", "Maryland", "Massachusetts", "Michigan", "Minnesota",
    "Mississippi", "Missouri", "Montana", "Nebraska", "Nevada", "New Hampshire", "New Jersey",
    "New Mexico", "North Carolina", "North Dakota", "Ohio", "Oklahoma", "Oregon", "Pennsylvania",
    "Rhode Island", "South Carolina", "South Dakota", "Tennessee", "Texas", "Utah", "Vermont",
    "Virginia", "West Virginia", "Wisconsin", "Wyoming",
]

# (alias pattern, canonical name, sport, home city). Ambiguous nicknames (Heat, Magic, Kings, ...)
# only match with their city so weather words are not read as teams.
TEAMS: list[tuple[str, str, str, str]] = [
    # NFL
    (r"buffalo bills|bills", "Buffalo Bills", "NFL", "Buffalo"),
    (r"miami dolphins|dolphins", "Miami Dolphins", "NFL", "Miami"),
    (r"new england patriots|patriots", "New England Patriots", "NFL", "Foxborough"),
    (r"new york jets", "New York Jets", "NFL", "East Rutherford"),
    (r"baltimore ravens|ravens", "Baltimore Ravens", "NFL", "Baltimore"),
    (r"cincinnati bengals|bengals", "Cincinnati Bengals", "NFL", "Cincinnati"),
    (r"cleveland browns|browns", "Cleveland Browns", "NFL", "Cleveland"),
    (r"pittsburgh steelers|steelers", "Pittsburgh Steelers", "NFL", "Pittsburgh"),
    (r"houston texans|texans", "Houston Texans", "NFL", "Houston"),
    (r"indianapolis colts|colts", "Indianapolis Colts", "NFL", "Indianapolis"),
    (r"jacksonville jaguars|jaguars", "Jacksonville Jaguars", "NFL", "Jacksonville"),
    (r"tennessee titans|titans", "Tennessee Titans", "NFL", "Nashville"),
    (r"denver broncos|broncos", "Denver Broncos", "NFL", "Denver"),
    (r"kansas city chiefs|chiefs", "Kansas City Chiefs", "NFL", "Kansas City"),
    (r"las vegas raiders|raiders", "Las Vegas Raiders", "NFL", "Las Vegas"),
    (r"los angeles chargers|chargers", "Los Angeles Chargers", "NFL", "Inglewood"),
    (r"dallas cowboys|cowboys", "Dallas Cowboys", "NFL", "Arlington"),
    (r"new york giants", "New York Giants", "NFL", "East Rutherford"),
    (r"philadelphia eagles|eagles", "Philadelphia Eagles", "NFL", "Philadelphia"),
    (r"washington commanders|commanders", "Washington Commanders", "NFL", "Landover"),
    (r"chicago bears|bears", "Chicago Bears", "NFL", "Chicago"),
    (r"detroit lions|lions", "Detroit Lions", "NFL", "Detroit"),
    (r"green bay packers|packers", "Green Bay Packers", "NFL", "Green Bay"),
    (r"minnesota vikings|vikings", "Minnesota Vikings", "NFL", "Minneapolis"),
    (r"atlanta falcons|falcons", "Atlanta Falcons", "NFL", "Atlanta"),
    (r"carolina panthers", "Carolina Panthers", "NFL", "Charlotte"),
    (r"new orleans saints|saints", "New Orleans Saints", "NFL", "New Orleans"),
    (r"tampa bay buccaneers|buccaneers|bucs", "Tampa Bay Buccaneers", "NFL", "Tampa"),
    (r"arizona cardinals", "Arizona Cardinals", "NFL", "Glendale"),
    (r"los angeles rams|rams", "Los Angeles Rams", "NFL", "Inglewood"),
    (r"san francisco 49ers|49ers|niners", "San Francisco 49ers", "NFL", "Santa Clara"),
    (r"seattle seahawks|seahawks", "Seattle Seahawks", "NFL", "Seattle"),
    # NBA
    (r"boston celtics|celtics", "Boston Celtics", "NBA", "Boston"),
    (r"brooklyn nets", "Brooklyn Nets", "NBA", "New York"),
    (r"new york knicks|knicks", "New York Knicks", "NBA", "New York"),
    (r"philadelphia 76ers|76ers|sixers", "Philadelphia 76ers", "NBA", "Philadelphia"),
    (r"toronto raptors|raptors", "Toronto Raptors", "NBA", "Toronto"),
    (r"chicago bulls", "Chicago Bulls", "NBA", "Chicago"),
    (r"cleveland cavaliers|cavaliers|cavs", "Cleveland Cavaliers", "NBA", "Cleveland"),
    (r"detroit pistons|pistons", "Detroit Pistons", "NBA", "Detroit"),
    (r"indiana pacers|pacers", "Indiana Pacers", "NBA", "Indianapolis"),
    (r"milwaukee bucks|bucks", "Milwaukee Bucks", "NBA", "Milwaukee"),
    (r"atlanta hawks", "Atlanta Hawks", "NBA", "Atlanta"),
    (r"charlotte hornets|hornets", "Charlotte Hornets", "NBA", "Charlotte"),
    (r"miami heat", "Miami Heat", "NBA", "Miami"),
    (r"orlando magic", "Orlando Magic", "NBA", "Orlando"),
    (r"washington wizards|wizards", "Washington Wizards", "NBA", "Washington"),
    (r"denver nuggets|nuggets", "Denver Nuggets", "NBA", "Denver"),
    (r"minnesota timberwolves|timberwolves", "Minnesota Timberwolves", "NBA", "Minneapolis"),
    (r"oklahoma city thunder", "Oklahoma City Thunder", "NBA", "Oklahoma City"),
    (r"portland trail blazers|trail blazers", "Portland Trail Blazers", "NBA", "Portland"),
    (r"utah jazz", "Utah Jazz", "NBA", "Salt Lake City"),
    (r"golden state warriors|warriors", "Golden State Warriors", "NBA", "San Francisco"),
    (r"los angeles clippers|clippers", "Los Angeles Clippers", "NBA", "Los Angeles"),
    (r"los angeles lakers|lakers", "Los Angeles Lakers", "NBA", "Los Angeles"),
    (r"phoenix suns", "Phoenix Suns", "NBA", "Phoenix"),
    (r"sacramento kings", "Sacramento Kings", "NBA", "Sacramento"),
    (r"dallas mavericks|mavericks|mavs", "Dallas Mavericks", "NBA", "Dallas"),
    (r"houston rockets", "Houston Rockets", "NBA", "Houston"),
    (r"memphis grizzlies|grizzlies", "Memphis Grizzlies", "NBA", "Memphis"),
    (r"new orleans pelicans|pelicans", "New Orleans Pelicans", "NBA", "New Orleans"),
    (r"san antonio spurs|spurs", "San Antonio Spurs", "NBA", "San Antonio"),
    # MLB
    (r"arizona diamondbacks|diamondbacks", "Arizona Diamondbacks", "MLB", "Phoenix"),
    (r"atlanta braves|braves", "Atlanta Braves", "MLB", "Atlanta"),
    (r"baltimore orioles|orioles", "Baltimore Orioles", "MLB", "Baltimore"),
    (r"boston red sox|red sox", "Boston Red Sox", "MLB", "Boston"),
    (r"chicago cubs|cubs", "Chicago Cubs", "MLB", "Chicago"),
    (r"chicago white sox|white sox", "Chicago White Sox", "MLB", "Chicago"),
    (r"cincinnati reds", "Cincinnati Reds", "MLB", "Cincinnati"),
    (r"cleveland guardians|guardians", "Cleveland Guardians", "MLB", "Cleveland"),
    (r"colorado rockies|rockies", "Colorado Rockies", "MLB", "Denver"),
    (r"detroit tigers", "Detroit Tigers", "MLB", "Detroit"),
    (r"houston astros|astros", "Houston Astros", "MLB", "Houston"),
    (r"kansas city royals|royals", "Kansas City Royals", "MLB", "Kansas City"),
    (r"los angeles angels", "Los Angeles Angels", "MLB", "Los Angeles"),
    (r"los angeles dodgers|dodgers", "Los Angeles Dodgers", "MLB", "Los Angeles"),
    (r"miami marlins|marlins", "Miami Marlins", "MLB", "Miami"),
    (r"milwaukee brewers|brewers", "Milwaukee Brewers", "MLB", "Milwaukee"),
    (r"minnesota twins", "Minnesota Twins", "MLB", "Minneapolis"),
    (r"new york mets|mets", "New York Mets", "MLB", "New York"),
    (r"new york yankees|yankees", "New York Yankees", "MLB", "New York"),
    (r"oakland athletics|athletics", "Athletics", "MLB", "Sacramento"),
    (r"philadelphia phillies|phillies", "Philadelphia Phillies", "MLB", "Philadelphia"),
    (r"pittsburgh pirates", "Pittsburgh Pirates", "MLB", "Pittsburgh"),
    (r"san diego padres|padres", "San Diego Padres", "MLB", "San Diego"),
    (r"san francisco giants", "San Francisco Giants", "MLB", "San Francisco"),
    (r"seattle mariners|mariners", "Seattle Mariners", "MLB", "Seattle"),
    (r"st\.? louis cardinals", "St. Louis Cardinals", "MLB", "St. Louis"),
    (r"tampa bay rays", "Tampa Bay Rays", "MLB", "Tampa"),
    (r"texas rangers", "Texas Rangers", "MLB", "Arlington"),
    (r"toronto blue jays|blue jays", "Toronto Blue Jays", "MLB", "Toronto"),
    (r"washington nationals", "Washington Nationals", "MLB", "Washington"),
    # Soccer
    (r"manchester city|man city", "Manchester City", "Soccer", "Manchester"),
    (r"manchester united|man united|man utd", "Manchester United", "Soccer", "Manchester"),
    (r"liverpool fc|liverpool", "Liverpool", "Soccer", "Liverpool"),
    (r"arsenal", "Arsenal", "Soccer", "London"),
    (r"chelsea", "Chelsea", "Soccer", "London"),
    (r"tottenham|spurs fc", "Tottenham Hotspur", "Soccer", "London"),
    (r"real madrid", "Real Madrid", "Soccer", "Madrid"),
    (r"atletico madrid|atlético madrid", "Atletico Madrid", "Soccer", "Madrid"),
    (r"fc barcelona|barcelona|barça", "Barcelona", "Soccer", "Barcelona"),
    (r"bayern munich|bayern", "Bayern Munich", "Soccer", "Munich"),
    (r"borussia dortmund|dortmund", "Borussia Dortmund", "Soccer", "Dortmund"),
    (r"paris saint-germain|psg", "Paris Saint-Germain", "Soccer", "Paris"),
    (r"juventus", "Juventus", "Soccer", "Turin"),
    (r"inter milan|ac milan", "Milan", "Soccer", "Milan"),
]

_TEAM_PATTERNS = [
    (re.compile(rf"\b(?:{alias})\b", re.IGNORECASE), name, sport, home) for alias, name, sport, home in TEAMS
]


def _place_pattern(names: list[str]) -> list[tuple[re.Pattern[str], str]]:
    # Longest first so "Kansas City" wins over "Kansas", "New York" over "York"
    ordered = sorted(set(names), key=len, reverse=True)
    return [(re.compile(rf"\b{re.escape(n)}\b", re.IGNORECASE), n) for n in ordered]


_CITY_PATTERNS = _place_pattern(CITIES)
_STATE_PATTERNS = _place_pattern(STATES)

POLITICAL_WORDS = re.compile(
    r"\b(election|elections|president|presidential|senate|senator|governor|mayor|primary|congress|nomination|parliament)\b",
    re.IGNORECASE,
)

ESPORTS_WORDS = re.compile(
    r"\b(e-?sports?|dota 2|dota|league of legends|counter-strike|cs2|cs:go|valorant|overwatch|"
    r"rocket league|starcraft|fortnite)\b",
    re.IGNORECASE,
)

# Ordered: first match wins
_SPORT_KEYWORDS: list[tuple[re.Pattern[str], str]] = [
    (ESPORTS_WORDS, "Esports"),
    (re.compile(r"\b(nfl|super bowl|american football|afc|nfc)\b", re.IGNORECASE), "NFL"),
    (
        re.compile(
            r"\b(soccer|premier league|champions league|europa league|la liga|serie a|bundesliga|"
            r"ligue 1|mls|uefa|fifa|epl)\b",
            re.IGNORECASE,
        ),
        "Soccer",
    ),
    (re.compile(r"\bfootball\b(?!\s*(market|stock|coin|currency))", re.IGNORECASE), "NFL"),
    (re.compile(r"\b(nba|basketball)\b(?!\s*(coin|market))", re.IGNORECASE), "NBA"),
    (re.compile(r"\b(mlb|baseball|world series)\b(?!\s*(coin|market))", re.IGNORECASE), "MLB"),
    (re.compile(r"\b(nhl|hockey|stanley cup)\b(?!\s*(coin|market))", re.IGNORECASE), "NHL"),
    (re.compile(r"\b(f1|formula 1|formula one|grand prix)\b", re.IGNORECASE), "F1"),
    (
        re.compile(
            r"\b(tennis|wimbledon|atp|wta|us open tennis|french open|roland garros|australian open)\b",
            re.IGNORECASE,
        ),
        "Tennis",
    ),
    (re.compile(r"\b(golf|pga|lpga|ryder cup|masters tournament|the open championship)\b", re.IGNORECASE), "Golf"),
    (re.compile(r"\b(cricket|ipl|t20|test match|ashes)\b", re.IGNORECASE), "Cricket"),
    (re.compile(r"\b(rugby|six nations)\b", re.IGNORECASE), "Rugby"),
    (re.compile(r"\b(marathon|triathlon|ironman|regatta)\b", re.IGNORECASE), "Marathon"),
]

_RACE = re.compile(r"\brace\b(?!\s*(car|horse))", re.IGNORECASE)

_WEATHER_KEYWORDS = re.compile(
    r"\b(weather|temperature|rain|rainfall|snow|snowfall|hurricane|tornado|heat wave|heatwave|precipitation)\b",
    re.IGNORECASE,
)

# Tag label -> category; order matters ("football" reads as soccer when it comes from a tag)
_TAG_CATEGORIES: list[tuple[str, str]] = [
    ("nfl", "NFL"),
    ("nba", "NBA"),
    ("mlb", "MLB"),
    ("nhl", "NHL"),
    ("golf", "Golf"),
    ("tennis", "Tennis"),
    ("soccer", "Soccer"),
    ("epl", "Soccer"),
    ("premier league", "Soccer"),
    ("la liga", "Soccer"),
    ("champions league", "Soccer"),
    ("football", "Soccer"),
    ("cricket", "Cricket"),
    ("rugby", "Rugby"),
    ("f1", "F1"),
    ("formula 1", "F1"),
    ("weather", "Weather"),
    ("climate", "Weather"),
    ("esports", "Esports"),
    ("crypto", "Crypto"),
    ("bitcoin", "Crypto"),
    ("politics", "Politics"),
    ("elections", "Politics"),
    ("sports", "Sports"),
]


@dataclass(frozen=True)
class MarketMetadata:
    location: str | None = None
    participants: list[Participant] = field(default_factory=list)
    category: str | None = None


def extract_location(text: str | None) -> str | None:
    """First city (longest match first) named in text, else first US state, else None."""
    if not text:
        return None
    for pattern, name in _CITY_PATTERNS:
        if pattern.search(text):
            return name
    for pattern, name in _STATE_PATTERNS:
        if pattern.search(text):
            return name
    return None


def extract_participants(text: str | None) -> list[Participant]:
    """Teams named in text, in table order, de-duplicated."""
    if not text:
        return []
    found: list[Participant] = []
    seen = set()
    for pattern, name, sport, home in _TEAM_PATTERNS:
        if name not in seen and pattern.search(text):
            found.append(Participant(name=name, sport=sport, home=home))
            seen.add(name)
    return found


def _keyword_category(text: str) -> str | None:
    for pattern, category in _SPORT_KEYWORDS:
        if pattern.search(text):
            return category
    if _RACE.search(text) and not POLITICAL_WORDS.search(text):
        return "Marathon"
    return None


def category_from_tags(tags: list | None) -> str | None:
    labels = " ".join(normalize_tags(tags))
    if not labels:
        return None
    for tag, category in _TAG_CATEGORIES:
        if re.search(rf"\b{re.escape(tag)}\b", labels):
            return category
    return None


def infer_category(
    title: str,
    description: str = "",
    tags: list | None = None,
    participants: list[Participant] | None = None,
) -> str | None:
    """Category precedence: named team > title keywords > provider tags > description > weather wording."""
    if participants:
        return participants[0].sport
    category = _keyword_category(title)
    if category:
        return category
    tag_category = category_from_tags(tags)
    if tag_category and tag_category != "Sports":
        return tag_category
    category = _keyword_category(description) if description else None
    if category:
        return category
    if _WEATHER_KEYWORDS.search(title):
        return "Weather"
    return tag_category


def extract_metadata(title: str, description: str = "", tags: list | None = None) -> MarketMetadata:
    """Venue, participants and category from text + tags. Pure; never raises on odd input."""
    if not title:
        return MarketMetadata(category=category_from_tags(tags))
    participants = extract_participants(title)
    location = extract_location(title)
    if location is None and participants:
        location = participants[0].home
    return MarketMetadata(
        location=location,
        participants=participants,
        category=infer_category(title, description, tags, participants),
    )


def apply_metadata(market: Market) -> Market:
    """New Market with location/participants/category filled in; a provider category is kept if we find none."""
    meta = extract_metadata(market.title, market.description, market.tags)
    return market.model_copy(
        update={
            "location": meta.location,
            "participants": meta.participants,
            "category": meta.category or market.category,
        }
    )
